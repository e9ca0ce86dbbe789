from typing import Union

from shapely.geometry import Polygon, MultiPolygon
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _require_name(v: str) -> str:
    if not v.strip():
        raise ValueError("name must not be blank")
    return v


class Neighborhood(BaseModel):
    """A localised community within a larger city (e.g. 'Downtown').

    Latitude/longitude hold the centroid of the neighborhood's polygon, not the
    point that was resolved to it. Identity for counting is ``name`` alone.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    city: str = Field(default="", alias="city_name")
    state_or_province: str = Field(default="", alias="state_or_province_name")
    country: str = ""
    latitude: float
    longitude: float

    @field_validator('name')
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        return _require_name(v)

    @property
    def coordinates(self) -> tuple[float, float]:
        """(longitude, latitude), the order distance providers expect."""
        return (self.longitude, self.latitude)


class NeighborhoodRecord(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    city: str
    state: str
    country: str
    geometry: Union[Polygon, MultiPolygon]

    # Rows without a name could never become a Neighborhood in a lookup
    @field_validator('name')
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        return _require_name(v)
