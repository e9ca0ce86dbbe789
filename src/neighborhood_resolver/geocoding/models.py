"""
Data models for geocoding attractions.

Attraction is validated input (pydantic); GeocodeResult is an immutable
frozen dataclass passed between the geocoder and the pipeline.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Attraction(BaseModel):
    """A point of interest to be placed in a neighborhood."""
    model_config = ConfigDict(frozen=True)

    name: str
    address: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def geocode_query(self) -> str:
        """Free text sent to the geocoder: the address, else the name."""
        return self.address.strip() or self.name.strip()

    def with_coordinates(self, latitude: float, longitude: float) -> "Attraction":
        return self.model_copy(update={'latitude': latitude, 'longitude': longitude})


class GeocodeStatus(StrEnum):
    """Status of a geocode request."""
    OK = "ok"
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    API_ERROR = "api_error"


@dataclass(frozen=True)
class GeocodeResult:
    """Coordinates (or the reason there are none) for one geocoding query."""
    query: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: GeocodeStatus = GeocodeStatus.NOT_FOUND
    error: Optional[str] = None
    http_status: Optional[int] = None

    def is_success(self) -> bool:
        """Both coordinates present and within valid geographic ranges."""
        if self.latitude is None or self.longitude is None:
            return False
        return -90 <= self.latitude <= 90 and -180 <= self.longitude <= 180

