"""Resolve a batch of attractions to the single neighborhood that best represents it.

Steps:
1. Geocode attractions that have no coordinates yet
2. Locate the neighborhood containing each geocoded attraction
3. Select the best neighborhood (most frequent, then most central)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional
import logging

from pydantic import BaseModel
from tqdm import tqdm

from .geocoding import Attraction, Geocoder
from .neighborhoods import GeospatialLookup, Neighborhood
from .selection import BestNeighborhoodResolver
from .utils.errors import NoCandidatesError
from .utils.pipeline_mixin import PipelineMixin

logger = logging.getLogger('AttractionPipeline')


class AttractionsResult(BaseModel):
    successful_attractions: list[Attraction] = []
    failed_attractions: list[Attraction] = []
    closest_neighborhood: Optional[Neighborhood] = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


@dataclass
class _AttractionBatch:
    attractions: list[Attraction]
    successful: list[Attraction] = field(default_factory=list)
    failed: list[Attraction] = field(default_factory=list)
    candidates: list[Neighborhood] = field(default_factory=list)
    closest: Optional[Neighborhood] = None


class AttractionPipeline(PipelineMixin):
    """Geocode -> locate -> select, for one batch of attractions.

    Attractions that cannot be geocoded are reported as failed. Geocoded
    attractions outside every neighborhood polygon still count as successful
    but do not contribute a candidate. When no candidate remains the result has
    no closest neighborhood. DistanceResolutionError is not caught: the caller
    should treat it as retryable.

    Usage:
        pipeline = AttractionPipeline(
            geocoder=NominatimGeocoder(),
            lookup=DuckDBLookup(),
            resolver=BestNeighborhoodResolver(HaversineDistanceProvider()),
        )
        result = pipeline.run(attractions)
    """

    NAME = 'Attractions'

    def __init__(self, geocoder: Geocoder, lookup: GeospatialLookup, resolver: BestNeighborhoodResolver):
        self.geocoder = geocoder
        self.lookup = lookup
        self.resolver = resolver

    def run(self, attractions: Iterable[Attraction], progress: bool = False) -> AttractionsResult:
        batch = _AttractionBatch(attractions=list(attractions))
        logger.info(f"Resolving neighborhood for {len(batch.attractions)} attractions")

        batch = self._execute_pipeline(batch, progress=progress, show_bar=progress)

        return AttractionsResult(
            successful_attractions=batch.successful,
            failed_attractions=batch.failed,
            closest_neighborhood=batch.closest,
        )

    def _load_pipeline(self, show_bar: bool = False, **kwargs: Any):
        return [
            ('Geocode Attractions', self.geocode_attractions, {'show_bar': show_bar}),
            ('Locate Neighborhoods', self.locate_neighborhoods, {}),
            ('Select Best Neighborhood', self.select_best_neighborhood, {}),
        ]

    def geocode_attractions(self, batch: _AttractionBatch, show_bar: bool = False) -> _AttractionBatch:
        for attraction in tqdm(batch.attractions, desc="Geocoding", unit="attraction", disable=not show_bar):
            if attraction.has_coordinates():
                batch.successful.append(attraction)
                continue

            result = self.geocoder.geocode(attraction.geocode_query())
            if not result.is_success():
                logger.warning(f"Unable to geocode '{attraction.name}': {result.status} {result.error or ''}".rstrip())
                batch.failed.append(attraction)
                continue

            batch.successful.append(attraction.with_coordinates(result.latitude, result.longitude))

        logger.info(f"Geocoded {len(batch.successful)} attractions, {len(batch.failed)} failed")
        return batch

    def locate_neighborhoods(self, batch: _AttractionBatch) -> _AttractionBatch:
        for attraction in batch.successful:
            neighborhood = self.lookup.find_containing_neighborhood(attraction.longitude, attraction.latitude)
            if neighborhood is None:
                logger.warning(f"No neighborhood contains '{attraction.name}'")
                continue
            batch.candidates.append(neighborhood)

        logger.info(f"Located {len(batch.candidates)} of {len(batch.successful)} attractions in a neighborhood")
        return batch

    def select_best_neighborhood(self, batch: _AttractionBatch) -> _AttractionBatch:
        try:
            batch.closest = self.resolver.resolve(batch.candidates)
        except NoCandidatesError as e:
            logger.info(f"No best neighborhood: {e}")
            batch.closest = None
        return batch

