"""
Abstract base classes for attraction geocoding.
"""

from abc import ABC, abstractmethod
from typing import List

from .models import GeocodeResult


class Geocoder(ABC):
    """
    Abstract base for geocoders.

    Geocoders turn a free-text address into coordinates.
    """

    @abstractmethod
    def geocode(self, query: str) -> GeocodeResult:
        """
        Geocode a single query.

        Args:
            query: Address or place name

        Returns:
            GeocodeResult with coordinates or the failure status
        """
        pass

    def geocode_batch(self, queries: List[str]) -> List[GeocodeResult]:
        """
        Geocode multiple queries. Default implementation calls geocode()
        for each one, in order.
        """
        return [self.geocode(q) for q in queries]


class RateLimiter(ABC):
    """
    Abstract base for rate limiters that keep geocoding within a
    provider's usage policy.
    """

    @abstractmethod
    def wait(self) -> None:
        """Block until it's safe to make another request."""
        pass
