"""
- Models: Attraction, GeocodeResult, GeocodeStatus
- Base classes: Geocoder, RateLimiter
- Geocoders: Nominatim (OpenStreetMap) search
- Throttling: Rate limiting for API calls
"""

from .models import (
    Attraction,
    GeocodeStatus,
    GeocodeResult,
)

from .base import (
    Geocoder,
    RateLimiter,
)

from .throttling import (
    SimpleRateGate,
    NoOpRateLimiter,
)

from .geocoders import (
    NominatimGeocoder,
)

__all__ = [
    # Models
    "Attraction",
    "GeocodeStatus",
    "GeocodeResult",
    # Base classes
    "Geocoder",
    "RateLimiter",
    # Throttling
    "SimpleRateGate",
    "NoOpRateLimiter",
    # Geocoders
    "NominatimGeocoder",
]
