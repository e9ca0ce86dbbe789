"""
OpenStreetMap Nominatim wrapper implementing the Geocoder interface.

Reference: https://nominatim.org/release-docs/latest/api/Search/
"""

import time
from typing import Optional, Any
import logging
import requests

from ..settings import settings
from .base import Geocoder, RateLimiter
from .models import GeocodeResult, GeocodeStatus
from .throttling import SimpleRateGate

logger = logging.getLogger(__name__)


class NominatimGeocoder(Geocoder):
    """
    Nominatim search API wrapper.

    Returns the top-ranked match for a free-text address. HTTP and network
    errors are retried with exponential backoff; an empty result set is a
    NOT_FOUND result, not an error.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        rate_limiter: Optional[RateLimiter] = None,
        max_retries: Optional[int] = None,
        retry_delay_s: float = 1.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Nominatim wrapper. Unset arguments fall back to settings.

        Args:
            base_url: Nominatim server (default: public OSM instance)
            user_agent: Identifying User-Agent, required by the usage policy
            timeout: HTTP request timeout in seconds
            rate_limiter: Rate limiter (defaults to settings.geocoder_requests_per_second)
            max_retries: Attempts per query on transient errors
            retry_delay_s: Base delay between retries in seconds
            session: Optional requests session to reuse connections
        """
        self.base_url = base_url or settings.nominatim_url
        self.user_agent = user_agent or settings.geocoder_user_agent
        self.timeout = timeout if timeout is not None else settings.geocoder_timeout_s
        self.rate_limiter = rate_limiter or SimpleRateGate(settings.geocoder_requests_per_second)
        self.max_retries = max(1, max_retries if max_retries is not None else settings.geocoder_max_retries)
        self.retry_delay_s = retry_delay_s
        self.session = session or requests.Session()

        logger.info(
            f"Initialized NominatimGeocoder: {self.base_url}, "
            f"retries={self.max_retries}, timeout={self.timeout}s"
        )

    @staticmethod
    def _extract_coordinates(response: Any) -> tuple[Optional[float], Optional[float]]:
        """
        Pull (latitude, longitude) from a search response.

        Nominatim returns a JSON array of places with coordinates as strings.
        """
        if not isinstance(response, list) or not response:
            return None, None
        place = response[0]
        try:
            return float(place.get("lat")), float(place.get("lon"))
        except (AttributeError, TypeError, ValueError):
            return None, None

    def geocode(self, query: str) -> GeocodeResult:
        """
        Geocode a single address.

        Args:
            query: Address or place name

        Returns:
            GeocodeResult with coordinates or error details
        """
        if not query or not query.strip():
            return GeocodeResult(
                query=query,
                status=GeocodeStatus.INVALID_INPUT,
                error="Empty query",
            )

        last_error = ""
        http_status = None
        for attempt in range(self.max_retries):
            if attempt > 0:
                time.sleep(self.retry_delay_s * (2 ** (attempt - 1)))  # exponential backoff
            self.rate_limiter.wait()

            try:
                response = self._query_search(query)
            except (requests.RequestException, ValueError) as e:
                logger.warning(f"Attempt {attempt+1}/{self.max_retries} failed for '{query}': {e}")
                last_error = str(e)[:500]
                http_status = None
                if isinstance(e, requests.HTTPError) and e.response is not None:
                    http_status = e.response.status_code
                continue

            lat, lon = self._extract_coordinates(response)
            if lat is not None and lon is not None and -90 <= lat <= 90 and -180 <= lon <= 180:
                return GeocodeResult(query=query, latitude=lat, longitude=lon, status=GeocodeStatus.OK)

            logger.debug(f"No coordinates found for '{query}'")
            return GeocodeResult(
                query=query,
                status=GeocodeStatus.NOT_FOUND,
                error="No coordinates found in response",
            )

        # All retries exhausted
        return GeocodeResult(
            query=query,
            status=GeocodeStatus.API_ERROR,
            error=last_error,
            http_status=http_status,
        )

    def _query_search(self, query: str) -> Any:
        """
        Query the Nominatim /search endpoint.

        Raises:
            requests.RequestException on network/HTTP errors
            ValueError if the response is not JSON
        """
        endpoint = f"{self.base_url.rstrip('/')}/search"
        params = {
            "q": query,
            "format": "jsonv2",
            "limit": 1,
        }
        headers = {
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }

        logger.debug(f"Querying Nominatim: {query}")
        response = self.session.get(endpoint, params=params, headers=headers, timeout=self.timeout)
        logger.debug(f"Nominatim status: {response.status_code}")

        response.raise_for_status()
        return response.json()
