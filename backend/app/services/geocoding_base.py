"""
YelpCamp Backend - Abstract Geocoding Interface
=================================================

What:  Contract for turning a typed location into a map point.
How:   Concrete providers inherit from GeocodingService and implement
       forward() and health_check().
Who:   Called by CampgroundService when a campground is created or its
       location changes; probed by GET /health.

Implementations:
    - MapboxGeocodingService: Mapbox Places forward geocoding (default)
    - Test doubles subclass this directly and return fixed points
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class GeocodingService(ABC):
    """
    Abstract interface for forward geocoding.

    Contract:
        - forward() returns a GeoJSON Point: {"type": "Point", "coordinates": [lon, lat]}
        - An address with no match raises ValidationError (the user can fix it)
        - Provider outages raise GeocodingError or CircuitBreakerOpenError
    """

    @abstractmethod
    async def forward(self, query: str) -> Dict[str, Any]:
        """
        Look up `query` and return the best matching point.

        Raises:
            ValidationError:          no feature matched the query
            GeocodingError:           provider failed after all retries
            CircuitBreakerOpenError:  too many recent provider failures
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True when the provider is configured and not known to be failing."""
        ...

    @property
    def circuit_state(self) -> str:
        return "closed"
