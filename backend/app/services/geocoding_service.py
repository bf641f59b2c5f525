"""
YelpCamp Backend - Mapbox Geocoding Service
=============================================

What:  Forward geocoding of campground locations through the Mapbox Places API.
How:   GET {GEOCODING_URL}/{query}.json?access_token=...&limit=1 via httpx,
       wrapped in tenacity retries and a circuit breaker.
Who:   A singleton is shared by all requests (it owns the breaker state).
When:  Before a campground is written, on create and when the location changes.

Resilience Strategy:
    1. Tenacity retry with exponential backoff + jitter for transport errors,
       429 and 5xx responses
    2. Circuit breaker: after cb_failure_threshold failed lookups, calls fail
       immediately for cb_recovery_timeout seconds
    3. A lookup that succeeds but matches nothing is NOT a provider failure;
       it is a ValidationError on campground.location
"""

import logging
import time
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import settings
from app.exceptions import CircuitBreakerOpenError, GeocodingError, ValidationError
from app.services.geocoding_base import GeocodingService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker guarding calls to an upstream provider.

    State Machine:
        CLOSED (normal operation)
            → On failure: increment failure_count
            → When failure_count >= threshold: transition to OPEN
        OPEN (rejecting all requests)
            → All calls raise CircuitBreakerOpenError immediately
            → After recovery_timeout seconds: transition to HALF_OPEN
        HALF_OPEN (testing recovery)
            → Allow ONE request through
            → On success: CLOSED; on failure: back to OPEN

    Not thread-safe; one uvicorn worker shares one instance across tasks.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Returns True if the call may proceed.

        Raises:
            CircuitBreakerOpenError while OPEN and the recovery timeout has not elapsed.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info(
                    "Circuit breaker transitioning to HALF_OPEN after %.1fs",
                    elapsed,
                )
                self.state = self.HALF_OPEN
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(recovery_time=max(remaining, 1))

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (test request failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


class _RetryableResponse(Exception):
    """Provider answered 429/5xx; worth another attempt."""

    def __init__(self, status_code: int):
        super().__init__(f"geocoder returned HTTP {status_code}")
        self.status_code = status_code


# ══════════════════════════════════════════════════════════════════════════
# Mapbox Service
# ══════════════════════════════════════════════════════════════════════════

class MapboxGeocodingService(GeocodingService):
    """
    Mapbox Places forward geocoder.

    Error Handling Chain:
        transport error / 429 / 5xx → tenacity retries (retry_max_attempts)
        → retries exhausted → record breaker failure → GeocodingError (503)
        → threshold reached → later calls raise CircuitBreakerOpenError at once
        other 4xx (bad token) → breaker failure → GeocodingError, no retry
        200 with no features  → breaker success → ValidationError (400)
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            token:      Mapbox access token (defaults to settings.mapbox_token)
            base_url:   Endpoint prefix (defaults to settings.geocoding_url)
            transport:  httpx transport override; tests pass an httpx.MockTransport
        """
        self.token = settings.mapbox_token if token is None else token
        self.base_url = (base_url or settings.geocoding_url).rstrip("/")
        self._transport = transport
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

    @property
    def circuit_state(self) -> str:
        return self.circuit_breaker.state

    async def forward(self, query: str) -> Dict[str, Any]:
        if not self.token:
            raise GeocodingError(
                message="Location lookup is not configured on this server.",
                context={"reason": "missing MAPBOX_TOKEN"},
            )

        self.circuit_breaker.can_execute()

        try:
            data = await self._fetch(query)
        except (httpx.TransportError, _RetryableResponse) as e:
            self.circuit_breaker.record_failure()
            logger.error("Geocoding '%s' failed after retries: %s", query, e)
            raise GeocodingError(
                retry_after=self.circuit_breaker.recovery_timeout,
                context={"query": query, "attempts": settings.retry_max_attempts},
            ) from e
        except httpx.HTTPStatusError as e:
            self.circuit_breaker.record_failure()
            logger.error(
                "Geocoding '%s' rejected with HTTP %d", query, e.response.status_code
            )
            raise GeocodingError(
                context={"query": query, "status": e.response.status_code},
            ) from e

        self.circuit_breaker.record_success()

        features = data.get("features") or []
        if not features or not (features[0].get("geometry") or {}).get("coordinates"):
            raise ValidationError(
                message='"campground.location" could not be found on the map',
                field="campground.location",
                context={"query": query},
            )

        lon, lat = features[0]["geometry"]["coordinates"][:2]
        logger.info("Geocoded '%s' to (%.5f, %.5f)", query, lon, lat)
        return {"type": "Point", "coordinates": [float(lon), float(lat)]}

    @retry(
        retry=retry_if_exception_type((httpx.TransportError, _RetryableResponse)),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=settings.retry_jitter,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _fetch(self, query: str) -> Dict[str, Any]:
        """One HTTP round trip; retried by tenacity, breaker handled by forward()."""
        url = f"{self.base_url}/{quote(query, safe='')}.json"
        params = {"access_token": self.token, "limit": 1}
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=settings.geocoding_timeout,
        ) as client:
            response = await client.get(url, params=params)

        if response.status_code == 429 or response.status_code >= 500:
            raise _RetryableResponse(response.status_code)
        response.raise_for_status()
        return response.json()

    async def health_check(self) -> bool:
        return bool(self.token) and self.circuit_breaker.state != CircuitBreaker.OPEN


# ── Singleton Instance ────────────────────────────────────────────────────
# Shared so the circuit breaker state spans requests
geocoding_service = MapboxGeocodingService()
