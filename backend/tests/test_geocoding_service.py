"""
YelpCamp Backend - Geocoding Service Unit Tests (Mocked)
==========================================================

What:  Tests for MapboxGeocodingService and its CircuitBreaker.
How:   The service is given an httpx.MockTransport, so no request leaves the
       process. conftest sets RETRY_MAX_ATTEMPTS=2 with zero backoff and
       CB_FAILURE_THRESHOLD=2.

What we test:
    ✅ A matched query returns a GeoJSON Point
    ✅ No match is a ValidationError, not a provider failure
    ✅ 5xx and transport errors are retried, then surface as GeocodingError
    ✅ Circuit breaker opens after consecutive failed lookups
    ✅ Missing token fails fast without a request
    ❌ Real Mapbox calls
"""

import time

import httpx
import pytest

from app.exceptions import CircuitBreakerOpenError, GeocodingError, ValidationError
from app.services.geocoding_service import CircuitBreaker, MapboxGeocodingService

BOULDER = {
    "type": "FeatureCollection",
    "features": [
        {"geometry": {"type": "Point", "coordinates": [-105.2705, 40.015]}},
    ],
}


def make_service(handler, token="test-token"):
    """Service whose HTTP traffic goes to `handler`; returns (service, seen requests)."""
    seen = []

    def record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    service = MapboxGeocodingService(
        token=token,
        base_url="https://geocoder.test/places",
        transport=httpx.MockTransport(record),
    )
    return service, seen


class TestCircuitBreaker:
    """Tests for the CircuitBreaker state machine."""

    def test_initial_state_is_closed(self):
        """New breaker allows calls."""
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=60)
        assert cb.state == "closed"
        assert cb.can_execute()

    def test_stays_closed_under_threshold(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=60)
        cb.record_failure()
        cb.record_failure()
        assert cb.state == "closed"

    def test_open_rejects_calls(self):
        """OPEN raises CircuitBreakerOpenError with the remaining wait."""
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=60)
        cb.record_failure()
        assert cb.state == "open"
        with pytest.raises(CircuitBreakerOpenError) as exc_info:
            cb.can_execute()
        assert 1 <= exc_info.value.recovery_time <= 60

    def test_half_open_after_timeout(self):
        """Once the timeout passes a single trial call is let through."""
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=1)
        cb.record_failure()
        cb.last_failure_time = time.time() - 2
        assert cb.can_execute()
        assert cb.state == "half_open"

    def test_half_open_failure_reopens(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=1)
        cb.state = CircuitBreaker.HALF_OPEN
        cb.record_failure()
        assert cb.state == "open"

    def test_success_closes_and_resets(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=1)
        cb.state = CircuitBreaker.HALF_OPEN
        cb.failure_count = 4
        cb.record_success()
        assert cb.state == "closed"
        assert cb.failure_count == 0


class TestForwardGeocoding:
    """Tests for MapboxGeocodingService.forward()."""

    @pytest.mark.asyncio
    async def test_success_returns_point(self):
        """The first feature's coordinates become a Point."""
        service, seen = make_service(lambda request: httpx.Response(200, json=BOULDER))

        point = await service.forward("Boulder, Colorado")

        assert point == {"type": "Point", "coordinates": [-105.2705, 40.015]}
        assert len(seen) == 1
        assert seen[0].url.path.startswith("/places/Boulder")
        assert seen[0].url.path.endswith(".json")
        assert seen[0].url.params["access_token"] == "test-token"
        assert seen[0].url.params["limit"] == "1"

    @pytest.mark.asyncio
    async def test_no_match_is_validation_error(self):
        """An empty result blames the location, and the breaker stays closed."""
        service, _ = make_service(
            lambda request: httpx.Response(200, json={"type": "FeatureCollection", "features": []})
        )

        with pytest.raises(ValidationError) as exc_info:
            await service.forward("Atlantis")

        assert exc_info.value.field == "campground.location"
        assert service.circuit_state == "closed"
        assert service.circuit_breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_server_error_retried_then_fails(self):
        """Each attempt is retried up to RETRY_MAX_ATTEMPTS, then GeocodingError."""
        service, seen = make_service(lambda request: httpx.Response(503))

        with pytest.raises(GeocodingError) as exc_info:
            await service.forward("Boulder, Colorado")

        assert len(seen) == 2
        assert exc_info.value.retry_after == service.circuit_breaker.recovery_timeout
        assert service.circuit_breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_retry_recovers(self):
        """A transient 500 followed by a 200 succeeds."""
        responses = iter([httpx.Response(500), httpx.Response(200, json=BOULDER)])
        service, seen = make_service(lambda request: next(responses))

        point = await service.forward("Boulder, Colorado")

        assert point["type"] == "Point"
        assert len(seen) == 2
        assert service.circuit_breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_transport_error_retried(self):
        """Connection failures are retried like 5xx responses."""

        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        service, seen = make_service(refuse)

        with pytest.raises(GeocodingError):
            await service.forward("Boulder, Colorado")
        assert len(seen) == 2

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self):
        """A rejected token fails once, without retries."""
        service, seen = make_service(lambda request: httpx.Response(401))

        with pytest.raises(GeocodingError) as exc_info:
            await service.forward("Boulder, Colorado")

        assert len(seen) == 1
        assert exc_info.value.context["status"] == 401

    @pytest.mark.asyncio
    async def test_circuit_opens_after_threshold(self):
        """After CB_FAILURE_THRESHOLD failed lookups no request is made."""
        service, seen = make_service(lambda request: httpx.Response(500))

        for _ in range(2):
            with pytest.raises(GeocodingError):
                await service.forward("Boulder, Colorado")
        assert service.circuit_state == "open"
        assert not await service.health_check()

        requests_before = len(seen)
        with pytest.raises(CircuitBreakerOpenError):
            await service.forward("Boulder, Colorado")
        assert len(seen) == requests_before

    @pytest.mark.asyncio
    async def test_missing_token(self):
        """No token: GeocodingError before any request, and unhealthy."""
        service, seen = make_service(lambda request: httpx.Response(200, json=BOULDER), token="")

        with pytest.raises(GeocodingError, match="not configured"):
            await service.forward("Boulder, Colorado")

        assert seen == []
        assert not await service.health_check()
