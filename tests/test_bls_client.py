"""
Tests for the BLS API client.

All HTTP traffic goes through httpx.MockTransport; no network access.
"""

import httpx
import pytest

from occsync.core.events import EventBus, EventType
from occsync.core.exceptions import (
    CredentialsExhaustedError,
    InvalidCredentialError,
    RateLimitError,
    RetryableError,
    UpstreamError,
    UpstreamNetworkError,
)
from occsync.services.bls_client import (
    DATATYPE_EMPLOYMENT,
    DATATYPE_MEDIAN_WAGE,
    oews_series_id,
    parse_latest_value,
)
from occsync.services.credential_pool import CredentialPool

from conftest import KEY_A, KEY_B, bls_failure, bls_success


class TestSeriesIds:
    """Tests for OEWS series id construction and value parsing."""

    def test_employment_series_id(self):
        assert oews_series_id("15-1252", DATATYPE_EMPLOYMENT) == "OEUN000000000000015125201"

    def test_wage_series_id(self):
        assert oews_series_id("29-1141", DATATYPE_MEDIAN_WAGE) == "OEUN000000000000029114113"

    def test_parse_latest_value(self):
        points = [{"value": "1,847,900"}, {"value": "1,700,000"}]

        assert parse_latest_value(points) == 1847900.0

    @pytest.mark.parametrize("raw", ["-", "*", "(8)", ""])
    def test_missing_markers(self, raw):
        assert parse_latest_value([{"value": raw}]) is None

    def test_empty_series(self):
        assert parse_latest_value([]) is None

    def test_unparseable_value(self):
        assert parse_latest_value([{"value": "n/a"}]) is None


@pytest.mark.asyncio
class TestFetchSeries:
    """Tests for fetch_series."""

    async def test_success_uses_one_request_of_quota(self, make_bls_client):
        pool = CredentialPool([KEY_A], daily_quota=10)
        seen = []

        def handler(body):
            seen.append(body)
            return httpx.Response(200, json=bls_success("42"))

        client = make_bls_client(pool, handler)
        points = await client.fetch_series("CEU0000000001")

        assert points == [{"year": "2024", "period": "A01", "value": "42"}]
        assert pool.remaining_capacity() == 9
        assert seen[0]["registrationkey"] == KEY_A
        assert seen[0]["seriesid"] == ["CEU0000000001"]
        assert seen[0]["startyear"] == "2022"
        assert seen[0]["endyear"] == "2024"

    async def test_no_credentials_raises_exhausted(self, make_bls_client):
        pool = CredentialPool([])
        client = make_bls_client(pool, lambda body: httpx.Response(200, json=bls_success()))

        with pytest.raises(CredentialsExhaustedError) as exc_info:
            await client.fetch_series("X")

        assert exc_info.value.retry_after > 0

    async def test_http_429_blocks_credential(self, make_bls_client):
        pool = CredentialPool([KEY_A, KEY_B], daily_quota=10)
        client = make_bls_client(pool, lambda body: httpx.Response(429))

        with pytest.raises(RateLimitError) as exc_info:
            await client.fetch_series("X")

        assert exc_info.value.status_code == 429
        assert pool.summary()["blocked"] == 1
        assert pool.select_credential().secret == KEY_B

    async def test_rate_limit_message_blocks_credential(self, make_bls_client):
        pool = CredentialPool([KEY_A], daily_quota=10)
        failure = bls_failure("Daily threshold for total number of requests allocated is exceeded")
        client = make_bls_client(pool, lambda body: httpx.Response(200, json=failure))

        with pytest.raises(RateLimitError):
            await client.fetch_series("X")

        assert pool.select_credential() is None

    async def test_invalid_key_message_removes_credential(self, make_bls_client):
        pool = CredentialPool([KEY_A, KEY_B], daily_quota=10)
        failure = bls_failure("The key provided by the User is invalid.")
        client = make_bls_client(pool, lambda body: httpx.Response(200, json=failure))

        with pytest.raises(InvalidCredentialError):
            await client.fetch_series("X")

        assert KEY_A not in pool
        assert len(pool) == 1

    async def test_other_failure_message(self, make_bls_client):
        pool = CredentialPool([KEY_A])
        failure = bls_failure("Series does not exist for Series OEUN000")
        client = make_bls_client(pool, lambda body: httpx.Response(200, json=failure))

        with pytest.raises(UpstreamError):
            await client.fetch_series("X")

        assert KEY_A in pool

    async def test_server_error_is_retryable(self, make_bls_client):
        pool = CredentialPool([KEY_A])
        client = make_bls_client(pool, lambda body: httpx.Response(503))

        with pytest.raises(RetryableError):
            await client.fetch_series("X")

    async def test_transport_error(self, make_bls_client):
        def handler(body):
            raise httpx.ConnectError("connection refused")

        pool = CredentialPool([KEY_A])
        client = make_bls_client(pool, handler)

        with pytest.raises(UpstreamNetworkError):
            await client.fetch_series("X")

    async def test_non_json_response(self, make_bls_client):
        pool = CredentialPool([KEY_A])
        client = make_bls_client(pool, lambda body: httpx.Response(200, text="<html>maintenance</html>"))

        with pytest.raises(UpstreamError):
            await client.fetch_series("X")

    async def test_api_call_events(self, make_bls_client):
        events = EventBus()
        received = []
        events.subscribe(received.append, {EventType.API_CALL})
        pool = CredentialPool([KEY_A])
        responses = iter([httpx.Response(200, json=bls_success()), httpx.Response(500)])
        client = make_bls_client(pool, lambda body: next(responses), events=events)

        await client.fetch_series("X")
        with pytest.raises(RetryableError):
            await client.fetch_series("Y")

        assert [e.payload["success"] for e in received] == [True, False]
        assert all(e.payload["latency_ms"] >= 0 for e in received)


@pytest.mark.asyncio
class TestOccupationStats:
    """Tests for fetch_occupation_stats."""

    async def test_fetches_employment_and_wage(self, make_bls_client):
        def handler(body):
            series_id = body["seriesid"][0]
            if series_id.endswith(DATATYPE_EMPLOYMENT):
                return httpx.Response(200, json=bls_success("1,847,900"))
            return httpx.Response(200, json=bls_success("132270"))

        pool = CredentialPool([KEY_A], daily_quota=10)
        client = make_bls_client(pool, handler)

        stats = await client.fetch_occupation_stats("15-1252")

        assert stats.code == "15-1252"
        assert stats.employment == 1847900
        assert stats.median_wage == 132270.0
        assert pool.remaining_capacity() == 8

    async def test_missing_values_become_none(self, make_bls_client):
        pool = CredentialPool([KEY_A])
        client = make_bls_client(pool, lambda body: httpx.Response(200, json=bls_success("-")))

        stats = await client.fetch_occupation_stats("15-1252")

        assert stats.employment is None
        assert stats.median_wage is None


@pytest.mark.asyncio
class TestValidateKey:
    """Tests for validate_key."""

    async def test_valid_key(self, make_bls_client):
        client = make_bls_client(CredentialPool([]), lambda body: httpx.Response(200, json=bls_success()))

        assert await client.validate_key(KEY_A) is True

    async def test_invalid_key(self, make_bls_client):
        failure = bls_failure("The key provided by the User is invalid.")
        client = make_bls_client(CredentialPool([]), lambda body: httpx.Response(200, json=failure))

        assert await client.validate_key(KEY_A) is False

    async def test_rate_limited_key_is_still_valid(self, make_bls_client):
        failure = bls_failure("Daily threshold for total number of requests allocated is exceeded")
        client = make_bls_client(CredentialPool([]), lambda body: httpx.Response(200, json=failure))

        assert await client.validate_key(KEY_A) is True

    async def test_validation_does_not_use_quota(self, make_bls_client):
        pool = CredentialPool([KEY_A], daily_quota=10)
        seen = []

        def handler(body):
            seen.append(body)
            return httpx.Response(200, json=bls_success())

        client = make_bls_client(pool, handler)
        await client.validate_key(KEY_B)

        assert seen[0]["registrationkey"] == KEY_B
        assert seen[0]["seriesid"] == ["CEU0000000001"]
        assert pool.remaining_capacity() == 10

    async def test_network_failure_keeps_key_in_pool(self, make_bls_client):
        def handler(body):
            raise httpx.ConnectError("connection refused")

        pool = CredentialPool([], validator=None)
        client = make_bls_client(pool, handler)
        pool.validator = client.validate_key

        assert await pool.add_credential(KEY_A) is True
        assert KEY_A in pool
