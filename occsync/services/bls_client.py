"""
Client for the BLS public time-series API.

Every request draws one unit of quota from the credential pool. Rate-limit
responses block the credential for a cooldown; an explicit invalid-key response
removes it from the pool. Each call is published as an API_CALL event so the
health monitor can track upstream error rate and latency.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

import httpx
import structlog

from occsync.core.config import settings
from occsync.core.events import EventBus, EventType
from occsync.core.exceptions import (
    CredentialsExhaustedError,
    ErrorCategory,
    InvalidCredentialError,
    RateLimitError,
    RetryableError,
    UpstreamError,
    UpstreamNetworkError,
    classify_message,
)
from occsync.services.credential_pool import Credential, CredentialPool

logger = structlog.get_logger(__name__)

SUCCESS_STATUS = "REQUEST_SUCCEEDED"

# OEWS series: prefix + national area + all industries + occupation + datatype
OEWS_PREFIX = "OEUN"
OEWS_AREA = "0000000"
OEWS_INDUSTRY = "000000"
DATATYPE_EMPLOYMENT = "01"
DATATYPE_MEDIAN_WAGE = "13"

# Known-good reference query used to check a key
VALIDATION_SERIES = "CEU0000000001"
VALIDATION_YEAR = "2023"

# Footnote markers BLS uses in place of a value
MISSING_VALUES = {"", "-", "*", "**", "#", "(8)"}


@dataclass(frozen=True)
class OccupationStats:
    """Latest published statistics for one occupation."""

    code: str
    employment: Optional[int] = None
    median_wage: Optional[float] = None
    title: Optional[str] = None


def oews_series_id(code: str, datatype: str) -> str:
    """Build an OEWS series id, e.g. 15-1252 employment -> OEUN000000000000015125201."""
    return f"{OEWS_PREFIX}{OEWS_AREA}{OEWS_INDUSTRY}{code.replace('-', '')}{datatype}"


def parse_latest_value(data_points: list[dict[str, Any]]) -> Optional[float]:
    """Numeric value of the most recent data point (BLS lists newest first)."""
    if not data_points:
        return None
    raw = str(data_points[0].get("value", "")).replace(",", "").strip()
    if raw in MISSING_VALUES:
        return None
    try:
        return float(raw)
    except ValueError:
        logger.warning("unparseable BLS value", value=raw)
        return None


class BLSClient:
    """Async BLS API client bound to a credential pool."""

    def __init__(
        self,
        pool: CredentialPool,
        base_url: str = settings.BLS_API_BASE_URL,
        timeout: float = settings.BLS_REQUEST_TIMEOUT,
        validation_timeout: float = settings.BLS_VALIDATION_TIMEOUT,
        rate_limit_cooldown_minutes: float = settings.BLS_RATE_LIMIT_COOLDOWN_MINUTES,
        rate_limit_retry_delay: float = settings.BLS_RATE_LIMIT_RETRY_DELAY,
        http_client: Optional[httpx.AsyncClient] = None,
        events: Optional[EventBus] = None,
        end_year: Optional[int] = None,
        years_back: int = 2,
    ):
        self.pool = pool
        self.base_url = base_url
        self.timeout = timeout
        self.validation_timeout = validation_timeout
        self.rate_limit_cooldown_minutes = rate_limit_cooldown_minutes
        self.rate_limit_retry_delay = rate_limit_retry_delay
        self.events = events if events is not None else EventBus()
        self.end_year = end_year or date.today().year
        self.start_year = self.end_year - years_back
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"Content-Type": "application/json"},
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _record_call(self, success: bool, started: float, series_id: str) -> None:
        latency_ms = (time.perf_counter() - started) * 1000
        await self.events.emit(EventType.API_CALL, success=success, latency_ms=latency_ms, series_id=series_id)

    def _payload(self, series_ids: list[str], credential: Credential) -> dict[str, Any]:
        return {
            "seriesid": series_ids,
            "startyear": str(self.start_year),
            "endyear": str(self.end_year),
            "registrationkey": credential.secret,
        }

    async def fetch_series(self, series_id: str) -> list[dict[str, Any]]:
        """
        Fetch the data points of one series.

        Returns:
            Data points, newest first (empty when BLS has no data)

        Raises:
            CredentialsExhaustedError: no credential has quota left today
            RateLimitError: the credential was rate limited and is now blocked
            InvalidCredentialError: the credential was rejected and removed
            UpstreamNetworkError: the API could not be reached
            RetryableError: the API answered with a 5xx status
            UpstreamError: any other failure response
        """
        credential = self.pool.acquire()
        if credential is None:
            raise CredentialsExhaustedError(
                "All API credentials are exhausted or blocked for today",
                retry_after=self.pool.seconds_until_reset(),
            )

        started = time.perf_counter()
        try:
            response = await self._client.post(
                self.base_url,
                json=self._payload([series_id], credential),
                timeout=self.timeout,
            )
        except httpx.TransportError as e:
            await self._record_call(False, started, series_id)
            raise UpstreamNetworkError(f"BLS API network error: {type(e).__name__}: {e}") from e

        if response.status_code in (429, 403):
            await self._record_call(False, started, series_id)
            self.pool.record_rate_limited(credential, self.rate_limit_cooldown_minutes)
            raise RateLimitError(
                f"BLS API rate limit (HTTP {response.status_code}) for credential {credential.preview}",
                retry_after=self.rate_limit_retry_delay,
                status_code=response.status_code,
            )
        if response.status_code >= 500:
            await self._record_call(False, started, series_id)
            raise RetryableError(f"BLS API server error: HTTP {response.status_code}")
        if response.status_code >= 400:
            await self._record_call(False, started, series_id)
            raise UpstreamError(f"BLS API error: HTTP {response.status_code}", status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            await self._record_call(False, started, series_id)
            raise UpstreamError("BLS API returned a non-JSON response") from e

        if data.get("status") != SUCCESS_STATUS:
            await self._record_call(False, started, series_id)
            self._raise_for_messages(data, credential)

        await self._record_call(True, started, series_id)
        series = (data.get("Results") or {}).get("series") or []
        if not series:
            return []
        return series[0].get("data") or []

    def _raise_for_messages(self, data: dict[str, Any], credential: Credential) -> None:
        messages = [str(m) for m in data.get("message") or []]
        text = "; ".join(messages) or f"status {data.get('status')}"
        category = classify_message(text)

        if category is ErrorCategory.RATE_LIMIT:
            self.pool.record_rate_limited(credential, self.rate_limit_cooldown_minutes)
            raise RateLimitError(
                f"BLS API rate limit for credential {credential.preview}: {text}",
                retry_after=self.rate_limit_retry_delay,
            )
        if category is ErrorCategory.INVALID_CREDENTIAL:
            self.pool.remove_credential(credential.secret)
            raise InvalidCredentialError(f"BLS API rejected credential {credential.preview}: {text}")
        raise UpstreamError(f"BLS API request failed: {text}")

    async def fetch_occupation_stats(self, code: str) -> OccupationStats:
        """Fetch employment and median annual wage for an occupation code."""
        employment_points, wage_points = await asyncio.gather(
            self.fetch_series(oews_series_id(code, DATATYPE_EMPLOYMENT)),
            self.fetch_series(oews_series_id(code, DATATYPE_MEDIAN_WAGE)),
        )
        employment = parse_latest_value(employment_points)
        return OccupationStats(
            code=code,
            employment=int(employment) if employment is not None else None,
            median_wage=parse_latest_value(wage_points),
        )

    async def validate_key(self, secret: str) -> bool:
        """
        Run the reference query with a short timeout.

        Returns:
            False only when BLS explicitly reports the key as invalid

        Raises:
            UpstreamNetworkError: the check could not reach the API (the caller keeps the key)
        """
        payload = {
            "seriesid": [VALIDATION_SERIES],
            "startyear": VALIDATION_YEAR,
            "endyear": VALIDATION_YEAR,
            "registrationkey": secret,
        }
        try:
            response = await self._client.post(self.base_url, json=payload, timeout=self.validation_timeout)
        except httpx.TransportError as e:
            raise UpstreamNetworkError(f"Credential validation could not reach BLS: {e}") from e

        try:
            data = response.json()
        except ValueError:
            logger.warning("credential validation got a non-JSON response", status=response.status_code)
            return True

        text = " ".join(str(m) for m in data.get("message") or [])
        if classify_message(text) is ErrorCategory.INVALID_CREDENTIAL:
            logger.warning("credential reported invalid by BLS", credential=f"{secret[:8]}...")
            return False
        return True
