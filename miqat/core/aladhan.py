# miqat/core/aladhan.py
"""
AlAdhan (https://aladhan.com/prayer-times-api) as the primary remote source.

GET {base}/timings/DD-MM-YYYY?latitude=&longitude=&method=&school=
Timings come back as local clock strings, sometimes with a zone suffix
("05:52 (EET)"). A body with code != 200 is a payload error even on HTTP 200.
"""
from __future__ import annotations

import logging
from datetime import date as Date
from typing import Any, Dict, Optional, Union

import httpx

from miqat.core.calculator import resolve_timezone
from miqat.core.errors import SourcePayloadError, SourceUnavailableError, ValidationError
from miqat.core.models import AsrSchool, GeoPoint, PrayerTimeSet
from miqat.core.sources import PrayerDataSource, SourceOptions, times_from_clock
from miqat.utils.cache import TTLCache
from miqat.utils.networking import FetchError, fetch_with_retry

log = logging.getLogger(__name__)

__all__ = ["AlAdhanSource", "DEFAULT_BASE_URL", "cache_key"]

DEFAULT_BASE_URL = "https://api.aladhan.com/v1"

_FIELDS = {
    "fajr": "Fajr", "sunrise": "Sunrise", "dhuhr": "Dhuhr",
    "asr": "Asr", "maghrib": "Maghrib", "isha": "Isha",
}


def cache_key(d: Date, latitude: float, longitude: float, method_id: int, school: int,
              timezone: Union[float, str, None] = None) -> str:
    # the zone changes the returned clock times, so it is part of the key
    tz = "auto" if timezone is None else str(timezone)
    return f"aladhan_{latitude:.2f}_{longitude:.2f}_{method_id}_{school}_{tz}_{d.isoformat()}"


class AlAdhanSource(PrayerDataSource):
    name = "AlAdhan API"

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        cache: Optional[TTLCache] = None,
        retries: int = 2,
        timeout_ms: float = 3000.0,
        backoff_ms: float = 1000.0,
    ):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.cache = cache if cache is not None else TTLCache(ttl_seconds=3600)
        self.retries = retries
        self.timeout_ms = timeout_ms
        self.backoff_ms = backoff_ms

    async def get_times(self, d: Date, latitude: float, longitude: float,
                        options: SourceOptions) -> PrayerTimeSet:
        school = options.effective_asr_school()
        school_param = 1 if school is AsrSchool.HANAFI else 0
        key = cache_key(d, latitude, longitude, options.method_id, school_param, options.timezone)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        url = f"{self.base_url}/timings/{d.strftime('%d-%m-%Y')}"
        params: Dict[str, Any] = {
            "latitude": latitude,
            "longitude": longitude,
            "method": options.method_id,
            "school": school_param,
        }
        if isinstance(options.timezone, str):
            params["timezonestring"] = options.timezone

        body = await self._get_json(url, params)
        result = self._to_time_set(body, d, latitude, longitude, options, school)
        self.cache.set(key, result)
        return result

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if self.client is not None:
            return await self._request(self.client, url, params)
        async with httpx.AsyncClient() as client:
            return await self._request(client, url, params)

    async def _request(self, client: httpx.AsyncClient, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = await fetch_with_retry(
                client, url, params,
                retries=self.retries, backoff_ms=self.backoff_ms, timeout_ms=self.timeout_ms,
            )
        except FetchError as e:
            raise SourceUnavailableError(self.name, str(e)) from e

        if not resp.is_success:
            raise SourceUnavailableError(self.name, f"HTTP {resp.status_code}")
        try:
            body = resp.json()
        except ValueError as e:
            raise SourcePayloadError(self.name, "response is not JSON") from e
        if not isinstance(body, dict):
            raise SourcePayloadError(self.name, "unexpected response shape")
        if body.get("code") != 200:
            raise SourcePayloadError(self.name, f"API error: {body.get('status', 'unknown')}")
        return body

    def _to_time_set(self, body: Dict[str, Any], d: Date, latitude: float, longitude: float,
                     options: SourceOptions, school: AsrSchool) -> PrayerTimeSet:
        try:
            data = body["data"]
            timings = data["timings"]
            meta = data.get("meta") or {}
        except (KeyError, TypeError) as e:
            raise SourcePayloadError(self.name, f"missing {e}") from e

        times = times_from_clock(self.name, _FIELDS, timings)

        tz_name = meta.get("timezone") if isinstance(meta, dict) else None
        try:
            offset = resolve_timezone(tz_name or options.timezone, d, longitude)
        except ValidationError:
            log.warning("AlAdhan returned unknown timezone %r", tz_name)
            offset = None

        return PrayerTimeSet(
            **times,
            date=d,
            method_id=options.method_id,
            asr_school=school,
            location=GeoPoint(latitude, longitude),
            timezone_offset_hours=offset,
            provenance=self.name,
        )
