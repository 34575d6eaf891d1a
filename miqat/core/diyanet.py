# miqat/core/diyanet.py
"""
Diyanet (Turkey's Presidency of Religious Affairs) via ezanvakti.emushaf.net.

GET {base}/vakitler/{district} returns ~30 days; the day is picked by
MiladiTarihKisa ("DD.MM.YYYY"). Rate limited upstream (30 req / 5 min), so the
whole block is cached per district.
"""
from __future__ import annotations

import logging
from datetime import date as Date, datetime
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union

import httpx

from miqat.core.errors import SourcePayloadError, SourceUnavailableError, ValidationError
from miqat.core.models import AsrSchool, GeoPoint, PrayerTimeSet
from miqat.core.sources import PrayerDataSource, SourceOptions, times_from_clock
from miqat.utils.cache import TTLCache
from miqat.utils.networking import FetchError, fetch_with_retry

log = logging.getLogger(__name__)

__all__ = ["DiyanetSource", "TURKEY_CITY_CODES", "DEFAULT_BASE_URL", "district_code"]

DEFAULT_BASE_URL = "https://ezanvakti.emushaf.net"

# Province centres (and Istanbul's central district) -> Diyanet district code
TURKEY_CITY_CODES: Mapping[str, int] = MappingProxyType({
    "istanbul": 9541, "ankara": 9206, "izmir": 9560, "bursa": 9335,
    "antalya": 9225, "adana": 9146, "konya": 9676, "gaziantep": 9453,
    "trabzon": 17874, "samsun": 9824, "kocaeli": 9654, "sakarya": 9820,
    "tekirdag": 9884, "edirne": 9385, "canakkale": 9343, "balikesir": 9285,
    "manisa": 9717, "aydin": 9269, "denizli": 9363, "mugla": 9761,
    "mersin": 9743, "hatay": 9479, "kayseri": 9609, "eskisehir": 9400,
    "sivas": 9859, "diyarbakir": 9381, "sanliurfa": 9839, "mardin": 9724,
    "van": 17928, "erzurum": 9391, "malatya": 9703,
})

_FIELDS = {
    "fajr": "Imsak", "sunrise": "Gunes", "dhuhr": "Ogle",
    "asr": "Ikindi", "maghrib": "Aksam", "isha": "Yatsi",
}

_TR_FOLD = str.maketrans("ıİşŞğĞüÜöÖçÇ", "iIsSgGuUoOcC")


def district_code(value: Union[int, str, None]) -> int:
    if value is None:
        raise ValidationError({"loc": ["district"], "msg": "Diyanet source needs a district code or city", "type": "value_error.missing"})
    if isinstance(value, int):
        return value
    text = value.strip()
    if text.isdigit():
        return int(text)
    code = TURKEY_CITY_CODES.get(text.translate(_TR_FOLD).lower())
    if code is None:
        raise ValidationError({"loc": ["district"], "msg": f"unknown city '{value}'", "type": "value_error"})
    return code


class DiyanetSource(PrayerDataSource):
    name = "Diyanet"

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        cache: Optional[TTLCache] = None,
        retries: int = 2,
        timeout_ms: float = 5000.0,
        backoff_ms: float = 1000.0,
    ):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.cache = cache if cache is not None else TTLCache(ttl_seconds=6 * 3600)
        self.retries = retries
        self.timeout_ms = timeout_ms
        self.backoff_ms = backoff_ms

    async def get_times(self, d: Date, latitude: float, longitude: float,
                        options: SourceOptions) -> PrayerTimeSet:
        code = district_code(options.district)
        days = await self._days(code)

        wanted = d.strftime("%d.%m.%Y")
        day = next((x for x in days if isinstance(x, dict) and x.get("MiladiTarihKisa") == wanted), None)
        if day is None:
            raise SourcePayloadError(self.name, f"no entry for {d.isoformat()} in district {code}")

        offset: Optional[float]
        try:
            offset = float(day["GreenwichOrtalamaZamani"])
        except (KeyError, TypeError, ValueError):
            offset = None

        return PrayerTimeSet(
            **times_from_clock(self.name, _FIELDS, day),
            date=d,
            method_id=options.method_id,
            asr_school=AsrSchool.SHAFI,
            location=GeoPoint(latitude, longitude),
            timezone_offset_hours=offset,
            provenance=self.name,
        )

    async def _days(self, code: int) -> List[Dict[str, Any]]:
        key = f"diyanet_{code}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        url = f"{self.base_url}/vakitler/{code}"
        if self.client is not None:
            days = await self._request(self.client, url)
        else:
            async with httpx.AsyncClient() as client:
                days = await self._request(client, url)
        self.cache.set(key, days)
        return days

    async def _request(self, client: httpx.AsyncClient, url: str) -> List[Dict[str, Any]]:
        try:
            resp = await fetch_with_retry(client, url, retries=self.retries,
                                          backoff_ms=self.backoff_ms, timeout_ms=self.timeout_ms)
        except FetchError as e:
            raise SourceUnavailableError(self.name, str(e)) from e
        if not resp.is_success:
            raise SourceUnavailableError(self.name, f"HTTP {resp.status_code}")
        try:
            body = resp.json()
        except ValueError as e:
            raise SourcePayloadError(self.name, "response is not JSON") from e
        if not isinstance(body, list) or not body:
            raise SourcePayloadError(self.name, "expected a non-empty list of days")
        log.debug("Diyanet %s: %d days", url, len(body))
        return body
