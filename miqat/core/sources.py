# miqat/core/sources.py
"""
Prayer-time data sources.

Every source answers the same question:
    await source.get_times(date, lat, lon, options) -> PrayerTimeSet

Remote sources signal failure with SourceError (see miqat.core.errors); that
is the only exception the orchestrator recovers from.
"""
from __future__ import annotations

import abc
import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import date as Date
from typing import Mapping, Optional, Union

from miqat.core import methods as mreg
from miqat.core.calculator import PROVENANCE as INTERNAL_PROVENANCE, CalculationConfig, compute_times
from miqat.core.constants import PRAYERS
from miqat.core.errors import SourcePayloadError
from miqat.core.models import AsrSchool, PrayerTimeSet

log = logging.getLogger(__name__)

__all__ = [
    "SourceOptions",
    "PrayerDataSource",
    "InternalCalculationSource",
    "parse_clock",
    "times_from_clock",
]


@dataclass(frozen=True)
class SourceOptions:
    method_id: int = mreg.DEFAULT_METHOD_ID
    asr_school: Optional[AsrSchool] = None
    # hours east of UTC, an IANA zone name, or None (estimate from longitude)
    timezone: Union[float, str, None] = None
    # Diyanet district code or known city name
    district: Union[int, str, None] = None

    def effective_asr_school(self) -> AsrSchool:
        """Method's school, else the caller's, else the calculator default."""
        fixed = mreg.get_method(self.method_id).default_asr_school
        return fixed or self.asr_school or mreg.DEFAULT_ASR_SCHOOL


class PrayerDataSource(abc.ABC):
    name: str = "Unknown"

    @abc.abstractmethod
    async def get_times(self, d: Date, latitude: float, longitude: float,
                        options: SourceOptions) -> PrayerTimeSet:
        raise NotImplementedError


class InternalCalculationSource(PrayerDataSource):
    """Local calculator as a source. Runs in a worker thread."""

    name = INTERNAL_PROVENANCE

    def __init__(self, base: Optional[CalculationConfig] = None):
        self.base = base or CalculationConfig()

    def _config(self, options: SourceOptions) -> CalculationConfig:
        return CalculationConfig(
            method_id=options.method_id,
            asr_school=options.effective_asr_school(),
            high_latitude_method=self.base.high_latitude_method,
            high_latitude_threshold=self.base.high_latitude_threshold,
            timezone=options.timezone,
            apply_method_adjustments=self.base.apply_method_adjustments,
            adjustments=self.base.adjustments,
        )

    async def get_times(self, d: Date, latitude: float, longitude: float,
                        options: SourceOptions) -> PrayerTimeSet:
        return await asyncio.to_thread(compute_times, d, latitude, longitude, self._config(options))


# ───────────────────────────── payload helpers ─────────────────────────────
_CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})")


def parse_clock(source: str, prayer: str, value: Optional[str]) -> float:
    """'05:52' or '05:52 (EET)' -> 5.8667 decimal hours."""
    m = _CLOCK_RE.match(value or "")
    if not m:
        raise SourcePayloadError(source, f"bad time for {prayer}: {value!r}")
    h, mnt = int(m.group(1)), int(m.group(2))
    if h > 23 or mnt > 59:
        raise SourcePayloadError(source, f"bad time for {prayer}: {value!r}")
    return h + mnt / 60.0


def times_from_clock(source: str, fields: Mapping[str, str], timings: Mapping[str, Optional[str]]) -> dict:
    """Map remote field names to the six prayers; `fields` is prayer -> remote key."""
    out = {}
    for prayer in PRAYERS:
        key = fields[prayer]
        if key not in timings:
            raise SourcePayloadError(source, f"missing field {key!r}")
        out[prayer] = parse_clock(source, prayer, timings[key])
    return out
