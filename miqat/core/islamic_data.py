# miqat/core/islamic_data.py
"""
Everything about one place and day in a single result: local prayer times,
Qibla, Ramadan status and the country's authority.

The method is the caller's when given, else the country's authority method,
else the registry's country resolution.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date as Date
from typing import Any, Dict, Optional

from miqat.core.authorities import Authority, authority_for_country, method_id_for_country
from miqat.core.calculator import CalculationConfig, compute_times
from miqat.core.countries import to_country_code
from miqat.core.models import PrayerTimeSet, TimeFormat
from miqat.core.qibla import QiblaEngine, QiblaResult
from miqat.core.ramadan import is_ramadan, ramadan_day

__all__ = ["IslamicData", "islamic_data"]


@dataclass(frozen=True)
class IslamicData:
    date: Date
    country_code: Optional[str]
    prayer_times: PrayerTimeSet
    qibla: QiblaResult
    is_ramadan: bool
    ramadan_day: Optional[int]
    authority: Optional[Authority]

    def to_dict(self, fmt: TimeFormat = TimeFormat.H24) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "location": {**self.prayer_times.location.to_dict(), "country_code": self.country_code},
            "prayer_times": self.prayer_times.to_dict(fmt),
            "qibla": self.qibla.to_dict(),
            "ramadan": {"is_ramadan": self.is_ramadan, "day": self.ramadan_day},
            "authority": self.authority.to_dict() if self.authority else None,
        }


def islamic_data(d: Date, latitude: float, longitude: float, country: Any = None,
                 config: Optional[CalculationConfig] = None, *,
                 method_id: Optional[int] = None,
                 qibla_engine: Optional[QiblaEngine] = None) -> IslamicData:
    code = to_country_code(country)
    cfg = config or CalculationConfig()
    if method_id is not None:
        cfg = replace(cfg, method_id=method_id)
    elif config is None:
        cfg = replace(cfg, method_id=method_id_for_country(code))

    times = compute_times(d, latitude, longitude, cfg)
    engine = qibla_engine or QiblaEngine()
    return IslamicData(
        date=d,
        country_code=code,
        prayer_times=times,
        qibla=engine.compute_qibla(latitude, longitude),
        is_ramadan=is_ramadan(d, code),
        ramadan_day=ramadan_day(d, code),
        authority=authority_for_country(code),
    )
