# miqat/core/crosscheck.py
"""
Cross-check a primary (remote) time set against the internal reference.

Deviation per prayer = primary − reference in whole clock minutes, wrapped
into [-720, 720) so a pair straddling midnight compares as a few minutes
apart, not ~24 h. Tolerance is stricter inside a rough Turkey bounding box,
where the reference is calibrated against Diyanet.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from miqat.core.constants import PRAYERS
from miqat.core.models import (
    Discrepancy, OrchestrationResult, PrayerTimeSet,
    ValidationResult, ValidationStatus, format_time,
)

log = logging.getLogger(__name__)

__all__ = ["CrossCheckValidator", "is_turkey", "minute_deviation", "PRIMARY", "REFERENCE"]

PRIMARY = "PRIMARY"
REFERENCE = "REFERENCE"

# lat 35.8..42.2, lon 25.6..44.9
_TR_BOX = (35.8, 42.2, 25.6, 44.9)


def is_turkey(latitude: float, longitude: float) -> bool:
    lat_min, lat_max, lon_min, lon_max = _TR_BOX
    return lat_min <= latitude <= lat_max and lon_min <= longitude <= lon_max


def minute_deviation(primary_min: int, reference_min: int) -> int:
    return (primary_min - reference_min + 720) % 1440 - 720


class CrossCheckValidator:
    def __init__(self, default_tolerance: float = 2, strict_tolerance: float = 1,
                 critical_threshold: float = 15):
        self.default_tolerance = default_tolerance
        self.strict_tolerance = strict_tolerance
        self.critical_threshold = critical_threshold

    def tolerance_for(self, latitude: float, longitude: float) -> float:
        return self.strict_tolerance if is_turkey(latitude, longitude) else self.default_tolerance

    def validate(self, primary: PrayerTimeSet, reference: PrayerTimeSet) -> ValidationResult:
        loc = primary.location
        tolerance = self.tolerance_for(loc.latitude, loc.longitude)

        deviations: Dict[str, Optional[int]] = {}
        discrepancies: List[Discrepancy] = []
        max_abs = 0

        for prayer in PRAYERS:
            a, b = primary.minutes(prayer), reference.minutes(prayer)
            if a is None and b is None:
                deviations[prayer] = None
                continue
            if a is None or b is None:
                # available on one side only
                deviations[prayer] = None
                discrepancies.append(self._discrepancy(prayer, None, primary, reference))
                continue

            diff = minute_deviation(a, b)
            deviations[prayer] = diff
            max_abs = max(max_abs, abs(diff))
            if abs(diff) > tolerance:
                discrepancies.append(self._discrepancy(prayer, diff, primary, reference))

        return ValidationResult(
            is_valid=not discrepancies,
            deviations=deviations,
            max_abs_deviation=max_abs,
            tolerance_minutes=tolerance,
            discrepancies=tuple(discrepancies),
            primary_source=primary.provenance,
            reference_source=reference.provenance,
        )

    @staticmethod
    def _discrepancy(prayer: str, diff: Optional[int], primary: PrayerTimeSet,
                     reference: PrayerTimeSet) -> Discrepancy:
        return Discrepancy(
            prayer=prayer,
            deviation=diff,
            primary=format_time(getattr(primary, prayer)),
            reference=format_time(getattr(reference, prayer)),
        )

    def recommend(self, validation: ValidationResult, primary: PrayerTimeSet,
                  reference: PrayerTimeSet) -> OrchestrationResult:
        if validation.is_valid:
            return OrchestrationResult(
                times=primary,
                status=ValidationStatus.VALID,
                source=PRIMARY,
                tolerance_used=validation.tolerance_minutes,
                validation=validation,
            )

        if validation.max_abs_deviation > self.critical_threshold:
            # remote parameters or timezone are off; trust the calculation
            return OrchestrationResult(
                times=reference,
                status=ValidationStatus.FALLBACK_CRITICAL,
                source=REFERENCE,
                reason=f"Critical deviation > {self.critical_threshold:g}m",
                discrepancies=validation.discrepancies,
                tolerance_used=validation.tolerance_minutes,
                validation=validation,
            )

        # Minor exceedance: keep the primary (fresher, local nuance) and flag it.
        return OrchestrationResult(
            times=primary,
            status=ValidationStatus.WARNING,
            source=PRIMARY,
            reason=(f"Tolerance exceeded ({validation.max_abs_deviation}m > "
                    f"{validation.tolerance_minutes:g}m)"),
            discrepancies=validation.discrepancies,
            tolerance_used=validation.tolerance_minutes,
            validation=validation,
        )
