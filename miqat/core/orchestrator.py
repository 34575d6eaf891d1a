# miqat/core/orchestrator.py
"""
Hybrid orchestration: remote primary vs. internal reference.

    force_fallback  -> reference only, no validation (status None)
    both succeed    -> cross-check, recommend, LOW_PRECISION if accuracy > 100 m
    primary fails   -> reference result, status FALLBACK_ERROR

The reference task is started before the primary is awaited, so a primary
failure never waits for a second computation. Only SourceError is recovered;
anything raised by the reference propagates.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import date as Date
from typing import Optional, Union

from miqat.core import methods as mreg
from miqat.core.crosscheck import REFERENCE, CrossCheckValidator
from miqat.core.errors import SourceError
from miqat.core.models import (
    AsrSchool, GeoPoint, OrchestrationResult, SafetyFlag, ValidationStatus,
)
from miqat.core.sources import InternalCalculationSource, PrayerDataSource, SourceOptions
from miqat.utils.metrics import MET_ORCHESTRATION, MET_SOURCE_ERRORS, MET_WARNINGS

log = logging.getLogger(__name__)

__all__ = ["OrchestratorOptions", "PrayerTimeOrchestrator", "LOW_PRECISION_ACCURACY_M"]

LOW_PRECISION_ACCURACY_M = 100.0


@dataclass(frozen=True)
class OrchestratorOptions:
    method_id: int = mreg.DEFAULT_METHOD_ID
    accuracy: float = 0.0            # meters; 0 = unknown/perfect
    force_fallback: bool = False
    timezone: Union[float, str, None] = None
    asr_school: Optional[AsrSchool] = None
    district: Union[int, str, None] = None

    def source_options(self) -> SourceOptions:
        return SourceOptions(
            method_id=self.method_id,
            asr_school=self.asr_school,
            timezone=self.timezone,
            district=self.district,
        )


class PrayerTimeOrchestrator:
    def __init__(self, primary: PrayerDataSource,
                 reference: Optional[PrayerDataSource] = None,
                 validator: Optional[CrossCheckValidator] = None):
        self.primary = primary
        self.reference = reference or InternalCalculationSource()
        self.validator = validator or CrossCheckValidator()

    async def get_accurate_times(self, d: Date, latitude: float, longitude: float,
                                 options: Optional[OrchestratorOptions] = None) -> OrchestrationResult:
        opts = options or OrchestratorOptions()
        GeoPoint(latitude, longitude)  # bad coordinates fail here, not as a "source error"
        src_opts = opts.source_options()

        if opts.force_fallback:
            times = await self.reference.get_times(d, latitude, longitude, src_opts)
            MET_ORCHESTRATION.labels(status="FORCED", source=REFERENCE).inc()
            return OrchestrationResult(times=times, status=None, source=REFERENCE)

        reference_task = asyncio.create_task(self.reference.get_times(d, latitude, longitude, src_opts))
        try:
            primary, reference = await asyncio.gather(
                self.primary.get_times(d, latitude, longitude, src_opts),
                reference_task,
            )
        except SourceError as e:
            MET_SOURCE_ERRORS.labels(source=e.source, kind=type(e).__name__).inc()
            log.warning("primary source failed, using reference: %s", e)
            reference = await reference_task
            result = OrchestrationResult(
                times=reference,
                status=ValidationStatus.FALLBACK_ERROR,
                source=REFERENCE,
                reason=f"Primary source error: {e}",
            )
            MET_ORCHESTRATION.labels(status=result.status.value, source=result.source).inc()
            return result
        except BaseException:
            if not reference_task.done():
                reference_task.cancel()
            raise

        validation = self.validator.validate(primary, reference)
        result = self.validator.recommend(validation, primary, reference)

        if opts.accuracy > LOW_PRECISION_ACCURACY_M:
            result = replace(result, safety_flag=SafetyFlag.LOW_PRECISION, accuracy_m=opts.accuracy)
            MET_WARNINGS.labels(kind="low_precision").inc()

        if result.status is ValidationStatus.WARNING:
            MET_WARNINGS.labels(kind="crosscheck_tolerance").inc()
        if result.status is not ValidationStatus.VALID:
            log.warning("cross-check %s for (%.4f, %.4f) %s: %s",
                        result.status.value, latitude, longitude, d.isoformat(), result.reason)
        MET_ORCHESTRATION.labels(status=result.status.value, source=result.source).inc()
        return result
