"""
Step Reconciler

Produces one trustworthy step count per calendar day by cross-validating the
health source's two query shapes:

- samples: many timestamped entries; summed after discarding entries that
  start outside the day (sources have been seen bleeding data across
  midnight)
- total: one aggregate for the same window

Choice between them:
- differ by more than the tolerance and total > 0 -> total
- samples == 0 and total > 0 -> total
- otherwise -> samples

Source failures never propagate: the failing query counts as 0 steps.

The AnomalyPolicy flags days whose values look like source artifacts rather
than walking. It is a heuristic tuned against one sensor bug (a constant
repeated across days) and can produce false positives, so it is configurable
and can be switched off.
"""

import asyncio
import logging
from collections import Counter
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Sequence
from zoneinfo import ZoneInfo

from pydantic import ValidationError as PydanticValidationError

from stepledger import config
from stepledger.exceptions import SourceReadError
from stepledger.health.source import HealthSource
from stepledger.models.steps import AnomalyReason, DayReading, StepSample, StepTotal
from stepledger.monitoring import record_anomaly, record_source_error
from stepledger.utils.datetime_helpers import day_bounds, ensure_aware, local_timezone, to_date_str

logger = logging.getLogger(__name__)


def choose_steps(samples_steps: int, total_steps: int, tolerance: int = config.RECONCILE_TOLERANCE) -> int:
    """
    Pick the authoritative count for one day

    Examples:
        choose_steps(5000, 5008)  -> 5000 (within tolerance, samples win)
        choose_steps(5000, 5200)  -> 5200 (discrepancy, total wins)
        choose_steps(0, 3000)     -> 3000
        choose_steps(4000, 0)     -> 4000
    """
    if abs(samples_steps - total_steps) > tolerance and total_steps > 0:
        return total_steps
    if samples_steps == 0 and total_steps > 0:
        return total_steps
    return samples_steps


class AnomalyPolicy:
    """Sentinel and identical-day detection over one queried window"""

    def __init__(
        self,
        sentinels: Optional[Iterable[int]] = None,
        identical_day_threshold: Optional[int] = None,
        enabled: Optional[bool] = None
    ):
        self.sentinels = frozenset(config.ANOMALY_SENTINELS if sentinels is None else sentinels)
        self.identical_day_threshold = (
            config.ANOMALY_IDENTICAL_DAYS if identical_day_threshold is None else identical_day_threshold
        )
        self.enabled = config.ANOMALY_DETECTION_ENABLED if enabled is None else enabled

    @classmethod
    def disabled(cls) -> 'AnomalyPolicy':
        return cls(enabled=False)

    def classify(self, steps: int, occurrences: int) -> Optional[AnomalyReason]:
        """Reason a non-zero value is suspicious, or None"""
        if not self.enabled or steps <= 0:
            return None
        if steps in self.sentinels:
            return AnomalyReason.SENTINEL
        if occurrences >= self.identical_day_threshold:
            return AnomalyReason.IDENTICAL_DAYS
        return None

    def detect(self, readings: Sequence[DayReading]) -> Dict[str, AnomalyReason]:
        """
        Flag suspicious days of a window

        Returns:
            {date: reason} for flagged days only. Two days sharing a value is
            a common coincidence on real devices and is never flagged.
        """
        if not self.enabled:
            return {}

        occurrences = Counter(r.steps for r in readings if r.steps > 0)
        flagged: Dict[str, AnomalyReason] = {}

        for reading in readings:
            reason = self.classify(reading.steps, occurrences[reading.steps])
            if reason is not None:
                flagged[reading.date] = reason
                record_anomaly(reason.value)

        if flagged:
            logger.warning(
                f"Anomaly policy flagged {len(flagged)} day(s): "
                + ", ".join(f"{d}={r.value}" for d, r in sorted(flagged.items()))
            )

        return flagged


class StepReconciler:
    """Cross-validates the two health source queries for a single day"""

    def __init__(
        self,
        source: HealthSource,
        tolerance: int = config.RECONCILE_TOLERANCE,
        tz: Optional[ZoneInfo] = None
    ):
        self.source = source
        self.tolerance = tolerance
        self.tz = tz or local_timezone()

    async def reconcile(self, day: date) -> int:
        """Trustworthy step count for day (never raises on source errors)"""
        reading = await self.read_day(day)
        return reading.steps

    async def read_day(self, day: date) -> DayReading:
        """Query both shapes concurrently and cross-validate them"""
        date_str = to_date_str(day)
        start, end = day_bounds(day, self.tz)

        (samples_steps, valid, discarded, samples_failed), (total_steps, total_failed) = await asyncio.gather(
            self._sum_samples(start, end),
            self._total(start, end),
        )

        steps = choose_steps(samples_steps, total_steps, self.tolerance)

        if steps != samples_steps:
            logger.info(
                f"{date_str}: samples={samples_steps}, total={total_steps} -> using total ({steps})"
            )
        else:
            logger.debug(f"{date_str}: samples={samples_steps}, total={total_steps} -> {steps}")

        source_errors = []
        if samples_failed:
            source_errors.append("samples")
        if total_failed:
            source_errors.append("total")

        return DayReading(
            date=date_str,
            steps=steps,
            samples_steps=samples_steps,
            total_steps=total_steps,
            valid_samples=valid,
            discarded_samples=discarded,
            source_errors=source_errors,
        )

    async def _fetch(
        self,
        query: str,
        call: Callable[[datetime, datetime], Awaitable[Any]],
        start: datetime,
        end: datetime
    ) -> Any:
        try:
            return await call(start, end)
        except Exception as e:
            raise SourceReadError(
                f"{query} query failed for {start.date().isoformat()}: {e}",
                query=query,
                cause=e,
            ) from e

    async def _sum_samples(self, start: datetime, end: datetime) -> tuple[int, int, int, bool]:
        """Returns (steps, valid samples, discarded samples, failed)"""
        try:
            raw = await self._fetch("samples", self.source.query_samples, start, end)
        except SourceReadError:
            record_source_error("samples")
            return 0, 0, 0, True

        total = 0
        valid = 0
        discarded = 0

        for entry in raw or []:
            try:
                sample = entry if isinstance(entry, StepSample) else StepSample.model_validate(entry)
            except PydanticValidationError as e:
                discarded += 1
                logger.warning(f"Discarding malformed sample {entry!r}: {e.error_count()} error(s)")
                continue

            sample_time = ensure_aware(sample.timestamp_start, self.tz).astimezone(self.tz)
            if start <= sample_time <= end:
                total += max(0, round(sample.value))
                valid += 1
            else:
                discarded += 1
                logger.debug(f"Sample outside {start.date()}: {sample_time.isoformat()}")

        return total, valid, discarded, False

    async def _total(self, start: datetime, end: datetime) -> tuple[int, bool]:
        """Returns (steps, failed)"""
        try:
            raw = await self._fetch("total", self.source.query_total, start, end)
        except SourceReadError:
            record_source_error("total")
            return 0, True

        if raw is None:
            return 0, False
        if isinstance(raw, (int, float)):
            value = raw
        else:
            try:
                value = (raw if isinstance(raw, StepTotal) else StepTotal.model_validate(raw)).value
            except PydanticValidationError as e:
                logger.warning(f"Malformed total result {raw!r}: {e.error_count()} error(s)")
                return 0, False

        return max(0, round(value)), False
