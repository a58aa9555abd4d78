"""
Weekly Sync Engine

Reconciles a rolling window of days (default 7, ending today) and persists
one DailyStepRecord per day.

Logic per sync:
- Dates are read oldest -> newest, one at a time, with a pause between dates
  so the health source is never flooded
- The anomaly policy then flags suspicious days of the window
- Each day is written independently; a failed write is recorded and the
  remaining days still run

Write rules:
- Unchanged value (and unchanged flag) -> skip
- Flagged value while a trustworthy record exists -> keep the stored record
- Failed source read (0 steps) while a trustworthy record exists -> keep it
- Otherwise upsert (last write wins)

Features:
- Concurrent syncs for the same user share one in-flight run
- Repair re-runs the full sync, at most once per cooldown
- Listeners for today's steps (skipped when today is flagged) and for the
  updated series
"""

import asyncio
import logging
import time
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from stepledger import config
from stepledger.exceptions import StoreError, ValidationError
from stepledger.health.reconciler import AnomalyPolicy, StepReconciler
from stepledger.models.steps import AnomalyReason, DailyStepRecord, DayReading, StepSource
from stepledger.monitoring import record_sync_day, track_sync
from stepledger.store.base import USER_STEPS, DocumentStore, Filter, steps_key
from stepledger.utils.auth import AuthProvider, ensure_owner
from stepledger.utils.datetime_helpers import now_utc, parse_date_str, to_date_str, today_local, window_dates
from stepledger.utils.listeners import ListenerRegistry

logger = logging.getLogger(__name__)

WRITTEN = "written"
UNCHANGED = "unchanged"
KEPT_EXISTING = "kept_existing"
FAILED = "failed"


class SyncReport(BaseModel):
    """What one sync_window run did"""
    user_id: str
    dates: List[str] = Field(default_factory=list)
    readings: List[DayReading] = Field(default_factory=list)
    written: List[str] = Field(default_factory=list)
    unchanged: List[str] = Field(default_factory=list)
    kept_existing: List[str] = Field(default_factory=list)
    failed: Dict[str, str] = Field(default_factory=dict)
    flagged: Dict[str, AnomalyReason] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    def steps_for(self, date_str: str) -> Optional[int]:
        for reading in self.readings:
            if reading.date == date_str:
                return reading.steps
        return None


class DuplicateReport(BaseModel):
    """Repeated non-zero values in a stored series"""
    has_duplicates: bool = False
    suspicious: bool = False
    groups: Dict[int, List[str]] = Field(default_factory=dict)


class WeeklySyncEngine:
    """Drives StepReconciler over a rolling window and persists the results"""

    def __init__(
        self,
        store: DocumentStore,
        reconciler: StepReconciler,
        auth: AuthProvider,
        anomaly_policy: Optional[AnomalyPolicy] = None,
        query_delay: float = config.QUERY_DELAY_SECONDS,
        repair_cooldown: float = config.REPAIR_COOLDOWN_SECONDS,
        source: StepSource = StepSource.PRIMARY_SENSOR,
        sync_method: str = "cross-validated-query",
        clock: Callable[[], float] = time.monotonic
    ):
        self.store = store
        self.reconciler = reconciler
        self.auth = auth
        self.anomaly_policy = anomaly_policy or AnomalyPolicy()
        self.query_delay = query_delay
        self.repair_cooldown = repair_cooldown
        self.source = source
        self.sync_method = sync_method
        self._clock = clock

        self._today_steps_listeners = ListenerRegistry("today_steps")
        self._series_listeners = ListenerRegistry("series_updated")
        self._in_flight: Dict[tuple, asyncio.Task] = {}
        self._last_repair: Dict[str, float] = {}

        logger.debug("WeeklySyncEngine initialized")

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_today_steps(self, listener: Callable[[str, str, int], Any]) -> Callable[[], None]:
        """Subscribe to (user_id, date, steps) after today's record is written"""
        return self._today_steps_listeners.subscribe(listener)

    def on_series_updated(self, listener: Callable[[str, List[DailyStepRecord]], Any]) -> Callable[[], None]:
        """Subscribe to (user_id, records oldest first) after any write"""
        return self._series_listeners.subscribe(listener)

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    async def sync_window(
        self,
        user_id: str,
        days: Optional[int] = None,
        today: Optional[Union[date, str]] = None
    ) -> SyncReport:
        """
        Reconcile and persist the window ending today

        Idempotent: repeated calls with unchanged source data converge to the
        same stored state. Overlapping calls for the same window share one run.

        Args:
            user_id: Target user (must be the signed-in user)
            days: Window length (defaults to config.SYNC_WINDOW_DAYS)
            today: Last date of the window, date or YYYY-MM-DD (defaults to local today)

        Returns:
            SyncReport

        Raises:
            AuthenticationError / AuthorizationError: Caller is not user_id
            ValidationError: days < 1
        """
        ensure_owner(self.auth, user_id, "steps", operation="sync_window")

        days = config.SYNC_WINDOW_DAYS if days is None else days
        if days < 1:
            raise ValidationError("Window must cover at least one day", field="days", value=days, user_id=user_id)

        if isinstance(today, str):
            today = parse_date_str(today)
        end = today or today_local(self.reconciler.tz)
        run_key = (user_id, days, to_date_str(end))

        task = self._in_flight.get(run_key)
        if task is not None and not task.done():
            logger.info(f"Sync already running for user {user_id}, joining in-flight run")
        else:
            task = asyncio.ensure_future(self._run_sync(user_id, days, end))
            self._in_flight[run_key] = task
            task.add_done_callback(lambda _t, key=run_key: self._in_flight.pop(key, None))

        # A caller losing interest must not cancel writes already under way
        return await asyncio.shield(task)

    async def _run_sync(self, user_id: str, days: int, end: date) -> SyncReport:
        dates = window_dates(end, days)
        logger.info(f"🔄 Syncing {days} day(s) for user {user_id}: {to_date_str(dates[0])} → {to_date_str(dates[-1])}")

        with track_sync():
            readings = await self._read_window(dates)
            flagged = self.anomaly_policy.detect(readings)
            for reading in readings:
                reading.anomaly = flagged.get(reading.date)

            report = SyncReport(
                user_id=user_id,
                dates=[r.date for r in readings],
                readings=readings,
                flagged=flagged,
            )

            for reading in readings:
                try:
                    outcome = await self._persist_day(user_id, reading)
                except StoreError as e:
                    report.failed[reading.date] = e.message
                    record_sync_day(FAILED)
                    logger.error(f"Failed to persist {reading.date} for user {user_id}: {e.message}")
                    continue

                getattr(report, outcome).append(reading.date)
                record_sync_day(outcome)

        logger.info(
            f"✅ Sync finished for user {user_id}: written={len(report.written)}, "
            f"unchanged={len(report.unchanged)}, kept={len(report.kept_existing)}, "
            f"failed={len(report.failed)}, flagged={len(report.flagged)}"
        )

        await self._emit(user_id, report)
        return report

    async def _read_window(self, dates: Sequence) -> List[DayReading]:
        readings: List[DayReading] = []

        for index, day in enumerate(dates):
            reading = await self.reconciler.read_day(day)

            if readings and reading.steps > 0 and reading.steps == readings[-1].steps:
                logger.warning(
                    f"🚨 {reading.date} has the same steps ({reading.steps}) as {readings[-1].date}"
                )
            readings.append(reading)

            if index < len(dates) - 1 and self.query_delay > 0:
                await asyncio.sleep(self.query_delay)

        return readings

    async def _persist_day(self, user_id: str, reading: DayReading) -> str:
        key = steps_key(user_id, reading.date)
        existing = await self._load_record(key)

        if existing is not None:
            if existing.steps == reading.steps and existing.anomaly == reading.anomaly:
                logger.debug(f"⏭️ Skipping {reading.date}: unchanged ({reading.steps} steps)")
                return UNCHANGED

            if existing.trustworthy and reading.flagged:
                logger.warning(
                    f"Keeping stored {reading.date}={existing.steps}: new value {reading.steps} "
                    f"flagged as {reading.anomaly.value}"
                )
                return KEPT_EXISTING

            if existing.trustworthy and reading.steps == 0 and reading.source_errors:
                logger.warning(
                    f"Keeping stored {reading.date}={existing.steps}: source read failed "
                    f"({', '.join(reading.source_errors)})"
                )
                return KEPT_EXISTING

            logger.info(f"🔄 Updating {reading.date}: {existing.steps} → {reading.steps} steps")
        else:
            logger.info(f"📝 Creating {reading.date}: {reading.steps} steps")

        record = DailyStepRecord(
            user_id=user_id,
            date=reading.date,
            steps=reading.steps,
            source=self.source,
            sync_method=self.sync_method,
            updated_at=now_utc(),
            anomaly=reading.anomaly,
        )
        await self.store.put(USER_STEPS, key, record.to_document())
        return WRITTEN

    async def _load_record(self, key: str) -> Optional[DailyStepRecord]:
        document = await self.store.get(USER_STEPS, key)
        if document is None:
            return None
        try:
            return DailyStepRecord.from_document(document)
        except PydanticValidationError as e:
            logger.warning(f"Ignoring unreadable record {USER_STEPS}/{key}: {e.error_count()} error(s)")
            return None

    async def _emit(self, user_id: str, report: SyncReport) -> None:
        if not report.written:
            return

        today_str = report.dates[-1]
        if today_str in report.flagged:
            logger.warning(
                f"Not announcing today's steps for user {user_id}: {today_str} "
                f"flagged as {report.flagged[today_str].value}"
            )
        elif today_str in report.written:
            await self._today_steps_listeners.notify_async(user_id, today_str, report.steps_for(today_str))

        if len(self._series_listeners):
            series = await self.load_series(user_id, days=len(report.dates))
            await self._series_listeners.notify_async(user_id, series)

    # ------------------------------------------------------------------
    # Reads and repair
    # ------------------------------------------------------------------

    async def load_series(self, user_id: str, days: Optional[int] = None) -> List[DailyStepRecord]:
        """Most recent stored records, oldest first"""
        documents = await self.store.query(
            USER_STEPS,
            [Filter("userId", "==", user_id)],
            order_by="date",
            descending=True,
            limit=days,
        )
        records = []
        for document in documents:
            try:
                records.append(DailyStepRecord.from_document(document))
            except PydanticValidationError as e:
                logger.warning(f"Skipping unreadable step record {document.get('date')}: {e.error_count()} error(s)")
        records.reverse()
        return records

    def detect_duplicates(self, records: Sequence[DailyStepRecord]) -> DuplicateReport:
        """
        Find non-zero step values shared by several stored days

        suspicious is set when a sentinel value repeats or a value reaches the
        policy's identical-day threshold.
        """
        groups: Dict[int, List[str]] = {}
        for record in records:
            if record.steps > 0:
                groups.setdefault(record.steps, []).append(record.date)

        duplicates = {steps: dates for steps, dates in groups.items() if len(dates) > 1}
        suspicious = any(
            self.anomaly_policy.classify(steps, len(dates)) is not None
            for steps, dates in duplicates.items()
        ) or any(record.anomaly is not None for record in records)

        for steps, dates in duplicates.items():
            logger.warning(f"Duplicate steps detected: {steps} on {', '.join(dates)}")

        return DuplicateReport(has_duplicates=bool(duplicates), suspicious=suspicious, groups=duplicates)

    async def repair(self, user_id: str, days: Optional[int] = None) -> bool:
        """
        Re-run the full window sync, at most once per repair cooldown

        Returns:
            True if a repair ran and every day persisted, False if skipped or partial
        """
        ensure_owner(self.auth, user_id, "steps", operation="repair")

        now = self._clock()
        last = self._last_repair.get(user_id)
        if last is not None and now - last < self.repair_cooldown:
            logger.info(
                f"⏳ Skipping repair for user {user_id}: last attempt {int(now - last)}s ago "
                f"(cooldown {int(self.repair_cooldown)}s)"
            )
            return False

        self._last_repair[user_id] = now
        logger.info(f"🔧 Starting data repair for user {user_id}")
        report = await self.sync_window(user_id, days)
        return report.ok

    async def check_and_repair(self, user_id: str, days: Optional[int] = None) -> bool:
        """Repair when the stored window looks suspicious; returns whether a repair ran"""
        days = config.SYNC_WINDOW_DAYS if days is None else days
        series = await self.load_series(user_id, days)
        duplicates = self.detect_duplicates(series)
        if not duplicates.suspicious:
            return False
        return await self.repair(user_id, days)
