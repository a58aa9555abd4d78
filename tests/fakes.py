"""Fakes shared by unit and integration tests"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set, Tuple

from stepledger.exceptions import StoreWriteError
from stepledger.models.steps import DailyStepRecord, StepSource
from stepledger.store.base import USER_STEPS, steps_key
from stepledger.store.memory import InMemoryDocumentStore


class FakeHealthSource:
    """
    Scripted health source keyed by YYYY-MM-DD of the queried window start

    Each day holds raw samples and a raw total; queries can be made to fail
    per (date, query).
    """

    def __init__(self):
        self.samples: Dict[str, List[Any]] = {}
        self.totals: Dict[str, Any] = {}
        self.failures: Set[Tuple[str, str]] = set()
        self.calls: List[Tuple[str, str]] = []

    def set_steps(self, date_str: str, steps: int, total: Optional[Any] = None) -> None:
        """One sample at local noon and a matching (or explicit) total"""
        self.samples[date_str] = [{"timestampStart": f"{date_str}T12:00:00+00:00", "value": steps}]
        self.totals[date_str] = steps if total is None else total

    def fail(self, date_str: str, query: str) -> None:
        self.failures.add((date_str, query))

    async def query_samples(self, start: datetime, end: datetime):
        key = start.date().isoformat()
        self.calls.append(("samples", key))
        if (key, "samples") in self.failures:
            raise RuntimeError("HealthKit samples query failed")
        return self.samples.get(key, [])

    async def query_total(self, start: datetime, end: datetime):
        key = start.date().isoformat()
        self.calls.append(("total", key))
        if (key, "total") in self.failures:
            raise RuntimeError("HealthKit statistics query failed")
        return self.totals.get(key)

    def queried_dates(self, query: str = "samples") -> List[str]:
        return [d for q, d in self.calls if q == query]


class FailingStore(InMemoryDocumentStore):
    """In-memory store whose writes fail for selected keys"""

    def __init__(self, fail_keys=()):
        super().__init__()
        self.fail_keys = set(fail_keys)

    async def put(self, collection, key, document, merge=False):
        if key in self.fail_keys:
            raise StoreWriteError(f"Write rejected for {collection}/{key}", collection=collection, key=key)
        await super().put(collection, key, document, merge=merge)


async def seed_steps(store, user_id: str, steps_by_date: Dict[str, int], anomaly=None) -> None:
    """Write DailyStepRecords directly into the store"""
    for date_str, steps in steps_by_date.items():
        record = DailyStepRecord(
            user_id=user_id,
            date=date_str,
            steps=steps,
            source=StepSource.TEST,
            updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            anomaly=anomaly,
        )
        await store.put(USER_STEPS, steps_key(user_id, date_str), record.to_document())
