"""Step data models"""
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from stepledger.models.document import DocumentModel, validate_date_key


class StepSource(str, Enum):
    """Where a daily count came from"""
    PRIMARY_SENSOR = "primary-sensor"
    FALLBACK = "fallback"
    TEST = "test"


class AnomalyReason(str, Enum):
    """Why the anomaly policy distrusts a day"""
    SENTINEL = "sentinel"
    IDENTICAL_DAYS = "identical_days"


class StepSample(DocumentModel):
    """One timestamped entry from the samples query"""
    timestamp_start: datetime
    value: float = 0


class StepTotal(DocumentModel):
    """Single aggregate from the total query"""
    value: float = 0


class DayReading(BaseModel):
    """Result of cross-validating both health source queries for one day"""
    date: str
    steps: int = Field(ge=0)
    samples_steps: int = 0
    total_steps: int = 0
    valid_samples: int = 0
    discarded_samples: int = 0
    source_errors: list[str] = Field(default_factory=list)
    anomaly: Optional[AnomalyReason] = None

    @property
    def flagged(self) -> bool:
        return self.anomaly is not None


class DailyStepRecord(DocumentModel):
    """One persisted day of steps; identity is (user_id, date)"""
    user_id: str
    date: str  # YYYY-MM-DD, calendar-local
    steps: int = Field(ge=0)
    source: StepSource = StepSource.PRIMARY_SENSOR
    sync_method: str = "cross-validated-query"
    updated_at: datetime
    anomaly: Optional[AnomalyReason] = None

    @field_validator('date', mode='before')
    @classmethod
    def validate_date(cls, v: Any) -> str:
        return validate_date_key(v)

    @property
    def trustworthy(self) -> bool:
        """Unflagged, non-zero data that a flagged reading must never overwrite"""
        return self.anomaly is None and self.steps > 0
