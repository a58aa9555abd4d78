"""Unit tests for Pydantic models"""
import pytest
from datetime import date, datetime, timezone
from pydantic import ValidationError

from stepledger import config
from stepledger.models.steps import AnomalyReason, DailyStepRecord, StepSource
from stepledger.models.streak import StreakState, StreakStatus
from stepledger.models.badge import BadgeRecord
from stepledger.models.level import UserLevelState
from stepledger.models.protection import StreakProtection


def _record(**overrides):
    data = {
        "user_id": "user-123",
        "date": "2024-06-08",
        "steps": 8000,
        "updated_at": datetime(2024, 6, 8, 21, 0, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return DailyStepRecord(**data)


def test_step_record_document_uses_camel_case():
    """Test stored documents carry camelCase keys"""
    document = _record(anomaly=AnomalyReason.SENTINEL).to_document()

    assert document["userId"] == "user-123"
    assert document["syncMethod"] == "cross-validated-query"
    assert document["source"] == "primary-sensor"
    assert document["anomaly"] == "sentinel"
    assert document["updatedAt"].startswith("2024-06-08T21:00:00")


def test_step_record_from_document():
    record = DailyStepRecord.from_document({
        "userId": "user-123",
        "date": "2024-06-08",
        "steps": 8000,
        "source": "test",
        "syncMethod": "manual",
        "updatedAt": "2024-06-08T21:00:00+00:00",
    })

    assert record.user_id == "user-123"
    assert record.source == StepSource.TEST
    assert record.anomaly is None


def test_step_record_accepts_date_object():
    assert _record(date=date(2024, 6, 8)).date == "2024-06-08"


def test_step_record_rejects_bad_date():
    with pytest.raises(ValidationError):
        _record(date="08/06/2024")


def test_step_record_rejects_negative_steps():
    with pytest.raises(ValidationError):
        _record(steps=-1)


def test_trustworthy():
    assert _record().trustworthy is True
    assert _record(steps=0).trustworthy is False
    assert _record(anomaly=AnomalyReason.IDENTICAL_DAYS).trustworthy is False


def test_streak_status():
    assert StreakState().status == StreakStatus.NONE
    assert StreakState(current_streak=3, longest_streak=3, is_active_today=True).status == StreakStatus.ACTIVE
    assert StreakState(current_streak=3, longest_streak=5).status == StreakStatus.AT_RISK


def test_streak_longest_must_cover_current():
    with pytest.raises(ValidationError):
        StreakState(current_streak=4, longest_streak=2)


def test_level_defaults():
    state = UserLevelState()

    assert state.level == 1
    assert state.next_level_exp == 1000
    assert state.to_document()["progressPercentage"] == 0.0


def test_step_record_accepts_datetime():
    assert _record(date=datetime(2024, 6, 8, 23, 30)).date == "2024-06-08"


def test_badge_record_accepts_date_object():
    badge = BadgeRecord(
        user_id="user-123",
        date=date(2024, 6, 8),
        type="7500_steps",
        awarded_at=datetime(2024, 6, 8, tzinfo=timezone.utc),
    )

    assert badge.to_document()["date"] == "2024-06-08"


def test_protection_accepts_date_objects():
    protection = StreakProtection(
        user_id="user-123",
        active_protections=2,
        last_used_date=date(2024, 6, 10),
        last_refill_date="2024-06-01",
        protected_dates=[date(2024, 6, 9), "2024-06-01"],
    )

    assert protection.last_used_date == "2024-06-10"
    assert protection.protected_dates == ["2024-06-09", "2024-06-01"]


def test_protection_rejects_bad_dates():
    with pytest.raises(ValidationError):
        StreakProtection(user_id="user-123", last_refill_date="June 1st")
    with pytest.raises(ValidationError):
        StreakProtection(user_id="user-123", protected_dates=[20240609])


def test_protection_count_is_capped():
    cap = config.MAX_STREAK_PROTECTIONS
    assert StreakProtection(user_id="user-123", active_protections=cap).active_protections == cap

    with pytest.raises(ValidationError):
        StreakProtection(user_id="user-123", active_protections=cap + 1)
    with pytest.raises(ValidationError):
        StreakProtection.from_document({"userId": "user-123", "activeProtections": -1})
