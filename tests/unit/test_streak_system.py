"""Unit tests for Streak System (stepledger/gamification/streak_system.py)"""
import random
import pytest
from datetime import date, timedelta

from stepledger.gamification.streak_system import (
    StreakCalculator,
    calculate_streak,
    days_to_next_milestone,
    streak_status_message,
)
from stepledger.models.streak import StreakState, StreakStatus
from tests.fakes import seed_steps


TODAY = date(2024, 6, 8)


def _ago(days: int) -> str:
    return (TODAY - timedelta(days=days)).isoformat()


# ============================================================================
# calculate_streak
# ============================================================================

class TestCalculateStreak:
    """Test the pure streak derivation"""

    def test_reference_series(self):
        """Test today 8000, yesterday 7500, -2 9000, -3 6000 with goal 7500"""
        steps = {_ago(0): 8000, _ago(1): 7500, _ago(2): 9000, _ago(3): 6000}

        state = calculate_streak(steps, 7500, TODAY)

        assert state.current_streak == 3
        assert state.longest_streak == 3
        assert state.is_active_today is True
        assert state.status == StreakStatus.ACTIVE
        assert state.streak_start_date == _ago(2)
        assert state.last_activity_date == _ago(0)

    def test_no_records(self):
        state = calculate_streak({}, 7500, TODAY)

        assert state == StreakState()
        assert state.status == StreakStatus.NONE

    def test_streak_alive_through_yesterday_is_at_risk(self):
        steps = {_ago(0): 1200, _ago(1): 8000, _ago(2): 8000}

        state = calculate_streak(steps, 7500, TODAY)

        assert state.current_streak == 2
        assert state.is_active_today is False
        assert state.status == StreakStatus.AT_RISK

    def test_gap_before_yesterday_breaks_streak(self):
        steps = {_ago(2): 9000, _ago(3): 9000, _ago(4): 9000}

        state = calculate_streak(steps, 7500, TODAY)

        assert state.current_streak == 0
        assert state.longest_streak == 3
        assert state.streak_start_date is None
        assert state.last_activity_date == _ago(2)

    def test_longest_from_earlier_run(self):
        steps = {_ago(d): 10000 for d in range(10, 20)}
        steps.update({_ago(0): 10000, _ago(1): 10000})

        state = calculate_streak(steps, 7500, TODAY)

        assert state.current_streak == 2
        assert state.longest_streak == 10

    def test_protected_date_bridges_gap(self):
        steps = {_ago(0): 8000, _ago(2): 8000, _ago(3): 8000}

        unprotected = calculate_streak(steps, 7500, TODAY)
        protected = calculate_streak(steps, 7500, TODAY, protected_dates=[_ago(1)])

        assert unprotected.current_streak == 1
        assert protected.current_streak == 4

    def test_lookback_limited_to_a_year(self):
        steps = {_ago(d): 9000 for d in range(0, 400)}

        state = calculate_streak(steps, 7500, TODAY)

        assert state.current_streak == 365
        assert state.longest_streak == 365

    def test_longest_never_below_current(self):
        """Test the invariant over random series"""
        rng = random.Random(42)
        for _ in range(50):
            steps = {_ago(d): rng.choice([0, 5000, 7500, 12000]) for d in range(60) if rng.random() > 0.2}
            state = calculate_streak(steps, 7500, TODAY)
            assert state.longest_streak >= state.current_streak


# ============================================================================
# Helpers
# ============================================================================

class TestStreakHelpers:
    """Test milestone and message helpers"""

    def test_days_to_next_milestone(self):
        assert days_to_next_milestone(0) == 3
        assert days_to_next_milestone(3) == 4
        assert days_to_next_milestone(29) == 1
        assert days_to_next_milestone(99) == 1
        assert days_to_next_milestone(100) is None

    def test_status_messages(self):
        active = StreakState(current_streak=5, longest_streak=5, is_active_today=True)
        at_risk = StreakState(current_streak=5, longest_streak=8)
        none = StreakState(longest_streak=8)

        assert "5-day streak" in streak_status_message(active)
        assert "2 more day(s)" in streak_status_message(active)
        assert "at risk" in streak_status_message(at_risk)
        assert "Best so far: 8" in streak_status_message(none)
        assert "start a streak" in streak_status_message(StreakState())

    def test_state_rejects_longest_below_current(self):
        with pytest.raises(ValueError):
            StreakState(current_streak=4, longest_streak=2)


# ============================================================================
# StreakCalculator
# ============================================================================

class TestStreakCalculator:
    """Test streak derivation from the store"""

    @pytest.mark.asyncio
    async def test_compute_from_store(self, store, test_user_id):
        await seed_steps(store, test_user_id, {_ago(0): 8000, _ago(1): 7500, _ago(2): 9000, _ago(3): 6000})

        state = await StreakCalculator(store).compute_streak(test_user_id, 7500, today=TODAY)

        assert state.current_streak == 3
        assert state.longest_streak == 3
        assert state.is_active_today is True

    @pytest.mark.asyncio
    async def test_other_users_ignored(self, store, test_user_id, other_user_id):
        await seed_steps(store, other_user_id, {_ago(0): 9000, _ago(1): 9000})

        state = await StreakCalculator(store).compute_streak(test_user_id, 7500, today=TODAY)

        assert state.current_streak == 0
        assert state.longest_streak == 0

    @pytest.mark.asyncio
    async def test_protected_dates_count(self, store, test_user_id):
        await seed_steps(store, test_user_id, {_ago(0): 8000, _ago(2): 8000})

        state = await StreakCalculator(store).compute_streak(
            test_user_id, 7500, today=TODAY, protected_dates=[_ago(1)]
        )

        assert state.current_streak == 3
