"""Unit tests for streak protections (stepledger/gamification/streak_protection.py)"""
import pytest
from datetime import date, timedelta

from stepledger import config
from stepledger.exceptions import AuthenticationError, AuthorizationError, ValidationError
from stepledger.gamification.streak_protection import StreakProtectionEngine, days_until_next_refill
from stepledger.models.protection import StreakProtection
from stepledger.store.base import STREAK_PROTECTIONS
from stepledger.utils.auth import AuthSession


DAY = date(2024, 6, 10)


@pytest.fixture
def engine(store, auth):
    return StreakProtectionEngine(store, auth, max_protections=3, refill_days=14, cooldown_days=5)


async def _stored(store, user_id):
    return StreakProtection.from_document(await store.get(STREAK_PROTECTIONS, user_id))


class TestUseProtection:
    """Test spending protections"""

    @pytest.mark.asyncio
    async def test_new_user_starts_full(self, engine, store, test_user_id):
        protection = await engine.get_protection(test_user_id, DAY)

        assert protection.active_protections == 3
        assert protection.used_protections == 0
        assert protection.last_refill_date == "2024-06-10"
        assert (await store.get(STREAK_PROTECTIONS, test_user_id))["activeProtections"] == 3

    @pytest.mark.asyncio
    async def test_use_covers_yesterday_by_default(self, engine, store, test_user_id):
        assert await engine.use_protection(test_user_id, today=DAY) is True

        protection = await _stored(store, test_user_id)
        assert protection.active_protections == 2
        assert protection.used_protections == 1
        assert protection.last_used_date == "2024-06-10"
        assert protection.protected_dates == ["2024-06-09"]

    @pytest.mark.asyncio
    async def test_second_use_within_cooldown_rejected(self, engine, store, test_user_id):
        """Test two uses within 5 days: True then False, decremented once"""
        first = await engine.use_protection(test_user_id, today=DAY)
        second = await engine.use_protection(test_user_id, today=DAY + timedelta(days=4))

        assert first is True
        assert second is False
        assert (await _stored(store, test_user_id)).active_protections == 2

    @pytest.mark.asyncio
    async def test_use_after_cooldown(self, engine, store, test_user_id):
        await engine.use_protection(test_user_id, today=DAY)

        assert await engine.use_protection(test_user_id, missed_date=date(2024, 6, 13), today=DAY + timedelta(days=5)) is True

        protection = await _stored(store, test_user_id)
        assert protection.active_protections == 1
        assert protection.protected_dates == ["2024-06-09", "2024-06-13"]

    @pytest.mark.asyncio
    async def test_no_protections_left(self, engine, store, test_user_id):
        await store.put(STREAK_PROTECTIONS, test_user_id, StreakProtection(
            user_id=test_user_id,
            active_protections=0,
            used_protections=3,
            last_used_date="2024-05-01",
            last_refill_date="2024-06-01",
        ).to_document())

        assert await engine.use_protection(test_user_id, today=DAY) is False

    @pytest.mark.asyncio
    async def test_other_user_raises(self, engine, other_user_id):
        with pytest.raises(AuthorizationError):
            await engine.use_protection(other_user_id, today=DAY)

    @pytest.mark.asyncio
    async def test_signed_out_raises(self, store, test_user_id):
        engine = StreakProtectionEngine(store, AuthSession())

        with pytest.raises(AuthenticationError):
            await engine.check_and_refill(test_user_id, today=DAY)

    @pytest.mark.asyncio
    async def test_protected_dates(self, engine, test_user_id):
        assert await engine.protected_dates(test_user_id) == []

        await engine.use_protection(test_user_id, today=DAY)

        assert await engine.protected_dates(test_user_id) == ["2024-06-09"]


class TestRefill:
    """Test periodic refills"""

    @pytest.mark.asyncio
    async def test_full_user_not_refilled(self, engine, test_user_id):
        assert await engine.check_and_refill(test_user_id, today=DAY + timedelta(days=30)) is False

    @pytest.mark.asyncio
    async def test_refill_after_period(self, engine, store, test_user_id):
        await engine.get_protection(test_user_id, DAY)
        await engine.use_protection(test_user_id, today=DAY)

        assert await engine.check_and_refill(test_user_id, today=DAY + timedelta(days=13)) is False
        assert await engine.check_and_refill(test_user_id, today=DAY + timedelta(days=14)) is True

        protection = await _stored(store, test_user_id)
        assert protection.active_protections == 3
        assert protection.last_refill_date == "2024-06-24"

    @pytest.mark.asyncio
    async def test_refill_adds_one_at_a_time(self, engine, store, test_user_id):
        await store.put(STREAK_PROTECTIONS, test_user_id, StreakProtection(
            user_id=test_user_id,
            active_protections=0,
            used_protections=3,
            last_refill_date="2024-01-01",
        ).to_document())

        assert await engine.check_and_refill(test_user_id, today=DAY) is True
        assert (await _stored(store, test_user_id)).active_protections == 1
        # Same day again: period restarted
        assert await engine.check_and_refill(test_user_id, today=DAY) is False

    def test_days_until_next_refill(self):
        protection = StreakProtection(user_id="user-123", last_refill_date="2024-06-01")

        assert days_until_next_refill(protection, date(2024, 6, 1)) == 14
        assert days_until_next_refill(protection, date(2024, 6, 10)) == 5
        assert days_until_next_refill(protection, date(2024, 7, 1)) == 0
        assert days_until_next_refill(StreakProtection(user_id="user-123"), DAY) == 0

    def test_engine_helper_uses_its_period(self, store, auth):
        engine = StreakProtectionEngine(store, auth, refill_days=7)
        protection = StreakProtection(user_id="user-123", last_refill_date="2024-06-08")

        assert engine.days_until_next_refill(protection, DAY) == 5


class TestProtectionLimits:
    """Test the configured protection cap"""

    def test_max_above_configured_cap_rejected(self, store, auth):
        with pytest.raises(ValidationError):
            StreakProtectionEngine(store, auth, max_protections=config.MAX_STREAK_PROTECTIONS + 1)

    def test_max_below_one_rejected(self, store, auth):
        with pytest.raises(ValidationError):
            StreakProtectionEngine(store, auth, max_protections=0)

    @pytest.mark.asyncio
    async def test_refill_never_exceeds_cap(self, engine, store, test_user_id):
        await store.put(STREAK_PROTECTIONS, test_user_id, StreakProtection(
            user_id=test_user_id,
            active_protections=2,
            used_protections=1,
            last_refill_date="2024-01-01",
        ).to_document())

        assert await engine.check_and_refill(test_user_id, today=DAY) is True
        assert await engine.check_and_refill(test_user_id, today=DAY + timedelta(days=60)) is False
        assert (await _stored(store, test_user_id)).active_protections == 3
