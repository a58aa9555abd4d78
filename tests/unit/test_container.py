"""Unit tests for the service container"""
import pytest

from stepledger.gamification.achievement_system import BadgeAwarder
from stepledger.health.sync import WeeklySyncEngine
from stepledger.services import container as container_module
from stepledger.services.container import ServiceContainer, get_container, init_container
from stepledger.store.base import USER_BADGES


@pytest.fixture
def container(store, health_source, auth, tz):
    return ServiceContainer(store=store, health_source=health_source, auth=auth, tz=tz, query_delay=0)


class TestServiceContainer:
    """Test lazy wiring"""

    def test_engines_are_lazy_singletons(self, container):
        assert container._sync_engine is None

        engine = container.sync_engine

        assert isinstance(engine, WeeklySyncEngine)
        assert container.sync_engine is engine
        assert container.reconciler is engine.reconciler
        assert engine.query_delay == 0
        assert isinstance(container.badge_awarder, BadgeAwarder)
        assert container.level_engine is container.level_engine
        assert container.daily_bonus is container.daily_bonus
        assert container.streak_protection is container.streak_protection
        assert container.streak_calculator is container.streak_calculator

    @pytest.mark.asyncio
    async def test_today_steps_feed_badge_awarder(self, container, health_source, store, test_user_id, today):
        health_source.set_steps("2024-06-08", 10500)

        await container.sync_engine.sync_window(test_user_id, days=1, today=today)

        document = await store.get(USER_BADGES, f"{test_user_id}_2024-06-08_10000_steps")
        assert document is not None

    @pytest.mark.asyncio
    async def test_flagged_today_awards_nothing(self, container, health_source, store, anomaly_policy, test_user_id, today):
        for date_str in ("2024-06-05", "2024-06-06", "2024-06-07", "2024-06-08"):
            health_source.set_steps(date_str, 8000)
        container.sync_engine.anomaly_policy = anomaly_policy

        report = await container.sync_engine.sync_window(test_user_id, days=4, today=today)

        assert len(report.flagged) == 4
        assert store.count(USER_BADGES) == 0

    @pytest.mark.asyncio
    async def test_disconnect_badges(self, container, health_source, store, test_user_id, today):
        health_source.set_steps("2024-06-08", 10500)
        container.sync_engine
        container.disconnect_badges()
        container.disconnect_badges()

        await container.sync_engine.sync_window(test_user_id, days=1, today=today)

        assert store.count(USER_BADGES) == 0


class TestGlobalContainer:
    """Test process-wide container management"""

    def test_get_before_init(self, monkeypatch):
        monkeypatch.setattr(container_module, "_container", None)

        with pytest.raises(RuntimeError):
            get_container()

    def test_init_and_get(self, monkeypatch, store, health_source, auth):
        monkeypatch.setattr(container_module, "_container", None)

        created = init_container(store, health_source, auth, query_delay=0)

        assert get_container() is created
        assert created.query_delay == 0
