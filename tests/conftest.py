"""Global test fixtures and utilities for stepledger tests"""
import pytest
from datetime import date
from zoneinfo import ZoneInfo

from stepledger.health.reconciler import AnomalyPolicy, StepReconciler
from stepledger.health.sync import WeeklySyncEngine
from stepledger.store.memory import InMemoryDocumentStore
from stepledger.utils.auth import AuthSession
from tests.fakes import FakeHealthSource


UTC = ZoneInfo("UTC")


# ============================================================================
# User & Auth Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "user-123"


@pytest.fixture
def other_user_id():
    """A different user"""
    return "user-456"


@pytest.fixture
def auth(test_user_id):
    """Session signed in as the standard test user"""
    return AuthSession(test_user_id)


# ============================================================================
# Infrastructure Fixtures
# ============================================================================

@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def health_source():
    return FakeHealthSource()


@pytest.fixture
def tz():
    return UTC


@pytest.fixture
def today():
    """Fixed reference date (a Saturday in June)"""
    return date(2024, 6, 8)


@pytest.fixture
def anomaly_policy():
    """Default anomaly policy, independent of environment configuration"""
    return AnomalyPolicy(sentinels={210}, identical_day_threshold=4, enabled=True)


@pytest.fixture
def reconciler(health_source, tz):
    return StepReconciler(health_source, tolerance=10, tz=tz)


@pytest.fixture
def sync_engine(store, reconciler, auth, anomaly_policy):
    """Sync engine without inter-date pauses"""
    return WeeklySyncEngine(
        store,
        reconciler,
        auth,
        anomaly_policy=anomaly_policy,
        query_delay=0,
        repair_cooldown=300,
    )
