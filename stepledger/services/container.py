"""
Service Container - Dependency Injection Container

Simple DI container for the stepledger engines.
Uses lazy loading to only instantiate engines when first accessed.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional
from zoneinfo import ZoneInfo
import logging

from stepledger import config

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for engines.

    Engines are lazy-loaded on first access via properties.
    Infrastructure dependencies (store, health_source, auth) are injected.
    """

    # Infrastructure dependencies (injected)
    store: object  # DocumentStore implementation
    health_source: object  # HealthSource implementation
    auth: object  # AuthProvider implementation
    tz: Optional[ZoneInfo] = None
    query_delay: float = config.QUERY_DELAY_SECONDS

    # Engines (lazy-loaded via properties)
    _reconciler: Optional[object] = field(default=None, init=False, repr=False)
    _sync_engine: Optional[object] = field(default=None, init=False, repr=False)
    _streak_calculator: Optional[object] = field(default=None, init=False, repr=False)
    _level_engine: Optional[object] = field(default=None, init=False, repr=False)
    _badge_awarder: Optional[object] = field(default=None, init=False, repr=False)
    _daily_bonus: Optional[object] = field(default=None, init=False, repr=False)
    _streak_protection: Optional[object] = field(default=None, init=False, repr=False)
    _unsubscribe_badges: Optional[Callable[[], None]] = field(default=None, init=False, repr=False)

    @property
    def reconciler(self):
        """Get StepReconciler instance (lazy-loaded)"""
        if self._reconciler is None:
            from stepledger.health.reconciler import StepReconciler
            self._reconciler = StepReconciler(self.health_source, tz=self.tz)
            logger.debug("StepReconciler instantiated")
        return self._reconciler

    @property
    def sync_engine(self):
        """Get WeeklySyncEngine instance (lazy-loaded, today's steps feed the badge awarder)"""
        if self._sync_engine is None:
            from stepledger.health.sync import WeeklySyncEngine
            self._sync_engine = WeeklySyncEngine(
                self.store,
                self.reconciler,
                self.auth,
                query_delay=self.query_delay,
            )
            self._unsubscribe_badges = self._sync_engine.on_today_steps(
                self.badge_awarder.evaluate_and_award
            )
            logger.debug("WeeklySyncEngine instantiated")
        return self._sync_engine

    @property
    def streak_calculator(self):
        """Get StreakCalculator instance (lazy-loaded)"""
        if self._streak_calculator is None:
            from stepledger.gamification.streak_system import StreakCalculator
            self._streak_calculator = StreakCalculator(self.store, tz=self.tz)
            logger.debug("StreakCalculator instantiated")
        return self._streak_calculator

    @property
    def level_engine(self):
        """Get LevelEngine instance (lazy-loaded)"""
        if self._level_engine is None:
            from stepledger.gamification.level_system import LevelEngine
            self._level_engine = LevelEngine(self.store, self.auth)
            logger.debug("LevelEngine instantiated")
        return self._level_engine

    @property
    def badge_awarder(self):
        """Get BadgeAwarder instance (lazy-loaded)"""
        if self._badge_awarder is None:
            from stepledger.gamification.achievement_system import BadgeAwarder
            self._badge_awarder = BadgeAwarder(self.store, self.auth)
            logger.debug("BadgeAwarder instantiated")
        return self._badge_awarder

    @property
    def daily_bonus(self):
        """Get DailyBonusEngine instance (lazy-loaded)"""
        if self._daily_bonus is None:
            from stepledger.gamification.daily_bonus import DailyBonusEngine
            self._daily_bonus = DailyBonusEngine(self.store, self.auth, tz=self.tz)
            logger.debug("DailyBonusEngine instantiated")
        return self._daily_bonus

    @property
    def streak_protection(self):
        """Get StreakProtectionEngine instance (lazy-loaded)"""
        if self._streak_protection is None:
            from stepledger.gamification.streak_protection import StreakProtectionEngine
            self._streak_protection = StreakProtectionEngine(self.store, self.auth, tz=self.tz)
            logger.debug("StreakProtectionEngine instantiated")
        return self._streak_protection

    def disconnect_badges(self) -> None:
        """Stop awarding badges from today's sync events"""
        if self._unsubscribe_badges is not None:
            self._unsubscribe_badges()
            self._unsubscribe_badges = None


# Global container instance (initialized in main.py)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Returns:
        ServiceContainer: The global container instance

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() before using engines."
        )
    return _container


def init_container(
    store: object,
    health_source: object,
    auth: object,
    tz: Optional[ZoneInfo] = None,
    query_delay: float = config.QUERY_DELAY_SECONDS
) -> ServiceContainer:
    """
    Initialize the global service container.

    Args:
        store: DocumentStore implementation
        health_source: HealthSource implementation
        auth: AuthProvider implementation
        tz: Timezone defining calendar days (defaults to config.LOCAL_TIMEZONE)
        query_delay: Pause between dates during window sync

    Returns:
        ServiceContainer: The initialized container
    """
    global _container

    _container = ServiceContainer(
        store=store,
        health_source=health_source,
        auth=auth,
        tz=tz,
        query_delay=query_delay,
    )

    logger.info("Service container initialized")
    return _container
