"""Entry points for stepledger: logging setup and the daily refresh flow"""
import logging
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

from stepledger import config
from stepledger.config import LOG_LEVEL, validate_config
from stepledger.health.sync import SyncReport
from stepledger.models.badge import AwardedBadge
from stepledger.models.level import UserLevelState
from stepledger.models.streak import StreakState
from stepledger.services.container import ServiceContainer

logger = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging with the project format"""
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, (level or LOG_LEVEL).upper())
    )


class DailySummary(BaseModel):
    """Everything the dashboard needs after a refresh"""
    user_id: str
    date: str
    today_steps: int = 0
    sync: SyncReport
    streak: StreakState
    cached_level: UserLevelState
    level: UserLevelState
    protection_refilled: bool = False
    new_badges: List[AwardedBadge] = Field(default_factory=list)


async def refresh_user(
    container: ServiceContainer,
    user_id: str,
    goal: Optional[int] = None,
    today: Optional[date] = None
) -> DailySummary:
    """
    Run the "today's steps fetched" flow for the signed-in user

    Order:
    1. Refill streak protections if due
    2. Read the cached level (instant display)
    3. Sync the rolling window (today's write triggers badge evaluation)
    4. Derive the streak, counting protected dates
    5. Recompute the authoritative level

    Raises:
        AuthenticationError / AuthorizationError: Caller is not user_id
    """
    goal = config.DEFAULT_STEP_GOAL if goal is None else goal
    logger.info(f"🔄 Daily refresh for user {user_id} (goal {goal})")

    new_badges: List[AwardedBadge] = []
    unsubscribe = container.badge_awarder.on_badge_acquired(new_badges.append)

    try:
        refilled = await container.streak_protection.check_and_refill(user_id, today=today)
        cached_level = await container.level_engine.load_cached(user_id)

        report = await container.sync_engine.sync_window(user_id, today=today)
        today_str = report.dates[-1]

        protected = await container.streak_protection.protected_dates(user_id)
        streak = await container.streak_calculator.compute_streak(
            user_id, goal, today=today, protected_dates=protected
        )
        level = await container.level_engine.refresh(user_id)
    finally:
        unsubscribe()

    summary = DailySummary(
        user_id=user_id,
        date=today_str,
        today_steps=report.steps_for(today_str) or 0,
        sync=report,
        streak=streak,
        cached_level=cached_level,
        level=level,
        protection_refilled=refilled,
        new_badges=new_badges,
    )

    logger.info(
        f"✅ Refresh done for user {user_id}: {summary.today_steps} steps today, "
        f"streak {streak.current_streak}, level {level.level}, {len(new_badges)} new badge(s)"
    )
    return summary


def main() -> None:
    """Validate configuration from the environment"""
    configure_logging()
    logger.info("Validating configuration...")
    validate_config()
    logger.info(
        f"Configuration valid: timezone={config.LOCAL_TIMEZONE}, goal={config.DEFAULT_STEP_GOAL}, "
        f"window={config.SYNC_WINDOW_DAYS} days, anomaly detection="
        f"{'on' if config.ANOMALY_DETECTION_ENABLED else 'off'}"
    )


if __name__ == "__main__":
    main()
