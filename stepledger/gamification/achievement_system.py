"""
Badge Awarding

Evaluates badge rules for one day of reconciled steps and persists each
earned badge at most once per (user, date, type).

Rules:
- 7500_steps / 10000_steps: single-day thresholds
- 3days_streak: today plus the two prior calendar days each >= 7500
- With special badges enabled: 15000/20000/25000 steps, 5/7/14/30-day
  streaks, weekend_warrior and the current season's badge

Today's count comes from the caller (it may not be persisted yet); prior
days are read from the store.

Features:
- Existence check and write run under one lock, so overlapping evaluations
  never double-award
- Badge-acquired listeners fire once per new badge
"""

import asyncio
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Union
import logging

from stepledger import config
from stepledger.gamification.badge_catalog import (
    CORE_BADGE_TYPES,
    SEASON_BY_MONTH,
    SEASONAL_BADGE_STEPS,
    STEP_THRESHOLDS,
    STREAK_BADGE_GOAL,
    STREAK_LENGTHS,
    WEEKEND_WARRIOR_STEPS,
)
from stepledger.models.badge import AwardedBadge, BadgeRecord
from stepledger.monitoring import record_badge_award
from stepledger.store.base import USER_BADGES, USER_STEPS, DocumentStore, Filter, badge_key
from stepledger.utils.auth import AuthProvider, ensure_owner
from stepledger.utils.datetime_helpers import now_utc, parse_date_str, to_date_str
from stepledger.utils.listeners import ListenerRegistry

logger = logging.getLogger(__name__)


class BadgeAwarder:
    """Rule evaluation and at-most-once badge persistence"""

    def __init__(
        self,
        store: DocumentStore,
        auth: AuthProvider,
        special_badges: bool = config.ENABLE_SPECIAL_BADGES
    ):
        self.store = store
        self.auth = auth
        self.special_badges = special_badges
        self._listeners = ListenerRegistry("badge_acquired")
        self._lock = asyncio.Lock()

    def on_badge_acquired(self, listener: Callable[[AwardedBadge], None]) -> Callable[[], None]:
        """
        Subscribe to newly awarded badges

        Returns:
            unsubscribe() - idempotent, leaves other listeners in place
        """
        return self._listeners.subscribe(listener)

    def _active_thresholds(self) -> Dict[str, int]:
        if self.special_badges:
            return STEP_THRESHOLDS
        return {k: v for k, v in STEP_THRESHOLDS.items() if k in CORE_BADGE_TYPES}

    def _active_streaks(self) -> Dict[str, int]:
        if self.special_badges:
            return STREAK_LENGTHS
        return {k: v for k, v in STREAK_LENGTHS.items() if k in CORE_BADGE_TYPES}

    async def _prior_steps(self, user_id: str, day: date, days: int) -> Dict[str, int]:
        """Stored steps for the `days` calendar days before day"""
        if days <= 0:
            return {}

        start = to_date_str(day - timedelta(days=days))
        documents = await self.store.query(
            USER_STEPS,
            [
                Filter("userId", "==", user_id),
                Filter("date", ">=", start),
                Filter("date", "<", to_date_str(day)),
            ],
        )
        return {doc["date"]: int(doc.get("steps") or 0) for doc in documents if "date" in doc}

    async def _streak_length(self, user_id: str, day: date, steps: int, max_length: int) -> int:
        """Consecutive days ending on day with >= STREAK_BADGE_GOAL steps, capped at max_length"""
        if steps < STREAK_BADGE_GOAL:
            return 0

        prior = await self._prior_steps(user_id, day, max_length - 1)
        length = 1
        for offset in range(1, max_length):
            previous = to_date_str(day - timedelta(days=offset))
            if prior.get(previous, 0) < STREAK_BADGE_GOAL:
                break
            length += 1
        return length

    async def earned_badges(self, user_id: str, day: date, steps: int) -> List[str]:
        """Badge types whose rules are satisfied for day (existing awards not considered)"""
        earned = [badge for badge, threshold in self._active_thresholds().items() if steps >= threshold]

        streaks = self._active_streaks()
        streak = await self._streak_length(user_id, day, steps, max(streaks.values()))
        earned.extend(badge for badge, length in streaks.items() if streak >= length)

        if self.special_badges:
            if day.weekday() >= 5 and steps >= WEEKEND_WARRIOR_STEPS:
                earned.append("weekend_warrior")
            if steps >= SEASONAL_BADGE_STEPS:
                earned.append(SEASON_BY_MONTH[day.month])

        return earned

    async def evaluate_and_award(
        self,
        user_id: str,
        day: Union[date, str],
        reconciled_steps: int
    ) -> List[AwardedBadge]:
        """
        Award every badge earned on day that the user does not already hold

        Args:
            user_id: Target user (must be the signed-in user)
            day: Calendar date the steps belong to
            reconciled_steps: Trustworthy step count for day

        Returns:
            Newly awarded badges (empty if all were already held)

        Raises:
            AuthenticationError / AuthorizationError: Caller is not user_id (nothing is written)
            StoreError: A badge write failed; badges written before it are kept and announced
        """
        ensure_owner(self.auth, user_id, "badge", operation="evaluate_and_award")

        if isinstance(day, str):
            day = parse_date_str(day)
        date_str = to_date_str(day)

        earned = await self.earned_badges(user_id, day, reconciled_steps)
        if not earned:
            return []

        awarded: List[AwardedBadge] = []

        try:
            async with self._lock:
                for badge_type in earned:
                    key = badge_key(user_id, date_str, badge_type)
                    if await self.store.get(USER_BADGES, key) is not None:
                        logger.debug(f"Badge {badge_type} already held by user {user_id} for {date_str}")
                        continue

                    record = BadgeRecord(user_id=user_id, date=date_str, type=badge_type, awarded_at=now_utc())
                    await self.store.put(USER_BADGES, key, record.to_document(), merge=True)
                    awarded.append(AwardedBadge(**record.model_dump(), is_new=True))
        finally:
            # Every stored badge is announced exactly once, even when a later write fails
            for badge in awarded:
                record_badge_award(badge.type)
                logger.info(f"🏆 User {user_id} earned badge {badge.type} for {date_str}")
                self._listeners.notify(badge)

        return awarded

    async def get_badges(self, user_id: str, limit: Optional[int] = None) -> List[BadgeRecord]:
        """User's badges, newest first"""
        documents = await self.store.query(
            USER_BADGES,
            [Filter("userId", "==", user_id)],
            order_by="awardedAt",
            descending=True,
            limit=limit,
        )
        return [BadgeRecord.from_document(doc) for doc in documents]
