"""
Streak Protection

Consumable protections that cover a missed day so the streak survives.

Rules:
- A new user starts with MAX_STREAK_PROTECTIONS (3)
- A protection can be used at most once every PROTECTION_COOLDOWN_DAYS (5)
- One protection is refilled every PROTECTION_REFILL_DAYS (14), capped at max
- Each use records the covered date; StreakCalculator treats protected dates
  as qualifying days
"""

import asyncio
from datetime import date, timedelta
from typing import Optional
import logging

from stepledger import config
from stepledger.exceptions import ValidationError
from stepledger.models.protection import StreakProtection
from stepledger.store.base import STREAK_PROTECTIONS, DocumentStore
from stepledger.utils.auth import AuthProvider, ensure_owner
from stepledger.utils.datetime_helpers import days_between, to_date_str, today_local

logger = logging.getLogger(__name__)


def days_until_next_refill(
    protection: StreakProtection,
    today: date,
    refill_days: int = config.PROTECTION_REFILL_DAYS
) -> int:
    """Days left before the next refill becomes due (0 if due now or never refilled)"""
    if not protection.last_refill_date:
        return 0
    elapsed = days_between(protection.last_refill_date, today)
    return max(0, refill_days - elapsed)


class StreakProtectionEngine:
    """Use/refill state machine over streakProtections/{userId}"""

    def __init__(
        self,
        store: DocumentStore,
        auth: AuthProvider,
        max_protections: int = config.MAX_STREAK_PROTECTIONS,
        refill_days: int = config.PROTECTION_REFILL_DAYS,
        cooldown_days: int = config.PROTECTION_COOLDOWN_DAYS,
        tz=None
    ):
        if not 1 <= max_protections <= config.MAX_STREAK_PROTECTIONS:
            raise ValidationError(
                f"max_protections must be between 1 and {config.MAX_STREAK_PROTECTIONS}",
                field="max_protections",
                value=max_protections,
            )

        self.store = store
        self.auth = auth
        self.max_protections = max_protections
        self.refill_days = refill_days
        self.cooldown_days = cooldown_days
        self.tz = tz
        self._lock = asyncio.Lock()

    async def get_protection(self, user_id: str, today: Optional[date] = None) -> StreakProtection:
        """Protection document for user_id, initialized with max protections if missing"""
        ensure_owner(self.auth, user_id, "streak protection", operation="get_protection")
        today = today or today_local(self.tz)

        document = await self.store.get(STREAK_PROTECTIONS, user_id)
        if document is not None:
            return StreakProtection.from_document(document)

        protection = StreakProtection(
            user_id=user_id,
            active_protections=self.max_protections,
            used_protections=0,
            last_used_date=None,
            last_refill_date=to_date_str(today),
        )
        await self.store.put(STREAK_PROTECTIONS, user_id, protection.to_document())
        logger.info(f"🛡️ Initialized streak protection for user {user_id}")
        return protection

    async def use_protection(
        self,
        user_id: str,
        missed_date: Optional[date] = None,
        today: Optional[date] = None
    ) -> bool:
        """
        Spend one protection to cover missed_date (default: yesterday)

        Returns:
            True if used; False if none remain or the cooldown has not passed
        """
        today = today or today_local(self.tz)
        covered = to_date_str(missed_date or today - timedelta(days=1))

        async with self._lock:
            protection = await self.get_protection(user_id, today)

            if protection.active_protections <= 0:
                logger.info(f"No streak protections left for user {user_id}")
                return False

            if protection.last_used_date:
                elapsed = days_between(protection.last_used_date, today)
                if elapsed < self.cooldown_days:
                    logger.info(
                        f"Cannot use streak protection for user {user_id}: "
                        f"last used {elapsed} day(s) ago (cooldown {self.cooldown_days})"
                    )
                    return False

            protected_dates = list(protection.protected_dates)
            if covered not in protected_dates:
                protected_dates.append(covered)

            updated = protection.model_copy(update={
                "active_protections": protection.active_protections - 1,
                "used_protections": protection.used_protections + 1,
                "last_used_date": to_date_str(today),
                "protected_dates": protected_dates,
            })
            await self.store.put(STREAK_PROTECTIONS, user_id, updated.to_document())

        logger.info(
            f"🛡️ User {user_id} protected {covered} "
            f"({updated.active_protections} protection(s) left)"
        )
        return True

    async def check_and_refill(self, user_id: str, today: Optional[date] = None) -> bool:
        """
        Add one protection when below max and the refill period has passed

        Returns:
            True if a protection was added
        """
        today = today or today_local(self.tz)

        async with self._lock:
            protection = await self.get_protection(user_id, today)

            if protection.active_protections >= self.max_protections:
                return False
            if not protection.last_refill_date:
                return False
            if days_between(protection.last_refill_date, today) < self.refill_days:
                return False

            updated = protection.model_copy(update={
                "active_protections": min(protection.active_protections + 1, self.max_protections),
                "last_refill_date": to_date_str(today),
            })
            await self.store.put(STREAK_PROTECTIONS, user_id, updated.to_document())

        logger.info(f"🛡️ Refilled streak protection for user {user_id} ({updated.active_protections} available)")
        return True

    async def protected_dates(self, user_id: str) -> list[str]:
        """Dates covered by protections (empty if the user has no document)"""
        document = await self.store.get(STREAK_PROTECTIONS, user_id)
        if document is None:
            return []
        return StreakProtection.from_document(document).protected_dates

    def days_until_next_refill(self, protection: StreakProtection, today: Optional[date] = None) -> int:
        return days_until_next_refill(protection, today or today_local(self.tz), self.refill_days)
