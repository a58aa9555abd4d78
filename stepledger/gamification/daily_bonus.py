"""
Daily Bonus

One claim per calendar day from a monthly allotment.

State machine (BonusState):
- not_initialized: no document yet (created on first read)
- claimable: not claimed today and bonuses remain (a new month refills)
- claimed_today: today's bonus already taken
- exhausted: this month's allotment is used up

Reward tiers by consecutive claim days:
- Day 1-2: common experience rewards
- Day 3-6: rare rewards
- Day 7+: epic/legendary rewards
"""

import asyncio
import random
from datetime import date, timedelta
from typing import List, Optional
import logging

from stepledger import config
from stepledger.exceptions import BonusAlreadyClaimedError, NoBonusesRemainingError
from stepledger.models.badge import Rarity
from stepledger.models.bonus import BonusClaim, BonusReward, BonusState, DailyBonus, RewardType
from stepledger.store.base import DAILY_BONUSES, DocumentStore
from stepledger.utils.auth import AuthProvider, ensure_owner
from stepledger.utils.datetime_helpers import month_key, to_date_str, today_local

logger = logging.getLogger(__name__)

BONUS_REWARDS: List[List[BonusReward]] = [
    # Day 1-2: Common rewards
    [
        BonusReward(type=RewardType.EXPERIENCE, value=50, title="Experience Bonus", description="+50 XP", rarity=Rarity.COMMON),
        BonusReward(type=RewardType.EXPERIENCE, value=75, title="Experience Bonus", description="+75 XP", rarity=Rarity.COMMON),
        BonusReward(type=RewardType.EXPERIENCE, value=100, title="Experience Bonus", description="+100 XP", rarity=Rarity.COMMON),
    ],
    # Day 3-6: Rare rewards
    [
        BonusReward(type=RewardType.EXPERIENCE, value=150, title="Rare Experience", description="+150 XP", rarity=Rarity.RARE),
        BonusReward(type=RewardType.BADGE, value=1, title="Badge Chance", description="Chance at a random badge", rarity=Rarity.RARE),
        BonusReward(type=RewardType.EXPERIENCE, value=200, title="Rare Experience", description="+200 XP", rarity=Rarity.RARE),
    ],
    # Day 7+: Epic/Legendary rewards
    [
        BonusReward(type=RewardType.EXPERIENCE, value=300, title="Epic Experience", description="+300 XP", rarity=Rarity.EPIC),
        BonusReward(type=RewardType.BADGE, value=1, title="Epic Badge", description="Guaranteed special badge", rarity=Rarity.EPIC),
        BonusReward(type=RewardType.SPECIAL, value=500, title="Legendary Reward", description="+500 XP and a special title", rarity=Rarity.LEGENDARY),
    ],
]


def get_available_rewards(consecutive_days: int) -> List[BonusReward]:
    """Reward tier for a consecutive-day count"""
    if consecutive_days < 3:
        return BONUS_REWARDS[0]
    if consecutive_days < 7:
        return BONUS_REWARDS[1]
    return BONUS_REWARDS[2]


def get_next_reward_preview(consecutive_days: int) -> List[BonusReward]:
    """Rewards of the next tier up (the top tier previews itself)"""
    next_tier = 1 if consecutive_days < 3 else 2
    return BONUS_REWARDS[min(next_tier, len(BONUS_REWARDS) - 1)]


class DailyBonusEngine:
    """Once-per-day claim state machine over dailyBonuses/{userId}"""

    def __init__(
        self,
        store: DocumentStore,
        auth: AuthProvider,
        allotment: int = config.MONTHLY_BONUS_ALLOTMENT,
        rng: Optional[random.Random] = None,
        tz=None
    ):
        self.store = store
        self.auth = auth
        self.allotment = allotment
        self.rng = rng or random.Random()
        self.tz = tz
        self._lock = asyncio.Lock()

    async def _load(self, user_id: str) -> Optional[DailyBonus]:
        document = await self.store.get(DAILY_BONUSES, user_id)
        return DailyBonus.from_document(document) if document is not None else None

    async def get_bonus(self, user_id: str, today: Optional[date] = None) -> DailyBonus:
        """Bonus document for user_id, initialized with the full allotment if missing"""
        ensure_owner(self.auth, user_id, "daily bonus", operation="get_bonus")
        today = today or today_local(self.tz)

        bonus = await self._load(user_id)
        if bonus is not None:
            return bonus

        bonus = DailyBonus(
            user_id=user_id,
            last_bonus_date=None,
            consecutive_days=0,
            total_bonuses=0,
            available_bonuses=self.allotment,
            monthly_reset_date=month_key(today),
        )
        await self.store.put(DAILY_BONUSES, user_id, bonus.to_document())
        logger.info(f"Initialized daily bonus for user {user_id} ({self.allotment} available)")
        return bonus

    def is_new_month(self, bonus: DailyBonus, today: date) -> bool:
        return month_key(today) != bonus.monthly_reset_date

    def state(self, bonus: Optional[DailyBonus], today: date) -> BonusState:
        """Claim state on today, applying month rollover first"""
        if bonus is None:
            return BonusState.NOT_INITIALIZED
        if bonus.last_bonus_date == to_date_str(today):
            return BonusState.CLAIMED_TODAY

        available = self.allotment if self.is_new_month(bonus, today) else bonus.available_bonuses
        if available <= 0:
            return BonusState.EXHAUSTED
        return BonusState.CLAIMABLE

    def can_claim(self, bonus: Optional[DailyBonus], today: date) -> bool:
        return self.state(bonus, today) == BonusState.CLAIMABLE

    async def claim(self, user_id: str, today: Optional[date] = None) -> BonusClaim:
        """
        Claim today's bonus

        Returns:
            BonusClaim with the chosen reward and the updated document

        Raises:
            BonusAlreadyClaimedError: Already claimed today
            NoBonusesRemainingError: Monthly allotment used up
        """
        today = today or today_local(self.tz)

        async with self._lock:
            bonus = await self.get_bonus(user_id, today)
            state = self.state(bonus, today)

            if state == BonusState.CLAIMED_TODAY:
                raise BonusAlreadyClaimedError(user_id=user_id, operation="claim")
            if state == BonusState.EXHAUSTED:
                raise NoBonusesRemainingError(user_id=user_id, operation="claim")

            new_month = self.is_new_month(bonus, today)
            yesterday = to_date_str(today - timedelta(days=1))

            consecutive = bonus.consecutive_days + 1 if bonus.last_bonus_date == yesterday else 1
            if new_month:
                consecutive = 1

            reward = self.rng.choice(get_available_rewards(consecutive))

            updated = bonus.model_copy(update={
                "last_bonus_date": to_date_str(today),
                "consecutive_days": consecutive,
                "total_bonuses": bonus.total_bonuses + 1,
                "available_bonuses": self.allotment if new_month else bonus.available_bonuses - 1,
                "monthly_reset_date": month_key(today),
            })
            await self.store.put(DAILY_BONUSES, user_id, updated.to_document())

        logger.info(
            f"🎁 User {user_id} claimed daily bonus: {reward.title} ({reward.rarity.value}), "
            f"day {consecutive}, {updated.available_bonuses} left"
        )
        return BonusClaim(reward=reward, bonus=updated)
