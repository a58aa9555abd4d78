"""Data models"""
from stepledger.models.steps import (
    StepSource,
    AnomalyReason,
    StepSample,
    StepTotal,
    DayReading,
    DailyStepRecord,
)
from stepledger.models.streak import StreakStatus, StreakState
from stepledger.models.level import UserLevelState
from stepledger.models.badge import (
    BadgeCategory,
    Rarity,
    BadgeDefinition,
    BadgeRecord,
    AwardedBadge,
)
from stepledger.models.bonus import (
    RewardType,
    BonusReward,
    BonusState,
    DailyBonus,
    BonusClaim,
)
from stepledger.models.protection import StreakProtection

__all__ = [
    "StepSource",
    "AnomalyReason",
    "StepSample",
    "StepTotal",
    "DayReading",
    "DailyStepRecord",
    "StreakStatus",
    "StreakState",
    "UserLevelState",
    "BadgeCategory",
    "Rarity",
    "BadgeDefinition",
    "BadgeRecord",
    "AwardedBadge",
    "RewardType",
    "BonusReward",
    "BonusState",
    "DailyBonus",
    "BonusClaim",
    "StreakProtection",
]
