"""Daily bonus models"""
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from stepledger.models.badge import Rarity
from stepledger.models.document import DocumentModel, validate_date_key


class RewardType(str, Enum):
    EXPERIENCE = "experience"
    BADGE = "badge"
    SPECIAL = "special"


class BonusReward(BaseModel):
    """One entry of the reward table"""
    type: RewardType
    value: int
    title: str
    description: str
    rarity: Rarity


class BonusState(str, Enum):
    """Claim state for a given day"""
    NOT_INITIALIZED = "not_initialized"
    CLAIMABLE = "claimable"
    CLAIMED_TODAY = "claimed_today"
    EXHAUSTED = "exhausted"


class DailyBonus(DocumentModel):
    """Per-user daily bonus document"""
    user_id: str
    last_bonus_date: Optional[str] = None
    consecutive_days: int = Field(default=0, ge=0)
    total_bonuses: int = Field(default=0, ge=0)
    available_bonuses: int = Field(default=0, ge=0)
    monthly_reset_date: str  # YYYY-MM

    @field_validator('last_bonus_date', mode='before')
    @classmethod
    def validate_last_bonus_date(cls, v: Any) -> Optional[str]:
        # Older documents store "" for never-claimed
        if v == "":
            return None
        return validate_date_key(v)


class BonusClaim(BaseModel):
    """Outcome of a successful claim"""
    reward: BonusReward
    bonus: DailyBonus
