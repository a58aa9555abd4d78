"""Badge models for gamification"""
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, field_validator

from stepledger.models.document import DocumentModel, validate_date_key


class BadgeCategory(str, Enum):
    """Badge categories"""
    STEPS = "steps"
    STREAK = "streak"
    SEASONAL = "seasonal"
    WEEKEND = "weekend"


class Rarity(str, Enum):
    """Rarity tiers shared by badges and bonus rewards"""
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class BadgeDefinition(BaseModel):
    """Catalogue entry"""
    id: str
    name: str
    description: str
    icon: str
    category: BadgeCategory
    rarity: Rarity


class BadgeRecord(DocumentModel):
    """Awarded badge; identity is (user_id, date, type)"""
    user_id: str
    date: str
    type: str
    awarded_at: datetime

    @field_validator('date', mode='before')
    @classmethod
    def validate_date(cls, v: Any) -> str:
        return validate_date_key(v)


class AwardedBadge(BadgeRecord):
    """Payload handed to badge-acquired listeners"""
    is_new: bool = True
