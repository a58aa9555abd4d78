"""Streak models"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class StreakStatus(str, Enum):
    """Where the user stands today"""
    NONE = "none"          # no current streak
    ACTIVE = "active"      # goal met today
    AT_RISK = "at_risk"    # streak alive through yesterday, goal not met yet today


class StreakState(BaseModel):
    """Derived streak snapshot, recomputed per query"""
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    streak_start_date: Optional[str] = None
    last_activity_date: Optional[str] = None
    is_active_today: bool = False

    @model_validator(mode='after')
    def check_longest_covers_current(self) -> 'StreakState':
        if self.longest_streak < self.current_streak:
            raise ValueError(
                f"longest_streak ({self.longest_streak}) cannot be below "
                f"current_streak ({self.current_streak})"
            )
        return self

    @property
    def status(self) -> StreakStatus:
        if self.is_active_today and self.current_streak > 0:
            return StreakStatus.ACTIVE
        if self.current_streak > 0:
            return StreakStatus.AT_RISK
        return StreakStatus.NONE
