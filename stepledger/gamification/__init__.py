"""
Gamification for stepledger

Derived from the persisted step series:
- Streaks (current/longest, protected days count)
- Levels from lifetime steps
- Badges awarded at most once per (user, date, type)

Independent state machines:
- Daily bonus claims
- Streak protections
"""

from stepledger.gamification.streak_system import (
    StreakCalculator,
    calculate_streak,
    days_to_next_milestone,
    streak_status_message,
)
from stepledger.gamification.level_system import (
    LevelEngine,
    compute_level,
    get_level_title,
    steps_to_next_level,
)
from stepledger.gamification.achievement_system import BadgeAwarder
from stepledger.gamification.daily_bonus import (
    DailyBonusEngine,
    get_available_rewards,
    get_next_reward_preview,
)
from stepledger.gamification.streak_protection import StreakProtectionEngine, days_until_next_refill

__all__ = [
    "StreakCalculator",
    "calculate_streak",
    "days_to_next_milestone",
    "streak_status_message",
    "LevelEngine",
    "compute_level",
    "get_level_title",
    "steps_to_next_level",
    "BadgeAwarder",
    "DailyBonusEngine",
    "get_available_rewards",
    "get_next_reward_preview",
    "StreakProtectionEngine",
    "days_until_next_refill",
]
