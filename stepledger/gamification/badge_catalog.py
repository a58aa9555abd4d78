"""
Badge Catalogue

Every badge a user can earn, grouped by category:
- steps: single-day step thresholds
- streak: consecutive days at or above 7500 steps
- weekend: big days on Saturday or Sunday
- seasonal: active days in each (northern-hemisphere) season

Core badges (7500_steps, 10000_steps, 3days_streak) are always evaluated;
the rest are gated by ENABLE_SPECIAL_BADGES.
"""

from typing import Dict, List, Optional

from stepledger.models.badge import BadgeCategory, BadgeDefinition, Rarity

# Step count a day needs to extend a streak badge
STREAK_BADGE_GOAL = 7500
WEEKEND_WARRIOR_STEPS = 10000
SEASONAL_BADGE_STEPS = 8000

CORE_BADGE_TYPES = ("7500_steps", "10000_steps", "3days_streak")

# Single-day thresholds: {badge id: min steps}
STEP_THRESHOLDS: Dict[str, int] = {
    "7500_steps": 7500,
    "10000_steps": 10000,
    "15000_steps": 15000,
    "20000_steps": 20000,
    "25000_steps": 25000,
}

# Streak lengths: {badge id: consecutive days}
STREAK_LENGTHS: Dict[str, int] = {
    "3days_streak": 3,
    "5days_streak": 5,
    "7days_streak": 7,
    "14days_streak": 14,
    "30days_streak": 30,
}

# Month -> seasonal badge id
SEASON_BY_MONTH: Dict[int, str] = {
    3: "spring_awakening", 4: "spring_awakening", 5: "spring_awakening",
    6: "summer_solstice", 7: "summer_solstice", 8: "summer_solstice",
    9: "autumn_leaves", 10: "autumn_leaves", 11: "autumn_leaves",
    12: "winter_wonder", 1: "winter_wonder", 2: "winter_wonder",
}


BADGE_DEFINITIONS: List[BadgeDefinition] = [
    # Steps
    BadgeDefinition(
        id="7500_steps", name="Daily 7,500", description="Walked 7,500 steps in a day",
        icon="🏅", category=BadgeCategory.STEPS, rarity=Rarity.COMMON,
    ),
    BadgeDefinition(
        id="10000_steps", name="Daily 10,000", description="Walked 10,000 steps in a day",
        icon="🥉", category=BadgeCategory.STEPS, rarity=Rarity.COMMON,
    ),
    BadgeDefinition(
        id="15000_steps", name="Daily 15,000", description="Walked 15,000 steps in a day",
        icon="🥈", category=BadgeCategory.STEPS, rarity=Rarity.RARE,
    ),
    BadgeDefinition(
        id="20000_steps", name="Daily 20,000", description="Walked 20,000 steps in a day",
        icon="🥇", category=BadgeCategory.STEPS, rarity=Rarity.EPIC,
    ),
    BadgeDefinition(
        id="25000_steps", name="Ultra Walker", description="Walked 25,000 steps in a single day",
        icon="👑", category=BadgeCategory.STEPS, rarity=Rarity.LEGENDARY,
    ),

    # Streaks
    BadgeDefinition(
        id="3days_streak", name="3-Day Streak", description="7,500+ steps three days in a row",
        icon="🔥", category=BadgeCategory.STREAK, rarity=Rarity.COMMON,
    ),
    BadgeDefinition(
        id="5days_streak", name="5-Day Streak", description="7,500+ steps five days in a row",
        icon="⚡", category=BadgeCategory.STREAK, rarity=Rarity.COMMON,
    ),
    BadgeDefinition(
        id="7days_streak", name="Full Week", description="7,500+ steps seven days in a row",
        icon="🌟", category=BadgeCategory.STREAK, rarity=Rarity.RARE,
    ),
    BadgeDefinition(
        id="14days_streak", name="Two Weeks Strong", description="7,500+ steps fourteen days in a row",
        icon="💎", category=BadgeCategory.STREAK, rarity=Rarity.EPIC,
    ),
    BadgeDefinition(
        id="30days_streak", name="Month of Motion", description="7,500+ steps thirty days in a row",
        icon="🏆", category=BadgeCategory.STREAK, rarity=Rarity.LEGENDARY,
    ),

    # Weekend
    BadgeDefinition(
        id="weekend_warrior", name="Weekend Warrior", description="10,000+ steps on a Saturday or Sunday",
        icon="⚔️", category=BadgeCategory.WEEKEND, rarity=Rarity.RARE,
    ),

    # Seasonal
    BadgeDefinition(
        id="spring_awakening", name="Spring Awakening", description="An active spring day",
        icon="🌸", category=BadgeCategory.SEASONAL, rarity=Rarity.RARE,
    ),
    BadgeDefinition(
        id="summer_solstice", name="Summer Solstice", description="An active summer day",
        icon="☀️", category=BadgeCategory.SEASONAL, rarity=Rarity.EPIC,
    ),
    BadgeDefinition(
        id="autumn_leaves", name="Autumn Leaves", description="An active autumn day",
        icon="🍁", category=BadgeCategory.SEASONAL, rarity=Rarity.RARE,
    ),
    BadgeDefinition(
        id="winter_wonder", name="Winter Wonder", description="Kept walking through the cold",
        icon="❄️", category=BadgeCategory.SEASONAL, rarity=Rarity.EPIC,
    ),
]

_BY_ID: Dict[str, BadgeDefinition] = {badge.id: badge for badge in BADGE_DEFINITIONS}


def get_badge_definition(badge_id: str) -> Optional[BadgeDefinition]:
    """Catalogue entry for badge_id, or None if unknown"""
    return _BY_ID.get(badge_id)


def badges_by_category(category: BadgeCategory) -> List[BadgeDefinition]:
    return [badge for badge in BADGE_DEFINITIONS if badge.category == category]


def badges_by_rarity(rarity: Rarity) -> List[BadgeDefinition]:
    return [badge for badge in BADGE_DEFINITIONS if badge.rarity == rarity]
