"""
Level System

Level is derived from lifetime steps (1 step = 1 exp).

Leveling Curve:
- level = floor(sqrt(total_steps / 1000)) + 1
- Level L starts at (L - 1)^2 * 1000 steps
  Level 1: 0, Level 2: 1,000, Level 3: 4,000, Level 4: 9,000, ...

Storage:
- userLevel/{userId}: authoritative, recomputed from the full series
- cachedLevel/{userId}: display cache, read first for instant display
"""

from math import isqrt
from typing import Any, Dict, Optional
import logging

from stepledger.exceptions import ValidationError
from stepledger.models.level import UserLevelState
from stepledger.store.base import CACHED_LEVEL, USER_LEVEL, USER_STEPS, DocumentStore, Filter
from stepledger.utils.auth import AuthProvider, ensure_owner
from stepledger.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)

STEPS_PER_EXP_UNIT = 1000

LEVEL_TITLES = (
    (50, "Health Master"),
    (30, "Walking Champion"),
    (20, "Active Expert"),
    (15, "Fitness Enthusiast"),
    (10, "Advanced Stepper"),
    (5, "Healthy Walker"),
    (1, "Rookie Walker"),
)


def level_base(level: int) -> int:
    """Lifetime steps at which level starts"""
    return (level - 1) ** 2 * STEPS_PER_EXP_UNIT


def compute_level(total_steps: int) -> UserLevelState:
    """
    Calculate level progress from lifetime steps

    Example:
        compute_level(50000) -> level 8, current_exp 1000,
                                next_level_exp 15000, progress 6.67

    Raises:
        ValidationError: If total_steps is negative
    """
    if total_steps < 0:
        raise ValidationError(
            "Total steps cannot be negative",
            field="total_steps",
            value=total_steps,
        )

    level = isqrt(total_steps // STEPS_PER_EXP_UNIT) + 1
    current_exp = total_steps - level_base(level)
    next_level_exp = level_base(level + 1) - level_base(level)
    progress = min(100.0, max(0.0, current_exp / next_level_exp * 100))

    return UserLevelState(
        level=level,
        current_exp=current_exp,
        next_level_exp=next_level_exp,
        total_steps=total_steps,
        progress_percentage=round(progress, 2),
    )


def get_level_title(level: int) -> str:
    for min_level, title in LEVEL_TITLES:
        if level >= min_level:
            return title
    return LEVEL_TITLES[-1][1]


def steps_to_next_level(state: UserLevelState) -> int:
    return state.next_level_exp - state.current_exp


class LevelEngine:
    """Computes and stores level state for a user"""

    def __init__(self, store: DocumentStore, auth: AuthProvider):
        self.store = store
        self.auth = auth

    def _document(self, user_id: str, state: UserLevelState) -> Dict[str, Any]:
        document = state.to_document()
        document["userId"] = user_id
        document["updatedAt"] = now_utc().isoformat()
        return document

    async def load_cached(self, user_id: str) -> UserLevelState:
        """
        Cached level for instant display

        Initializes the cache at level 1 if missing. May lag behind userLevel.
        """
        ensure_owner(self.auth, user_id, "level", operation="load_cached")

        document = await self.store.get(CACHED_LEVEL, user_id)
        if document is not None:
            return UserLevelState.from_document(document)

        state = compute_level(0)
        await self.store.put(CACHED_LEVEL, user_id, self._document(user_id, state))
        logger.info(f"Initialized cached level for user {user_id}")
        return state

    async def total_steps(self, user_id: str) -> int:
        documents = await self.store.query(USER_STEPS, [Filter("userId", "==", user_id)])
        return sum(max(0, int(doc.get("steps") or 0)) for doc in documents)

    async def refresh(self, user_id: str) -> UserLevelState:
        """
        Recompute level from the user's full step history

        Writes userLevel (merge) first, then the display cache.
        """
        ensure_owner(self.auth, user_id, "level", operation="refresh")

        total = await self.total_steps(user_id)
        state = compute_level(total)
        document = self._document(user_id, state)

        await self.store.put(USER_LEVEL, user_id, document, merge=True)
        await self.store.put(CACHED_LEVEL, user_id, document)

        logger.info(
            f"Level for user {user_id}: {state.level} "
            f"({state.current_exp}/{state.next_level_exp} exp, {total} total steps)"
        )
        return state

    async def get_level(self, user_id: str) -> Optional[UserLevelState]:
        """Authoritative level, or None if never computed"""
        document = await self.store.get(USER_LEVEL, user_id)
        return UserLevelState.from_document(document) if document is not None else None
