"""Document store contract and implementations"""
from stepledger.store.base import (
    DocumentStore,
    Filter,
    USER_STEPS,
    USER_BADGES,
    DAILY_BONUSES,
    STREAK_PROTECTIONS,
    CACHED_LEVEL,
    USER_LEVEL,
    steps_key,
    badge_key,
)
from stepledger.store.memory import InMemoryDocumentStore

__all__ = [
    "DocumentStore",
    "Filter",
    "USER_STEPS",
    "USER_BADGES",
    "DAILY_BONUSES",
    "STREAK_PROTECTIONS",
    "CACHED_LEVEL",
    "USER_LEVEL",
    "steps_key",
    "badge_key",
    "InMemoryDocumentStore",
]
