"""
Document store contract

The app persists everything in a per-user keyed document store. Engines only
depend on this protocol; the concrete store (a cloud document database in
production, InMemoryDocumentStore locally and in tests) is injected.

Keys:
    userSteps/{userId}_{date}
    userBadges/{userId}_{date}_{type}
    dailyBonuses/{userId}
    streakProtections/{userId}
    cachedLevel/{userId}
    userLevel/{userId}
"""

from typing import Any, NamedTuple, Optional, Protocol, Sequence

# Collections
USER_STEPS = "userSteps"
USER_BADGES = "userBadges"
DAILY_BONUSES = "dailyBonuses"
STREAK_PROTECTIONS = "streakProtections"
CACHED_LEVEL = "cachedLevel"
USER_LEVEL = "userLevel"

FILTER_OPERATORS = ("==", "!=", "<", "<=", ">", ">=", "in")


class Filter(NamedTuple):
    """Field comparison used by DocumentStore.query"""
    field: str
    op: str
    value: Any


class DocumentStore(Protocol):
    """Async keyed document store"""

    async def put(
        self,
        collection: str,
        key: str,
        document: dict[str, Any],
        merge: bool = False
    ) -> None:
        """Upsert; merge=True updates only the given top-level fields"""
        ...

    async def get(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        """Read one document, None if absent"""
        ...

    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None
    ) -> list[dict[str, Any]]:
        """Filtered, optionally ordered and limited read"""
        ...

    async def delete(self, collection: str, key: str) -> None:
        """Remove a document (no-op if absent)"""
        ...


def steps_key(user_id: str, date_str: str) -> str:
    return f"{user_id}_{date_str}"


def badge_key(user_id: str, date_str: str, badge_type: str) -> str:
    return f"{user_id}_{date_str}_{badge_type}"
