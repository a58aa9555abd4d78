"""
In-memory document store

Process-local implementation of the DocumentStore contract. Used for local
runs and tests; documents are deep-copied on the way in and out so callers
can never mutate stored state by accident.
"""

import copy
import logging
import operator
from typing import Any, Callable, Dict, Optional, Sequence

from stepledger.exceptions import ValidationError
from stepledger.store.base import FILTER_OPERATORS, Filter

logger = logging.getLogger(__name__)

_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda value, options: value in options,
}


class InMemoryDocumentStore:
    """Dict-backed store: {collection: {key: document}}"""

    def __init__(self):
        self._collections: Dict[str, Dict[str, dict]] = {}

    async def put(
        self,
        collection: str,
        key: str,
        document: dict[str, Any],
        merge: bool = False
    ) -> None:
        docs = self._collections.setdefault(collection, {})
        if merge and key in docs:
            docs[key].update(copy.deepcopy(document))
            logger.debug(f"Merged {collection}/{key}")
        else:
            docs[key] = copy.deepcopy(document)
            logger.debug(f"Stored {collection}/{key}")

    async def get(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        document = self._collections.get(collection, {}).get(key)
        return copy.deepcopy(document) if document is not None else None

    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None
    ) -> list[dict[str, Any]]:
        for f in filters:
            if f.op not in FILTER_OPERATORS:
                raise ValidationError(
                    f"Unsupported filter operator '{f.op}'",
                    field="op",
                    value=f.op,
                )

        results = [
            doc for doc in self._collections.get(collection, {}).values()
            if all(self._matches(doc, f) for f in filters)
        ]

        if order_by:
            # Documents missing the field sort last, like a cloud index would skip them
            present = [doc for doc in results if doc.get(order_by) is not None]
            missing = [doc for doc in results if doc.get(order_by) is None]
            present.sort(key=lambda doc: doc[order_by], reverse=descending)
            results = present + missing

        if limit is not None:
            results = results[:limit]

        return [copy.deepcopy(doc) for doc in results]

    async def delete(self, collection: str, key: str) -> None:
        if self._collections.get(collection, {}).pop(key, None) is not None:
            logger.debug(f"Deleted {collection}/{key}")

    @staticmethod
    def _matches(document: dict, f: Filter) -> bool:
        if f.field not in document:
            return False
        try:
            return _OPERATORS[f.op](document[f.field], f.value)
        except TypeError:
            return False

    def count(self, collection: str) -> int:
        """Number of documents in a collection"""
        return len(self._collections.get(collection, {}))
