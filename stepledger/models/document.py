"""Base model for documents kept in the document store"""
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DocumentModel(BaseModel):
    """
    Pydantic model persisted with camelCase field names

    Python code uses snake_case attributes; the stored document uses
    camelCase keys (userId, updatedAt, ...).
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        """Serialize for the document store (camelCase, JSON-safe values)"""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_document(cls, document: dict[str, Any]):
        """Parse a stored camelCase document"""
        return cls.model_validate(document)


def validate_date_key(v: Any) -> Optional[str]:
    """Ensure YYYY-MM-DD format if provided (date objects are converted)"""
    if v is None:
        return v
    if isinstance(v, datetime):
        return v.date().isoformat()
    if isinstance(v, date):
        return v.isoformat()
    if not isinstance(v, str):
        raise ValueError(f"Invalid date: {v!r}. Must be YYYY-MM-DD")
    try:
        date.fromisoformat(v)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid date format: '{v}'. Must be YYYY-MM-DD")
    return v
