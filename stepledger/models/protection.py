"""Streak protection models"""
from typing import Any, Optional

from pydantic import Field, field_validator

from stepledger import config
from stepledger.models.document import DocumentModel, validate_date_key


class StreakProtection(DocumentModel):
    """Per-user consumable streak protections"""
    user_id: str
    active_protections: int = Field(default=0, ge=0, le=config.MAX_STREAK_PROTECTIONS)
    used_protections: int = Field(default=0, ge=0)
    last_used_date: Optional[str] = None
    last_refill_date: Optional[str] = None
    protected_dates: list[str] = Field(default_factory=list)

    @field_validator('last_used_date', 'last_refill_date', mode='before')
    @classmethod
    def validate_dates(cls, v: Any) -> Optional[str]:
        return validate_date_key(v)

    @field_validator('protected_dates', mode='before')
    @classmethod
    def validate_protected_dates(cls, v: Any) -> Any:
        if not isinstance(v, (list, tuple)):
            return v
        return [validate_date_key(d) for d in v]
