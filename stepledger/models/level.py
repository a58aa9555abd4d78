"""Level models"""
from pydantic import Field

from stepledger.models.document import DocumentModel


class UserLevelState(DocumentModel):
    """Level derived from lifetime steps (1 step = 1 exp)"""
    level: int = Field(default=1, ge=1)
    current_exp: int = Field(default=0, ge=0)
    next_level_exp: int = Field(default=1000, gt=0)
    total_steps: int = Field(default=0, ge=0)
    progress_percentage: float = Field(default=0.0, ge=0, le=100)
