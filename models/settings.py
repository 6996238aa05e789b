from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

SETTINGS_DOC_ID = "settings"

class SystemSettings(BaseModel):
    """
    Global reward policy.

    Attributes:
    - task_completion_base: Coins per difficulty point.
    - complexity_multiplier: Scales the base reward.
    - monthly_bonus: Displayed bonus amount, not used in the reward formula.
    - version: Bumped on every save; copied into each task's reward snapshot.
    """
    task_completion_base: int = Field(..., ge=0)
    complexity_multiplier: float = Field(..., ge=0)
    monthly_bonus: int = Field(0, ge=0)
    version: int = 0
    updated_at: Optional[datetime] = None

class SystemSettingsUpdate(BaseModel):
    task_completion_base: Optional[int] = Field(None, ge=0)
    complexity_multiplier: Optional[float] = Field(None, ge=0)
    monthly_bonus: Optional[int] = Field(None, ge=0)
