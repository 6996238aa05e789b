from pydantic import BaseModel, Field
from datetime import datetime
from typing import Literal, Optional
from .common import PyObjectId, new_id

from core.time_utils import get_current_time

ActivityType = Literal[
    "task_created", "task_updated", "task_status_update", "task_deleted",
    "project_created", "coins_credited",
]

class ActivityLog(BaseModel):
    id: PyObjectId = Field(alias="_id", default_factory=new_id)
    user_id: str
    user_name: str = "Unknown User"
    type: ActivityType
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    task_id: Optional[str] = None
    task_name: Optional[str] = None
    new_status: Optional[str] = None
    details: Optional[str] = None
    timestamp: datetime = Field(default_factory=get_current_time)

    class Config:
        populate_by_name = True
