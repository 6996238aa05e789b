from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime

from models.common import PyObjectId, new_id
from core.time_utils import get_current_time

NotificationType = Literal["task_created", "task_updated", "task_approved", "project_updated", "general"]

class Notification(BaseModel):
    id: PyObjectId = Field(default_factory=new_id, alias="_id")
    user_id: str
    type: NotificationType = "general"
    title: str
    message: str
    related_entity_id: Optional[str] = None
    read: bool = False
    timestamp: datetime = Field(default_factory=get_current_time)

    class Config:
        populate_by_name = True
