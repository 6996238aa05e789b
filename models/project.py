from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import datetime

from models.common import PyObjectId, new_id
from core.time_utils import get_current_time

ProjectStatus = Literal["active", "on_hold", "completed", "archived"]
MessageType = Literal["general", "task_submission", "task_approval"]

class Project(BaseModel):
    id: PyObjectId = Field(default_factory=new_id, alias="_id")
    name: str = Field(..., max_length=100)
    description: str = ""
    status: ProjectStatus = "active"
    managers: List[str] = []
    members: List[str] = []
    created_by: str = ""
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: datetime = Field(default_factory=get_current_time)
    updated_at: datetime = Field(default_factory=get_current_time)

    class Config:
        populate_by_name = True

class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    managers: List[str] = []
    members: List[str] = []
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    managers: Optional[List[str]] = None
    members: Optional[List[str]] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

class ProjectMessage(BaseModel):
    """Project chat entry. System entries are written by the task workflow."""
    id: PyObjectId = Field(default_factory=new_id, alias="_id")
    project_id: str
    user_id: str
    user_name: str
    content: str
    message_type: MessageType = "general"
    task_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=get_current_time)

    class Config:
        populate_by_name = True

class ProjectMessageCreate(BaseModel):
    content: str = Field(..., min_length=1)
