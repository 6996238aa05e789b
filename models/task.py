from pydantic import BaseModel, Field, model_validator
from typing import Annotated, Dict, List, Literal, Optional, Union
from datetime import datetime, timezone

from models.common import PyObjectId, new_id
from core.time_utils import get_current_time

TaskStatus = Literal["pending", "in_progress", "waiting_approval", "completed", "blocked"]
Priority = Literal["low", "medium", "high", "critical"]
ActionType = Literal["text", "long_text", "file_upload", "approval", "date", "document", "info"]

# --- Action payloads ---
# Tagged by `kind`. Which kind an action accepts depends on its type,
# see PAYLOAD_KIND_BY_ACTION_TYPE.

class TextPayload(BaseModel):
    kind: Literal["text"] = "text"
    text: str

class FileUploadPayload(BaseModel):
    kind: Literal["file_upload"] = "file_upload"
    file_url: str

class ApprovalPayload(BaseModel):
    kind: Literal["approval"] = "approval"
    approved: bool = True
    note: Optional[str] = None

class DatePayload(BaseModel):
    kind: Literal["date"] = "date"
    value: datetime

ActionPayload = Annotated[
    Union[TextPayload, FileUploadPayload, ApprovalPayload, DatePayload],
    Field(discriminator="kind"),
]

PAYLOAD_KIND_BY_ACTION_TYPE: Dict[str, Optional[str]] = {
    "text": "text",
    "long_text": "text",
    "file_upload": "file_upload",
    "document": "file_upload",
    "approval": "approval",
    "date": "date",
    "info": None,
}

class Action(BaseModel):
    """
    A single checklist step inside a Task.

    completed and completed_by are always set and cleared together.
    """
    id: str = Field(default_factory=new_id)
    title: str = Field(..., max_length=200)
    description: Optional[str] = None
    type: ActionType = "text"

    # State
    completed: bool = False
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    data: Optional[ActionPayload] = None

class ActionCreate(BaseModel):
    title: str = Field(..., max_length=200)
    description: Optional[str] = None
    type: ActionType = "text"

class ActionComplete(BaseModel):
    version: int
    data: Optional[ActionPayload] = None

# --- Task ---

class RewardInputs(BaseModel):
    """Policy values the reward was computed from, kept for auditability."""
    task_completion_base: int
    complexity_multiplier: float
    difficulty_level: int
    settings_version: int

class Comment(BaseModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    text: str
    attachments: List[str] = []
    created_at: datetime = Field(default_factory=get_current_time)

class Task(BaseModel):
    id: PyObjectId = Field(default_factory=new_id, alias="_id")
    project_id: str
    title: str = Field(..., max_length=200)
    description: str = ""
    priority: Priority = "medium"

    # Workflow
    status: TaskStatus = "pending"
    assigned_to: List[str] = []
    created_by: str = ""
    actions: List[Action] = []

    # Reward
    difficulty_level: int = 1
    coins_reward: int = 0
    reward_inputs: Optional[RewardInputs] = None
    coins_credited: bool = False

    comments: List[Comment] = []
    attachments: List[str] = []

    # Optimistic concurrency token, bumped on every write
    version: int = 1

    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=get_current_time)
    updated_at: datetime = Field(default_factory=get_current_time)

    class Config:
        populate_by_name = True

class TaskCreate(BaseModel):
    project_id: str
    title: str = Field(..., max_length=200)
    description: str = ""
    priority: Priority = "medium"
    assigned_to: List[str] = []
    difficulty_level: int = 1
    actions: List[ActionCreate] = []
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None

    @model_validator(mode="after")
    def check_dates(self):
        if not dates_in_order(self.start_date, self.due_date):
            raise ValueError("due_date must not be before start_date")
        return self

def _as_utc(dt: datetime) -> datetime:
    # Naive datetimes are treated as UTC
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)

def dates_in_order(start_date: Optional[datetime], due_date: Optional[datetime]) -> bool:
    if start_date is None or due_date is None:
        return True
    return _as_utc(due_date) >= _as_utc(start_date)

class TaskUpdate(BaseModel):
    """Partial edit. `version` must match the stored task."""
    version: int
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    priority: Optional[Priority] = None
    assigned_to: Optional[List[str]] = None
    difficulty_level: Optional[int] = None
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None

    @model_validator(mode="after")
    def check_dates(self):
        if not dates_in_order(self.start_date, self.due_date):
            raise ValueError("due_date must not be before start_date")
        return self

class VersionedRequest(BaseModel):
    version: int

class CommentCreate(BaseModel):
    text: str = Field(..., min_length=1)
    attachments: List[str] = []

class AttachmentCreate(BaseModel):
    url: str = Field(..., min_length=1)

class ChecklistSummary(BaseModel):
    completed: int
    total: int
    percent: int
    all_complete: bool

class TaskDetail(BaseModel):
    """Task plus the values a client needs to render it."""
    task: Task
    progress: ChecklistSummary
    controls: List[str]
    assignee_names: Dict[str, str]
    creator_name: str
