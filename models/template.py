from pydantic import BaseModel, Field
from typing import List, Optional

from models.common import PyObjectId, new_id
from models.task import ActionType

class ActionPrototype(BaseModel):
    title: str = Field(..., max_length=200)
    description: Optional[str] = None
    type: ActionType = "text"

class ActionTemplate(BaseModel):
    """A named, ordered list of action prototypes that can be copied into tasks."""
    id: PyObjectId = Field(default_factory=new_id, alias="_id")
    title: str = Field(..., max_length=100)
    description: Optional[str] = None
    elements: List[ActionPrototype] = []
    order: int = 0

    class Config:
        populate_by_name = True

class ActionTemplateCreate(BaseModel):
    title: str = Field(..., max_length=100)
    description: Optional[str] = None
    elements: List[ActionPrototype] = []

class ActionTemplateUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    elements: Optional[List[ActionPrototype]] = None

class TemplateOrder(BaseModel):
    template_ids: List[str]
