from pydantic import BaseModel, Field, EmailStr, field_validator
from typing import Optional, Literal
from datetime import datetime
import re

from models.common import PyObjectId, new_id
from core.time_utils import get_current_time

Role = Literal["admin", "manager", "employee"]
UNKNOWN_USER_NAME = "Unknown User"

# At least two words, letters only (accented letters allowed)
NAME_PATTERN = re.compile(r"^[A-Za-zÀ-ÿ]+\s[A-Za-zÀ-ÿ]+")

class User(BaseModel):
    id: PyObjectId = Field(default_factory=new_id, alias="_id")
    full_name: str
    email: EmailStr
    role: Role = "employee"
    status: Literal["active", "inactive"] = "active"
    is_active: bool = True

    # Gamification
    coins: int = 0

    created_at: datetime = Field(default_factory=get_current_time)

    class Config:
        populate_by_name = True

class UserCreate(BaseModel):
    full_name: str
    email: EmailStr
    role: Role = "employee"

    @field_validator("full_name")
    @classmethod
    def full_name_has_two_words(cls, v: str) -> str:
        v = v.strip()
        if not NAME_PATTERN.match(v):
            raise ValueError("Full name must contain first and last name")
        return v

class UserRoleUpdate(BaseModel):
    role: Role

class UserStatusUpdate(BaseModel):
    status: Literal["active", "inactive"]

def display_name(user_doc: Optional[dict]) -> str:
    if not user_doc:
        return UNKNOWN_USER_NAME
    return user_doc.get("full_name") or UNKNOWN_USER_NAME
