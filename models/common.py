from typing import Annotated, List, TypeVar, Generic
from bson import ObjectId
from pydantic import BaseModel, BeforeValidator

def new_id() -> str:
    return str(ObjectId())

# Ids are stored as strings; tolerate ObjectIds coming back from older documents.
PyObjectId = Annotated[str, BeforeValidator(lambda v: str(v) if isinstance(v, ObjectId) else v)]

T = TypeVar("T")

class Page(BaseModel, Generic[T]):
    data: List[T]
    total: int
    total_pages: int
    page: int
    limit: int
