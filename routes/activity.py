from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from core.activity import recent_activities
from core.database import get_db
from models.activity import ActivityLog
from models.user import User
from routes.auth import require_role

router = APIRouter(prefix="/activity", tags=["Activity"])

@router.get("/recent", response_model=List[ActivityLog])
async def get_recent_activity(
    limit: int = Query(9, ge=1, le=100),
    project_id: Optional[str] = None,
    current_user: User = Depends(require_role("admin", "manager")),
    db=Depends(get_db)
):
    """Latest activity entries, newest first."""
    return await recent_activities(db, limit=limit, project_id=project_id)
