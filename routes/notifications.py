from fastapi import APIRouter, HTTPException, Depends, Query
from typing import List

from core.config import settings
from core.database import get_db
from core.notifications import clear_old_notifications
from models.notification import Notification
from models.user import User
from routes.auth import get_current_user

router = APIRouter(prefix="/notifications", tags=["Notifications"])

@router.get("/", response_model=List[Notification])
async def get_my_notifications(
    limit: int = Query(20, ge=1, le=settings.MAX_PAGE_SIZE),
    unread_only: bool = False,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """Newest first."""
    query = {"user_id": current_user.id}
    if unread_only:
        query["read"] = False
    docs = await db.notifications.find(query).sort("timestamp", -1).limit(limit).to_list(length=limit)
    return [Notification(**n) for n in docs]

@router.post("/{notification_id}/read", response_model=Notification)
async def mark_as_read(notification_id: str, current_user: User = Depends(get_current_user), db=Depends(get_db)):
    query = {"_id": notification_id, "user_id": current_user.id}
    result = await db.notifications.update_one(query, {"$set": {"read": True}})
    if result.matched_count == 0:
        raise HTTPException(status_code=404, detail="Notification not found")
    return Notification(**await db.notifications.find_one(query))

@router.delete("/")
async def clear_old(
    days_old: int = Query(settings.NOTIFICATION_RETENTION_DAYS, ge=0),
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """Delete the current user's notifications older than `days_old` days."""
    removed = await clear_old_notifications(db, days_old, user_id=current_user.id)
    return {"deleted": removed}
