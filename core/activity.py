import logging
from typing import Optional

from models.activity import ActivityLog

logger = logging.getLogger(__name__)

async def log_activity(db, activity: ActivityLog) -> str:
    """Append an entry to the activity feed. Returns its id."""
    await db.activity_logs.insert_one(activity.model_dump(by_alias=True))
    logger.debug("Activity logged: %s (%s)", activity.type, activity.id)
    return activity.id

async def recent_activities(db, limit: int = 9, project_id: Optional[str] = None):
    query = {"project_id": project_id} if project_id else {}
    cursor = db.activity_logs.find(query).sort("timestamp", -1).limit(limit)
    docs = await cursor.to_list(length=limit)
    return [ActivityLog(**d) for d in docs]
