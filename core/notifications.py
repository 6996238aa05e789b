import logging
from datetime import timedelta
from typing import Iterable, Optional

from core.time_utils import get_current_time
from models.notification import Notification
from models.project import ProjectMessage

logger = logging.getLogger(__name__)

async def create_notification(db, user_id: str, type: str, title: str, message: str,
                              related_entity_id: Optional[str] = None) -> Notification:
    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        related_entity_id=related_entity_id
    )
    await db.notifications.insert_one(notification.model_dump(by_alias=True))
    return notification

async def notify_many(db, user_ids: Iterable[str], **fields) -> int:
    """Notify each distinct user once. Returns the number of notifications written."""
    count = 0
    for user_id in dict.fromkeys(uid for uid in user_ids if uid):
        await create_notification(db, user_id, **fields)
        count += 1
    return count

async def clear_old_notifications(db, days_old: int, user_id: Optional[str] = None) -> int:
    threshold = get_current_time() - timedelta(days=days_old)
    query = {"timestamp": {"$lt": threshold}}
    if user_id:
        query["user_id"] = user_id
    result = await db.notifications.delete_many(query)
    logger.info("Cleared %d notifications older than %d days", result.deleted_count, days_old)
    return result.deleted_count

async def post_project_message(db, message: ProjectMessage) -> ProjectMessage:
    await db.project_messages.insert_one(message.model_dump(by_alias=True))
    return message

# Message helpers for common notifications

def task_created_message(task_title: str) -> dict:
    return {
        "type": "task_created",
        "title": "New Task Assigned",
        "message": f"The task \"{task_title}\" was created and assigned to you.",
    }

def task_status_message(task_title: str, project_name: str, status: str) -> dict:
    return {
        "type": "task_updated",
        "title": "Task Status Updated",
        "message": f"Task '{task_title}' in project '{project_name}' has been updated to {status}",
    }

def task_approved_message(task_title: str, coins: int) -> dict:
    return {
        "type": "task_approved",
        "title": "Task Approved",
        "message": f"Your task \"{task_title}\" was approved. You earned {coins} coins!",
    }
