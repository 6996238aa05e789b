import logging
from dataclasses import asdict
from fastapi import APIRouter, HTTPException, Depends, Query
from typing import List, Literal, Optional

from core import checklist
from core.activity import log_activity
from core.config import settings
from core.database import get_db, paginate, versioned_update
from core.errors import ValidationFailed
from core.lifecycle import TaskLifecycle, available_controls, can_work_on, ensure_task_editable
from core.notifications import notify_many, task_created_message
from core.rewards import snapshot_reward
from core.system_settings import get_settings
from core.templates import apply_template
from core.time_utils import get_current_time
from models.activity import ActivityLog
from models.common import Page
from models.task import (
    Action, ActionComplete, ActionCreate, AttachmentCreate, ChecklistSummary,
    Comment, CommentCreate, Task, TaskCreate, TaskDetail, TaskStatus, TaskUpdate,
    VersionedRequest, dates_in_order,
)
from models.template import ActionTemplate
from models.user import User, display_name
from routes.auth import get_current_user, require_role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["Tasks"])

async def load_task(db, task_id: str) -> Task:
    task_data = await db.tasks.find_one({"_id": task_id})
    if not task_data:
        raise HTTPException(status_code=404, detail="Task not found")
    return Task(**task_data)

def ensure_can_view(task: Task, user: User):
    if user.role == "employee" and user.id not in task.assigned_to:
        raise HTTPException(status_code=403, detail="Not authorized")

def ensure_can_work(task: Task, user: User):
    if not can_work_on(task, user):
        raise HTTPException(status_code=403, detail="Not authorized")

async def project_name_of(db, project_id: str) -> Optional[str]:
    project = await db.projects.find_one({"_id": project_id}, {"name": 1})
    return project.get("name") if project else None

@router.post("/", response_model=Task, status_code=201)
async def create_task(
    task_in: TaskCreate,
    current_user: User = Depends(require_role("admin", "manager")),
    db=Depends(get_db)
):
    """
    Create a task.
    - Status starts at 'pending'.
    - coins_reward is priced from the current settings and frozen on the task.
    """
    policy = await get_settings(db)
    coins_reward, reward_inputs = snapshot_reward(policy, task_in.difficulty_level)

    now = get_current_time()
    task = Task(
        project_id=task_in.project_id,
        title=task_in.title,
        description=task_in.description,
        priority=task_in.priority,
        assigned_to=task_in.assigned_to,
        created_by=current_user.id,
        actions=[Action(**a.model_dump()) for a in task_in.actions],
        difficulty_level=task_in.difficulty_level,
        coins_reward=coins_reward,
        reward_inputs=reward_inputs,
        start_date=task_in.start_date,
        due_date=task_in.due_date,
        created_at=now,
        updated_at=now
    )
    await db.tasks.insert_one(task.model_dump(by_alias=True))
    logger.info("Task %s created by %s (reward %d)", task.id, current_user.id, coins_reward)

    await log_activity(db, ActivityLog(
        user_id=current_user.id,
        user_name=current_user.full_name,
        type="task_created",
        project_id=task.project_id,
        project_name=await project_name_of(db, task.project_id),
        task_id=task.id,
        task_name=task.title
    ))
    await notify_many(db, task.assigned_to, related_entity_id=task.id, **task_created_message(task.title))
    return task

@router.get("/", response_model=Page[Task])
async def list_tasks(
    project_id: Optional[str] = None,
    status: Optional[TaskStatus] = None,
    assigned_to: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """List tasks, newest first. Employees only ever see their own assignments."""
    query = {}
    if project_id:
        query["project_id"] = project_id
    if status:
        query["status"] = status
    if current_user.role == "employee":
        assigned_to = current_user.id
    if assigned_to:
        query["assigned_to"] = assigned_to

    docs, total, total_pages = await paginate(
        lambda: db.tasks.find(query).sort("created_at", -1), query, db.tasks, page, limit
    )
    return Page[Task](
        data=[Task(**d) for d in docs], total=total, total_pages=total_pages, page=page, limit=limit
    )

@router.get("/{task_id}", response_model=TaskDetail)
async def get_task(task_id: str, current_user: User = Depends(get_current_user), db=Depends(get_db)):
    task = await load_task(db, task_id)
    ensure_can_view(task, current_user)

    progress = checklist.evaluate(task.actions)
    user_ids = list(dict.fromkeys(task.assigned_to + [task.created_by]))
    user_docs = await db.users.find({"_id": {"$in": user_ids}}, {"full_name": 1}).to_list(length=len(user_ids))
    users = {u["_id"]: u for u in user_docs}

    return TaskDetail(
        task=task,
        progress=ChecklistSummary(**asdict(progress)),
        controls=available_controls(task, current_user),
        assignee_names={uid: display_name(users.get(uid)) for uid in task.assigned_to},
        creator_name=display_name(users.get(task.created_by))
    )

@router.patch("/{task_id}", response_model=Task)
async def update_task(
    task_id: str,
    task_update: TaskUpdate,
    current_user: User = Depends(require_role("admin", "manager")),
    db=Depends(get_db)
):
    """
    Edit task fields.
    If difficulty_level changes, the reward is repriced with the current settings.
    Completed and blocked tasks are closed to edits.
    """
    task = await load_task(db, task_id)
    ensure_task_editable(task)
    changes = task_update.model_dump(exclude_unset=True, exclude_none=True, exclude={"version"})

    start_date = changes.get("start_date", task.start_date)
    due_date = changes.get("due_date", task.due_date)
    if not dates_in_order(start_date, due_date):
        raise ValidationFailed("due_date must not be before start_date")

    if "difficulty_level" in changes:
        policy = await get_settings(db)
        coins_reward, reward_inputs = snapshot_reward(policy, changes["difficulty_level"])
        changes["coins_reward"] = coins_reward
        changes["reward_inputs"] = reward_inputs.model_dump()

    changes["updated_at"] = get_current_time()
    updated = Task(**await versioned_update(db.tasks, task.id, task_update.version, changes))

    new_assignees = [uid for uid in updated.assigned_to if uid not in task.assigned_to]
    if new_assignees:
        await notify_many(db, new_assignees, related_entity_id=task.id, **task_created_message(task.title))

    await log_activity(db, ActivityLog(
        user_id=current_user.id,
        user_name=current_user.full_name,
        type="task_updated",
        project_id=updated.project_id,
        project_name=await project_name_of(db, updated.project_id),
        task_id=updated.id,
        task_name=updated.title,
        details="Task updated: " + ", ".join(sorted(k for k in changes if k != "updated_at"))
    ))
    return updated

@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    current_user: User = Depends(require_role("admin", "manager")),
    db=Depends(get_db)
):
    task = await load_task(db, task_id)
    await db.tasks.delete_one({"_id": task.id})
    await log_activity(db, ActivityLog(
        user_id=current_user.id,
        user_name=current_user.full_name,
        type="task_deleted",
        project_id=task.project_id,
        task_id=task.id,
        task_name=task.title
    ))
    return {"message": "Task deleted"}

# --- Comments & Attachments (append-only, no version check) ---

@router.post("/{task_id}/comments", response_model=Comment, status_code=201)
async def add_comment(
    task_id: str,
    comment_in: CommentCreate,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    task = await load_task(db, task_id)
    ensure_can_view(task, current_user)
    comment = Comment(user_id=current_user.id, text=comment_in.text, attachments=comment_in.attachments)
    await db.tasks.update_one(
        {"_id": task.id},
        {
            "$push": {"comments": comment.model_dump()},
            "$set": {"updated_at": get_current_time()},
            "$inc": {"version": 1}
        }
    )
    return comment

@router.post("/{task_id}/attachments", response_model=Task)
async def add_attachment(
    task_id: str,
    attachment: AttachmentCreate,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """Record a URL produced by the external blob store."""
    task = await load_task(db, task_id)
    ensure_can_work(task, current_user)
    await db.tasks.update_one(
        {"_id": task.id},
        {
            "$push": {"attachments": attachment.url},
            "$set": {"updated_at": get_current_time()},
            "$inc": {"version": 1}
        }
    )
    return await load_task(db, task.id)

# --- Actions (whole-array replace guarded by version) ---

async def save_actions(db, task: Task, version: int, actions: List[Action]) -> Task:
    changes = {
        "actions": [a.model_dump() for a in actions],
        "updated_at": get_current_time()
    }
    return Task(**await versioned_update(db.tasks, task.id, version, changes))

class ActionAdd(ActionCreate):
    version: int

@router.post("/{task_id}/actions", response_model=Task)
async def add_action(
    task_id: str,
    action_in: ActionAdd,
    current_user: User = Depends(require_role("admin", "manager")),
    db=Depends(get_db)
):
    task = await load_task(db, task_id)
    action = Action(**action_in.model_dump(exclude={"version"}))
    return await save_actions(db, task, action_in.version, checklist.add_action(task, action))

@router.delete("/{task_id}/actions/{action_id}", response_model=Task)
async def remove_action(
    task_id: str,
    action_id: str,
    version: int,
    current_user: User = Depends(require_role("admin", "manager")),
    db=Depends(get_db)
):
    task = await load_task(db, task_id)
    return await save_actions(db, task, version, checklist.remove_action(task, action_id))

@router.post("/{task_id}/actions/{action_id}/complete", response_model=Task)
async def complete_action(
    task_id: str,
    action_id: str,
    payload: ActionComplete,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """
    Mark one action done by the current user.
    Rejected while the task awaits approval or is closed.
    """
    task = await load_task(db, task_id)
    ensure_can_work(task, current_user)
    actions = checklist.complete_action(task, action_id, current_user.id, payload.data)
    return await save_actions(db, task, payload.version, actions)

@router.post("/{task_id}/actions/{action_id}/uncomplete", response_model=Task)
async def uncomplete_action(
    task_id: str,
    action_id: str,
    payload: VersionedRequest,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    task = await load_task(db, task_id)
    ensure_can_work(task, current_user)
    actions = checklist.uncomplete_action(task, action_id)
    return await save_actions(db, task, payload.version, actions)

@router.post("/{task_id}/apply-template/{template_id}", response_model=Task)
async def apply_action_template(
    task_id: str,
    template_id: str,
    payload: VersionedRequest,
    current_user: User = Depends(require_role("admin", "manager")),
    db=Depends(get_db)
):
    """Append a fresh copy of the template's actions to the task."""
    task = await load_task(db, task_id)
    checklist.ensure_actions_editable(task)
    template_data = await db.action_templates.find_one({"_id": template_id})
    if not template_data:
        raise HTTPException(status_code=404, detail="Template not found")
    actions = apply_template(ActionTemplate(**template_data), task.actions)
    return await save_actions(db, task, payload.version, actions)

# --- Status workflow ---

@router.post("/{task_id}/transitions/{transition}", response_model=Task)
async def transition_task(
    task_id: str,
    transition: Literal["start", "submit", "approve", "revert", "block"],
    payload: VersionedRequest,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """
    Move the task through its workflow.
    - submit: all actions must be complete.
    - approve / revert: admin only, from waiting_approval.
    """
    return await TaskLifecycle(db).transition(task_id, transition, current_user, payload.version)
