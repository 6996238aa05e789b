"""Task status workflow.

    pending --start--> in_progress
    pending | in_progress --submit--> waiting_approval   (all actions complete)
    waiting_approval --approve--> completed               (admin)
    waiting_approval --revert--> pending                  (admin)
    pending | in_progress --block--> blocked              (admin, manager)

completed and blocked are terminal. Every transition is a single versioned
write, so of two concurrent callers holding the same version only one wins.
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Protocol

from pymongo.errors import PyMongoError

from core import checklist
from core.activity import log_activity
from core.config import settings
from core.database import versioned_update
from core.errors import InvalidTransitionError, NotFoundError, PermissionDeniedError
from core.notifications import (
    notify_many,
    post_project_message,
    task_approved_message,
    task_status_message,
)
from core.time_utils import get_current_time
from models.activity import ActivityLog
from models.project import ProjectMessage
from models.task import Task
from models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    name: str
    sources: FrozenSet[str]
    target: str
    roles: FrozenSet[str]
    # Assignees may trigger it regardless of role
    assignee_allowed: bool = False


TRANSITIONS: Dict[str, Transition] = {
    t.name: t for t in (
        Transition("start", frozenset({"pending"}), "in_progress",
                   frozenset({"admin", "manager"}), assignee_allowed=True),
        Transition("submit", frozenset({"pending", "in_progress"}), "waiting_approval",
                   frozenset({"admin", "manager"}), assignee_allowed=True),
        Transition("approve", frozenset({"waiting_approval"}), "completed",
                   frozenset({"admin"})),
        Transition("revert", frozenset({"waiting_approval"}), "pending",
                   frozenset({"admin"})),
        Transition("block", frozenset({"pending", "in_progress"}), "blocked",
                   frozenset({"admin", "manager"})),
    )
}


# No transition leaves these statuses
TERMINAL_STATUSES = frozenset({"completed", "blocked"})


class EventSink(Protocol):
    def emit(self, event: str, **fields) -> None: ...


class LoggingEventSink:
    """Default sink: one structured log line per workflow event."""

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def emit(self, event: str, **fields) -> None:
        details = " ".join(f"{k}={v}" for k, v in sorted(fields.items()))
        self.log.info("%s %s", event, details)


def can_work_on(task: Task, user: User) -> bool:
    return user.role in ("admin", "manager") or user.id in task.assigned_to


def ensure_task_editable(task: Task):
    if task.status in TERMINAL_STATUSES:
        raise InvalidTransitionError(f"Cannot edit a task that is {task.status}")


def is_allowed(transition: Transition, task: Task, user: User) -> bool:
    if user.role in transition.roles:
        return True
    return transition.assignee_allowed and user.id in task.assigned_to


def check_transition(task: Task, user: User, name: str) -> Transition:
    """
    Validates `name` against the task's current state and the caller.

    Raises:
        InvalidTransitionError: unknown transition, wrong source status, or
            submit with an incomplete checklist.
        PermissionDeniedError: caller lacks the role for it.
    """
    transition = TRANSITIONS.get(name)
    if transition is None:
        raise InvalidTransitionError(f"Unknown transition '{name}'")
    if not is_allowed(transition, task, user):
        raise PermissionDeniedError(f"Not allowed to {name} this task")
    if task.status not in transition.sources:
        raise InvalidTransitionError(f"Cannot {name} a task that is {task.status}")
    if name == "submit" and not checklist.evaluate(task.actions).all_complete:
        raise InvalidTransitionError("All actions must be completed before submitting for approval")
    return transition


def available_controls(task: Task, user: User) -> List[str]:
    """Controls a client may offer `user` for `task`, in display order."""
    controls = []
    if checklist.actions_editable(task) and can_work_on(task, user):
        controls.append("complete_actions")
    for name, transition in TRANSITIONS.items():
        try:
            check_transition(task, user, name)
        except (InvalidTransitionError, PermissionDeniedError):
            continue
        controls.append("submit_for_approval" if name == "submit" else name)
    return controls


class TaskLifecycle:
    """Applies transitions against the task store and fans out side effects."""

    def __init__(self, db, events: Optional[EventSink] = None):
        self.db = db
        self.events = events or LoggingEventSink()

    async def load(self, task_id: str) -> Task:
        doc = await self.db.tasks.find_one({"_id": task_id})
        if not doc:
            raise NotFoundError("Task not found")
        return Task(**doc)

    async def transition(self, task_id: str, name: str, user: User, expected_version: int) -> Task:
        task = await self.load(task_id)
        transition = check_transition(task, user, name)

        now = get_current_time()
        changes = {"status": transition.target, "updated_at": now}
        credit = False
        if name == "approve":
            changes["completed_at"] = now
            credit = settings.CREDIT_COINS_ON_APPROVAL and not task.coins_credited and task.coins_reward > 0
            if credit:
                changes["coins_credited"] = True

        updated_doc = await versioned_update(self.db.tasks, task.id, expected_version, changes)
        updated = Task(**updated_doc)
        self.events.emit(
            "task.transition",
            task_id=task.id, transition=name,
            from_status=task.status, to_status=updated.status, user_id=user.id
        )

        if credit:
            await self._credit_coins(updated, user)
        await self._after_status_change(task, updated, user, name)
        return updated

    async def _credit_coins(self, task: Task, approver: User):
        if not task.assigned_to:
            return
        try:
            result = await self.db.users.update_many(
                {"_id": {"$in": task.assigned_to}},
                {"$inc": {"coins": task.coins_reward}}
            )
        except PyMongoError as exc:
            self.events.emit(
                "task.coins_credit_failed",
                task_id=task.id, coins=task.coins_reward,
                users=",".join(task.assigned_to), error=repr(exc)
            )
            # The task must not claim a credit that never landed
            await self.db.tasks.update_one(
                {"_id": task.id},
                {"$set": {"coins_credited": False}, "$inc": {"version": 1}}
            )
            raise
        self.events.emit(
            "task.coins_credited",
            task_id=task.id, coins=task.coins_reward, users=result.modified_count
        )
        await log_activity(self.db, ActivityLog(
            user_id=approver.id,
            user_name=approver.full_name,
            type="coins_credited",
            project_id=task.project_id,
            task_id=task.id,
            task_name=task.title,
            details=f"{task.coins_reward} coins credited to {len(task.assigned_to)} assignee(s)"
        ))

    async def _after_status_change(self, before: Task, task: Task, user: User, name: str):
        project = await self.db.projects.find_one({"_id": task.project_id}) or {}
        project_name = project.get("name", "Unknown Project")
        managers = project.get("managers", [])

        if name == "approve":
            message = task_approved_message(task.title, task.coins_reward)
            await notify_many(self.db, task.assigned_to, related_entity_id=task.id, **message)
            await notify_many(
                self.db, managers, related_entity_id=task.id,
                **task_status_message(task.title, project_name, task.status)
            )
        else:
            await notify_many(
                self.db, list(task.assigned_to) + list(managers), related_entity_id=task.id,
                **task_status_message(task.title, project_name, task.status)
            )

        await log_activity(self.db, ActivityLog(
            user_id=user.id,
            user_name=user.full_name,
            type="task_status_update",
            project_id=task.project_id,
            project_name=project.get("name"),
            task_id=task.id,
            task_name=task.title,
            new_status=task.status,
            details=f"Task status changed from {before.status} to {task.status}"
        ))

        chat_type = {"submit": "task_submission", "approve": "task_approval"}.get(name)
        if chat_type and project:
            if chat_type == "task_submission":
                content = f"{user.full_name} submitted '{task.title}' for approval."
            else:
                content = f"{user.full_name} approved '{task.title}' ({task.coins_reward} coins)."
            await post_project_message(self.db, ProjectMessage(
                project_id=task.project_id,
                user_id=user.id,
                user_name=user.full_name,
                content=content,
                message_type=chat_type,
                task_id=task.id
            ))
