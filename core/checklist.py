"""Checklist progress and per-action completion for a task.

Everything here is pure: functions take a Task and return new values.
Persisting the result is up to the caller.
"""

from dataclasses import dataclass
from typing import List

from core.errors import ActionLockedError, NotFoundError, ValidationFailed
from core.time_utils import get_current_time
from models.task import Action, PAYLOAD_KIND_BY_ACTION_TYPE, Task

# Statuses in which actions may no longer change
LOCKED_STATUSES = ("waiting_approval", "completed", "blocked")


@dataclass(frozen=True)
class ChecklistProgress:
    completed: int
    total: int
    percent: int
    all_complete: bool


def evaluate(actions: List[Action]) -> ChecklistProgress:
    total = len(actions)
    completed = sum(1 for a in actions if a.completed)
    # Integer half-up rounding of completed / total * 100
    percent = (completed * 200 + total) // (2 * total) if total else 0
    return ChecklistProgress(
        completed=completed,
        total=total,
        percent=percent,
        all_complete=total > 0 and completed == total,
    )


def actions_editable(task: Task) -> bool:
    return task.status not in LOCKED_STATUSES


def ensure_actions_editable(task: Task):
    if not actions_editable(task):
        raise ActionLockedError(f"Actions cannot change while task is {task.status}")


def _find(actions: List[Action], action_id: str) -> int:
    for index, action in enumerate(actions):
        if action.id == action_id:
            return index
    raise NotFoundError("Action not found")


def check_payload(action: Action, data) -> None:
    expected = PAYLOAD_KIND_BY_ACTION_TYPE[action.type]
    if data is None:
        return
    if expected is None or data.kind != expected:
        raise ValidationFailed(
            f"Payload of kind '{data.kind}' does not fit action type '{action.type}'"
        )


def complete_action(task: Task, action_id: str, user_id: str, data=None) -> List[Action]:
    """Returns the task's actions with `action_id` marked complete by `user_id`."""
    ensure_actions_editable(task)
    actions = [a.model_copy(deep=True) for a in task.actions]
    index = _find(actions, action_id)
    check_payload(actions[index], data)
    actions[index] = actions[index].model_copy(update={
        "completed": True,
        "completed_at": get_current_time(),
        "completed_by": user_id,
        "data": data,
    })
    return actions


def uncomplete_action(task: Task, action_id: str) -> List[Action]:
    ensure_actions_editable(task)
    actions = [a.model_copy(deep=True) for a in task.actions]
    index = _find(actions, action_id)
    actions[index] = actions[index].model_copy(update={
        "completed": False,
        "completed_at": None,
        "completed_by": None,
        "data": None,
    })
    return actions


def add_action(task: Task, action: Action) -> List[Action]:
    ensure_actions_editable(task)
    return [a.model_copy(deep=True) for a in task.actions] + [action]


def remove_action(task: Task, action_id: str) -> List[Action]:
    ensure_actions_editable(task)
    actions = [a.model_copy(deep=True) for a in task.actions]
    del actions[_find(actions, action_id)]
    return actions
