"""Domain errors raised by the lifecycle, checklist and storage layers.

Routes let these propagate; ``main.py`` turns them into JSON responses
using ``status_code``.
"""


class WorkQuestError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(WorkQuestError):
    status_code = 404


class PermissionDeniedError(WorkQuestError):
    status_code = 403


class InvalidTransitionError(WorkQuestError):
    """Requested status change is not allowed from the current status."""
    status_code = 409


class ActionLockedError(WorkQuestError):
    """Actions cannot change while the task awaits approval or is closed."""
    status_code = 409


class StaleVersionError(WorkQuestError):
    """The document changed since the caller read it."""
    status_code = 409


class ValidationFailed(WorkQuestError):
    status_code = 422
