# app/utils/task_flow.py
"""Task status flow: todo -> in_progress -> in_review -> done"""

from typing import Optional, Tuple

from app.models.task import TaskStatus
from app.utils.errors import InvalidStatusFlow
from app.utils.permissions import is_pm

STATUS_FLOW: Tuple[TaskStatus, ...] = (
    TaskStatus.TODO,
    TaskStatus.IN_PROGRESS,
    TaskStatus.IN_REVIEW,
    TaskStatus.DONE,
)

INITIAL_STATUS = STATUS_FLOW[0]
TERMINAL_STATUS = STATUS_FLOW[-1]


def flow_index(status) -> int:
    """Position of a status in STATUS_FLOW"""
    return STATUS_FLOW.index(TaskStatus(status))


def next_status(status) -> Optional[TaskStatus]:
    """The status one step forward, or None from the terminal status"""
    index = flow_index(status) + 1
    if index >= len(STATUS_FLOW):
        return None
    return STATUS_FLOW[index]


def resolve_transition(current, requested, actor) -> bool:
    """
    Validate a status change for ``actor``.

    PMs may move a task to any status, including backwards or to the same
    status. Everyone else may only move exactly one step forward.

    Returns:
        True when the status actually changes

    Raises:
        InvalidStatusFlow: the move is not allowed for this actor
    """
    current = TaskStatus(current)
    requested = TaskStatus(requested)

    if is_pm(actor):
        return requested != current

    allowed = next_status(current)
    if allowed is None:
        raise InvalidStatusFlow(f"Task is already {current.value}; no further status is allowed")
    if requested != allowed:
        raise InvalidStatusFlow(
            f"Invalid status flow: {current.value} can only move to {allowed.value}"
        )
    return True
