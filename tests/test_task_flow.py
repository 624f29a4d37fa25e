from types import SimpleNamespace

import pytest

from app.models.task import TaskStatus
from app.models.user import UserRole
from app.utils.errors import InvalidStatusFlow
from app.utils.task_flow import STATUS_FLOW, next_status, resolve_transition

PM = SimpleNamespace(id=1, role=UserRole.PM)
MEMBER = SimpleNamespace(id=2, role=UserRole.MEMBER)


def test_flow_order():
    assert [status.value for status in STATUS_FLOW] == ["todo", "in_progress", "in_review", "done"]
    assert next_status(TaskStatus.IN_REVIEW) == TaskStatus.DONE
    assert next_status(TaskStatus.DONE) is None


@pytest.mark.parametrize("current,requested", [
    (TaskStatus.TODO, TaskStatus.IN_PROGRESS),
    (TaskStatus.IN_PROGRESS, TaskStatus.IN_REVIEW),
    (TaskStatus.IN_REVIEW, TaskStatus.DONE),
])
def test_member_moves_one_step_forward(current, requested):
    assert resolve_transition(current, requested, MEMBER) is True


@pytest.mark.parametrize("current,requested", [
    (TaskStatus.TODO, TaskStatus.IN_REVIEW),
    (TaskStatus.TODO, TaskStatus.DONE),
    (TaskStatus.IN_REVIEW, TaskStatus.IN_PROGRESS),
    (TaskStatus.IN_PROGRESS, TaskStatus.IN_PROGRESS),
    (TaskStatus.DONE, TaskStatus.DONE),
    (TaskStatus.DONE, TaskStatus.TODO),
])
def test_member_invalid_moves(current, requested):
    with pytest.raises(InvalidStatusFlow) as exc_info:
        resolve_transition(current, requested, MEMBER)
    assert exc_info.value.kind == "forbidden"
    assert exc_info.value.status_code == 400


def test_pm_may_move_anywhere():
    assert resolve_transition(TaskStatus.DONE, TaskStatus.TODO, PM) is True
    assert resolve_transition(TaskStatus.TODO, TaskStatus.DONE, PM) is True


def test_pm_same_status_is_not_a_change():
    assert resolve_transition("in_review", "in_review", PM) is False
