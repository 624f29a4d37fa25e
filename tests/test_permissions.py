from types import SimpleNamespace

import pytest

from app.models.project import ProjectStatus
from app.models.user import UserRole
from app.utils.errors import Conflict, Forbidden, InvalidInput
from app.utils.permissions import AccessContext, authorize, require


class FakeProject(SimpleNamespace):
    def has_member(self, user_id):
        return user_id == self.created_by or user_id in self.members


def make_user(user_id, role=UserRole.MEMBER):
    return SimpleNamespace(id=user_id, role=role)


PM = make_user(1, UserRole.PM)
OUTSIDE_PM = make_user(2, UserRole.PM)
MEMBER = make_user(3)
OTHER_MEMBER = make_user(4)


def make_project(status=ProjectStatus.ACTIVE):
    return FakeProject(id=10, created_by=PM.id, members={PM.id, MEMBER.id, OTHER_MEMBER.id}, status=status)


def make_task(project, assigned_to=MEMBER.id):
    return SimpleNamespace(id=20, project=project, assigned_to=assigned_to)


def test_only_pm_can_create_project():
    assert authorize(PM, "project", "create")
    decision = authorize(MEMBER, "project", "create")
    assert not decision
    assert decision.kind == "forbidden"


def test_project_read_requires_membership():
    project = make_project()
    assert authorize(MEMBER, "project", "read", AccessContext(project=project))
    assert not authorize(OUTSIDE_PM, "project", "read", AccessContext(project=project))


def test_archived_project_update_is_conflict():
    project = make_project(ProjectStatus.ARCHIVED)
    decision = authorize(PM, "project", "update", AccessContext(project=project))
    assert decision.kind == "conflict"
    with pytest.raises(Conflict):
        require(PM, "project", "update", AccessContext(project=project))


def test_project_update_by_non_owner_is_forbidden():
    project = make_project()
    with pytest.raises(Forbidden):
        require(MEMBER, "project", "update", AccessContext(project=project))


@pytest.mark.parametrize("status,open_tasks,allowed", [
    (ProjectStatus.ACTIVE, 0, False),
    (ProjectStatus.ARCHIVED, 2, False),
    (ProjectStatus.ARCHIVED, 0, True),
])
def test_project_delete_preconditions(status, open_tasks, allowed):
    context = AccessContext(project=make_project(status), open_task_count=open_tasks)
    assert bool(authorize(PM, "project", "delete", context)) is allowed


def test_task_create_requires_member_assignee():
    project = make_project()
    assert authorize(PM, "task", "create", AccessContext(project=project, assignee_id=MEMBER.id))
    with pytest.raises(InvalidInput):
        require(PM, "task", "create", AccessContext(project=project, assignee_id=99))


def test_task_create_by_pm_outside_project_is_forbidden():
    project = make_project()
    with pytest.raises(Forbidden):
        require(OUTSIDE_PM, "task", "create", AccessContext(project=project, assignee_id=MEMBER.id))


def test_task_read_for_assignee_and_project_pm_only():
    task = make_task(make_project())
    assert authorize(MEMBER, "task", "read", AccessContext(task=task))
    assert authorize(PM, "task", "read", AccessContext(task=task))
    assert not authorize(OTHER_MEMBER, "task", "read", AccessContext(task=task))
    assert not authorize(OUTSIDE_PM, "task", "read", AccessContext(task=task))


@pytest.mark.parametrize("fields,allowed", [
    ({"status"}, True),
    ({"status", "title"}, False),
    ({"title"}, False),
    (set(), False),
])
def test_member_update_is_status_only(fields, allowed):
    task = make_task(make_project())
    context = AccessContext(task=task, fields=frozenset(fields))
    assert bool(authorize(MEMBER, "task", "update", context)) is allowed


def test_pm_update_rejects_non_member_assignee():
    task = make_task(make_project())
    context = AccessContext(task=task, fields=frozenset({"assigned_to"}), assignee_id=99)
    assert authorize(PM, "task", "update", context).kind == "invalid_input"


def test_comment_delete_rules():
    task = make_task(make_project())
    own_comment = SimpleNamespace(user_id=MEMBER.id)
    pm_comment = SimpleNamespace(user_id=PM.id)

    assert authorize(MEMBER, "comment", "delete", AccessContext(task=task, comment=own_comment))
    assert not authorize(MEMBER, "comment", "delete", AccessContext(task=task, comment=pm_comment))
    assert authorize(PM, "comment", "delete", AccessContext(task=task, comment=own_comment))


def test_comment_delete_by_author_no_longer_assigned_is_denied():
    task = make_task(make_project(), assigned_to=OTHER_MEMBER.id)
    comment = SimpleNamespace(user_id=MEMBER.id)
    assert not authorize(MEMBER, "comment", "delete", AccessContext(task=task, comment=comment))


def test_unknown_rule_raises():
    with pytest.raises(KeyError):
        authorize(PM, "project", "archive")
