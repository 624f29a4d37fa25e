# app/utils/permissions.py
"""
Access control decisions for projects, tasks and comments.

``authorize`` is a pure predicate: it only looks at the actor and at the
snapshots passed in through ``AccessContext``. Callers load those snapshots
from the current request's session before asking, so a decision is never made
against stale data. Every rule lives in ``RULES``, keyed by
``(resource_type, action)``.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Optional, Tuple

from app.models.project import Project, ProjectStatus
from app.models.task import Task
from app.models.comment import Comment
from app.models.user import UserRole
from app.utils.errors import error_for

logger = logging.getLogger(__name__)

FORBIDDEN = "forbidden"
CONFLICT = "conflict"
INVALID_INPUT = "invalid_input"

# Fields a member may submit when updating a task assigned to them
MEMBER_UPDATABLE_FIELDS = frozenset({"status"})


@dataclass(frozen=True)
class Decision:
    allowed: bool
    kind: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(True)

    @classmethod
    def deny(cls, kind: str, reason: str) -> "Decision":
        return cls(False, kind, reason)

    def __bool__(self) -> bool:
        return self.allowed

    def raise_if_denied(self) -> None:
        if not self.allowed:
            raise error_for(self.kind, self.reason)


@dataclass(frozen=True)
class AccessContext:
    project: Optional[Project] = None
    task: Optional[Task] = None
    comment: Optional[Comment] = None
    # Keys present in an update payload
    fields: FrozenSet[str] = frozenset()
    # Prospective assignee on task create/update
    assignee_id: Optional[int] = None
    # Tasks under the project whose status is not done
    open_task_count: int = 0

    @property
    def task_project(self) -> Optional[Project]:
        if self.project is not None:
            return self.project
        return self.task.project if self.task is not None else None


def is_pm(actor) -> bool:
    return actor.role == UserRole.PM


def is_project_member(actor, project: Optional[Project]) -> bool:
    return project is not None and project.has_member(actor.id)


def _is_project_pm(actor, project: Optional[Project]) -> bool:
    return is_pm(actor) and is_project_member(actor, project)


def _is_assignee(actor, task: Optional[Task]) -> bool:
    return task is not None and task.assigned_to == actor.id


def _can_access_task(actor, ctx: AccessContext) -> bool:
    return _is_project_pm(actor, ctx.task_project) or _is_assignee(actor, ctx.task)


# ---------- Project rules ----------

def _project_create(actor, ctx: AccessContext) -> Decision:
    if not is_pm(actor):
        return Decision.deny(FORBIDDEN, "Only PM can create projects")
    return Decision.allow()


def _project_read(actor, ctx: AccessContext) -> Decision:
    project = ctx.project
    if actor.id == project.created_by or project.has_member(actor.id):
        return Decision.allow()
    return Decision.deny(FORBIDDEN, "Access denied")


def _project_update(actor, ctx: AccessContext) -> Decision:
    project = ctx.project
    if actor.id != project.created_by:
        return Decision.deny(FORBIDDEN, "Only the project owner can update the project")
    if project.status == ProjectStatus.ARCHIVED:
        return Decision.deny(CONFLICT, "Archived projects cannot be updated")
    return Decision.allow()


def _project_delete(actor, ctx: AccessContext) -> Decision:
    project = ctx.project
    if actor.id != project.created_by:
        return Decision.deny(FORBIDDEN, "Only the project owner can delete the project")
    if project.status != ProjectStatus.ARCHIVED:
        return Decision.deny(CONFLICT, "Only archived projects can be deleted")
    if ctx.open_task_count > 0:
        return Decision.deny(CONFLICT, "Project still has tasks that are not done")
    return Decision.allow()


def _project_add_member(actor, ctx: AccessContext) -> Decision:
    if actor.id != ctx.project.created_by:
        return Decision.deny(FORBIDDEN, "Only the project owner can add members")
    return Decision.allow()


# ---------- Task rules ----------

def _task_create(actor, ctx: AccessContext) -> Decision:
    if not _is_project_pm(actor, ctx.project):
        return Decision.deny(FORBIDDEN, "Only a PM of this project can create tasks")
    if ctx.assignee_id is None or not ctx.project.has_member(ctx.assignee_id):
        return Decision.deny(INVALID_INPUT, "Assigned user is not a project member")
    return Decision.allow()


def _task_list(actor, ctx: AccessContext) -> Decision:
    if not is_project_member(actor, ctx.project):
        return Decision.deny(FORBIDDEN, "Access denied")
    return Decision.allow()


def _task_read(actor, ctx: AccessContext) -> Decision:
    if not _can_access_task(actor, ctx):
        return Decision.deny(FORBIDDEN, "Access denied")
    return Decision.allow()


def _task_update(actor, ctx: AccessContext) -> Decision:
    if not _can_access_task(actor, ctx):
        return Decision.deny(FORBIDDEN, "Access denied")
    if not _is_project_pm(actor, ctx.task_project):
        # All or nothing: one extra field denies the whole update
        if ctx.fields != MEMBER_UPDATABLE_FIELDS:
            return Decision.deny(FORBIDDEN, "Members can only update task status")
        return Decision.allow()
    if ctx.assignee_id is not None and not ctx.task_project.has_member(ctx.assignee_id):
        return Decision.deny(INVALID_INPUT, "Assigned user is not a project member")
    return Decision.allow()


def _task_delete(actor, ctx: AccessContext) -> Decision:
    if not _is_project_pm(actor, ctx.task_project):
        return Decision.deny(FORBIDDEN, "Only a PM of this project can delete tasks")
    return Decision.allow()


def _task_upload_attachment(actor, ctx: AccessContext) -> Decision:
    if not _can_access_task(actor, ctx):
        return Decision.deny(FORBIDDEN, "Not allowed to upload attachments to this task")
    return Decision.allow()


# ---------- Comment rules ----------

def _comment_access(actor, ctx: AccessContext) -> Decision:
    if not _can_access_task(actor, ctx):
        return Decision.deny(FORBIDDEN, "You can comment only on tasks you can access")
    return Decision.allow()


def _comment_delete(actor, ctx: AccessContext) -> Decision:
    if _is_project_pm(actor, ctx.task_project):
        return Decision.allow()
    if ctx.comment is not None and ctx.comment.user_id == actor.id and _is_assignee(actor, ctx.task):
        return Decision.allow()
    return Decision.deny(FORBIDDEN, "You can delete only your own comments on your tasks")


Rule = Callable[[object, AccessContext], Decision]

RULES: Dict[Tuple[str, str], Rule] = {
    ("project", "create"): _project_create,
    ("project", "read"): _project_read,
    ("project", "update"): _project_update,
    ("project", "delete"): _project_delete,
    ("project", "add_member"): _project_add_member,
    ("task", "create"): _task_create,
    ("task", "list"): _task_list,
    ("task", "read"): _task_read,
    ("task", "update"): _task_update,
    ("task", "delete"): _task_delete,
    ("task", "change_status"): _task_read,
    ("task", "upload_attachment"): _task_upload_attachment,
    ("comment", "create"): _comment_access,
    ("comment", "list"): _comment_access,
    ("comment", "delete"): _comment_delete,
}


def authorize(actor, resource_type: str, action: str, context: Optional[AccessContext] = None) -> Decision:
    """
    Decide whether ``actor`` may perform ``action`` on ``resource_type``.

    Args:
        actor: Authenticated user (anything with ``id`` and ``role``)
        resource_type: "project", "task" or "comment"
        action: Action name as listed in ``RULES``
        context: Snapshots of the resources involved

    Returns:
        Decision.allow() or Decision.deny(kind, reason)
    """
    rule = RULES.get((resource_type, action))
    if rule is None:
        raise KeyError(f"No access rule for {resource_type}.{action}")

    decision = rule(actor, context or AccessContext())
    if not decision:
        logger.info(
            "Denied %s.%s for user %s: %s", resource_type, action, actor.id, decision.reason
        )
    return decision


def require(actor, resource_type: str, action: str, context: Optional[AccessContext] = None) -> None:
    """Authorize and raise the matching AppError on denial"""
    authorize(actor, resource_type, action, context).raise_if_denied()
