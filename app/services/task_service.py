# app/services/task_service.py
import logging
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models import (
    ActivityAction,
    ActivityEntity,
    Project,
    Task,
    TaskPriority,
    TaskStatus,
    TaskStatusHistory,
    User,
)
from app.schemas.task import TaskCreate, TaskUpdate
from app.services.file_storage import FileStorageService
from app.services.transaction import transaction
from app.utils.activity import record_activity
from app.utils.errors import Conflict, InvalidInput, NotFound
from app.utils.permissions import AccessContext, is_pm, is_project_member, require
from app.utils.task_flow import INITIAL_STATUS, resolve_transition
from app.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

# Columns that may never be set to null through an update
NON_NULLABLE_FIELDS = ("title", "assigned_to", "priority", "status", "due_date")


class TaskService:
    def __init__(self, db: Session):
        self.db = db

    def _load_project(self, project_id: int) -> Project:
        project = self.db.query(Project).filter(Project.id == project_id).first()
        if not project:
            raise NotFound("Project not found")
        return project

    def _load_task(self, task_id: int) -> Task:
        task = self.db.query(Task).filter(Task.id == task_id).first()
        if not task:
            raise NotFound("Task not found")
        return task

    def _scoped_query(self, actor: User, project: Project):
        """Tasks of a project visible to the actor: all for a PM member, own tasks otherwise"""
        require(actor, "task", "list", AccessContext(project=project))
        query = self.db.query(Task).filter(Task.project_id == project.id)
        if not (is_pm(actor) and is_project_member(actor, project)):
            query = query.filter(Task.assigned_to == actor.id)
        return query

    def create_task(self, actor: User, project_id: int, data: TaskCreate) -> Task:
        project = self._load_project(project_id)
        require(actor, "task", "create", AccessContext(project=project, assignee_id=data.assigned_to))

        task = Task(
            title=data.title,
            description=data.description,
            project_id=project.id,
            created_by=actor.id,
            assigned_to=data.assigned_to,
            status=INITIAL_STATUS,
            priority=data.priority,
            due_date=data.due_date,
            attachment_count=0,
        )

        with transaction(self.db, "Failed to create task"):
            self.db.add(task)
            self.db.flush()
            record_activity(
                self.db, ActivityEntity.TASK, task.id, ActivityAction.CREATE,
                performed_by=actor.id, new_value=task.title
            )

        self.db.refresh(task)
        logger.info(f"Task {task.id} created in project {project.id} by user {actor.id}")
        return task

    def list_tasks(
        self,
        actor: User,
        project_id: int,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
        assigned_to: Optional[int] = None,
    ) -> List[Task]:
        project = self._load_project(project_id)
        query = self._scoped_query(actor, project)

        if status:
            query = query.filter(Task.status == status)
        if priority:
            query = query.filter(Task.priority == priority)
        if assigned_to:
            query = query.filter(Task.assigned_to == assigned_to)

        return query.order_by(Task.id).all()

    def summarize_tasks(self, actor: User, project_id: int) -> Dict:
        """Task counts per priority for the tasks the actor can see"""
        project = self._load_project(project_id)
        query = self._scoped_query(actor, project)

        rows = query.with_entities(Task.priority, func.count(Task.id)).group_by(Task.priority).all()
        counts = {TaskPriority(priority): count for priority, count in rows}

        return {
            "total_tasks": sum(counts.values()),
            "by_priority": [
                {"priority": priority, "count": counts.get(priority, 0)}
                for priority in TaskPriority
            ],
        }

    def get_task(self, actor: User, task_id: int) -> Task:
        task = self._load_task(task_id)
        require(actor, "task", "read", AccessContext(task=task))
        return task

    def _write_task(self, actor: User, task: Task, changes: Dict, requested_status=None) -> None:
        """
        Persist field changes and an optional status transition in one transaction.

        The row is only written while its status still equals the value the
        transition was validated against; otherwise another request won the race.
        """
        old_status = TaskStatus(task.status)
        status_changed = False
        if requested_status is not None:
            status_changed = resolve_transition(old_status, requested_status, actor)

        if not changes and not status_changed:
            return

        now = utcnow()
        values = {getattr(Task, field): value for field, value in changes.items()}
        values[Task.updated_at] = now
        if status_changed:
            values[Task.status] = TaskStatus(requested_status)

        with transaction(self.db, "Failed to update task"):
            updated = self.db.query(Task).filter(
                Task.id == task.id,
                Task.status == old_status
            ).update(values, synchronize_session=False)
            if updated == 0:
                raise Conflict("Task status was changed by another request, reload and retry")

            if changes:
                record_activity(
                    self.db, ActivityEntity.TASK, task.id, ActivityAction.UPDATE,
                    performed_by=actor.id, new_value=",".join(sorted(changes)), performed_at=now
                )

            if status_changed:
                self.db.add(TaskStatusHistory(
                    task_id=task.id,
                    old_status=old_status,
                    new_status=TaskStatus(requested_status),
                    changed_by=actor.id,
                    changed_at=now
                ))
                record_activity(
                    self.db, ActivityEntity.TASK, task.id, ActivityAction.STATUS_CHANGE,
                    performed_by=actor.id, old_value=old_status, new_value=requested_status,
                    performed_at=now
                )

        if status_changed:
            logger.info(
                f"Task {task.id} status {old_status.value} -> {TaskStatus(requested_status).value} by user {actor.id}"
            )

    def update_task(self, actor: User, task_id: int, data: TaskUpdate) -> Task:
        task = self._load_task(task_id)
        changes = data.model_dump(exclude_unset=True)

        require(actor, "task", "update", AccessContext(
            task=task,
            fields=frozenset(changes),
            assignee_id=changes.get("assigned_to"),
        ))

        if not changes:
            raise InvalidInput("No fields to update")
        for field in NON_NULLABLE_FIELDS:
            if field in changes and changes[field] is None:
                raise InvalidInput(f"{field} cannot be null")

        requested_status = changes.pop("status", None)
        self._write_task(actor, task, changes, requested_status)

        self.db.refresh(task)
        return task

    def change_status(self, actor: User, task_id: int, status: TaskStatus) -> Task:
        task = self._load_task(task_id)
        require(actor, "task", "change_status", AccessContext(task=task))

        self._write_task(actor, task, {}, status)

        self.db.refresh(task)
        return task

    def delete_task(self, actor: User, task_id: int, storage: Optional[FileStorageService] = None) -> None:
        task = self._load_task(task_id)
        require(actor, "task", "delete", AccessContext(task=task))

        storage_refs = [attachment.storage_ref for attachment in task.attachments]

        with transaction(self.db, "Failed to delete task"):
            record_activity(
                self.db, ActivityEntity.TASK, task.id, ActivityAction.DELETE,
                performed_by=actor.id, old_value=task.title
            )
            self.db.delete(task)

        if storage is not None:
            for ref in storage_refs:
                storage.delete(ref)
        logger.info(f"Task {task_id} deleted by user {actor.id}")

    def get_status_history(self, actor: User, task_id: int) -> List[TaskStatusHistory]:
        task = self.get_task(actor, task_id)
        return list(task.status_history)
