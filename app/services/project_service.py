# app/services/project_service.py
import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models import (
    ActivityAction,
    ActivityEntity,
    ActivityLog,
    Project,
    ProjectStatus,
    ProjectStatusHistory,
    Task,
    TaskAttachment,
    TaskStatus,
    User,
    project_members,
)
from app.schemas.project import ProjectCreate, ProjectUpdate
from app.services.file_storage import FileStorageService
from app.services.transaction import transaction
from app.utils.activity import record_activity
from app.utils.errors import Conflict, InvalidInput, NotFound
from app.utils.permissions import AccessContext, require
from app.utils.timeutils import to_naive_utc, utcnow

logger = logging.getLogger(__name__)


class ProjectService:
    """Project lifecycle: creation, membership, updates with status history, deletion"""

    def __init__(self, db: Session):
        self.db = db

    def _load_project(self, project_id: int) -> Project:
        project = self.db.query(Project).filter(Project.id == project_id).first()
        if not project:
            raise NotFound("Project not found")
        return project

    def _name_taken(self, name: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(Project.id).filter(Project.name == name)
        if exclude_id is not None:
            query = query.filter(Project.id != exclude_id)
        return query.first() is not None

    def create_project(self, actor: User, data: ProjectCreate) -> Project:
        require(actor, "project", "create")

        if self._name_taken(data.name):
            raise Conflict("Project name already exists")

        project = Project(
            name=data.name,
            description=data.description,
            created_by=actor.id,
            status=ProjectStatus.ACTIVE,
            start_date=to_naive_utc(data.start_date),
            end_date=to_naive_utc(data.end_date),
        )
        # The creator is always a member
        project.members.append(actor)

        with transaction(self.db, "Failed to create project", conflict_message="Project name already exists"):
            self.db.add(project)
            self.db.flush()
            record_activity(
                self.db, ActivityEntity.PROJECT, project.id, ActivityAction.CREATE,
                performed_by=actor.id, new_value=project.name
            )

        self.db.refresh(project)
        logger.info(f"Project {project.id} '{project.name}' created by user {actor.id}")
        return project

    def list_projects(self, actor: User) -> List[Project]:
        """Projects the actor created or belongs to"""
        return self.db.query(Project).filter(
            or_(
                Project.created_by == actor.id,
                Project.members.any(User.id == actor.id)
            )
        ).order_by(Project.id).all()

    def get_project(self, actor: User, project_id: int) -> Project:
        project = self._load_project(project_id)
        require(actor, "project", "read", AccessContext(project=project))
        return project

    def update_project(self, actor: User, project_id: int, data: ProjectUpdate) -> Project:
        project = self._load_project(project_id)
        require(actor, "project", "update", AccessContext(project=project))

        changes = data.model_dump(exclude_unset=True)
        for field in ("name", "status"):
            if field in changes and changes[field] is None:
                raise InvalidInput(f"{field} cannot be null")
        if not changes:
            raise InvalidInput("No fields to update")

        if "name" in changes and changes["name"] != project.name and self._name_taken(changes["name"], project.id):
            raise Conflict("Project name already exists")

        for field in ("start_date", "end_date"):
            if field in changes:
                changes[field] = to_naive_utc(changes[field])

        # Validate date range against the stored values
        start_date = changes.get("start_date", project.start_date)
        end_date = changes.get("end_date", project.end_date)
        if start_date and end_date and end_date <= start_date:
            raise InvalidInput("End date must be after start date")

        old_status = project.status
        new_status = changes.pop("status", old_status)
        now = utcnow()

        with transaction(self.db, "Failed to update project", conflict_message="Project name already exists"):
            values = {getattr(Project, field): value for field, value in changes.items()}
            values[Project.status] = new_status
            values[Project.updated_at] = now

            # Compare-and-swap on the status read above keeps history ordered
            updated = self.db.query(Project).filter(
                Project.id == project.id,
                Project.status == old_status
            ).update(values, synchronize_session=False)
            if updated == 0:
                raise Conflict("Project was changed by another request, reload and retry")

            if changes:
                record_activity(
                    self.db, ActivityEntity.PROJECT, project.id, ActivityAction.UPDATE,
                    performed_by=actor.id, new_value=",".join(sorted(changes))
                )

            if new_status != old_status:
                self.db.add(ProjectStatusHistory(
                    project_id=project.id,
                    old_status=old_status,
                    new_status=new_status,
                    changed_by=actor.id,
                    changed_at=now
                ))
                record_activity(
                    self.db, ActivityEntity.PROJECT, project.id, ActivityAction.STATUS_CHANGE,
                    performed_by=actor.id, old_value=old_status, new_value=new_status, performed_at=now
                )

        self.db.refresh(project)
        return project

    def delete_project(self, actor: User, project_id: int, storage: Optional[FileStorageService] = None) -> None:
        project = self._load_project(project_id)
        open_tasks = self.db.query(Task).filter(
            Task.project_id == project.id,
            Task.status != TaskStatus.DONE
        ).count()
        require(actor, "project", "delete", AccessContext(project=project, open_task_count=open_tasks))

        storage_refs = [
            ref for (ref,) in self.db.query(TaskAttachment.storage_ref)
            .join(Task, Task.id == TaskAttachment.task_id)
            .filter(Task.project_id == project.id)
            .all()
        ]

        with transaction(self.db, "Failed to delete project"):
            record_activity(
                self.db, ActivityEntity.PROJECT, project.id, ActivityAction.DELETE,
                performed_by=actor.id, old_value=project.name
            )
            self.db.delete(project)

        if storage is not None:
            for ref in storage_refs:
                storage.delete(ref)
        logger.info(f"Project {project_id} deleted by user {actor.id}")

    def add_member(self, actor: User, project_id: int, member_id: int) -> Project:
        project = self._load_project(project_id)
        require(actor, "project", "add_member", AccessContext(project=project))

        user = self.db.query(User).filter(User.id == member_id).first()
        if not user:
            raise NotFound("User not found")
        if project.has_member(user.id):
            raise Conflict("User already a member")

        # The composite primary key rejects a concurrent duplicate insert
        with transaction(self.db, "Failed to add member", conflict_message="User already a member"):
            self.db.execute(project_members.insert().values(project_id=project.id, user_id=user.id))
            record_activity(
                self.db, ActivityEntity.PROJECT, project.id, ActivityAction.UPDATE,
                performed_by=actor.id, new_value=f"member:{user.id}"
            )

        self.db.refresh(project)
        return project

    def get_status_history(self, actor: User, project_id: int) -> List[ProjectStatusHistory]:
        project = self.get_project(actor, project_id)
        return list(project.status_history)

    def get_activity(self, actor: User, project_id: int, limit: int = 100) -> List[ActivityLog]:
        """Activity entries for the project and its current tasks, newest first"""
        project = self.get_project(actor, project_id)
        task_ids = [task_id for (task_id,) in self.db.query(Task.id).filter(Task.project_id == project.id).all()]

        conditions = [
            (ActivityLog.entity_type == ActivityEntity.PROJECT) & (ActivityLog.entity_id == project.id)
        ]
        if task_ids:
            conditions.append(
                (ActivityLog.entity_type == ActivityEntity.TASK) & (ActivityLog.entity_id.in_(task_ids))
            )

        return self.db.query(ActivityLog).filter(or_(*conditions)).order_by(
            ActivityLog.performed_at.desc(), ActivityLog.id.desc()
        ).limit(limit).all()
