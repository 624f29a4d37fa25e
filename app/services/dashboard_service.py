# app/services/dashboard_service.py
"""
Role-scoped dashboard aggregation.

PMs see every project they own or belong to with its tasks grouped per
project; members see the tasks assigned to them. Both get completed, pending
and overdue counts computed in a single aggregate query.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import and_, case, func, or_
from sqlalchemy.orm import Session, joinedload

from app.models import Project, Task, TaskStatus, User, project_members
from app.utils.errors import Forbidden, InvalidInput, NotFound
from app.utils.permissions import is_pm
from app.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


class DashboardService:
    def __init__(self, db: Session):
        self.db = db

    def _stats(self, conditions: List) -> Dict[str, int]:
        """Completed, pending and overdue counts over the tasks matching ``conditions``"""
        now = utcnow()
        total, completed, overdue = self.db.query(
            func.count(Task.id),
            func.sum(case((Task.status == TaskStatus.DONE, 1), else_=0)),
            func.sum(case((and_(Task.status != TaskStatus.DONE, Task.due_date < now), 1), else_=0)),
        ).filter(*conditions).one()

        total = total or 0
        completed = completed or 0
        return {
            "completed_tasks": completed,
            "pending_tasks": total - completed,
            "overdue_tasks": overdue or 0,
        }

    @staticmethod
    def _empty_stats() -> Dict[str, int]:
        return {"completed_tasks": 0, "pending_tasks": 0, "overdue_tasks": 0}

    def build_dashboard(
        self,
        actor: User,
        project_id: Optional[int] = None,
        member_id: Optional[int] = None,
        task_id: Optional[int] = None,
    ) -> Dict:
        if is_pm(actor):
            return self._pm_dashboard(actor, project_id, member_id, task_id)
        return self._member_dashboard(actor, project_id, task_id)

    def _pm_dashboard(self, actor: User, project_id, member_id, task_id) -> Dict:
        query = self.db.query(Project).filter(
            or_(
                Project.created_by == actor.id,
                Project.members.any(User.id == actor.id)
            )
        )

        if project_id is not None:
            if not self.db.query(Project.id).filter(Project.id == project_id).first():
                raise NotFound("Project not found")
            query = query.filter(Project.id == project_id)

        projects = query.order_by(Project.id).all()
        if project_id is not None and not projects:
            raise Forbidden("Access denied")

        project_ids = [project.id for project in projects]

        if member_id is not None and project_ids:
            is_member = self.db.query(project_members.c.user_id).filter(
                project_members.c.user_id == member_id,
                project_members.c.project_id.in_(project_ids)
            ).first()
            if not is_member:
                raise InvalidInput("User is not a member of the selected projects")

        if not project_ids:
            return {"role": "pm", "stats": self._empty_stats(), "projects": [], "tasks": []}

        conditions = [Task.project_id.in_(project_ids)]
        if member_id is not None:
            conditions.append(Task.assigned_to == member_id)
        if task_id is not None:
            conditions.append(Task.id == task_id)

        tasks = self.db.query(Task).options(joinedload(Task.assignee)).filter(
            *conditions
        ).order_by(Task.id).all()

        tasks_by_project: Dict[int, List[Dict]] = {project.id: [] for project in projects}
        for task in tasks:
            tasks_by_project[task.project_id].append({
                "task_id": task.id,
                "title": task.title,
                "status": task.status,
                "priority": task.priority,
                "due_date": task.due_date,
                "assigned_to": {
                    "id": task.assignee.id,
                    "name": task.assignee.name,
                    "email": task.assignee.email,
                },
            })

        return {
            "role": "pm",
            "stats": self._stats(conditions),
            "projects": [
                {
                    "project_id": project.id,
                    "project_name": project.name,
                    "project_status": project.status,
                    "tasks": tasks_by_project[project.id],
                }
                for project in projects
            ],
            "tasks": [],
        }

    def _member_dashboard(self, actor: User, project_id, task_id) -> Dict:
        conditions = [Task.assigned_to == actor.id]
        if project_id is not None:
            conditions.append(Task.project_id == project_id)
        if task_id is not None:
            conditions.append(Task.id == task_id)

        tasks = self.db.query(Task).options(joinedload(Task.project)).filter(
            *conditions
        ).order_by(Task.id).all()

        return {
            "role": "member",
            "stats": self._stats(conditions),
            "projects": [],
            "tasks": [
                {
                    "task_id": task.id,
                    "title": task.title,
                    "status": task.status,
                    "priority": task.priority,
                    "due_date": task.due_date,
                    "project": {
                        "id": task.project.id,
                        "name": task.project.name,
                        "status": task.project.status,
                    },
                }
                for task in tasks
            ],
        }
