# app/routers/project.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional, Union

from app.database import get_db
from app.models.task import TaskPriority, TaskStatus
from app.models.user import User
from app.schemas.activity_log import ActivityLogOut
from app.schemas.project import ProjectCreate, ProjectUpdate, ProjectOut, ProjectMemberAdd, ProjectStatusHistoryOut
from app.schemas.task import TaskCreate, TaskOut, TaskSummaryOut
from app.services.file_storage import FileStorageService, get_file_storage
from app.services.project_service import ProjectService
from app.services.task_service import TaskService
from app.utils.auth import get_current_user

router = APIRouter()

@router.post("/", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
def create_project(
    project_data: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return ProjectService(db).create_project(current_user, project_data)

@router.get("/", response_model=List[ProjectOut])
def get_projects(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Projects the current user created or is a member of"""
    return ProjectService(db).list_projects(current_user)

@router.get("/{project_id}", response_model=ProjectOut)
def get_project(project_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return ProjectService(db).get_project(current_user, project_id)

@router.put("/{project_id}", response_model=ProjectOut)
def update_project(
    project_id: int,
    project_update: ProjectUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return ProjectService(db).update_project(current_user, project_id, project_update)

@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: FileStorageService = Depends(get_file_storage)
):
    ProjectService(db).delete_project(current_user, project_id, storage)

@router.post("/{project_id}/members", response_model=ProjectOut)
def add_project_member(
    project_id: int,
    member_data: ProjectMemberAdd,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return ProjectService(db).add_member(current_user, project_id, member_data.member_id)

@router.get("/{project_id}/history", response_model=List[ProjectStatusHistoryOut])
def get_project_history(project_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return ProjectService(db).get_status_history(current_user, project_id)

@router.get("/{project_id}/activity", response_model=List[ActivityLogOut])
def get_project_activity(
    project_id: int,
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return ProjectService(db).get_activity(current_user, project_id, limit)

# Project-scoped task endpoints

@router.post("/{project_id}/tasks", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(
    project_id: int,
    task_data: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return TaskService(db).create_task(current_user, project_id, task_data)

@router.get("/{project_id}/tasks", response_model=Union[TaskSummaryOut, List[TaskOut]])
def get_project_tasks(
    project_id: int,
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    assigned_to: Optional[int] = None,
    summary: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List tasks of a project; with summary=true return counts per priority instead"""
    service = TaskService(db)
    if summary:
        return service.summarize_tasks(current_user, project_id)
    return service.list_tasks(current_user, project_id, status=status, priority=priority, assigned_to=assigned_to)
