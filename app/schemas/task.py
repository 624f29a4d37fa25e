# app/schemas/task.py
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List
from app.models.task import TaskStatus, TaskPriority
from app.models.project import ProjectStatus
from app.utils.timeutils import to_naive_utc, utcnow

class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    assigned_to: int
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime

    @field_validator('due_date')
    def due_date_must_be_future(cls, v):
        v = to_naive_utc(v)
        if v <= utcnow():
            raise ValueError('Due date must be in the future')
        return v

class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    assigned_to: Optional[int] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[datetime] = None

    # Unknown fields (e.g. project) are rejected, the project of a task never changes
    model_config = {
        "extra": "forbid"
    }

    @field_validator('due_date')
    def due_date_must_be_future(cls, v):
        if v is None:
            return v
        v = to_naive_utc(v)
        if v <= utcnow():
            raise ValueError('Due date must be in the future')
        return v

class TaskStatusUpdate(BaseModel):
    status: TaskStatus

# For returning task data
class UserBasic(BaseModel):
    id: int
    name: str
    email: str

    model_config = {
        "from_attributes": True
    }

class ProjectBasic(BaseModel):
    id: int
    name: str
    status: ProjectStatus

    model_config = {
        "from_attributes": True
    }

class TaskStatusHistoryOut(BaseModel):
    id: int
    old_status: TaskStatus
    new_status: TaskStatus
    changed_by: int
    changed_at: datetime

    model_config = {
        "from_attributes": True
    }

# Task Attachment Schemas
class TaskAttachmentOut(BaseModel):
    id: int
    task_id: int
    filename: str
    storage_ref: str
    file_size: int
    mime_type: str
    uploaded_by: int
    uploaded_at: datetime

    model_config = {
        "from_attributes": True
    }

class TaskOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    project_id: int
    created_by: int
    assigned_to: int
    status: TaskStatus
    priority: TaskPriority
    due_date: datetime
    created_at: datetime
    updated_at: Optional[datetime] = None

    # Related objects
    assignee: UserBasic
    project: ProjectBasic
    status_history: List[TaskStatusHistoryOut] = []
    attachments: List[TaskAttachmentOut] = []

    model_config = {
        "from_attributes": True
    }

class PriorityCount(BaseModel):
    priority: TaskPriority
    count: int

class TaskSummaryOut(BaseModel):
    total_tasks: int
    by_priority: List[PriorityCount]
