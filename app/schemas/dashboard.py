from pydantic import BaseModel
from typing import List, Literal, Optional
from datetime import datetime
from app.models.project import ProjectStatus
from app.models.task import TaskStatus, TaskPriority

class DashboardStats(BaseModel):
    completed_tasks: int = 0
    pending_tasks: int = 0
    overdue_tasks: int = 0

class AssigneeSummary(BaseModel):
    id: int
    name: str
    email: str

class ProjectSummary(BaseModel):
    id: int
    name: str
    status: ProjectStatus

class DashboardTask(BaseModel):
    task_id: int
    title: str
    status: TaskStatus
    priority: TaskPriority
    due_date: datetime
    assigned_to: Optional[AssigneeSummary] = None
    project: Optional[ProjectSummary] = None

class DashboardProject(BaseModel):
    project_id: int
    project_name: str
    project_status: ProjectStatus
    tasks: List[DashboardTask] = []

class DashboardOut(BaseModel):
    role: Literal["pm", "member"]
    stats: DashboardStats
    projects: List[DashboardProject] = []
    tasks: List[DashboardTask] = []
