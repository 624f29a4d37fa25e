# app/routers/dashboard.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.models.user import User
from app.schemas.dashboard import DashboardOut
from app.services.dashboard_service import DashboardService
from app.utils.auth import get_current_user

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

@router.get("", response_model=DashboardOut)
def get_dashboard(
    project_id: Optional[int] = None,
    member_id: Optional[int] = None,
    task_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Personalized dashboard: project-wise tasks for PMs, assigned tasks for members"""
    return DashboardService(db).build_dashboard(
        current_user, project_id=project_id, member_id=member_id, task_id=task_id
    )
