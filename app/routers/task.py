# app/routers/task.py
from fastapi import APIRouter, Depends, status, UploadFile, File
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.models.user import User
from app.schemas.task import TaskUpdate, TaskStatusUpdate, TaskOut, TaskAttachmentOut, TaskStatusHistoryOut
from app.services.attachment_service import AttachmentService
from app.services.file_storage import FileStorageService, get_file_storage
from app.services.task_service import TaskService
from app.utils.auth import get_current_user

router = APIRouter(prefix="/tasks", tags=["tasks"])

@router.get("/{task_id}", response_model=TaskOut)
def get_task(task_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return TaskService(db).get_task(current_user, task_id)

@router.put("/{task_id}", response_model=TaskOut)
def update_task(
    task_id: int,
    task_update: TaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update task fields; members may only send the status field"""
    return TaskService(db).update_task(current_user, task_id, task_update)

@router.patch("/{task_id}/status", response_model=TaskOut)
def update_task_status(
    task_id: int,
    status_update: TaskStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return TaskService(db).change_status(current_user, task_id, status_update.status)

@router.get("/{task_id}/history", response_model=List[TaskStatusHistoryOut])
def get_task_history(task_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return TaskService(db).get_status_history(current_user, task_id)

@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: FileStorageService = Depends(get_file_storage)
):
    TaskService(db).delete_task(current_user, task_id, storage)

# Task Attachment Endpoints

@router.post("/{task_id}/upload", response_model=TaskAttachmentOut, status_code=status.HTTP_201_CREATED)
def upload_attachment_to_task(
    task_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: FileStorageService = Depends(get_file_storage)
):
    """Upload a new attachment to an existing task"""
    content = storage.read_upload(file.file, file.filename)
    return AttachmentService(db, storage).upload(
        current_user, task_id, content, file.filename, file.content_type
    )

@router.get("/{task_id}/attachments", response_model=List[TaskAttachmentOut])
def get_task_attachments(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: FileStorageService = Depends(get_file_storage)
):
    return AttachmentService(db, storage).list_attachments(current_user, task_id)
