# app/routers/comment.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.models.user import User
from app.schemas.comment import CommentCreate, CommentOut
from app.services.comment_service import CommentService
from app.utils.auth import get_current_user

router = APIRouter(tags=["comments"])

@router.post("/tasks/{task_id}/comments", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
def add_comment(
    task_id: int,
    comment: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return CommentService(db).add_comment(current_user, task_id, comment.content)

@router.get("/tasks/{task_id}/comments", response_model=List[CommentOut])
def get_comments(task_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Comments on a task, newest first"""
    return CommentService(db).list_comments(current_user, task_id)

@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(comment_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    CommentService(db).delete_comment(current_user, comment_id)
