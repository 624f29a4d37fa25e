# app/services/comment_service.py
import logging
from typing import List

from sqlalchemy.orm import Session

from app.config.security import SecurityConfig
from app.models import Comment, Task, User
from app.services.transaction import transaction
from app.utils.errors import InvalidInput, NotFound
from app.utils.permissions import AccessContext, require

logger = logging.getLogger(__name__)


class CommentService:
    def __init__(self, db: Session):
        self.db = db

    def _load_task(self, task_id: int) -> Task:
        task = self.db.query(Task).filter(Task.id == task_id).first()
        if not task:
            raise NotFound("Task not found")
        return task

    def add_comment(self, actor: User, task_id: int, content: str) -> Comment:
        task = self._load_task(task_id)
        require(actor, "comment", "create", AccessContext(task=task))

        content = (content or "").strip()
        max_length = SecurityConfig.COMMENTS['max_length']
        if not content:
            raise InvalidInput("Comment cannot be empty")
        if len(content) > max_length:
            raise InvalidInput(f"Comment cannot exceed {max_length} characters")

        comment = Comment(task_id=task.id, user_id=actor.id, content=content)
        with transaction(self.db, "Failed to add comment"):
            self.db.add(comment)

        self.db.refresh(comment)
        return comment

    def list_comments(self, actor: User, task_id: int) -> List[Comment]:
        """Comments on a task, newest first"""
        task = self._load_task(task_id)
        require(actor, "comment", "list", AccessContext(task=task))

        return self.db.query(Comment).filter(Comment.task_id == task.id).order_by(
            Comment.created_at.desc(), Comment.id.desc()
        ).all()

    def delete_comment(self, actor: User, comment_id: int) -> None:
        comment = self.db.query(Comment).filter(Comment.id == comment_id).first()
        if not comment:
            raise NotFound("Comment not found")
        require(actor, "comment", "delete", AccessContext(task=comment.task, comment=comment))

        with transaction(self.db, "Failed to delete comment"):
            self.db.delete(comment)
        logger.info(f"Comment {comment_id} deleted by user {actor.id}")
