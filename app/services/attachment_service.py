# app/services/attachment_service.py
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.config.security import SecurityConfig
from app.models import Task, TaskAttachment, User
from app.services.file_storage import FileStorageService
from app.services.transaction import transaction
from app.utils.errors import Conflict, NotFound
from app.utils.permissions import AccessContext, require
from app.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


class AttachmentService:
    """Uploads and listings of task attachments"""

    def __init__(self, db: Session, storage: FileStorageService, max_attachments: Optional[int] = None):
        self.db = db
        self.storage = storage
        self.max_attachments = max_attachments or SecurityConfig.FILE_UPLOAD['max_attachments_per_task']

    def _load_task(self, task_id: int) -> Task:
        task = self.db.query(Task).filter(Task.id == task_id).first()
        if not task:
            raise NotFound("Task not found")
        return task

    def _limit_message(self) -> str:
        return f"Max {self.max_attachments} attachments allowed"

    def upload(self, actor: User, task_id: int, content: bytes, filename: str, content_type: Optional[str]) -> TaskAttachment:
        """
        Store a file and append it to the task's attachments

        Args:
            actor: Uploading user
            task_id: Target task
            content: File bytes
            filename: Original filename from the client
            content_type: Declared MIME type from the client

        Returns:
            The persisted TaskAttachment

        Raises:
            InvalidFileError: type, size or header check failed
            Conflict: the task already holds the maximum number of attachments
        """
        task = self._load_task(task_id)
        require(actor, "task", "upload_attachment", AccessContext(task=task))

        # The conditional update below enforces the ceiling
        if task.attachment_count >= self.max_attachments:
            raise Conflict(self._limit_message())

        mime_type = self.storage.resolve_mime_type(filename, content_type)
        storage_ref = self.storage.store(content, filename, mime_type, task.id)

        attachment = TaskAttachment(
            task_id=task.id,
            filename=filename or storage_ref.rsplit("/", 1)[-1],
            storage_ref=storage_ref,
            file_size=len(content),
            mime_type=mime_type,
            uploaded_by=actor.id,
            uploaded_at=utcnow()
        )

        try:
            with transaction(self.db, "Failed to save attachment"):
                reserved = self.db.query(Task).filter(
                    Task.id == task.id,
                    Task.attachment_count < self.max_attachments
                ).update(
                    {Task.attachment_count: Task.attachment_count + 1},
                    synchronize_session=False
                )
                if reserved == 0:
                    raise Conflict(self._limit_message())
                self.db.add(attachment)
        except Exception:
            self.storage.delete(storage_ref)
            raise

        self.db.refresh(attachment)
        logger.info(f"Attachment {attachment.id} added to task {task.id} by user {actor.id}")
        return attachment

    def list_attachments(self, actor: User, task_id: int) -> List[TaskAttachment]:
        task = self._load_task(task_id)
        require(actor, "task", "read", AccessContext(task=task))
        return list(task.attachments)
