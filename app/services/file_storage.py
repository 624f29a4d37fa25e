# app/services/file_storage.py
import os
import uuid
import mimetypes
from pathlib import Path
from typing import BinaryIO, Optional
import logging

from app.config.security import SecurityConfig
from app.services.file_validation import FileValidationService, file_validator
from app.utils.errors import InvalidInput

logger = logging.getLogger(__name__)

class InvalidFileError(InvalidInput):
    default_message = "Invalid file"

class FileStorageService:
    """Blob store for task attachments on the local disk"""

    def __init__(self, upload_dir: Optional[str] = None, validator: Optional[FileValidationService] = None):
        self.upload_dir = Path(upload_dir or SecurityConfig.STORAGE['upload_dir'])
        self.validator = validator or file_validator

    def _task_dir(self, task_id: int) -> Path:
        task_dir = self.upload_dir / "tasks" / str(task_id)
        task_dir.mkdir(parents=True, exist_ok=True)
        return task_dir

    @staticmethod
    def resolve_mime_type(filename: str, declared_mime_type: Optional[str]) -> str:
        """Use the declared type, falling back to a guess from the filename"""
        if declared_mime_type and declared_mime_type != "application/octet-stream":
            return declared_mime_type
        mime_type, _ = mimetypes.guess_type(filename or "")
        return mime_type or "application/octet-stream"

    def read_upload(self, stream: BinaryIO, filename: str) -> bytes:
        """Read an incoming upload, refusing bodies over the size limit"""
        content = self.validator.read_limited(stream)
        if content is None:
            limit_mb = self.validator.max_file_size / (1024*1024)
            logger.warning(f"Rejected upload '{filename}': larger than {limit_mb:.1f}MB")
            raise InvalidFileError(f"Invalid file: File exceeds maximum allowed size ({limit_mb:.1f}MB)")
        return content

    def store(self, content: bytes, filename: str, mime_type: str, task_id: int) -> str:
        """
        Validate and save an attachment

        Args:
            content: File bytes
            filename: Original filename
            mime_type: MIME type of the file
            task_id: Task the file belongs to

        Returns:
            Storage reference relative to the upload directory

        Raises:
            InvalidFileError: the file failed validation
        """
        is_valid, errors = self.validator.comprehensive_validation(content, mime_type)
        if not is_valid:
            logger.warning(f"Rejected upload '{filename}' for task {task_id}: {'; '.join(errors)}")
            raise InvalidFileError(f"Invalid file: {'; '.join(errors)}")

        # Generate unique filename, keep the original extension
        extension = Path(filename or "").suffix.lower()
        stored_name = f"{uuid.uuid4().hex}{extension}"
        file_path = self._task_dir(task_id) / stored_name

        with open(file_path, "wb") as buffer:
            buffer.write(content)

        storage_ref = f"tasks/{task_id}/{stored_name}"
        logger.info(f"Stored attachment {storage_ref} ({len(content)} bytes)")
        return storage_ref

    def get_file_path(self, storage_ref: str) -> Optional[Path]:
        """Absolute path for a storage reference, or None if missing"""
        file_path = self.upload_dir / storage_ref
        return file_path if file_path.exists() else None

    def delete(self, storage_ref: str) -> bool:
        """Delete a stored file; a missing file is not an error"""
        file_path = self.upload_dir / storage_ref
        try:
            if file_path.exists():
                os.remove(file_path)
            return True
        except OSError as e:
            logger.error(f"Error deleting file {storage_ref}: {str(e)}")
            return False

# Global instance
file_storage = FileStorageService()

def get_file_storage() -> FileStorageService:
    return file_storage
