# app/services/file_validation.py
from typing import BinaryIO, List, Optional, Set, Tuple
import logging

import magic

from app.config.security import SecurityConfig

logger = logging.getLogger(__name__)

class FileValidationService:
    """File validation for task attachments"""

    def __init__(self, allowed_mime_types: Optional[Set[str]] = None, max_file_size: Optional[int] = None):
        self.allowed_mime_types = allowed_mime_types or SecurityConfig.get_allowed_mime_types()
        self.max_file_size = max_file_size or SecurityConfig.FILE_UPLOAD['max_file_size']

        # Markup that must never ride along inside an attachment
        self.dangerous_markers = {
            b'<script': 'HTML script',
            b'<iframe': 'HTML iframe',
            b'<object': 'HTML object',
            b'<embed': 'HTML embed',
            b'<html': 'HTML document',
            b'javascript:': 'JavaScript URL',
            b'vbscript:': 'VBScript URL',
        }

    def detect_mime_type(self, content: bytes) -> str:
        """MIME type of the content as reported by libmagic"""
        return magic.from_buffer(content[:2048], mime=True)

    def validate_mime_type(self, content: bytes, declared_mime_type: str) -> Tuple[bool, str]:
        """
        Validate MIME type using python-magic

        Args:
            content: File bytes
            declared_mime_type: MIME type declared by the client

        Returns:
            Tuple of (is_valid, error_message)
        """
        if declared_mime_type not in self.allowed_mime_types:
            allowed = ', '.join(sorted(self.allowed_mime_types))
            return False, f"File type '{declared_mime_type}' is not allowed (allowed: {allowed})"

        actual_mime_type = self.detect_mime_type(content)

        if actual_mime_type not in self.allowed_mime_types:
            return False, f"File content type '{actual_mime_type}' is not allowed"

        if actual_mime_type != declared_mime_type:
            return False, f"MIME type mismatch: declared '{declared_mime_type}' but actual '{actual_mime_type}'"

        return True, ""

    def validate_file_size(self, file_size: int) -> Tuple[bool, str]:
        """
        Validate file size

        Args:
            file_size: Size of the upload in bytes

        Returns:
            Tuple of (is_valid, error_message)
        """
        if file_size == 0:
            return False, "File is empty"
        if file_size > self.max_file_size:
            return False, (
                f"File size ({file_size / (1024*1024):.1f}MB) exceeds maximum allowed size "
                f"({self.max_file_size / (1024*1024):.1f}MB)"
            )
        return True, ""

    def validate_file_content(self, content: bytes) -> Tuple[bool, str]:
        """Reject files carrying embedded markup or script URLs"""
        lowered = content.lower()
        for marker, description in self.dangerous_markers.items():
            if marker in lowered:
                return False, f"File contains embedded content ({description})"
        return True, ""

    def read_limited(self, stream: BinaryIO) -> Optional[bytes]:
        """
        Read an upload stream without buffering more than the size limit

        Reads at most max_file_size + 1 bytes.

        Returns:
            The file bytes, or None when the stream exceeds max_file_size
        """
        content = stream.read(self.max_file_size + 1)
        if len(content) > self.max_file_size:
            return None
        return content

    def comprehensive_validation(self, content: bytes, declared_mime_type: str) -> Tuple[bool, List[str]]:
        """
        Run every check and collect the failures

        Args:
            content: File bytes
            declared_mime_type: MIME type declared by the client

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors = []

        is_valid, error = self.validate_file_size(len(content))
        if not is_valid:
            errors.append(error)
            # Nothing to sniff in an empty or oversized body
            return False, errors

        is_valid, error = self.validate_mime_type(content, declared_mime_type)
        if not is_valid:
            errors.append(error)

        is_valid, error = self.validate_file_content(content)
        if not is_valid:
            errors.append(error)

        return len(errors) == 0, errors

# Global instance
file_validator = FileValidationService()
