# app/config/security.py
# Security configuration for authentication, uploads and policy limits

import os
from typing import List, Set

from dotenv import load_dotenv

load_dotenv()


class SecurityConfig:
    """Security configuration for the application"""

    # Token settings
    AUTH = {
        'secret_key': os.getenv('SECRET_KEY', 'dev-secret-change-me'),
        'algorithm': os.getenv('ALGORITHM', 'HS256'),
        'token_expire_days': int(os.getenv('ACCESS_TOKEN_EXPIRE_DAYS', 7)),
    }

    # File upload security settings
    FILE_UPLOAD = {
        'max_file_size': int(os.getenv('MAX_FILE_SIZE', 5 * 1024 * 1024)),  # 5MB
        'max_attachments_per_task': int(os.getenv('MAX_ATTACHMENTS_PER_TASK', 5)),
        'allowed_mime_types': {
            'image/png',
            'image/jpeg',
            'application/pdf',
        },
    }

    # File storage
    STORAGE = {
        'upload_dir': os.getenv('UPLOAD_DIR', 'uploads'),
    }

    # Comment limits
    COMMENTS = {
        'max_length': 500,
    }

    @classmethod
    def get_allowed_mime_types(cls) -> Set[str]:
        """Get allowed MIME types for task attachments"""
        return set(cls.FILE_UPLOAD['allowed_mime_types'])

    @classmethod
    def get_cors_origins(cls) -> List[str]:
        """Get CORS origins from a comma-separated environment variable"""
        raw = os.getenv('CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000')
        return [origin.strip() for origin in raw.split(',') if origin.strip()]
