# app/utils/errors.py
"""
Tagged application errors.

Every policy violation is raised as an ``AppError`` subclass carrying a
``kind`` tag and the HTTP status it maps to. ``main.py`` renders them as
``{"detail": message, "error": kind}``.
"""

from typing import Optional


class AppError(Exception):
    kind = "internal"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "error": self.kind}


class Unauthenticated(AppError):
    kind = "unauthenticated"
    status_code = 401
    default_message = "Authentication required"


class Forbidden(AppError):
    kind = "forbidden"
    status_code = 403
    default_message = "Access denied"


class InvalidStatusFlow(Forbidden):
    # Reported as a bad request even though it is a permission-class denial
    status_code = 400
    default_message = "Invalid status flow"


class NotFound(AppError):
    kind = "not_found"
    status_code = 404
    default_message = "Resource not found"


class Conflict(AppError):
    kind = "conflict"
    status_code = 409
    default_message = "Conflict"


class InvalidInput(AppError):
    kind = "invalid_input"
    status_code = 400
    default_message = "Invalid input"


class InternalError(AppError):
    pass


ERRORS_BY_KIND = {
    cls.kind: cls
    for cls in (Unauthenticated, Forbidden, NotFound, Conflict, InvalidInput, InternalError)
}


def error_for(kind: str, message: Optional[str] = None) -> AppError:
    """Build the exception matching a decision kind"""
    return ERRORS_BY_KIND.get(kind, InternalError)(message)
