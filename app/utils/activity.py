# app/utils/activity.py
"""
Utility functions for writing the activity log
"""

from sqlalchemy.orm import Session
from app.models import ActivityLog, ActivityEntity, ActivityAction
from app.utils.timeutils import utcnow
from typing import Optional
from datetime import datetime

def _as_text(value) -> Optional[str]:
    if value is None:
        return None
    if hasattr(value, 'value'):  # Handle enums
        return str(value.value)
    if hasattr(value, 'isoformat'):  # Handle datetime
        return value.isoformat()
    return str(value)

def record_activity(
    db: Session,
    entity_type: ActivityEntity,
    entity_id: int,
    action: ActivityAction,
    performed_by: int,
    old_value=None,
    new_value=None,
    performed_at: Optional[datetime] = None
) -> ActivityLog:
    """
    Append an activity log entry to the current transaction

    Args:
        db: Database session
        entity_type: Project or task
        entity_id: ID of the entity the entry refers to
        action: What happened
        performed_by: ID of the acting user
        old_value: Previous value (enums and datetimes are stored as text)
        new_value: New value
        performed_at: Timestamp, defaults to now

    Returns:
        The pending ActivityLog row; the caller commits
    """
    entry = ActivityLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        old_value=_as_text(old_value),
        new_value=_as_text(new_value),
        performed_by=performed_by,
        performed_at=performed_at or utcnow()
    )
    db.add(entry)
    return entry
