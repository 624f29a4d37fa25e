# app/models/activity_log.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum
from app.database import Base
from app.utils.timeutils import utcnow
import enum

class ActivityEntity(str, enum.Enum):
    PROJECT = "project"
    TASK = "task"

class ActivityAction(str, enum.Enum):
    STATUS_CHANGE = "status_change"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

class ActivityLog(Base):
    """Append-only audit trail; entity_id is a weak reference with no foreign key"""
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    entity_type = Column(Enum(ActivityEntity), nullable=False, index=True)
    entity_id = Column(Integer, nullable=False, index=True)
    action = Column(Enum(ActivityAction), nullable=False)
    old_value = Column(String, nullable=True)
    new_value = Column(String, nullable=True)
    performed_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    performed_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<ActivityLog(id={self.id}, {self.entity_type}:{self.entity_id} {self.action})>"
