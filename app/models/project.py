# app/models/project.py
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Table, Enum
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.timeutils import utcnow
import enum

# Association table for project membership; the composite key rejects duplicate members
project_members = Table(
    'project_members',
    Base.metadata,
    Column('project_id', Integer, ForeignKey('projects.id', ondelete='CASCADE'), primary_key=True),
    Column('user_id', Integer, ForeignKey('users.id'), primary_key=True)
)

class ProjectStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"

class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    status = Column(Enum(ProjectStatus), nullable=False, default=ProjectStatus.ACTIVE)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    creator = relationship("User", foreign_keys=[created_by], back_populates="created_projects")
    members = relationship("User", secondary=project_members, order_by="User.id")
    tasks = relationship("Task", back_populates="project", cascade="all, delete-orphan")
    status_history = relationship(
        "ProjectStatusHistory",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ProjectStatusHistory.id"
    )

    @property
    def member_ids(self) -> set:
        ids = {member.id for member in self.members}
        ids.add(self.created_by)
        return ids

    def has_member(self, user_id: int) -> bool:
        return user_id in self.member_ids

class ProjectStatusHistory(Base):
    __tablename__ = "project_status_history"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    old_status = Column(Enum(ProjectStatus), nullable=False)
    new_status = Column(Enum(ProjectStatus), nullable=False)
    changed_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    changed_at = Column(DateTime, default=utcnow, nullable=False)

    project = relationship("Project", back_populates="status_history")
