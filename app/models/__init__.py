from .user import User, UserRole
from .project import Project, ProjectStatus, ProjectStatusHistory, project_members
from .task import Task, TaskStatus, TaskPriority, TaskStatusHistory, TaskAttachment
from .comment import Comment
from .activity_log import ActivityLog, ActivityEntity, ActivityAction
