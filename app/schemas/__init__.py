from .user import UserCreate, UserLogin, UserOut, UserBasic
from .tokens import Token
from .project import ProjectCreate, ProjectUpdate, ProjectOut, ProjectMemberAdd, ProjectStatusHistoryOut
from .task import TaskCreate, TaskUpdate, TaskStatusUpdate, TaskOut, TaskAttachmentOut, TaskStatusHistoryOut, TaskSummaryOut, PriorityCount
from .comment import CommentCreate, CommentOut
from .dashboard import DashboardOut, DashboardStats, DashboardProject, DashboardTask
from .activity_log import ActivityLogOut
