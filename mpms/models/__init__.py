from .base import Base
from .user import User
from .project import Project, project_team_members, project_managers
from .sprint import Sprint
from .task import Task, Subtask, task_assignees
from .comment import Comment
