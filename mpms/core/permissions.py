# mpms/core/permissions.py
"""
Политика авторизации.

Каждое действие объявляет роли, которым оно разрешено (role gate). Часть действий
привязана к владельцу: actor должен быть автором ресурса, и только для некоторых из
них admin может обойти эту проверку.

Чтение в рамках проекта не ограничено участниками: любой аутентифицированный
пользователь читает любой проект, спринт, задачу или комментарий по id.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional

from mpms.core.enums import Role
from mpms.core.exceptions import ForbiddenError

logger = logging.getLogger("MPMS.Permissions")

ALL_ROLES: FrozenSet[Role] = frozenset(Role)
STAFF: FrozenSet[Role] = frozenset({Role.ADMIN, Role.MANAGER})
ADMIN_ONLY: FrozenSet[Role] = frozenset({Role.ADMIN})

DEFAULT_DENIAL = "You do not have permission to perform this action"


class Action(str, enum.Enum):
    # Users
    USER_VIEW_PROFILE = "user:view_profile"
    USER_UPDATE_PROFILE = "user:update_profile"
    USER_CHANGE_PASSWORD = "user:change_password"
    USER_LIST_TEAM = "user:list_team"
    USER_LIST = "user:list"
    USER_READ = "user:read"
    USER_STATS = "user:stats"
    USER_CREATE = "user:create"
    USER_UPDATE = "user:update"
    USER_UPDATE_ROLE = "user:update_role"
    USER_DELETE = "user:delete"
    # Projects
    PROJECT_LIST_MINE = "project:list_mine"
    PROJECT_LIST = "project:list"
    PROJECT_READ = "project:read"
    PROJECT_CREATE = "project:create"
    PROJECT_UPDATE = "project:update"
    PROJECT_DELETE = "project:delete"
    PROJECT_MANAGE_TEAM = "project:manage_team"
    # Sprints
    SPRINT_READ = "sprint:read"
    SPRINT_CREATE = "sprint:create"
    SPRINT_UPDATE = "sprint:update"
    SPRINT_DELETE = "sprint:delete"
    SPRINT_REORDER = "sprint:reorder"
    # Tasks
    TASK_LIST_MINE = "task:list_mine"
    TASK_READ = "task:read"
    TASK_CREATE = "task:create"
    TASK_UPDATE = "task:update"
    TASK_DELETE = "task:delete"
    TASK_UPDATE_STATUS = "task:update_status"
    TASK_LOG_TIME = "task:log_time"
    TASK_MANAGE_SUBTASKS = "task:manage_subtasks"
    # Comments
    COMMENT_READ = "comment:read"
    COMMENT_CREATE = "comment:create"
    COMMENT_EDIT = "comment:edit"
    COMMENT_DELETE = "comment:delete"
    # Reports
    REPORT_MINE = "report:mine"
    REPORT_DASHBOARD = "report:dashboard"
    REPORT_PROJECT = "report:project"


ACTION_ROLES: Dict[Action, FrozenSet[Role]] = {
    Action.USER_VIEW_PROFILE: ALL_ROLES,
    Action.USER_UPDATE_PROFILE: ALL_ROLES,
    Action.USER_CHANGE_PASSWORD: ALL_ROLES,
    Action.USER_LIST_TEAM: ALL_ROLES,
    Action.USER_LIST: STAFF,
    Action.USER_READ: STAFF,
    Action.USER_STATS: ADMIN_ONLY,
    Action.USER_CREATE: ADMIN_ONLY,
    Action.USER_UPDATE: ADMIN_ONLY,
    Action.USER_UPDATE_ROLE: ADMIN_ONLY,
    Action.USER_DELETE: ADMIN_ONLY,
    Action.PROJECT_LIST_MINE: ALL_ROLES,
    Action.PROJECT_LIST: STAFF,
    Action.PROJECT_READ: ALL_ROLES,
    Action.PROJECT_CREATE: STAFF,
    Action.PROJECT_UPDATE: STAFF,
    Action.PROJECT_DELETE: ADMIN_ONLY,
    Action.PROJECT_MANAGE_TEAM: STAFF,
    Action.SPRINT_READ: ALL_ROLES,
    Action.SPRINT_CREATE: STAFF,
    Action.SPRINT_UPDATE: STAFF,
    Action.SPRINT_DELETE: STAFF,
    Action.SPRINT_REORDER: STAFF,
    Action.TASK_LIST_MINE: ALL_ROLES,
    Action.TASK_READ: ALL_ROLES,
    Action.TASK_CREATE: STAFF,
    Action.TASK_UPDATE: STAFF,
    Action.TASK_DELETE: STAFF,
    Action.TASK_UPDATE_STATUS: ALL_ROLES,
    Action.TASK_LOG_TIME: ALL_ROLES,
    Action.TASK_MANAGE_SUBTASKS: ALL_ROLES,
    Action.COMMENT_READ: ALL_ROLES,
    Action.COMMENT_CREATE: ALL_ROLES,
    Action.COMMENT_EDIT: ALL_ROLES,
    Action.COMMENT_DELETE: ALL_ROLES,
    Action.REPORT_MINE: ALL_ROLES,
    Action.REPORT_DASHBOARD: STAFF,
    Action.REPORT_PROJECT: STAFF,
}


@dataclass(frozen=True)
class OwnershipRule:
    admin_bypass: bool
    denial: str


OWNERSHIP_RULES: Dict[Action, OwnershipRule] = {
    Action.COMMENT_EDIT: OwnershipRule(admin_bypass=False, denial="You can only edit your own comments"),
    Action.COMMENT_DELETE: OwnershipRule(admin_bypass=True, denial="You can only delete your own comments"),
    Action.PROJECT_LIST_MINE: OwnershipRule(admin_bypass=False, denial="You can only list your own projects"),
    Action.TASK_LIST_MINE: OwnershipRule(admin_bypass=False, denial="You can only list your own tasks"),
    Action.REPORT_MINE: OwnershipRule(admin_bypass=False, denial="You can only view your own report"),
}


@dataclass(frozen=True)
class Actor:
    """Аутентифицированный пользователь запроса (из access token)."""
    id: int
    role: Role


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def check_role(actor: Actor, action: Action) -> Decision:
    """Только проверка роли."""
    if actor.role not in ACTION_ROLES[action]:
        return Decision(False, DEFAULT_DENIAL)
    return ALLOW


def authorize(actor: Actor, action: Action, owner_id: Optional[int] = None) -> Decision:
    """
    Решает, может ли `actor` выполнить `action`.
    `owner_id`: автор/владелец ресурса, обязателен для действий из OWNERSHIP_RULES.
    """
    decision = check_role(actor, action)
    if not decision:
        return decision

    rule = OWNERSHIP_RULES.get(action)
    if rule is None:
        return ALLOW
    if owner_id is None:
        raise ValueError(f"Action '{action.value}' is ownership-scoped and needs an owner_id")
    if actor.id == owner_id:
        return ALLOW
    if rule.admin_bypass and actor.role is Role.ADMIN:
        return ALLOW
    return Decision(False, rule.denial)


def enforce(actor: Actor, action: Action, owner_id: Optional[int] = None) -> None:
    """authorize(), который при отказе бросает ForbiddenError."""
    decision = authorize(actor, action, owner_id)
    if not decision:
        logger.warning(f"Denied {action.value} for user {actor.id} ({actor.role.value}): {decision.reason}")
        raise ForbiddenError(decision.reason)


def enforce_role(actor: Actor, action: Action) -> None:
    decision = check_role(actor, action)
    if not decision:
        logger.warning(f"Denied {action.value} for user {actor.id} ({actor.role.value}): role gate")
        raise ForbiddenError(decision.reason)
