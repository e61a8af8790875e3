# mpms/core/workflow.py
"""
Жизненный цикл задачи.

Статусы: todo -> in_progress -> review -> done, но записать можно любой статус в
любой момент. Единственный защищённый переход: member не может перевести задачу,
требующую ревью, в done (только в review). Admin и manager могут.

Вход в done проставляет completed_at (и reviewed_by, если задача требует ревью).
Выход из done оба значения сохраняет.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from mpms.core.enums import Role, TaskStatus
from mpms.core.exceptions import BadRequestError, ForbiddenError
from mpms.core.permissions import ALLOW, Actor, Decision

logger = logging.getLogger("MPMS.Workflow")

REVIEW_REQUIRED_DENIAL = "This task requires review. Please move to review status."


def can_skip_review(role: Role) -> bool:
    """Может ли `role` закрыть задачу с ревью напрямую."""
    if role is Role.ADMIN or role is Role.MANAGER:
        return True
    if role is Role.MEMBER:
        return False
    raise ValueError(f"Unhandled role: {role!r}")


def check_transition(requires_review: bool, new_status: TaskStatus, role: Role) -> Decision:
    if new_status is TaskStatus.DONE:
        if requires_review and not can_skip_review(role):
            return Decision(False, REVIEW_REQUIRED_DENIAL)
        return ALLOW
    if new_status in (TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.REVIEW):
        return ALLOW
    raise ValueError(f"Unhandled task status: {new_status!r}")


def apply_status(task, new_status: TaskStatus, actor: Actor, now: Optional[datetime] = None):
    """
    Переводит `task` в `new_status` от имени `actor`.
    На защищённом переходе бросает ForbiddenError, иначе меняет задачу на месте.
    """
    decision = check_transition(bool(task.requires_review), new_status, actor.role)
    if not decision:
        logger.warning(f"User {actor.id} ({actor.role.value}) tried to close review-gated task {task.id}")
        raise ForbiddenError(decision.reason)

    task.status = new_status
    if new_status is TaskStatus.DONE:
        task.completed_at = now or datetime.now(timezone.utc)
        if task.requires_review:
            task.reviewed_by_id = actor.id
    return task


def add_logged_time(task, hours: float):
    """Прибавляет неотрицательное число часов к time_logged задачи."""
    if hours is None or hours < 0:
        raise BadRequestError("Logged hours must be a non-negative number")
    task.time_logged = (task.time_logged or 0) + hours
    return task
