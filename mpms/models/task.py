#mpms/models/task.py
from datetime import datetime, date
from sqlalchemy import (
    Column, Integer, String, Date, DateTime, Text, Float, ForeignKey, Boolean, Index, Table, func
)
from sqlalchemy.orm import relationship
from mpms.core.enums import TaskPriority, TaskStatus
from mpms.models.base import Base, enum_column_type

task_assignees = Table(
    "task_assignees",
    Base.metadata,
    Column("task_id", Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Task(Base):
    """
    Task — задача проекта (опционально в спринте). Статусы и review-gate см. mpms.core.workflow.
    """
    __tablename__ = "tasks"

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    title: str = Column(String(300), nullable=False, doc="Название задачи")
    description: str = Column(Text, nullable=True, doc="Описание")
    project_id: int = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True, doc="ID проекта")
    sprint_id: int = Column(Integer, ForeignKey("sprints.id", ondelete="SET NULL"), nullable=True, index=True, doc="ID спринта")
    created_by_id: int = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, doc="Кто создал")
    estimate: float = Column(Float, nullable=True, doc="Оценка (часы)")
    time_logged: float = Column(Float, nullable=False, default=0, doc="Залогированное время (часы), только растёт")
    priority: TaskPriority = Column(enum_column_type(TaskPriority, "task_priority"), nullable=False, default=TaskPriority.MEDIUM, doc="Приоритет")
    status: TaskStatus = Column(enum_column_type(TaskStatus, "task_status"), nullable=False, default=TaskStatus.TODO, doc="Статус")
    due_date: date = Column(Date, nullable=True, doc="Срок")
    completed_at: datetime = Column(DateTime(timezone=True), nullable=True, doc="Когда задача перешла в done")
    order: int = Column(Integer, nullable=False, default=0, doc="Позиция в списке/kanban")
    requires_review: bool = Column(Boolean, nullable=False, default=False, doc="Нужен ли review перед done")
    reviewed_by_id: int = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, doc="Кто закрыл review")
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, doc="Дата создания")
    updated_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, doc="Дата изменения")

    project = relationship("Project", back_populates="tasks")
    sprint = relationship("Sprint", back_populates="tasks")
    created_by = relationship("User", foreign_keys=[created_by_id])
    reviewed_by = relationship("User", foreign_keys=[reviewed_by_id])
    assignees = relationship("User", secondary=task_assignees, backref="assigned_tasks", order_by="User.id")
    subtasks = relationship("Subtask", back_populates="task", cascade="all, delete", order_by="Subtask.position")
    comments = relationship("Comment", back_populates="task", cascade="all, delete")

    __table_args__ = (
        Index("ix_tasks_project_status", "project_id", "status"),
        Index("ix_tasks_project_sprint", "project_id", "sprint_id"),
        Index("ix_tasks_due_date", "due_date"),
    )

    def __repr__(self):
        return (
            f"<Task(id={self.id}, title='{self.title}', status={self.status}, "
            f"project_id={self.project_id}, priority={self.priority})>"
        )


class Subtask(Base):
    """Subtask — пункт чеклиста задачи (title + флаг выполнения)."""
    __tablename__ = "subtasks"

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    task_id: int = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    title: str = Column(String(300), nullable=False)
    is_completed: bool = Column(Boolean, nullable=False, default=False)
    position: int = Column(Integer, nullable=False, default=0)

    task = relationship("Task", back_populates="subtasks")

    def __repr__(self):
        return f"<Subtask(id={self.id}, task_id={self.task_id}, completed={self.is_completed})>"
