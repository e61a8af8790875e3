#mpms/models/sprint.py
from datetime import datetime, date
from sqlalchemy import (
    Column, Integer, String, Date, DateTime, Text, JSON, ForeignKey, Index, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from mpms.core.enums import SprintStatus
from mpms.models.base import Base, enum_column_type


class Sprint(Base):
    """
    Sprint — итерация внутри проекта. Номер спринта уникален в пределах проекта и выдаётся по порядку с 1.
    """
    __tablename__ = "sprints"

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    title: str = Column(String(200), nullable=False, doc="Название спринта")
    sprint_number: int = Column(Integer, nullable=False, doc="Порядковый номер в проекте")
    project_id: int = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True, doc="ID проекта")
    description: str = Column(Text, nullable=True, doc="Описание")
    start_date: date = Column(Date, nullable=False, doc="Дата начала")
    end_date: date = Column(Date, nullable=False, doc="Дата окончания (строго позже начала)")
    status: SprintStatus = Column(enum_column_type(SprintStatus, "sprint_status"), nullable=False, default=SprintStatus.PLANNED, doc="Статус")
    goals: list = Column(JSON, nullable=False, default=lambda: [], doc="Цели спринта")
    order: int = Column(Integer, nullable=False, default=0, doc="Позиция при сортировке")
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, doc="Дата создания")
    updated_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, doc="Дата изменения")

    project = relationship("Project", back_populates="sprints")
    tasks = relationship("Task", back_populates="sprint")

    __table_args__ = (
        UniqueConstraint("project_id", "sprint_number", name="uq_sprints_project_number"),
        Index("ix_sprints_project_status", "project_id", "status"),
        Index("ix_sprints_project_order", "project_id", "order"),
    )

    def __repr__(self):
        return f"<Sprint(id={self.id}, project_id={self.project_id}, number={self.sprint_number}, status={self.status})>"
