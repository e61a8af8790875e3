#mpms/models/project.py
from datetime import datetime, date
from sqlalchemy import (
    Column, Integer, String, Date, DateTime, Text, Float, ForeignKey, Index, Table, func
)
from sqlalchemy.orm import relationship
from mpms.core.enums import ProjectStatus
from mpms.models.base import Base, enum_column_type

project_team_members = Table(
    "project_team_members",
    Base.metadata,
    Column("project_id", Integer, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

project_managers = Table(
    "project_managers",
    Base.metadata,
    Column("project_id", Integer, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Project(Base):
    """
    Project — основная единица управления: клиент, даты, бюджет, команда и менеджеры.
    Slug уникален и пересчитывается при смене названия.
    """
    __tablename__ = "projects"

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    title: str = Column(String(200), nullable=False, index=True, doc="Название проекта")
    slug: str = Column(String(255), unique=True, nullable=False, index=True, doc="URL-slug")
    client: str = Column(String(200), nullable=False, index=True, doc="Клиент")
    description: str = Column(Text, nullable=True, doc="Описание")
    start_date: date = Column(Date, nullable=False, doc="Дата начала")
    end_date: date = Column(Date, nullable=True, doc="Дата окончания (>= start_date)")
    budget: float = Column(Float, nullable=True, doc="Бюджет")
    status: ProjectStatus = Column(enum_column_type(ProjectStatus, "project_status"), nullable=False, default=ProjectStatus.PLANNED, index=True, doc="Статус")
    thumbnail: str = Column(String(512), nullable=True, doc="URL превью")
    created_by_id: int = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True, doc="Автор проекта")
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, doc="Дата создания")
    updated_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, doc="Дата изменения")

    created_by = relationship("User", back_populates="created_projects", foreign_keys=[created_by_id])
    team_members = relationship("User", secondary=project_team_members, backref="member_of_projects", order_by="User.id")
    managers = relationship("User", secondary=project_managers, backref="managed_projects", order_by="User.id")

    # Удаление проекта каскадно удаляет спринты и задачи
    sprints = relationship("Sprint", back_populates="project", cascade="all, delete")
    tasks = relationship("Task", back_populates="project", cascade="all, delete")

    __table_args__ = (
        Index("ix_projects_dates", "start_date", "end_date"),
    )

    def __repr__(self):
        return f"<Project(id={self.id}, slug='{self.slug}', status={self.status})>"
