#mpms/models/user.py
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, JSON, Text, func
)
from sqlalchemy.orm import relationship
from mpms.core.enums import Role
from mpms.models.base import Base, enum_column_type


class User(Base):
    """
    User — аккаунт пользователя: роль, активность, один слот под refresh token.
    Email хранится в нижнем регистре.
    """
    __tablename__ = "users"

    id: int = Column(Integer, primary_key=True, index=True)
    name: str = Column(String(100), nullable=False, doc="Имя")
    email: str = Column(String(255), unique=True, nullable=False, index=True, doc="Email (lowercase)")
    password_hash: str = Column(String(128), nullable=False, doc="Хэш пароля (bcrypt)")
    role: Role = Column(enum_column_type(Role, "user_role"), nullable=False, default=Role.MEMBER, index=True, doc="Роль")
    department: str = Column(String(100), nullable=True, index=True, doc="Отдел")
    skills: list = Column(JSON, nullable=False, default=lambda: [], doc="Навыки")
    avatar: str = Column(String(512), nullable=True, doc="URL аватара")
    is_active: bool = Column(Boolean, default=True, nullable=False, doc="Аккаунт активен")
    password_changed_at: datetime = Column(DateTime(timezone=True), nullable=True, doc="Когда пароль меняли последний раз")
    refresh_token: str = Column(Text, nullable=True, doc="Текущий refresh token (single slot)")
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, doc="Дата создания")
    updated_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, doc="Дата обновления")

    # --- Связи ---
    created_projects = relationship("Project", back_populates="created_by", foreign_keys="Project.created_by_id")
    comments = relationship("Comment", back_populates="author", cascade="all, delete")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"
