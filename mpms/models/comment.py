#mpms/models/comment.py
from datetime import datetime
from sqlalchemy import (
    Column, Integer, DateTime, Text, ForeignKey, Boolean, Index, func
)
from sqlalchemy.orm import relationship, backref
from mpms.models.base import Base


class Comment(Base):
    """
    Comment — комментарий к задаче. Один уровень вложенности: ответ ссылается на комментарий верхнего уровня.
    """
    __tablename__ = "comments"

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    content: str = Column(Text, nullable=False, doc="Текст")
    task_id: int = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True, doc="ID задачи")
    author_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True, doc="Автор")
    parent_comment_id: int = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True, index=True, doc="Родительский комментарий")
    is_edited: bool = Column(Boolean, nullable=False, default=False, doc="Редактировался ли")
    edited_at: datetime = Column(DateTime(timezone=True), nullable=True, doc="Когда редактировали")
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, doc="Дата создания")
    updated_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, doc="Дата изменения")

    task = relationship("Task", back_populates="comments")
    author = relationship("User", back_populates="comments")
    # Удаление комментария удаляет его прямые ответы
    replies = relationship(
        "Comment",
        backref=backref("parent", remote_side=[id]),
        cascade="all, delete",
        order_by="Comment.id",
    )

    __table_args__ = (
        Index("ix_comments_task_created", "task_id", "created_at"),
    )

    def __repr__(self):
        return f"<Comment(id={self.id}, task_id={self.task_id}, author_id={self.author_id})>"
