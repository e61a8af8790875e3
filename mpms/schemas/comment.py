from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from mpms.schemas.response import CamelModel
from mpms.schemas.user import UserBrief, strip_text


class CommentCreate(CamelModel):
    """
    CommentCreate — новый комментарий или ответ (parentCommentId).
    """
    content: str = Field(..., min_length=1, max_length=2000, examples=["Looks good to me"])
    parent_comment_id: Optional[int] = None

    strip_content = field_validator("content", mode="before")(strip_text)


class CommentUpdate(CamelModel):
    content: str = Field(..., min_length=1, max_length=2000)

    strip_content = field_validator("content", mode="before")(strip_text)


class CommentRead(CamelModel):
    id: int
    content: str
    task_id: int
    author_id: int
    author: Optional[UserBrief] = None
    parent_comment_id: Optional[int] = None
    is_edited: bool = False
    edited_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class CommentThread(CommentRead):
    """Комментарий верхнего уровня вместе с ответами."""
    replies: List[CommentRead] = Field(default_factory=list)
