#mpms/crud/comment.py
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from mpms.core.exceptions import BadRequestError, CommentNotFound
from mpms.core.permissions import Action, Actor, enforce
from mpms.crud.task import get_task
from mpms.models.comment import Comment

logger = logging.getLogger("MPMS.Comments")


def get_comment(db: Session, comment_id: int) -> Comment:
    comment = db.get(Comment, comment_id)
    if not comment:
        raise CommentNotFound()
    return comment


def list_task_comments(db: Session, task_id: int) -> List[Comment]:
    """
    Комментарии верхнего уровня, новые сверху; ответы подтягиваются через Comment.replies.
    """
    get_task(db, task_id)
    return (
        db.query(Comment)
        .filter(Comment.task_id == task_id, Comment.parent_comment_id.is_(None))
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .all()
    )


def create_comment(db: Session, task_id: int, content: str, author_id: int, parent_comment_id: Optional[int] = None) -> Comment:
    """
    Новый комментарий. Ответ возможен только на комментарий верхнего уровня той же задачи.
    """
    task = get_task(db, task_id)
    if parent_comment_id is not None:
        parent = db.get(Comment, parent_comment_id)
        if parent is None or parent.task_id != task.id:
            raise BadRequestError("Parent comment not found on this task")
        if parent.parent_comment_id is not None:
            raise BadRequestError("Replies can only be added to top-level comments")

    comment = Comment(
        content=content,
        task_id=task.id,
        author_id=author_id,
        parent_comment_id=parent_comment_id,
    )
    db.add(comment)
    try:
        db.commit()
        db.refresh(comment)
        logger.info(f"User {author_id} commented on task {task.id} (comment {comment.id})")
        return comment
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create comment on task {task.id}: {e}")
        raise


def edit_comment(db: Session, comment_id: int, content: str, actor: Actor) -> Comment:
    """Только автор; admin тоже не может редактировать чужое."""
    comment = get_comment(db, comment_id)
    enforce(actor, Action.COMMENT_EDIT, owner_id=comment.author_id)

    comment.content = content
    comment.is_edited = True
    comment.edited_at = datetime.now(timezone.utc)
    try:
        db.commit()
        db.refresh(comment)
        logger.info(f"User {actor.id} edited comment {comment_id}")
        return comment
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to edit comment {comment_id}: {e}")
        raise


def delete_comment(db: Session, comment_id: int, actor: Actor) -> None:
    """
    Автор или admin. Прямые ответы удаляются вместе с комментарием.
    """
    comment = get_comment(db, comment_id)
    enforce(actor, Action.COMMENT_DELETE, owner_id=comment.author_id)
    db.delete(comment)
    try:
        db.commit()
        logger.info(f"User {actor.id} deleted comment {comment_id}")
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to delete comment {comment_id}: {e}")
        raise
