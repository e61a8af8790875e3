#mpms/api/comment.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from mpms.core.permissions import Action, Actor
from mpms.crud import comment as crud_comment
from mpms.dependencies import get_db, require
from mpms.schemas.comment import CommentCreate, CommentRead, CommentThread, CommentUpdate
from mpms.schemas.response import ApiResponse, envelope

router = APIRouter(prefix="/comments", tags=["Comments"])


@router.get("/task/{task_id}", response_model=ApiResponse[List[CommentThread]])
def task_comments(
    task_id: int,
    actor: Actor = Depends(require(Action.COMMENT_READ)),
    db: Session = Depends(get_db),
):
    """
    Комментарии задачи (новые сверху) с ответами.
    """
    return envelope("Comments retrieved successfully", crud_comment.list_task_comments(db, task_id))


@router.post("/task/{task_id}", response_model=ApiResponse[CommentRead], status_code=status.HTTP_201_CREATED)
def add_comment(
    task_id: int,
    data: CommentCreate,
    actor: Actor = Depends(require(Action.COMMENT_CREATE)),
    db: Session = Depends(get_db),
):
    comment = crud_comment.create_comment(db, task_id, data.content, actor.id, data.parent_comment_id)
    return envelope("Comment added successfully", comment, status_code=status.HTTP_201_CREATED)


@router.patch("/{comment_id}", response_model=ApiResponse[CommentRead])
def edit_comment(
    comment_id: int,
    data: CommentUpdate,
    actor: Actor = Depends(require(Action.COMMENT_EDIT)),
    db: Session = Depends(get_db),
):
    """Редактировать может только автор."""
    comment = crud_comment.edit_comment(db, comment_id, data.content, actor)
    return envelope("Comment updated successfully", comment)


@router.delete("/{comment_id}", response_model=ApiResponse[None])
def delete_comment(
    comment_id: int,
    actor: Actor = Depends(require(Action.COMMENT_DELETE)),
    db: Session = Depends(get_db),
):
    crud_comment.delete_comment(db, comment_id, actor)
    return envelope("Comment deleted successfully")
