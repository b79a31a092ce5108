"""Comment endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from .. import models, schemas
from ..auth import get_current_user, get_current_user_optional
from ..deps import get_repository
from ..repository import BlogRepository
from ..services import comments as comment_service

router = APIRouter(prefix="/comments", tags=["Comments"])


@router.get("/post/{post_id}", response_model=list[schemas.Comment])
def list_comments(
    post_id: int,
    repo: BlogRepository = Depends(get_repository),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> list[schemas.Comment]:
    """
    List comments for a post, newest first.

    Comments on a draft are only listed for the post author and admins.
    """
    comments = comment_service.list_comments(repo, post_id, current_user)
    return [schemas.Comment.model_validate(c) for c in comments]


@router.post(
    "/post/{post_id}",
    response_model=schemas.Comment,
    status_code=status.HTTP_201_CREATED,
)
def create_comment(
    post_id: int,
    payload: schemas.CommentCreate,
    repo: BlogRepository = Depends(get_repository),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Comment:
    comment = comment_service.create_comment(repo, post_id, current_user, payload.content)
    return schemas.Comment.model_validate(comment)


@router.put("/{id}", response_model=schemas.Comment)
def update_comment(
    id: int,
    payload: schemas.CommentUpdate,
    repo: BlogRepository = Depends(get_repository),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Comment:
    """Update a comment (comment author, post author or admin)."""
    comment = comment_service.update_comment(repo, id, current_user, payload.content)
    return schemas.Comment.model_validate(comment)


@router.delete("/{id}", response_model=schemas.Message)
def delete_comment(
    id: int,
    repo: BlogRepository = Depends(get_repository),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Message:
    """Delete a comment (comment author, post author or admin)."""
    comment_service.delete_comment(repo, id, current_user)
    return schemas.Message(message="Comment deleted successfully")
