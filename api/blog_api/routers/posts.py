"""Post endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from .. import models, schemas
from ..auth import get_current_user, get_current_user_optional
from ..deps import get_repository
from ..repository import BlogRepository
from ..services import posts as post_service

router = APIRouter(prefix="/posts", tags=["Posts"])


@router.get("", response_model=list[schemas.PostSummary])
def list_posts(
    repo: BlogRepository = Depends(get_repository),
) -> list[schemas.PostSummary]:
    """Published posts, newest first, with author and comment count."""
    posts = post_service.list_published(repo)
    return [schemas.PostSummary.model_validate(p) for p in posts]


@router.get("/author/dashboard", response_model=list[schemas.PostSummary])
def author_dashboard(
    repo: BlogRepository = Depends(get_repository),
    current_user: models.User = Depends(get_current_user),
) -> list[schemas.PostSummary]:
    """All of the signed-in user's posts, drafts included."""
    posts = post_service.list_author_posts(repo, current_user)
    return [schemas.PostSummary.model_validate(p) for p in posts]


@router.get("/{id}", response_model=schemas.PostDetail)
def get_post(
    id: int,
    repo: BlogRepository = Depends(get_repository),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> schemas.PostDetail:
    """
    Get a post with its comments.

    Drafts are only visible to their author and admins: anonymous callers get
    401, other users 403.
    """
    post, comments = post_service.get_post(repo, id, current_user)
    return schemas.PostDetail(
        **schemas.Post.model_validate(post).model_dump(),
        comments=[schemas.Comment.model_validate(c) for c in comments],
    )


@router.post("", response_model=schemas.Post, status_code=status.HTTP_201_CREATED)
def create_post(
    payload: schemas.PostCreate,
    repo: BlogRepository = Depends(get_repository),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Post:
    """Create a post (authors and admins). Posts start as drafts unless ``published`` is set."""
    post = post_service.create_post(
        repo,
        current_user,
        title=payload.title,
        content=payload.content,
        published=payload.published,
    )
    return schemas.Post.model_validate(post)


@router.put("/{id}", response_model=schemas.Post)
def update_post(
    id: int,
    payload: schemas.PostUpdate,
    repo: BlogRepository = Depends(get_repository),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Post:
    post = post_service.update_post(
        repo,
        id,
        current_user,
        title=payload.title,
        content=payload.content,
        published=payload.published,
    )
    return schemas.Post.model_validate(post)


@router.patch("/{id}/publish", response_model=schemas.Post)
def toggle_publish_status(
    id: int,
    repo: BlogRepository = Depends(get_repository),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Post:
    """Flip a post between draft and published."""
    post = post_service.toggle_publish(repo, id, current_user)
    return schemas.Post.model_validate(post)


@router.delete("/{id}", response_model=schemas.Message)
def delete_post(
    id: int,
    repo: BlogRepository = Depends(get_repository),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Message:
    """Delete a post together with all of its comments."""
    post_service.delete_post(repo, id, current_user)
    return schemas.Message(message="Post deleted successfully")
