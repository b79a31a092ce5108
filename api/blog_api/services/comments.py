"""Comment operations."""

from __future__ import annotations

import logging

from .. import models, policy, settings
from ..errors import NotFound
from ..policy import CallerLike
from ..repository import BlogRepository
from .access import enforce

logger = logging.getLogger(__name__)


def _too_short() -> str:
    return f"Comment must be at least {settings.COMMENT_MIN_LENGTH} characters"


def list_comments(
    repo: BlogRepository, post_id: int, caller: CallerLike | None
) -> list[models.Comment]:
    """Comments on a post, newest first. All or nothing: never a partial list."""
    post = repo.get_post(post_id)
    enforce(
        policy.comment_listing(post, caller),
        not_found="Post not found",
        forbidden="You do not have permission to view these comments",
    )
    return repo.list_comments_for_post(post.id)


def create_comment(
    repo: BlogRepository, post_id: int, caller: CallerLike | None, content: str
) -> models.Comment:
    post = repo.get_post(post_id)
    enforce(
        policy.comment_creation(post, caller, content, settings.COMMENT_MIN_LENGTH),
        not_found="Post not found",
        forbidden="Cannot comment on unpublished posts",
        invalid=_too_short(),
    )

    comment = models.Comment(content=content, post_id=post.id, author_id=caller.id)
    comment = repo.add_comment(comment)
    logger.info(f"User {caller.id} commented {comment.id} on post {post.id}")
    return comment


def _get_for_mutation(
    repo: BlogRepository, comment_id: int, caller: CallerLike, action: str
) -> models.Comment:
    comment = repo.get_comment(comment_id)
    post = repo.get_post(comment.post_id) if comment is not None else None
    enforce(
        policy.comment_mutation(comment, post, caller),
        not_found="Comment not found",
        forbidden=f"You do not have permission to {action} this comment",
    )
    return comment


def update_comment(
    repo: BlogRepository, comment_id: int, caller: CallerLike, content: str
) -> models.Comment:
    comment = _get_for_mutation(repo, comment_id, caller, "update")
    enforce(
        policy.content_length(content, settings.COMMENT_MIN_LENGTH),
        invalid=_too_short(),
    )
    comment.content = content
    repo.save(comment)
    return comment


def delete_comment(repo: BlogRepository, comment_id: int, caller: CallerLike) -> None:
    _get_for_mutation(repo, comment_id, caller, "delete")
    if not repo.delete_comment(comment_id):
        raise NotFound("Comment not found")
    logger.info(f"User {caller.id} deleted comment {comment_id}")
