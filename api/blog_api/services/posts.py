"""Post operations: reading, writing, publishing and cascading deletes."""

from __future__ import annotations

import logging

from .. import models, policy, settings
from ..errors import AtomicityFailure, InvalidInput, NotFound
from ..policy import CallerLike
from ..repository import BlogRepository
from .access import enforce

logger = logging.getLogger(__name__)

POST_NOT_FOUND = "Post not found"


def annotate_posts_with_counts(
    repo: BlogRepository, posts: list[models.Post]
) -> list[models.Post]:
    """Attach ``comment_count`` to each post using one grouped query."""
    counts = repo.comment_counts([post.id for post in posts])
    for post in posts:
        post.comment_count = counts.get(post.id, 0)
    return posts


def validate_post_fields(title: str | None, content: str | None) -> None:
    if title is not None and len(title) < settings.POST_TITLE_MIN_LENGTH:
        raise InvalidInput(
            f"Title must be at least {settings.POST_TITLE_MIN_LENGTH} characters"
        )
    if content is not None and len(content) < settings.POST_CONTENT_MIN_LENGTH:
        raise InvalidInput(
            f"Content must be at least {settings.POST_CONTENT_MIN_LENGTH} characters"
        )


def list_published(repo: BlogRepository) -> list[models.Post]:
    """Published posts, newest first."""
    return annotate_posts_with_counts(repo, repo.list_published_posts())


def list_author_posts(repo: BlogRepository, caller: CallerLike) -> list[models.Post]:
    """All of the caller's own posts, drafts included, newest first."""
    return annotate_posts_with_counts(repo, repo.list_posts_by_author(caller.id))


def get_post(
    repo: BlogRepository, post_id: int, caller: CallerLike | None
) -> tuple[models.Post, list[models.Comment]]:
    """Return a readable post together with its comments."""
    post = repo.get_post(post_id)
    enforce(
        policy.post_visibility(post, caller),
        not_found=POST_NOT_FOUND,
        forbidden="You do not have permission to view this post",
    )
    return post, repo.list_comments_for_post(post.id)


def _get_for_mutation(
    repo: BlogRepository, post_id: int, caller: CallerLike, action: str
) -> models.Post:
    post = repo.get_post(post_id)
    enforce(
        policy.post_mutation(post, caller),
        not_found=POST_NOT_FOUND,
        forbidden=f"You do not have permission to {action} this post",
    )
    return post


def create_post(
    repo: BlogRepository,
    caller: CallerLike | None,
    title: str,
    content: str,
    published: bool = False,
) -> models.Post:
    enforce(
        policy.post_creation(caller),
        forbidden="Only authors and admins can create posts",
    )
    validate_post_fields(title, content)

    post = models.Post(
        title=title,
        content=content,
        published=published,
        author_id=caller.id,
    )
    post = repo.add_post(post)
    logger.info(f"User {caller.id} created post {post.id} (published={published})")
    return post


def update_post(
    repo: BlogRepository,
    post_id: int,
    caller: CallerLike,
    title: str | None = None,
    content: str | None = None,
    published: bool | None = None,
) -> models.Post:
    """Update title, content and/or publish state. ``None`` leaves a field as is."""
    post = _get_for_mutation(repo, post_id, caller, "update")
    validate_post_fields(title, content)

    if title is not None:
        post.title = title
    if content is not None:
        post.content = content
    if published is not None:
        post.published = published
    repo.save(post)
    return post


def toggle_publish(repo: BlogRepository, post_id: int, caller: CallerLike) -> models.Post:
    post = _get_for_mutation(repo, post_id, caller, "update")
    post.published = not post.published
    repo.save(post)
    logger.info(f"User {caller.id} set post {post.id} published={post.published}")
    return post


def delete_post(repo: BlogRepository, post_id: int, caller: CallerLike) -> int:
    """
    Delete a post and every comment on it as one unit of work.

    Returns the number of comments removed. If either step fails nothing is
    removed and ``AtomicityFailure`` is raised. A post that disappeared
    between the lookup and the delete is reported as ``NotFound``.
    """
    _get_for_mutation(repo, post_id, caller, "delete")

    try:
        with repo.atomic():
            removed_comments = repo.delete_comments_for_post(post_id)
            if not repo.delete_post(post_id):
                raise NotFound(POST_NOT_FOUND)
    except NotFound:
        raise
    except Exception as e:
        logger.error(f"Cascade delete of post {post_id} rolled back: {e}")
        raise AtomicityFailure("Failed to delete post; no changes were made") from e

    logger.info(f"User {caller.id} deleted post {post_id} and {removed_comments} comments")
    return removed_comments
