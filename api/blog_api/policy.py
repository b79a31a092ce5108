"""Access-control decisions for posts and comments.

Every function here is pure: it looks only at the resource it is handed and
the caller, and returns a ``Decision``. Lookups and writes happen in the
service layer, which turns non-success decisions into errors.

Existence is always checked before rights, so a missing resource is reported
as ``NOT_FOUND`` even to callers who could not have seen it.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from .models import Role

if TYPE_CHECKING:
    from .models import Comment, Post


class Decision(str, enum.Enum):
    ALLOWED = "allowed"
    VISIBLE = "visible"
    NOT_FOUND = "not_found"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    INVALID = "invalid"


class CallerLike(Protocol):
    id: int
    role: str


@dataclass(frozen=True)
class Caller:
    """Resolved identity of the requester."""

    id: int
    role: str = Role.USER.value


def is_admin(caller: CallerLike | None) -> bool:
    return caller is not None and caller.role == Role.ADMIN


def _owns_or_admin(author_id: int, caller: CallerLike) -> bool:
    return caller.id == author_id or is_admin(caller)


def _read_decision(post: "Post", caller: CallerLike | None) -> Decision:
    if post.published:
        return Decision.VISIBLE
    if caller is None:
        return Decision.UNAUTHENTICATED
    if _owns_or_admin(post.author_id, caller):
        return Decision.VISIBLE
    return Decision.FORBIDDEN


# ============================================================================
# POSTS
# ============================================================================


def post_visibility(post: "Post" | None, caller: CallerLike | None) -> Decision:
    """
    Decide whether ``caller`` may read ``post``.

    Published posts are visible to everyone, anonymous callers included.
    Drafts are visible to their author and to admins only; an anonymous
    caller gets ``UNAUTHENTICATED`` and anyone else ``FORBIDDEN``.
    """
    if post is None:
        return Decision.NOT_FOUND
    return _read_decision(post, caller)


def post_creation(caller: CallerLike | None) -> Decision:
    """Only authors and admins write posts."""
    if caller is None:
        return Decision.UNAUTHENTICATED
    if caller.role in (Role.AUTHOR, Role.ADMIN):
        return Decision.ALLOWED
    return Decision.FORBIDDEN


def post_mutation(post: "Post" | None, caller: CallerLike) -> Decision:
    """
    Decide whether ``caller`` may update, publish/unpublish or delete ``post``.

    Allowed for the post's author and for admins.
    """
    if post is None:
        return Decision.NOT_FOUND
    if _owns_or_admin(post.author_id, caller):
        return Decision.ALLOWED
    return Decision.FORBIDDEN


# ============================================================================
# COMMENTS
# ============================================================================


def comment_listing(post: "Post" | None, caller: CallerLike | None) -> Decision:
    """Comments on a post are readable exactly when the post itself is."""
    if post is None:
        return Decision.NOT_FOUND
    return _read_decision(post, caller)


def content_length(content: str, min_length: int) -> Decision:
    """Content shorter than ``min_length`` characters is rejected."""
    if len(content) < min_length:
        return Decision.INVALID
    return Decision.ALLOWED


def comment_creation(
    post: "Post" | None,
    caller: CallerLike | None,
    content: str,
    min_length: int,
) -> Decision:
    """
    Decide whether ``caller`` may comment ``content`` on ``post``.

    Checked in order: post exists, caller is authenticated, content is long
    enough, and for drafts the caller is the post author or an admin.
    """
    if post is None:
        return Decision.NOT_FOUND
    if caller is None:
        return Decision.UNAUTHENTICATED
    if content_length(content, min_length) is Decision.INVALID:
        return Decision.INVALID
    if not post.published and not _owns_or_admin(post.author_id, caller):
        return Decision.FORBIDDEN
    return Decision.ALLOWED


def comment_mutation(
    comment: "Comment" | None,
    post: "Post" | None,
    caller: CallerLike,
) -> Decision:
    """
    Decide whether ``caller`` may update or delete ``comment``.

    Allowed for the comment's author, for the author of the post it belongs
    to (post authors moderate their own threads), and for admins.
    """
    if comment is None:
        return Decision.NOT_FOUND
    if caller.id == comment.author_id or is_admin(caller):
        return Decision.ALLOWED
    if post is not None and caller.id == post.author_id:
        return Decision.ALLOWED
    return Decision.FORBIDDEN
