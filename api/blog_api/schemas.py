from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .models import Role


# ============================================================================
# BASE SCHEMAS
# ============================================================================


class Message(BaseModel):
    """Plain message response."""

    message: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok"] = "ok"
    uptime_s: float | None = None


# ============================================================================
# USER SCHEMAS
# ============================================================================


class AuthorPublic(BaseModel):
    """Public identity of a post or comment author."""

    id: int
    username: str

    model_config = ConfigDict(from_attributes=True)


class UserFull(AuthorPublic):
    """The signed-in user's own account."""

    email: str
    role: Role
    created_at: datetime
    updated_at: datetime | None = None


class RegisterRequest(BaseModel):
    """User registration request."""

    email: str = Field(..., max_length=255)
    username: str = Field(..., max_length=50)
    password: str = Field(..., max_length=100)
    role: Role = Role.USER


class LoginRequest(BaseModel):
    """User login request - email and password."""

    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=100)


class AuthResponse(BaseModel):
    """Issued access token plus the account it belongs to."""

    message: str
    token: str
    user: UserFull


# ============================================================================
# COMMENT SCHEMAS
# ============================================================================


class Comment(BaseModel):
    """Comment on a post."""

    id: int
    content: str
    post_id: int
    author_id: int
    author: AuthorPublic
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CommentCreate(BaseModel):
    """Create comment request. Minimum length is enforced by the service."""

    content: str


class CommentUpdate(BaseModel):
    """Update comment request."""

    content: str


# ============================================================================
# POST SCHEMAS
# ============================================================================


class Post(BaseModel):
    """Post as returned after create, update and publish toggles."""

    id: int
    title: str
    content: str
    published: bool
    author_id: int
    author: AuthorPublic
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class PostSummary(Post):
    """Post in a listing, with its comment count."""

    comment_count: int = 0


class PostDetail(Post):
    """Single post with its comments, newest first."""

    comments: list[Comment] = []


class PostCreate(BaseModel):
    """Create post request."""

    title: str
    content: str
    published: bool = False


class PostUpdate(BaseModel):
    """Update post request. Omitted fields are left unchanged."""

    title: str | None = None
    content: str | None = None
    published: bool | None = None
