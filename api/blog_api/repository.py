"""Persistence collaborator.

Services receive a ``BlogRepository`` instead of reaching for a global
session, so tests can hand them an in-memory fake. Lookups return ``None``
when the row is absent; any driver error is raised as ``DependencyFailure``.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Protocol

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from . import models
from .errors import Conflict, DependencyFailure

logger = logging.getLogger(__name__)


class BlogRepository(Protocol):
    def get_user(self, user_id: int) -> models.User | None: ...

    def get_user_by_key(self, user_key) -> models.User | None: ...

    def get_user_by_email(self, email: str) -> models.User | None: ...

    def get_user_by_username(self, username: str) -> models.User | None: ...

    def add_user(self, user: models.User) -> models.User: ...

    def get_post(self, post_id: int) -> models.Post | None: ...

    def list_published_posts(self) -> list[models.Post]: ...

    def list_posts_by_author(self, author_id: int) -> list[models.Post]: ...

    def add_post(self, post: models.Post) -> models.Post: ...

    def delete_post(self, post_id: int) -> bool: ...

    def get_comment(self, comment_id: int) -> models.Comment | None: ...

    def list_comments_for_post(self, post_id: int) -> list[models.Comment]: ...

    def add_comment(self, comment: models.Comment) -> models.Comment: ...

    def delete_comment(self, comment_id: int) -> bool: ...

    def delete_comments_for_post(self, post_id: int) -> int: ...

    def comment_counts(self, post_ids: list[int]) -> dict[int, int]: ...

    def save(self, obj) -> None: ...

    def atomic(self) -> Iterator[None]: ...


class SqlAlchemyRepository:
    """``BlogRepository`` backed by a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def _guard(self) -> Iterator[None]:
        try:
            yield
        except IntegrityError as e:
            self.session.rollback()
            logger.warning(f"Integrity error: {e.orig if hasattr(e, 'orig') else e}")
            raise Conflict("Resource conflicts with existing data") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error: {e}", exc_info=True)
            raise DependencyFailure() from e

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_user(self, user_id: int) -> models.User | None:
        with self._guard():
            return self.session.get(models.User, user_id)

    def get_user_by_key(self, user_key) -> models.User | None:
        with self._guard():
            return self.session.scalars(
                select(models.User).where(models.User.user_key == user_key)
            ).first()

    def get_user_by_email(self, email: str) -> models.User | None:
        with self._guard():
            return self.session.scalars(
                select(models.User).where(models.User.email == email)
            ).first()

    def get_user_by_username(self, username: str) -> models.User | None:
        with self._guard():
            return self.session.scalars(
                select(models.User).where(models.User.username == username)
            ).first()

    def add_user(self, user: models.User) -> models.User:
        with self._guard():
            self.session.add(user)
            self.session.commit()
            self.session.refresh(user)
        return user

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    def get_post(self, post_id: int) -> models.Post | None:
        with self._guard():
            return self.session.scalars(
                select(models.Post)
                .options(joinedload(models.Post.author))
                .where(models.Post.id == post_id)
            ).first()

    def list_published_posts(self) -> list[models.Post]:
        with self._guard():
            return list(
                self.session.scalars(
                    select(models.Post)
                    .options(joinedload(models.Post.author))
                    .where(models.Post.published.is_(True))
                    .order_by(models.Post.created_at.desc(), models.Post.id.asc())
                )
            )

    def list_posts_by_author(self, author_id: int) -> list[models.Post]:
        with self._guard():
            return list(
                self.session.scalars(
                    select(models.Post)
                    .options(joinedload(models.Post.author))
                    .where(models.Post.author_id == author_id)
                    .order_by(models.Post.created_at.desc(), models.Post.id.asc())
                )
            )

    def add_post(self, post: models.Post) -> models.Post:
        with self._guard():
            self.session.add(post)
            self.session.commit()
            self.session.refresh(post)
        return post

    def delete_post(self, post_id: int) -> bool:
        """Delete a post row. Does not commit; call inside ``atomic()``."""
        with self._guard():
            result = self.session.execute(
                delete(models.Post).where(models.Post.id == post_id)
            )
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def get_comment(self, comment_id: int) -> models.Comment | None:
        with self._guard():
            return self.session.scalars(
                select(models.Comment)
                .options(joinedload(models.Comment.author))
                .where(models.Comment.id == comment_id)
            ).first()

    def list_comments_for_post(self, post_id: int) -> list[models.Comment]:
        with self._guard():
            return list(
                self.session.scalars(
                    select(models.Comment)
                    .options(joinedload(models.Comment.author))
                    .where(models.Comment.post_id == post_id)
                    .order_by(models.Comment.created_at.desc(), models.Comment.id.asc())
                )
            )

    def add_comment(self, comment: models.Comment) -> models.Comment:
        with self._guard():
            self.session.add(comment)
            self.session.commit()
            self.session.refresh(comment)
        return comment

    def delete_comment(self, comment_id: int) -> bool:
        with self._guard():
            result = self.session.execute(
                delete(models.Comment).where(models.Comment.id == comment_id)
            )
            self.session.commit()
        return result.rowcount > 0

    def delete_comments_for_post(self, post_id: int) -> int:
        """Delete every comment on a post. Does not commit; call inside ``atomic()``."""
        with self._guard():
            result = self.session.execute(
                delete(models.Comment).where(models.Comment.post_id == post_id)
            )
        return result.rowcount

    def comment_counts(self, post_ids: list[int]) -> dict[int, int]:
        if not post_ids:
            return {}
        with self._guard():
            rows = self.session.execute(
                select(models.Comment.post_id, func.count(models.Comment.id))
                .where(models.Comment.post_id.in_(post_ids))
                .group_by(models.Comment.post_id)
            ).all()
        return {post_id: count for post_id, count in rows}

    # ------------------------------------------------------------------
    # Units of work
    # ------------------------------------------------------------------

    def save(self, obj) -> None:
        """Commit pending changes to ``obj`` and reload it."""
        with self._guard():
            self.session.add(obj)
            self.session.commit()
            self.session.refresh(obj)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Commit everything done inside the block, or roll all of it back."""
        try:
            yield
            with self._guard():
                self.session.commit()
        except Exception:
            self.session.rollback()
            raise
