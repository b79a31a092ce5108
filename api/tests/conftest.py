from __future__ import annotations

import copy
import os
from contextlib import contextmanager
from typing import Callable, Generator, Iterator

# Must be set before blog_api is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from blog_api import models
from blog_api.auth import create_access_token
from blog_api.db import Base, SessionLocal, engine
from blog_api.errors import DependencyFailure
from blog_api.main import app, run_startup_tasks
from blog_api.repository import SqlAlchemyRepository
from blog_api.services import accounts


@pytest.fixture(scope="session", autouse=True)
def bootstrap() -> None:
    run_startup_tasks()


@pytest.fixture(autouse=True)
def clean_database() -> Generator[None, None, None]:
    """Every test starts from empty tables."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def make_user() -> Callable[..., dict]:
    """Create a user directly in the database and return its id, role and auth headers."""
    counter = {"n": 0}

    def _make_user(role: models.Role = models.Role.USER, username: str | None = None) -> dict:
        counter["n"] += 1
        username = username or f"{role.value.lower()}{counter['n']}"
        session = SessionLocal()
        try:
            user = accounts.register(
                SqlAlchemyRepository(session),
                email=f"{username}@example.com",
                username=username,
                password="password123",
                role=role,
                allow_admin=True,
            )
            token = create_access_token(user.user_key)
            return {
                "id": user.id,
                "username": user.username,
                "role": user.role,
                "user_key": user.user_key,
                "headers": {"Authorization": f"Bearer {token}"},
            }
        finally:
            session.close()

    return _make_user


@pytest.fixture()
def make_post(client: TestClient) -> Callable[..., dict]:
    """Create a post through the API as ``author``."""

    def _make_post(author: dict, published: bool = False, title: str = "A post title") -> dict:
        response = client.post(
            "/posts",
            headers=author["headers"],
            json={
                "title": title,
                "content": "Some content that is long enough.",
                "published": published,
            },
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _make_post


# ============================================================================
# IN-MEMORY REPOSITORY
# ============================================================================


class InMemoryRepository:
    """
    Dict-backed stand-in for SqlAlchemyRepository.

    Set ``fail_on`` to a method name to make that method raise
    DependencyFailure, simulating a database error mid-operation.
    """

    def __init__(self) -> None:
        self.users: dict[int, models.User] = {}
        self.posts: dict[int, models.Post] = {}
        self.comments: dict[int, models.Comment] = {}
        self.fail_on: str | None = None
        self._next_id = 1
        self._clock = 0

    def _maybe_fail(self, name: str) -> None:
        if self.fail_on == name:
            raise DependencyFailure(f"simulated failure in {name}")

    def _assign_id(self, obj) -> None:
        obj.id = self._next_id
        self._next_id += 1

    def get_user(self, user_id):
        return self.users.get(user_id)

    def get_user_by_key(self, user_key):
        return next((u for u in self.users.values() if u.user_key == user_key), None)

    def get_user_by_email(self, email):
        return next((u for u in self.users.values() if u.email == email), None)

    def get_user_by_username(self, username):
        return next((u for u in self.users.values() if u.username == username), None)

    def add_user(self, user):
        self._assign_id(user)
        self.users[user.id] = user
        return user

    def get_post(self, post_id):
        self._maybe_fail("get_post")
        return self.posts.get(post_id)

    def _newest_first(self, items):
        return sorted(sorted(items, key=lambda i: i.id), key=lambda i: i.created_at, reverse=True)

    def list_published_posts(self):
        return self._newest_first(p for p in self.posts.values() if p.published)

    def list_posts_by_author(self, author_id):
        return self._newest_first(p for p in self.posts.values() if p.author_id == author_id)

    def add_post(self, post):
        self._maybe_fail("add_post")
        self._assign_id(post)
        if post.published is None:
            post.published = False
        if post.created_at is None:
            self._clock += 1
            post.created_at = self._clock
        self.posts[post.id] = post
        return post

    def delete_post(self, post_id):
        self._maybe_fail("delete_post")
        return self.posts.pop(post_id, None) is not None

    def get_comment(self, comment_id):
        return self.comments.get(comment_id)

    def list_comments_for_post(self, post_id):
        return self._newest_first(c for c in self.comments.values() if c.post_id == post_id)

    def add_comment(self, comment):
        self._maybe_fail("add_comment")
        self._assign_id(comment)
        if comment.created_at is None:
            self._clock += 1
            comment.created_at = self._clock
        self.comments[comment.id] = comment
        return comment

    def delete_comment(self, comment_id):
        return self.comments.pop(comment_id, None) is not None

    def delete_comments_for_post(self, post_id):
        self._maybe_fail("delete_comments_for_post")
        doomed = [cid for cid, c in self.comments.items() if c.post_id == post_id]
        for cid in doomed:
            del self.comments[cid]
        return len(doomed)

    def comment_counts(self, post_ids):
        counts: dict[int, int] = {}
        for comment in self.comments.values():
            if comment.post_id in post_ids:
                counts[comment.post_id] = counts.get(comment.post_id, 0) + 1
        return counts

    def save(self, obj):
        self._maybe_fail("save")

    @contextmanager
    def atomic(self) -> Iterator[None]:
        snapshot = (copy.copy(self.posts), copy.copy(self.comments))
        try:
            yield
        except Exception:
            self.posts, self.comments = snapshot
            raise


@pytest.fixture()
def repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture()
def author(make_user) -> dict:
    return make_user(models.Role.AUTHOR)


@pytest.fixture()
def reader(make_user) -> dict:
    return make_user(models.Role.USER)


@pytest.fixture()
def admin(make_user) -> dict:
    return make_user(models.Role.ADMIN)
