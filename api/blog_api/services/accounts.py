"""Account registration and password login."""

from __future__ import annotations

import logging
import re

from passlib.context import CryptContext

from .. import models, settings
from ..errors import Conflict, Forbidden, InvalidInput, Unauthenticated
from ..repository import BlogRepository

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS
)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_-]*$")


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_registration(email: str, username: str, password: str) -> None:
    """Raise InvalidInput describing the first problem with a registration."""
    if not EMAIL_PATTERN.match(email):
        raise InvalidInput("Please provide a valid email")

    if len(username) < settings.USERNAME_MIN_LENGTH:
        raise InvalidInput(
            f"Username must be at least {settings.USERNAME_MIN_LENGTH} characters"
        )
    if not USERNAME_PATTERN.match(username):
        raise InvalidInput(
            "Username can only contain letters, numbers, hyphens, and underscores, "
            "and must start with a letter or number"
        )

    if len(password) < settings.PASSWORD_MIN_LENGTH:
        raise InvalidInput(
            f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters"
        )


def register(
    repo: BlogRepository,
    email: str,
    username: str,
    password: str,
    role: models.Role = models.Role.USER,
    allow_admin: bool = False,
) -> models.User:
    """
    Create a new account.

    Email is stored lowercased; both email and username must be unique.
    ADMIN accounts are only created by seeding (``allow_admin``).
    """
    email = normalize_email(email)
    username = username.strip()
    validate_registration(email, username, password)

    if models.Role(role) is models.Role.ADMIN and not allow_admin:
        raise Forbidden("Admin accounts cannot be self-registered")

    if repo.get_user_by_email(email):
        raise Conflict("An account with this email already exists")
    if repo.get_user_by_username(username):
        raise Conflict("This username is already taken")

    user = models.User(
        email=email,
        username=username,
        password_hash=hash_password(password),
        role=models.Role(role).value,
    )
    user = repo.add_user(user)
    logger.info(f"Registered user {user.id} with role {user.role}")
    return user


def authenticate(repo: BlogRepository, email: str, password: str) -> models.User:
    """Return the user for valid credentials, else raise Unauthenticated."""
    user = repo.get_user_by_email(normalize_email(email))
    if not user or not verify_password(password, user.password_hash):
        raise Unauthenticated("Invalid email or password")
    return user
