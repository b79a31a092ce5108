"""Centralized environment-driven settings.

Keep this module lightweight: stdlib only, no app imports, to avoid circular deps.
"""

from __future__ import annotations

import os


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _list_env(name: str, default: str) -> list[str]:
    raw = os.getenv(name) or default
    return [item.strip() for item in raw.split(",") if item.strip()]


# Minimum comment length, enforced before anything is written.
# Configured via .env: COMMENT_MIN_LENGTH=3
COMMENT_MIN_LENGTH: int = _int_env("COMMENT_MIN_LENGTH", 3)

POST_TITLE_MIN_LENGTH: int = _int_env("POST_TITLE_MIN_LENGTH", 3)
POST_CONTENT_MIN_LENGTH: int = _int_env("POST_CONTENT_MIN_LENGTH", 10)

USERNAME_MIN_LENGTH: int = _int_env("USERNAME_MIN_LENGTH", 3)
PASSWORD_MIN_LENGTH: int = _int_env("PASSWORD_MIN_LENGTH", 6)

# Comma-separated list of allowed origins, or "*"
CORS_ORIGINS: list[str] = _list_env("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")

# bcrypt work factor; tests lower it to keep hashing fast
BCRYPT_ROUNDS: int = _int_env("BCRYPT_ROUNDS", 12)
