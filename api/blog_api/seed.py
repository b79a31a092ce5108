from __future__ import annotations

import logging
import os

from . import models
from .db import SessionLocal
from .repository import SqlAlchemyRepository
from .services import accounts

logger = logging.getLogger(__name__)


def ensure_seed_data() -> None:
    """
    Create the admin account named by ADMIN_EMAIL / ADMIN_USERNAME / ADMIN_PASSWORD.

    Does nothing when the variables are unset or when the email or username
    is already in use.
    Admins cannot register through the API, so this is the only way to get one.
    """
    email = os.getenv("ADMIN_EMAIL")
    username = os.getenv("ADMIN_USERNAME", "admin")
    password = os.getenv("ADMIN_PASSWORD")
    if not email or not password:
        logger.info("ensure_seed_data: ADMIN_EMAIL/ADMIN_PASSWORD not set, no admin to create.")
        return

    session = SessionLocal()
    try:
        repo = SqlAlchemyRepository(session)
        if repo.get_user_by_email(accounts.normalize_email(email)):
            logger.info("ensure_seed_data: Admin account already exists.")
            return
        if repo.get_user_by_username(username):
            logger.warning(
                f"ensure_seed_data: Username {username} is taken by another account, "
                "skipping admin creation. Set ADMIN_USERNAME to a free name."
            )
            return
        accounts.register(
            repo,
            email=email,
            username=username,
            password=password,
            role=models.Role.ADMIN,
            allow_admin=True,
        )
        logger.info(f"ensure_seed_data: Created admin account {username}.")
    finally:
        session.close()


if __name__ == "__main__":
    logging.basicConfig(level="INFO")
    ensure_seed_data()
