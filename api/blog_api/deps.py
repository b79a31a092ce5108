from __future__ import annotations

from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from .db import get_session
from .repository import SqlAlchemyRepository


def get_db() -> Generator[Session, None, None]:
    yield from get_session()


def get_repository(db: Session = Depends(get_db)) -> SqlAlchemyRepository:
    return SqlAlchemyRepository(db)
