"""Authentication endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status

from .. import models, schemas
from ..auth import create_access_token, get_current_user
from ..deps import get_repository
from ..repository import BlogRepository
from ..services import accounts

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _auth_response(message: str, user: models.User) -> schemas.AuthResponse:
    return schemas.AuthResponse(
        message=message,
        token=create_access_token(user.user_key),
        user=schemas.UserFull.model_validate(user),
    )


@router.post(
    "/register",
    response_model=schemas.AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: schemas.RegisterRequest,
    repo: BlogRepository = Depends(get_repository),
) -> schemas.AuthResponse:
    """
    Register a new user and sign them in.

    - Email and username must be unique (409 otherwise)
    - Role defaults to USER; AUTHOR may be requested to write posts
    """
    user = accounts.register(
        repo,
        email=payload.email,
        username=payload.username,
        password=payload.password,
        role=payload.role,
    )
    return _auth_response("User registered successfully", user)


@router.post("/login", response_model=schemas.AuthResponse)
def login(
    payload: schemas.LoginRequest,
    repo: BlogRepository = Depends(get_repository),
) -> schemas.AuthResponse:
    """Login with email and password."""
    user = accounts.authenticate(repo, payload.email, payload.password)
    return _auth_response("Login successful", user)


@router.get("/me", response_model=schemas.UserFull)
def get_me(current_user: models.User = Depends(get_current_user)) -> schemas.UserFull:
    return schemas.UserFull.model_validate(current_user)
