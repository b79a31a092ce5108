"""System endpoints (welcome, health)."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter

from .. import schemas

router = APIRouter(prefix="", tags=["System"])
logger = logging.getLogger(__name__)

# Global startup time for uptime calculation
_STARTUP_TIME = time.time()


@router.get("/", response_model=schemas.Message)
def welcome() -> schemas.Message:
    return schemas.Message(message="Welcome to the Blog API")


@router.get("/health", response_model=schemas.HealthResponse)
def get_health() -> schemas.HealthResponse:
    """Liveness check."""
    uptime_s = time.time() - _STARTUP_TIME
    return schemas.HealthResponse(status="ok", uptime_s=uptime_s)
