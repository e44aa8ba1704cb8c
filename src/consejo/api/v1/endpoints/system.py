"""System and transparency endpoints for the Consejo API."""

from __future__ import annotations

import time

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from consejo.api.v1.dependencies import SessionDep
from consejo.core.settings import settings
from consejo.schemas.policy import PolicyConfigResponse
from consejo.services.policy import get_policy

router = APIRouter(prefix="/system", tags=["system", "transparency"])


@router.get("/config")
async def get_public_config(db: SessionDep) -> dict[str, object]:
    """Return the public runtime configuration and the active voting policy.

    Excludes secrets and connection strings; suitable for transparency UIs.
    """
    policy = get_policy(db)
    db.commit()
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
            "debug": settings.debug,
        },
        "policy": PolicyConfigResponse.model_validate(policy).model_dump(),
        "limits": {
            "daily_approval_cap": settings.daily_approval_cap,
            "vote_comment_min_length": settings.vote_comment_min_length,
            "membership_request_min_length": settings.membership_request_min_length,
        },
    }


@router.get("/health")
async def get_system_health(db: SessionDep) -> dict[str, object]:
    """Health check that also verifies database connectivity."""
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError as e:
        db_status = f"unhealthy: {e}"

    return {
        "status": "healthy" if db_status == "healthy" else "unhealthy",
        "timestamp": int(time.time()),
        "components": {"database": db_status},
        "version": settings.app_version,
    }
