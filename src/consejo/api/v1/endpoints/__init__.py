# src/consejo/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .auth import router as auth_router
from .membership_requests import router as membership_requests_router
from .petitions import router as petitions_router
from .system import router as system_router
from .votes import router as votes_router

__all__ = [
    "admin_router",
    "auth_router",
    "membership_requests_router",
    "petitions_router",
    "system_router",
    "votes_router",
]
