"""Aggregate API routers."""

from fastapi import APIRouter

from .auth import router as auth_router
from .invitations import router as invitations_router
from .leaderboard import router as leaderboard_router
from .picks import router as picks_router
from .results import router as results_router
from .system import router as system_router
from .users import router as users_router

ALL_ROUTERS: tuple[APIRouter, ...] = (
    system_router,
    leaderboard_router,
    results_router,
    picks_router,
    invitations_router,
    users_router,
    auth_router,
)

__all__ = ["ALL_ROUTERS"]
