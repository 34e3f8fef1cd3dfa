"""API assembly helpers."""

from __future__ import annotations

from fastapi import FastAPI

from ..core import LeagueError, league_error_handler
from .routers import ALL_ROUTERS


def register_routes(app: FastAPI) -> None:
    """Attach all routers and the league error handler to the given app."""

    app.add_exception_handler(LeagueError, league_error_handler)
    for router in ALL_ROUTERS:
        app.include_router(router)


__all__ = ["register_routes"]
