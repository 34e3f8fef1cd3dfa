"""FastAPI application factory and configuration."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel
from starlette.middleware.sessions import SessionMiddleware

from . import models  # noqa: F401 - ensure models are registered with SQLModel
from .api import register_routes
from .api.routers.auth import build_oauth
from .core import (
    Clock,
    Settings,
    configure_logging,
    create_db_engine,
    load_settings,
    system_clock,
)
from .league import build_league
from .services.mail import MailSender


def create_app(
    settings: Optional[Settings] = None,
    *,
    engine: Optional[Engine] = None,
    clock: Clock = system_clock,
    mail: Optional[MailSender] = None,
    background_rollups: bool = True,
) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)
    engine = engine or create_db_engine(settings.database_url)

    # One worker keeps automatic rollups from overlapping each other.
    executor = (
        ThreadPoolExecutor(max_workers=1, thread_name_prefix="rollup")
        if background_rollups
        else None
    )
    league = build_league(settings, engine, clock=clock, mail=mail, executor=executor)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.db_reset:
            SQLModel.metadata.drop_all(engine)
        SQLModel.metadata.create_all(engine)
        yield
        if executor is not None:
            executor.shutdown(wait=True)

    app = FastAPI(title="Pitwall League API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.league = league
    app.state.oauth = build_oauth(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.secret_key,
        session_cookie="sid",
        https_only=settings.cookie_secure,
        same_site=settings.cookie_samesite,
        domain=settings.cookie_domain,
    )

    register_routes(app)
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("pitwall.app:create_app", factory=True, host="127.0.0.1", port=3000, reload=True)
