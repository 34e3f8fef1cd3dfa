"""System-level API endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ...league import League
from ..deps import get_league

router = APIRouter(tags=["system"])


@router.get("/health")
def health() -> Dict[str, bool]:
    """Simple readiness probe."""

    return {"ok": True}


@router.get("/healthz")
def healthz() -> JSONResponse:
    """Kubernetes-style readiness endpoint."""

    return JSONResponse({"ok": True})


@router.get("/config")
def get_config(league: League = Depends(get_league)) -> Dict[str, Any]:
    """Expose frontend configuration values."""

    settings = league.settings
    return {
        "frontend_origin": settings.frontend_origin,
        "demo_mode": settings.demo_mode,
        "email_configured": league.mail.configured,
        "google_login": bool(settings.google_client_id and settings.google_client_secret),
    }


__all__ = ["router"]
