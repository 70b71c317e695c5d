from __future__ import annotations

from fastapi import APIRouter, Depends

from ..deps import get_auth_context
from ..schemas import StatusResponse
from ..security import AuthContext


router = APIRouter(tags=["status"])


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/api/status", response_model=StatusResponse)
def api_status(ctx: AuthContext = Depends(get_auth_context)):
    return {"is_logged_in": True, "user": {"username": ctx.username, **ctx.as_flags()}}
