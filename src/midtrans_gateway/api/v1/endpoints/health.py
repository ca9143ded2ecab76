from __future__ import annotations

from typing import Dict, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from midtrans_gateway.core.settings import settings
from midtrans_gateway.db.session import get_session


router = APIRouter()


class ComponentStatus(BaseModel):
    status: Literal["ready", "disabled", "error"]
    detail: str | None = Field(default=None, description="Human readable status detail")


class ReadinessPayload(BaseModel):
    status: Literal["ready", "degraded", "error"]
    components: Dict[str, ComponentStatus]


@router.get("/health/livez", summary="Service liveness check")
async def service_health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/readyz", summary="Service readiness", response_model=ReadinessPayload)
async def service_readiness(session: AsyncSession = Depends(get_session)) -> ReadinessPayload:
    components: Dict[str, ComponentStatus] = {}
    overall: Literal["ready", "degraded", "error"] = "ready"

    try:
        await session.execute(text("SELECT 1"))
    except Exception as exc:
        components["database"] = ComponentStatus(status="error", detail=str(exc))
        overall = "error"
    else:
        components["database"] = ComponentStatus(status="ready")

    mode = "sandbox" if settings.midtrans_use_sandbox else "production"
    server_key = settings.midtrans_sandbox_server_key if settings.midtrans_use_sandbox else settings.midtrans_server_key
    if server_key:
        components["midtrans"] = ComponentStatus(status="ready", detail=f"{mode} credentials configured")
    else:
        components["midtrans"] = ComponentStatus(status="disabled", detail=f"{mode} server key missing")
        if overall == "ready":
            overall = "degraded"

    return ReadinessPayload(status=overall, components=components)
