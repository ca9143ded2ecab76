"""Midtrans checkout, notification and status endpoints."""

from __future__ import annotations

from typing import Any, AsyncIterator

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from midtrans_gateway.api.dependencies.security import require_checkout_api_key
from midtrans_gateway.core.settings import settings
from midtrans_gateway.db.session import get_session
from midtrans_gateway.observability.payments import get_payment_store
from midtrans_gateway.services.midtrans import (
    MidtransConnectivityError,
    MidtransGatewayConfig,
    MidtransPaymentAdapter,
    MidtransProtocolError,
    gateway_config,
)

router = APIRouter(prefix="/billing", tags=["midtrans"])


def get_midtrans_config() -> MidtransGatewayConfig:
    return MidtransGatewayConfig.from_settings(settings)


def get_midtrans_http_client(request: Request) -> httpx.AsyncClient | None:
    return getattr(request.app.state, "midtrans_http_client", None)


async def get_midtrans_adapter(
    session: AsyncSession = Depends(get_session),
    config: MidtransGatewayConfig = Depends(get_midtrans_config),
    http_client: httpx.AsyncClient | None = Depends(get_midtrans_http_client),
) -> AsyncIterator[MidtransPaymentAdapter]:
    adapter = MidtransPaymentAdapter(
        session,
        config,
        frontend_url=settings.frontend_url,
        http_client=http_client,
    )
    try:
        yield adapter
    finally:
        await adapter.aclose()


@router.get(
    "/midtrans/invoices/{invoice_id}/checkout",
    response_class=HTMLResponse,
    summary="Render the Snap checkout widget for an invoice",
)
async def render_invoice_checkout(
    invoice_id: int,
    adapter: MidtransPaymentAdapter = Depends(get_midtrans_adapter),
) -> HTMLResponse:
    return HTMLResponse(content=await adapter.get_html(invoice_id))


@router.post("/webhooks/midtrans", summary="Midtrans HTTP notification receiver")
async def midtrans_notification(
    request: Request,
    adapter: MidtransPaymentAdapter = Depends(get_midtrans_adapter),
) -> dict[str, str]:
    """Apply a Midtrans notification; any rejection answers 400 so Midtrans redelivers."""

    payload = await request.body()
    result = await adapter.handle_notification(payload)
    if not result.accepted:
        logger.warning(
            "Midtrans notification not accepted",
            order_id=result.order_id,
            transaction_status=result.transaction_status,
        )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Notification rejected")
    return {"status": "processed"}


@router.get(
    "/midtrans/orders/{order_id}/status",
    dependencies=[Depends(require_checkout_api_key)],
    summary="Fetch provider-side transaction status",
)
async def midtrans_order_status(
    order_id: str,
    adapter: MidtransPaymentAdapter = Depends(get_midtrans_adapter),
) -> dict[str, Any]:
    try:
        return await adapter.verify_transaction_status(order_id)
    except (MidtransConnectivityError, MidtransProtocolError) as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc


@router.get(
    "/midtrans/gateway",
    dependencies=[Depends(require_checkout_api_key)],
    summary="Gateway capabilities and configuration form",
)
async def midtrans_gateway_config() -> dict[str, Any]:
    return gateway_config()


@router.get(
    "/midtrans/observability",
    dependencies=[Depends(require_checkout_api_key)],
    summary="Checkout and notification counters",
)
async def midtrans_observability() -> dict[str, object]:
    return get_payment_store().snapshot().as_dict()
