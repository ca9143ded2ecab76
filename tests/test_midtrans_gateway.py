from __future__ import annotations

import json
from dataclasses import replace

import httpx
import pytest

from midtrans_gateway.observability.payments import PaymentObservabilityStore
from midtrans_gateway.services.midtrans import (
    MidtransPaymentAdapter,
    RecurringPaymentsUnsupported,
    compute_signature,
    gateway_config,
)


def _snap_handler(token: str = "snap-token-xyz"):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/status"):
            return httpx.Response(200, json={"transaction_status": "settlement", "order_id": "1-2-0"})
        return httpx.Response(201, json={"token": token})

    return handler


async def _adapter_call(session_factory, config, method, *args, handler=None, observability=None):
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler or _snap_handler())) as http_client:
        async with session_factory() as session:
            adapter = MidtransPaymentAdapter(
                session,
                config,
                frontend_url="https://billing.example.com",
                http_client=http_client,
                observability=observability or PaymentObservabilityStore(),
            )
            result = getattr(adapter, method)(*args)
            if hasattr(result, "__await__"):
                result = await result
            await adapter.aclose()
            return result


@pytest.mark.asyncio
async def test_popup_checkout_renders_pay_button(session_factory, persist_invoice, midtrans_config):
    invoice_id = await persist_invoice()
    store = PaymentObservabilityStore()

    markup = await _adapter_call(session_factory, midtrans_config, "get_html", invoice_id, observability=store)

    assert 'src="https://app.sandbox.midtrans.com/snap/snap.js"' in markup
    assert 'data-client-key="SB-Mid-client-test"' in markup
    assert 'id="pay-button"' in markup
    assert 'window.snap.pay("snap-token-xyz"' in markup
    assert '"https://billing.example.com/invoice/inv-hash-1001"' in markup
    assert store.snapshot().checkout_totals == {"succeeded": 1, "mode:popup": 1}


@pytest.mark.asyncio
async def test_embedded_checkout_renders_container(session_factory, persist_invoice, midtrans_config):
    invoice_id = await persist_invoice()
    live_embedded = replace(midtrans_config, payment_mode="embedded", use_sandbox=False)

    markup = await _adapter_call(session_factory, live_embedded, "get_html", invoice_id)

    assert '<div id="snap-container"' in markup
    assert 'window.snap.embed("snap-token-xyz"' in markup
    assert 'src="https://app.midtrans.com/snap/snap.js"' in markup
    assert 'data-client-key="Mid-client-live"' in markup
    assert "pay-button" not in markup


@pytest.mark.asyncio
async def test_checkout_failure_renders_error_string(session_factory, midtrans_config):
    store = PaymentObservabilityStore()

    markup = await _adapter_call(session_factory, midtrans_config, "get_html", 404, observability=store)

    assert markup == "Error: Invoice not found: 404"
    snapshot = store.snapshot()
    assert snapshot.checkout_totals == {"failed": 1}
    assert snapshot.checkout_events.last_failure_invoice_id == 404


@pytest.mark.asyncio
async def test_connectivity_failure_renders_error_string(session_factory, persist_invoice, midtrans_config):
    invoice_id = await persist_invoice()

    def offline(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("network unreachable", request=request)

    markup = await _adapter_call(session_factory, midtrans_config, "get_html", invoice_id, handler=offline)

    assert markup.startswith("Error: Failed to connect to Midtrans")


@pytest.mark.asyncio
async def test_repeat_checkout_reuses_token(session_factory, persist_invoice, midtrans_config):
    invoice_id = await persist_invoice()
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        return httpx.Response(201, json={"token": f"token-{len(calls)}"})

    first = await _adapter_call(session_factory, midtrans_config, "get_html", invoice_id, handler=handler)
    second = await _adapter_call(session_factory, midtrans_config, "get_html", invoice_id, handler=handler)

    assert '"token-1"' in first
    assert '"token-1"' in second
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_process_transaction_records_notification(session_factory, persist_invoice, midtrans_config):
    invoice_id = await persist_invoice()
    store = PaymentObservabilityStore()
    order_id = f"{invoice_id}-1772352000-0"
    payload = {
        "order_id": order_id,
        "status_code": "200",
        "gross_amount": "150000.00",
        "transaction_status": "settlement",
        "payment_type": "gopay",
        "transaction_id": "txn-1",
        "currency": "IDR",
        "signature_key": compute_signature(order_id, "200", "150000.00", "SB-Mid-server-test"),
    }

    accepted = await _adapter_call(
        session_factory, midtrans_config, "process_transaction", json.dumps(payload), observability=store
    )

    assert accepted is True
    snapshot = store.snapshot()
    assert snapshot.notification_totals["processed"] == {"settlement": 1}
    assert snapshot.credits == 1


@pytest.mark.asyncio
async def test_is_ipn_valid(session_factory, midtrans_config):
    payload = {"order_id": "5-1-0", "status_code": "200", "gross_amount": "10.00"}
    payload["signature_key"] = compute_signature("5-1-0", "200", "10.00", "SB-Mid-server-test")

    assert await _adapter_call(session_factory, midtrans_config, "is_ipn_valid", json.dumps(payload)) is True


@pytest.mark.asyncio
async def test_recurrent_payment_is_unsupported(session_factory, midtrans_config):
    with pytest.raises(RecurringPaymentsUnsupported):
        await _adapter_call(session_factory, midtrans_config, "recurrent_payment", 1)


@pytest.mark.asyncio
async def test_verify_transaction_status(session_factory, midtrans_config):
    body = await _adapter_call(session_factory, midtrans_config, "verify_transaction_status", "1-2-0")

    assert body["transaction_status"] == "settlement"


def test_gateway_config_lists_form_fields():
    config = gateway_config()

    assert config["supports_one_time_payments"] is True
    assert config["supports_subscriptions"] is False
    assert set(config["form"]) == {
        "merchant_id",
        "client_key",
        "server_key",
        "sandbox_merchant_id",
        "sandbox_client_key",
        "sandbox_server_key",
        "use_sandbox",
        "payment_mode",
        "default_country_code",
    }
