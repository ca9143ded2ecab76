from __future__ import annotations

import json
from decimal import Decimal

import httpx
import pytest
from sqlalchemy import select

from midtrans_gateway.models import (
    Client,
    ClientBalanceEntry,
    Invoice,
    InvoiceStatusEnum,
    MidtransTransaction,
    TransactionStatusEnum,
)
from midtrans_gateway.observability.payments import PaymentObservabilityStore
from midtrans_gateway.services.midtrans import MidtransPaymentAdapter
from midtrans_gateway.services.midtrans.notifications import (
    MidtransNotificationProcessor,
    compute_signature,
    invoice_id_from_order_id,
)

SERVER_KEY = "SB-Mid-server-test"


def _notification(invoice_id: int, transaction_status: str, **overrides) -> dict:
    payload = {
        "order_id": f"{invoice_id}-1772352000-0",
        "status_code": "200" if transaction_status in {"capture", "settlement"} else "201",
        "gross_amount": "150000.00",
        "currency": "IDR",
        "payment_type": "bank_transfer",
        "transaction_id": "9aed5972-5b6a-401e-894b-a32c91ed1a3a",
        "transaction_status": transaction_status,
        "va_numbers": [{"bank": "bca", "va_number": "12345678901"}],
    }
    payload.update(overrides)
    payload.setdefault(
        "signature_key",
        compute_signature(payload["order_id"], payload["status_code"], payload["gross_amount"], SERVER_KEY),
    )
    return payload


async def _process(session_factory, config, payload) -> bool:
    raw = payload if isinstance(payload, (bytes, str)) else json.dumps(payload)
    async with session_factory() as session:
        return await MidtransNotificationProcessor(session, config).process(raw)


async def _state(session_factory, invoice_id: int):
    async with session_factory() as session:
        invoice = await session.get(Invoice, invoice_id)
        client = await session.get(Client, invoice.client_id)
        transactions = (
            await session.execute(select(MidtransTransaction).where(MidtransTransaction.invoice_id == invoice_id))
        ).scalars().all()
        entries = (await session.execute(select(ClientBalanceEntry))).scalars().all()
        return invoice, client, list(transactions), list(entries)


def test_signature_matches_reference_digest():
    digest = compute_signature("1001-1772352000-0", "200", "150000.00", SERVER_KEY)

    assert len(digest) == 128
    assert digest == compute_signature("1001-1772352000-0", "200", "150000.00", SERVER_KEY)
    assert digest != compute_signature("1001-1772352000-0", "200", "150000.01", SERVER_KEY)


def test_invoice_id_is_first_order_id_segment():
    assert invoice_id_from_order_id("42-1772352000-2") == 42


@pytest.mark.asyncio
async def test_settlement_credits_client_and_marks_invoice_paid(session_factory, persist_invoice, midtrans_config):
    invoice_id = await persist_invoice()

    assert await _process(session_factory, midtrans_config, _notification(invoice_id, "settlement")) is True

    invoice, client, transactions, entries = await _state(session_factory, invoice_id)
    assert invoice.status == InvoiceStatusEnum.PAID
    assert invoice.paid_at is not None
    assert client.balance == Decimal("150000.00")
    assert len(entries) == 1
    assert entries[0].description == f"Payment for invoice #{invoice_id} via Bank Transfer bca (12345678901)"
    assert entries[0].metadata_json["transaction_id"] == "9aed5972-5b6a-401e-894b-a32c91ed1a3a"
    [transaction] = transactions
    assert transaction.status == TransactionStatusEnum.COMPLETE
    assert transaction.txn_status == "settlement"
    assert transaction.amount == Decimal("150000.00")
    assert transaction.gateway_id == 7


@pytest.mark.asyncio
async def test_tampered_signature_is_rejected_without_writes(session_factory, persist_invoice, midtrans_config):
    invoice_id = await persist_invoice()
    payload = _notification(invoice_id, "capture", signature_key="0" * 128)

    assert await _process(session_factory, midtrans_config, payload) is False

    invoice, client, transactions, entries = await _state(session_factory, invoice_id)
    assert invoice.status == InvoiceStatusEnum.UNPAID
    assert client.balance == Decimal("0")
    assert transactions == []
    assert entries == []


@pytest.mark.asyncio
async def test_signature_from_other_mode_key_is_rejected(session_factory, persist_invoice, midtrans_config):
    invoice_id = await persist_invoice()
    payload = _notification(invoice_id, "capture")
    payload["signature_key"] = compute_signature(
        payload["order_id"], payload["status_code"], payload["gross_amount"], "Mid-server-live"
    )

    assert await _process(session_factory, midtrans_config, payload) is False


@pytest.mark.asyncio
async def test_duplicate_capture_credits_once_but_refreshes_snapshot(
    session_factory, persist_invoice, midtrans_config
):
    invoice_id = await persist_invoice()

    first = _notification(invoice_id, "capture", payment_type="credit_card", bank="bca", card_type="credit")
    second = _notification(invoice_id, "capture", transaction_id="second-delivery", payment_type="credit_card")
    assert await _process(session_factory, midtrans_config, first) is True
    assert await _process(session_factory, midtrans_config, second) is True

    invoice, client, transactions, entries = await _state(session_factory, invoice_id)
    assert invoice.status == InvoiceStatusEnum.PAID
    assert client.balance == Decimal("150000.00")
    assert len(entries) == 1
    [transaction] = transactions
    assert transaction.txn_id == "second-delivery"
    assert transaction.status == TransactionStatusEnum.COMPLETE


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("transaction_status", "expected"),
    [
        ("pending", TransactionStatusEnum.PENDING),
        ("deny", TransactionStatusEnum.FAILED),
        ("expire", TransactionStatusEnum.FAILED),
        ("cancel", TransactionStatusEnum.FAILED),
        ("authorize", None),
    ],
)
async def test_status_mapping(session_factory, persist_invoice, midtrans_config, transaction_status, expected):
    invoice_id = await persist_invoice()

    assert await _process(session_factory, midtrans_config, _notification(invoice_id, transaction_status)) is True

    invoice, client, transactions, entries = await _state(session_factory, invoice_id)
    [transaction] = transactions
    assert transaction.status == expected
    assert transaction.txn_status == transaction_status
    assert invoice.status == InvoiceStatusEnum.UNPAID
    assert entries == []


@pytest.mark.asyncio
async def test_pending_then_settlement_updates_same_row(session_factory, persist_invoice, midtrans_config):
    invoice_id = await persist_invoice()

    assert await _process(session_factory, midtrans_config, _notification(invoice_id, "pending")) is True
    assert await _process(session_factory, midtrans_config, _notification(invoice_id, "settlement")) is True

    _, _, transactions, _ = await _state(session_factory, invoice_id)
    assert len(transactions) == 1
    assert transactions[0].status == TransactionStatusEnum.COMPLETE


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", [b"{not json", b"[]", b""])
async def test_malformed_payload_fails_closed(session_factory, midtrans_config, raw):
    assert await _process(session_factory, midtrans_config, raw) is False


@pytest.mark.asyncio
async def test_unknown_invoice_is_reported_as_failure(session_factory, midtrans_config):
    assert await _process(session_factory, midtrans_config, _notification(999, "settlement")) is False


@pytest.mark.asyncio
async def test_is_valid_checks_signature_only(session_factory, persist_invoice, midtrans_config):
    invoice_id = await persist_invoice()
    good = json.dumps(_notification(invoice_id, "settlement"))
    bad = json.dumps(_notification(invoice_id, "settlement", signature_key="deadbeef"))

    async with session_factory() as session:
        processor = MidtransNotificationProcessor(session, midtrans_config)
        assert processor.is_valid(good) is True
        assert processor.is_valid(bad) is False
        assert processor.is_valid("not json") is False

    invoice, _, transactions, _ = await _state(session_factory, invoice_id)
    assert invoice.status == InvoiceStatusEnum.UNPAID
    assert transactions == []


@pytest.mark.asyncio
async def test_failed_commit_reports_no_credit(session_factory, persist_invoice, midtrans_config, monkeypatch):
    invoice_id = await persist_invoice()
    store = PaymentObservabilityStore()

    async def failing_commit() -> None:
        raise RuntimeError("commit failed")

    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(500))) as http_client:
        async with session_factory() as session:
            monkeypatch.setattr(session, "commit", failing_commit)
            adapter = MidtransPaymentAdapter(
                session,
                midtrans_config,
                frontend_url="https://billing.example.com",
                http_client=http_client,
                observability=store,
            )
            result = await adapter.handle_notification(json.dumps(_notification(invoice_id, "settlement")))

    assert result.accepted is False
    assert result.credited is False
    assert result.error == "commit failed"
    snapshot = store.snapshot()
    assert snapshot.credits == 0
    assert snapshot.notification_totals["rejected"] == {"settlement": 1}

    invoice, client, transactions, entries = await _state(session_factory, invoice_id)
    assert invoice.status == InvoiceStatusEnum.UNPAID
    assert client.balance == Decimal("0")
    assert entries == []
