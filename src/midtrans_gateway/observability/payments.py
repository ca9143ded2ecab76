"""In-memory observability helper for Snap checkout and Midtrans notification flows."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Dict


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass
class CheckoutEventLog:
    last_success_at: datetime | None = None
    last_success_invoice_id: int | None = None
    last_failure_at: datetime | None = None
    last_failure_invoice_id: int | None = None
    last_failure_reason: str | None = None


@dataclass
class NotificationEventLog:
    last_event_at: datetime | None = None
    last_transaction_status: str | None = None
    last_order_id: str | None = None
    last_failure_at: datetime | None = None
    last_failure_order_id: str | None = None
    last_failure_reason: str | None = None


@dataclass
class PaymentObservabilitySnapshot:
    checkout_totals: Dict[str, int]
    notification_totals: Dict[str, Dict[str, int]]
    credits: int
    checkout_events: CheckoutEventLog
    notification_events: NotificationEventLog

    def as_dict(self) -> Dict[str, object]:
        return {
            "checkout": {
                "totals": self.checkout_totals,
                "events": {
                    "last_success_at": _iso(self.checkout_events.last_success_at),
                    "last_success_invoice_id": self.checkout_events.last_success_invoice_id,
                    "last_failure_at": _iso(self.checkout_events.last_failure_at),
                    "last_failure_invoice_id": self.checkout_events.last_failure_invoice_id,
                    "last_failure_reason": self.checkout_events.last_failure_reason,
                },
            },
            "notifications": {
                "totals": self.notification_totals,
                "credits": self.credits,
                "events": {
                    "last_event_at": _iso(self.notification_events.last_event_at),
                    "last_transaction_status": self.notification_events.last_transaction_status,
                    "last_order_id": self.notification_events.last_order_id,
                    "last_failure_at": _iso(self.notification_events.last_failure_at),
                    "last_failure_order_id": self.notification_events.last_failure_order_id,
                    "last_failure_reason": self.notification_events.last_failure_reason,
                },
            },
        }


@dataclass
class PaymentObservabilityStore:
    _lock: Lock = field(default_factory=Lock)
    _checkout_totals: Counter = field(default_factory=Counter)
    _checkout_events: CheckoutEventLog = field(default_factory=CheckoutEventLog)
    _notification_totals: Dict[str, Counter] = field(
        default_factory=lambda: {"processed": Counter(), "rejected": Counter()}
    )
    _credits: int = 0
    _notification_events: NotificationEventLog = field(default_factory=NotificationEventLog)

    def record_checkout_success(self, invoice_id: int, mode: str) -> None:
        with self._lock:
            self._checkout_totals["succeeded"] += 1
            self._checkout_totals[f"mode:{mode}"] += 1
            self._checkout_events.last_success_at = _utcnow()
            self._checkout_events.last_success_invoice_id = invoice_id

    def record_checkout_failure(self, invoice_id: int, reason: str) -> None:
        with self._lock:
            self._checkout_totals["failed"] += 1
            self._checkout_events.last_failure_at = _utcnow()
            self._checkout_events.last_failure_invoice_id = invoice_id
            self._checkout_events.last_failure_reason = reason

    def record_notification(
        self,
        transaction_status: str | None,
        *,
        accepted: bool,
        order_id: str | None,
        credited: bool = False,
        error: str | None = None,
    ) -> None:
        status_key = transaction_status or "unknown"
        with self._lock:
            bucket = "processed" if accepted else "rejected"
            self._notification_totals[bucket][status_key] += 1
            if credited:
                self._credits += 1
            now = _utcnow()
            self._notification_events.last_event_at = now
            self._notification_events.last_transaction_status = status_key
            self._notification_events.last_order_id = order_id
            if not accepted:
                self._notification_events.last_failure_at = now
                self._notification_events.last_failure_order_id = order_id
                self._notification_events.last_failure_reason = error

    def snapshot(self) -> PaymentObservabilitySnapshot:
        with self._lock:
            return PaymentObservabilitySnapshot(
                checkout_totals=dict(self._checkout_totals),
                notification_totals={bucket: dict(counter) for bucket, counter in self._notification_totals.items()},
                credits=self._credits,
                checkout_events=CheckoutEventLog(**vars(self._checkout_events)),
                notification_events=NotificationEventLog(**vars(self._notification_events)),
            )

    def reset(self) -> None:
        with self._lock:
            self._checkout_totals.clear()
            for counter in self._notification_totals.values():
                counter.clear()
            self._credits = 0
            self._checkout_events = CheckoutEventLog()
            self._notification_events = NotificationEventLog()


_PAYMENT_STORE = PaymentObservabilityStore()


def get_payment_store() -> PaymentObservabilityStore:
    return _PAYMENT_STORE


__all__ = ["PaymentObservabilityStore", "PaymentObservabilitySnapshot", "get_payment_store"]
