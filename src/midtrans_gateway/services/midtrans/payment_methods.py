"""Human readable labels for Midtrans ``payment_type`` codes."""

from __future__ import annotations

from typing import Any, Mapping

_FIXED_LABELS: dict[str, str] = {
    "gopay": "GoPay",
    "shopeepay": "ShopeePay",
    "akulaku": "Akulaku",
    "bca_klikpay": "BCA KlikPay",
    "bca_klikbca": "Klik BCA",
    "mandiri_clickpay": "Mandiri Clickpay",
    "echannel": "Mandiri Bill Payment",
    "cimb_clicks": "CIMB Clicks",
    "danamon_online": "Danamon Online Banking",
    "bri_epay": "BRI e-Pay",
    "indomaret": "Indomaret",
    "alfamart": "Alfamart",
    "ovo": "OVO",
    "dana": "DANA",
    "linkaja": "LinkAja",
}


def _field(notification: Mapping[str, Any], key: str) -> str:
    value = notification.get(key)
    return "" if value is None else str(value)


def _generic_label(payment_type: str) -> str:
    label = payment_type.replace("_", " ")
    return label[:1].upper() + label[1:]


def _first_va_entry(notification: Mapping[str, Any]) -> Mapping[str, Any]:
    va_numbers = notification.get("va_numbers")
    if isinstance(va_numbers, list) and va_numbers and isinstance(va_numbers[0], Mapping):
        return va_numbers[0]
    return {}


def describe_payment_method(notification: Mapping[str, Any]) -> str:
    """Describe the payment instrument of a notification, e.g. ``GoPay``."""

    payment_type = _field(notification, "payment_type")

    if payment_type == "credit_card":
        bank = _field(notification, "bank")
        card_type = _field(notification, "card_type")
        masked_card = _field(notification, "masked_card")
        return f"{_generic_label(payment_type)} ({bank} {card_type} {masked_card})"
    if payment_type == "bank_transfer":
        va_entry = _first_va_entry(notification)
        bank = va_entry.get("bank")
        if bank is None:
            bank = _field(notification, "bank")
        va_number = va_entry.get("va_number")
        if va_number is None:
            va_number = _field(notification, "permata_va_number")
        return f"Bank Transfer {bank} ({va_number})"
    if payment_type == "cstore":
        return f"{_field(notification, 'store')} Payment"
    if payment_type == "qris":
        return f"QRIS ({_field(notification, 'acquirer')})"
    if payment_type in _FIXED_LABELS:
        return _FIXED_LABELS[payment_type]
    return _generic_label(payment_type)


__all__ = ["describe_payment_method"]
