"""Snap ``item_details`` construction with exact gross-amount reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Protocol

TAX_ITEM_ID = "TAX"
ADJUSTMENT_ITEM_ID = "ADJUSTMENT"
ITEM_NAME_LIMIT = 50


class BillableLine(Protocol):
    id: Any
    price: Any
    quantity: Any
    title: str


@dataclass(slots=True)
class SnapItemDetail:
    id: str
    price: int
    quantity: int
    name: str

    @property
    def amount(self) -> int:
        return self.price * self.quantity

    def as_payload(self) -> dict[str, Any]:
        return {"id": self.id, "price": self.price, "quantity": self.quantity, "name": self.name}


@dataclass(slots=True)
class ReconciledItems:
    """Item lines whose amounts sum to ``gross_amount``."""

    items: list[SnapItemDetail] = field(default_factory=list)
    gross_amount: int = 0

    @property
    def adjustment(self) -> int:
        for item in self.items:
            if item.id == ADJUSTMENT_ITEM_ID:
                return item.price
        return 0

    def as_payload(self) -> list[dict[str, Any]]:
        return [item.as_payload() for item in self.items]


def round_amount(value: Any) -> int:
    """Round to the nearest integer, halves away from zero."""

    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def reconcile_items(lines: Iterable[BillableLine], tax: Any, total: Any) -> ReconciledItems:
    """Build Snap item details that sum exactly to the invoice ``total``.

    Unit prices, tax and total are each rounded to whole minor units. The
    running sum is taken over the emitted ``price * quantity`` products, so the
    provider's own recomputation always matches ``gross_amount``. Any residual
    from upstream rounding is carried by a signed ``ADJUSTMENT`` line.
    """

    reconciled = ReconciledItems()
    running = 0
    for line in lines:
        detail = SnapItemDetail(
            id=str(line.id),
            price=round_amount(line.price),
            quantity=int(line.quantity),
            name=str(line.title or "")[:ITEM_NAME_LIMIT],
        )
        reconciled.items.append(detail)
        running += detail.amount

    rounded_tax = round_amount(tax)
    if rounded_tax > 0:
        reconciled.items.append(SnapItemDetail(id=TAX_ITEM_ID, price=rounded_tax, quantity=1, name="Tax"))
        running += rounded_tax

    rounded_total = round_amount(total)
    adjustment = rounded_total - running
    if adjustment != 0:
        reconciled.items.append(
            SnapItemDetail(id=ADJUSTMENT_ITEM_ID, price=adjustment, quantity=1, name="Adjustment")
        )
    reconciled.gross_amount = rounded_total
    return reconciled


__all__ = [
    "ADJUSTMENT_ITEM_ID",
    "ReconciledItems",
    "SnapItemDetail",
    "TAX_ITEM_ID",
    "reconcile_items",
    "round_amount",
]
