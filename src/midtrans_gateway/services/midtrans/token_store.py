"""Per-invoice Snap token cache with a read-time TTL check."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from midtrans_gateway.models.snap_token import SnapTokenRecord

Clock = Callable[[], datetime]

DEFAULT_TOKEN_TTL = timedelta(seconds=3600)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(slots=True, frozen=True)
class StoredSnapToken:
    invoice_id: int
    token: str
    order_id: str
    created_at: datetime

    def is_valid(self, now: datetime, ttl: timedelta) -> bool:
        return now - self.created_at < ttl


class SnapTokenStore(Protocol):
    """Storage contract used by the issuer; TTL semantics belong to the implementation."""

    async def get(self, invoice_id: int) -> StoredSnapToken | None:
        ...

    async def put(self, invoice_id: int, token: str, order_id: str, now: datetime | None = None) -> StoredSnapToken:
        ...

    async def delete(self, invoice_id: int) -> None:
        ...


class SqlSnapTokenStore:
    """Keeps one token row per invoice in ``midtrans_snap_tokens``."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        ttl: timedelta = DEFAULT_TOKEN_TTL,
        clock: Clock = utcnow,
    ) -> None:
        self._session = session
        self._ttl = ttl
        self._clock = clock

    async def get(self, invoice_id: int) -> StoredSnapToken | None:
        row = await self._session.get(SnapTokenRecord, invoice_id, populate_existing=True)
        if row is None:
            return None

        stored = StoredSnapToken(
            invoice_id=row.invoice_id,
            token=row.token,
            order_id=row.order_id,
            created_at=_ensure_aware(row.created_at),
        )
        if stored.is_valid(_ensure_aware(self._clock()), self._ttl):
            return stored

        logger.info(
            "Evicting expired Snap token",
            invoice_id=invoice_id,
            order_id=stored.order_id,
            created_at=stored.created_at.isoformat(),
        )
        await self.delete(invoice_id)
        return None

    async def put(self, invoice_id: int, token: str, order_id: str, now: datetime | None = None) -> StoredSnapToken:
        created_at = _ensure_aware(now or self._clock())
        row = await self._session.get(SnapTokenRecord, invoice_id)
        if row is None:
            row = SnapTokenRecord(invoice_id=invoice_id)
            self._session.add(row)
        row.token = token
        row.order_id = order_id
        row.created_at = created_at
        try:
            await self._session.commit()
        except IntegrityError:
            # Another checkout stored a token for this invoice first; last writer wins.
            await self._session.rollback()
            logger.info("Overwriting concurrently stored Snap token", invoice_id=invoice_id, order_id=order_id)
            row = await self._session.get(SnapTokenRecord, invoice_id, populate_existing=True)
            if row is None:
                raise
            row.token = token
            row.order_id = order_id
            row.created_at = created_at
            await self._session.commit()

        logger.info("Stored Snap token", invoice_id=invoice_id, order_id=order_id)
        return StoredSnapToken(invoice_id=invoice_id, token=token, order_id=order_id, created_at=created_at)

    async def delete(self, invoice_id: int) -> None:
        row = await self._session.get(SnapTokenRecord, invoice_id)
        if row is None:
            return
        await self._session.delete(row)
        await self._session.commit()


__all__ = ["SnapTokenStore", "SqlSnapTokenStore", "StoredSnapToken", "utcnow"]
