"""Country reference lookups."""

from __future__ import annotations

from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from midtrans_gateway.models.country import Country
from .ledger import BillingRecordNotFound


class PhoneCodeLookup(Protocol):
    """Resolves an ISO 3166-1 alpha-3 code to a numeric dialing prefix."""

    async def get_phone_code(self, country_code: str) -> str | None:
        ...


class CountryDirectory:
    """Country table backed implementation of :class:`PhoneCodeLookup`."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_country(self, country_code: str) -> Country:
        code = (country_code or "").strip().upper()
        if not code:
            raise BillingRecordNotFound("Country code is required")
        stmt = select(Country).where(Country.iso3 == code)
        result = await self._session.execute(stmt)
        country = result.scalar_one_or_none()
        if country is None:
            raise BillingRecordNotFound(f"Country not found: {code}")
        return country

    async def get_phone_code(self, country_code: str) -> str | None:
        country = await self.get_country(country_code)
        digits = "".join(ch for ch in (country.phone_code or "") if ch.isdigit())
        return digits or None


__all__ = ["CountryDirectory", "PhoneCodeLookup"]
