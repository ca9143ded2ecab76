"""Phone number canonicalisation for Snap customer details."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from midtrans_gateway.services.billing.countries import PhoneCodeLookup

if TYPE_CHECKING:
    from loguru import Logger

_NON_DIGITS = re.compile(r"\D")


@dataclass(slots=True, frozen=True)
class NormalizedPhone:
    country_code: str | None
    number: str
    full_number: str


class PhoneNormalizer:
    """Prefix local numbers with the country dialing code; never raises."""

    def __init__(
        self,
        lookup: PhoneCodeLookup,
        *,
        default_country_code: str = "IDN",
        log: "Logger | None" = None,
    ) -> None:
        self._lookup = lookup
        self._default_country_code = default_country_code
        self._log = log or logger.bind(component="midtrans.phone")

    async def normalize(self, phone: str | None, country_code: str | None = None) -> NormalizedPhone:
        digits = _NON_DIGITS.sub("", phone or "")
        country = country_code or self._default_country_code
        prefix = await self._resolve_prefix(country)

        if prefix and not digits.startswith(prefix):
            if digits.startswith("0"):
                digits = digits[1:]
            digits = f"{prefix}{digits}"

        return NormalizedPhone(
            country_code=prefix,
            number=digits[len(prefix):] if prefix else digits,
            full_number=f"+{digits}",
        )

    async def _resolve_prefix(self, country_code: str) -> str | None:
        try:
            return await self._lookup.get_phone_code(country_code)
        except Exception as exc:
            self._log.warning(
                "Failed to resolve dialing prefix; phone left unnormalized",
                country_code=country_code,
                error=str(exc),
            )
            return None


__all__ = ["NormalizedPhone", "PhoneNormalizer"]
