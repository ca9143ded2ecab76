from __future__ import annotations

import pytest

from midtrans_gateway.models import Country
from midtrans_gateway.services.billing import CountryDirectory
from midtrans_gateway.services.midtrans.phone import PhoneNormalizer


class StaticLookup:
    def __init__(self, codes: dict[str, str]) -> None:
        self.codes = codes
        self.calls: list[str] = []

    async def get_phone_code(self, country_code: str) -> str | None:
        self.calls.append(country_code)
        return self.codes.get(country_code)


class FailingLookup:
    async def get_phone_code(self, country_code: str) -> str | None:
        raise RuntimeError("country service unavailable")


@pytest.mark.asyncio
async def test_local_number_gets_country_prefix():
    normalizer = PhoneNormalizer(StaticLookup({"IDN": "62"}))

    result = await normalizer.normalize("08123456789", "IDN")

    assert result.full_number == "+628123456789"
    assert result.country_code == "62"
    assert result.number == "8123456789"


@pytest.mark.asyncio
async def test_prefixed_number_is_left_unchanged():
    normalizer = PhoneNormalizer(StaticLookup({"IDN": "62"}))

    result = await normalizer.normalize("+62 812-3456-789", "IDN")

    assert result.full_number == "+628123456789"


@pytest.mark.asyncio
async def test_missing_country_uses_default():
    lookup = StaticLookup({"SGP": "65"})
    normalizer = PhoneNormalizer(lookup, default_country_code="SGP")

    result = await normalizer.normalize("91234567")

    assert lookup.calls == ["SGP"]
    assert result.full_number == "+6591234567"


@pytest.mark.asyncio
async def test_lookup_failure_keeps_digits_without_prefix():
    normalizer = PhoneNormalizer(FailingLookup())

    result = await normalizer.normalize("(0812) 345", "IDN")

    assert result.country_code is None
    assert result.full_number == "+0812345"


@pytest.mark.asyncio
async def test_country_directory_feeds_normalizer(session_factory):
    async with session_factory() as session:
        session.add(Country(iso3="MYS", iso2="MY", name="Malaysia", phone_code="+60"))
        await session.commit()

        normalizer = PhoneNormalizer(CountryDirectory(session))

        known = await normalizer.normalize("012-3456789", "mys")
        unknown = await normalizer.normalize("5551234", "ZZZ")

    assert known.full_number == "+60123456789"
    assert unknown.country_code is None
    assert unknown.full_number == "+5551234"
