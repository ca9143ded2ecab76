import os
import sys
from decimal import Decimal
from pathlib import Path

os.environ.setdefault("OTEL_TRACES_EXPORTER", "none")


def _configure_path() -> None:
    src_path = Path(__file__).resolve().parents[1] / "src"
    if src_path.exists():
        sys.path.insert(0, str(src_path))


_configure_path()

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy import select  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from midtrans_gateway.app import create_app  # noqa: E402
from midtrans_gateway.db.base import Base  # noqa: E402
from midtrans_gateway.db.session import get_session  # noqa: E402
from midtrans_gateway.models import Client, Country, Invoice, InvoiceLineItem, InvoiceStatusEnum  # noqa: E402
from midtrans_gateway.services.midtrans import MidtransGatewayConfig  # noqa: E402


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    try:
        yield factory
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def app_with_db(session_factory):
    app = create_app()

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session

    try:
        yield app, session_factory
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def midtrans_config() -> MidtransGatewayConfig:
    return MidtransGatewayConfig(
        merchant_id="M-LIVE",
        client_key="Mid-client-live",
        server_key="Mid-server-live",
        sandbox_merchant_id="G-SANDBOX",
        sandbox_client_key="SB-Mid-client-test",
        sandbox_server_key="SB-Mid-server-test",
        use_sandbox=True,
        payment_mode="popup",
        default_country_code="IDN",
        gateway_id=7,
    )


@pytest.fixture
def persist_invoice(session_factory):
    """Store a client with one invoice and return the invoice id."""

    async def _persist(
        *,
        lines: list[tuple[str, str, int, bool]] | None = None,
        taxrate: str = "0",
        phone: str | None = "08123456789",
        country: str | None = "IDN",
        status: InvoiceStatusEnum = InvoiceStatusEnum.UNPAID,
        invoice_hash: str = "inv-hash-1001",
    ) -> int:
        async with session_factory() as session:
            known = await session.execute(select(Country).where(Country.iso3 == "IDN"))
            if known.scalar_one_or_none() is None:
                session.add(Country(iso3="IDN", iso2="ID", name="Indonesia", phone_code="62"))
            client = Client(
                first_name="Budi",
                last_name="Santoso",
                email="budi@example.com",
                phone=phone,
                country=country,
                address="Jl. Sudirman 1",
                city="Jakarta",
                postcode="10220",
                balance=Decimal("0"),
            )
            session.add(client)
            await session.flush()

            invoice = Invoice(
                client_id=client.id,
                hash=invoice_hash,
                status=status,
                currency="IDR",
                taxrate=Decimal(taxrate),
            )
            for position, (title, price, quantity, taxed) in enumerate(lines or [("Hosting plan", "150000", 1, False)]):
                invoice.line_items.append(
                    InvoiceLineItem(
                        title=title,
                        price=Decimal(price),
                        quantity=quantity,
                        taxed=taxed,
                        display_order=position,
                    )
                )
            session.add(invoice)
            await session.commit()
            return invoice.id

    return _persist
