from sqlalchemy import Column, Integer, String

from midtrans_gateway.db.base import Base


class Country(Base):
    """Country reference data used to resolve phone dialing prefixes."""

    __tablename__ = "countries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    iso3 = Column(String(3), nullable=False, unique=True, index=True)
    iso2 = Column(String(2), nullable=True)
    name = Column(String(128), nullable=False)
    phone_code = Column(String(8), nullable=True)


__all__ = ["Country"]
