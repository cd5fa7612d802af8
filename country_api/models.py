from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Float, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, validates

from country_api.database import Base


def normalize_name(name: str) -> str:
    """Lookup key used for case-insensitive name uniqueness."""
    return name.strip().casefold()


class Country(Base):
    __tablename__ = "countries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Always derived from name; carries the unique constraint
    name_key: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    capital: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    region: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    population: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    currency_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True, index=True)
    exchange_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    estimated_gdp: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    flag_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_refreshed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    @validates("name")
    def _sync_name_key(self, key, value):
        self.name_key = normalize_name(value)
        return value

    def __repr__(self) -> str:
        return f"<Country id={self.id} name={self.name!r}>"
