from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


# -----------------------------
# Upstream payloads
# -----------------------------
class UpstreamCurrency(BaseModel):
    model_config = {"extra": "ignore"}

    code: Optional[str] = None
    name: Optional[str] = None
    symbol: Optional[str] = None

    @field_validator("code", "name", "symbol", mode="before")
    @classmethod
    def _text_or_none(cls, v: Any):
        return v if isinstance(v, str) else None


class UpstreamCountry(BaseModel):
    """One entry of the RestCountries response, coerced best-effort."""

    model_config = {"extra": "ignore"}

    name: Optional[str] = None
    capital: Optional[str] = None
    region: Optional[str] = None
    population: int = 0
    flag: Optional[str] = None
    currencies: List[UpstreamCurrency] = Field(default_factory=list)

    @field_validator("name", "capital", "region", "flag", mode="before")
    @classmethod
    def _text_or_none(cls, v: Any):
        return v if isinstance(v, str) and v.strip() else None

    @field_validator("population", mode="before")
    @classmethod
    def _population(cls, v: Any):
        if isinstance(v, bool):
            return 0
        try:
            n = int(v)
        except (TypeError, ValueError):
            return 0
        return max(n, 0)

    @field_validator("currencies", mode="before")
    @classmethod
    def _currencies(cls, v: Any):
        if not isinstance(v, list):
            return []
        # keep positions so "first currency" still means the first entry
        return [c if isinstance(c, dict) else {} for c in v]


# -----------------------------
# Store inputs
# -----------------------------
NAME_MAX_LENGTH = 255


class CountryUpsert(BaseModel):
    """Normalized record produced by the reconciler and written by the store."""

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    capital: Optional[str] = None
    region: Optional[str] = None
    population: int = Field(0, ge=0)
    currency_code: Optional[str] = None
    exchange_rate: Optional[float] = None
    estimated_gdp: Optional[float] = None
    flag_url: Optional[str] = None
    last_refreshed_at: Optional[datetime] = None


class CountryFilter(BaseModel):
    region: Optional[str] = None
    currency_code: Optional[str] = None


# -----------------------------
# API outputs
# -----------------------------
class CountryBase(BaseModel):
    name: str = Field(..., max_length=255)
    capital: Optional[str] = None
    region: Optional[str] = None
    population: int = Field(..., ge=0)
    currency_code: Optional[str] = Field(None, max_length=10)
    exchange_rate: Optional[float] = Field(None, gt=0)
    estimated_gdp: Optional[float] = Field(None, ge=0)
    flag_url: Optional[str] = None
    last_refreshed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CountryOut(CountryBase):
    id: int


class RefreshResult(BaseModel):
    message: str
    count: int


class StatusOut(BaseModel):
    total_countries: int
    last_refreshed_at: Optional[datetime] = None


class MessageOut(BaseModel):
    message: str
