import logging
import math
import threading
from contextlib import nullcontext
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from country_api import crud, models, schemas
from country_api.config import settings
from country_api.errors import CountryNotFound, ValidationFailed
from country_api.services import image_generator
from country_api.services.fetch_data import DataGateway
from country_api.services.gdp import RandomSource, estimate_gdp

logger = logging.getLogger("country_api.refresh")

TOP_N = 5
REFRESH_MESSAGE = "Countries data refreshed successfully"

_refresh_lock = threading.Lock()


def resolve_currency(
    country: schemas.UpstreamCountry,
    rates: Dict[str, float],
    rng: Optional[RandomSource] = None,
) -> Tuple[Optional[str], Optional[float], Optional[float]]:
    """Return (currency_code, exchange_rate, estimated_gdp) for one country.

    No currency at all gives a GDP of 0; a currency without a usable rate
    leaves both rate and GDP unset.
    """
    code = None
    if country.currencies:
        first = (country.currencies[0].code or "").strip().upper()
        code = first or None

    if code is None:
        return None, None, 0.0

    rate = rates.get(code)
    if rate is None or not math.isfinite(rate) or rate <= 0:
        return code, None, None
    return code, rate, estimate_gdp(country.population, rate, rng)


def build_country_record(
    country: schemas.UpstreamCountry,
    rates: Dict[str, float],
    refreshed_at: datetime,
    rng: Optional[RandomSource] = None,
) -> Optional[schemas.CountryUpsert]:
    """Normalize one upstream entry, or return None when it cannot be keyed by name."""
    name = (country.name or "").strip()
    if not name or len(name) > schemas.NAME_MAX_LENGTH:
        return None
    code, rate, gdp = resolve_currency(country, rates, rng)
    return schemas.CountryUpsert(
        name=name,
        capital=country.capital,
        region=country.region,
        population=country.population,
        currency_code=code,
        exchange_rate=rate,
        estimated_gdp=gdp,
        flag_url=country.flag,
        last_refreshed_at=refreshed_at,
    )


def refresh_countries(
    db: Session,
    gateway: DataGateway,
    rng: Optional[RandomSource] = None,
) -> schemas.RefreshResult:
    """Run one refresh cycle: fetch, reconcile, upsert, then draw the summary.

    Both sources are fetched before anything is written, so an
    UpstreamUnavailable leaves the store untouched. Each country is committed
    on its own; a later failure does not undo earlier rows.
    """
    lock = _refresh_lock if settings.REFRESH_SERIALIZED else nullcontext()
    with lock:
        started_at = datetime.now(timezone.utc)
        countries = gateway.fetch_countries()
        rates = gateway.fetch_exchange_rates()

        processed = inserted = skipped = 0
        for item in countries:
            record = build_country_record(item, rates, started_at, rng)
            if record is None:
                skipped += 1
                logger.warning("Skipping country entry without a usable name: %.80r", item.name)
                continue
            _, created = crud.upsert_country(db, record)
            inserted += created
            processed += 1

        logger.info(
            "Refresh stored %d countries (%d inserted, %d updated, %d skipped)",
            processed,
            inserted,
            processed - inserted,
            skipped,
        )

        total = crud.count_countries(db)
        top = crud.get_top_by_gdp(db, TOP_N)
        image_generator.generate_summary_image(total, top, started_at)

    return schemas.RefreshResult(message=REFRESH_MESSAGE, count=processed)


def _require_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        raise ValidationFailed({"name": "is required"})
    return name


def list_countries(
    db: Session,
    filters: Optional[schemas.CountryFilter] = None,
    sort: Optional[str] = None,
) -> List[models.Country]:
    return crud.get_countries(db, filters, sort)


def get_country(db: Session, name: str) -> models.Country:
    country = crud.get_country(db, _require_name(name))
    if country is None:
        raise CountryNotFound(name)
    return country


def delete_country(db: Session, name: str) -> bool:
    deleted = crud.delete_country(db, _require_name(name))
    if deleted:
        logger.info("Deleted country %r", name)
    return deleted


def get_status(db: Session) -> schemas.StatusOut:
    return crud.get_status(db)


def get_summary_image_path() -> Path:
    return image_generator.get_summary_image_path()


def summary_image_exists() -> bool:
    return image_generator.summary_image_exists()
