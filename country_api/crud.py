import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from country_api import models, schemas

logger = logging.getLogger("country_api.store")

Country = models.Country

# Every ordering ends with id so results are stable
SORTS = {
    "gdp_desc": (Country.estimated_gdp.desc().nulls_last(), Country.id.asc()),
    "gdp_asc": (Country.estimated_gdp.asc().nulls_last(), Country.id.asc()),
    "name_asc": (Country.name.asc(), Country.id.asc()),
    "name_desc": (Country.name.desc(), Country.id.asc()),
    "population_desc": (Country.population.desc(), Country.id.asc()),
    "population_asc": (Country.population.asc(), Country.id.asc()),
}
DEFAULT_ORDER = (Country.id.asc(),)

UPDATABLE_FIELDS = (
    "capital",
    "region",
    "population",
    "currency_code",
    "exchange_rate",
    "estimated_gdp",
    "flag_url",
    "last_refreshed_at",
)


def get_country(db: Session, name: str) -> Optional[Country]:
    key = models.normalize_name(name)
    return db.scalars(select(Country).where(Country.name_key == key)).first()


def get_countries(
    db: Session,
    filters: Optional[schemas.CountryFilter] = None,
    sort: Optional[str] = None,
) -> List[Country]:
    query = select(Country)
    if filters is not None:
        if filters.region is not None:
            query = query.where(Country.region == filters.region)
        if filters.currency_code is not None:
            query = query.where(Country.currency_code == filters.currency_code)

    order = SORTS.get(sort or "", DEFAULT_ORDER)
    if sort and sort not in SORTS:
        logger.debug("Unknown sort %r, using default ordering", sort)
    return list(db.scalars(query.order_by(*order)))


def get_top_by_gdp(db: Session, n: int = 5) -> List[Country]:
    query = (
        select(Country)
        .where(Country.estimated_gdp.is_not(None))
        .order_by(Country.estimated_gdp.desc(), Country.id.asc())
        .limit(n)
    )
    return list(db.scalars(query))


def _apply(country: Country, data: schemas.CountryUpsert) -> None:
    for field in UPDATABLE_FIELDS:
        setattr(country, field, getattr(data, field))


def upsert_country(db: Session, data: schemas.CountryUpsert) -> Tuple[Country, bool]:
    """Insert or update by case-insensitive name and commit immediately.

    Returns the row and whether it was created. The display name of an
    existing row is never rewritten.
    """
    existing = get_country(db, data.name)
    if existing is not None:
        _apply(existing, data)
        db.commit()
        return existing, False

    country = Country(name=data.name)
    _apply(country, data)
    db.add(country)
    try:
        db.commit()
    except IntegrityError:
        # Another writer inserted the same name_key first; last write wins
        db.rollback()
        existing = get_country(db, data.name)
        if existing is None:
            raise
        logger.info("Concurrent insert for %r detected, updating instead", data.name)
        _apply(existing, data)
        db.commit()
        return existing, False
    return country, True


def delete_country(db: Session, name: str) -> bool:
    country = get_country(db, name)
    if country:
        db.delete(country)
        db.commit()
        return True
    return False


def count_countries(db: Session) -> int:
    return db.scalar(select(func.count(Country.id))) or 0


def get_status(db: Session) -> schemas.StatusOut:
    total = count_countries(db)
    last = db.scalar(select(func.max(Country.last_refreshed_at)))
    return schemas.StatusOut(total_countries=total, last_refreshed_at=last)
