import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from country_api.config import settings

logger = logging.getLogger("country_api.db")

FALLBACK_DATABASE_URL = "sqlite:///./dev.db"


def make_engine(url: str) -> Engine:
    connect_args = {}
    if make_url(url).drivername.startswith("sqlite"):
        # Sync endpoints run in a threadpool; sessions never cross threads
        connect_args["check_same_thread"] = False
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


try:
    engine = make_engine(settings.DATABASE_URL)
except ModuleNotFoundError as e:
    logger.warning(
        "Failed to load DB driver for %s: %s. Falling back to %s",
        settings.DATABASE_URL,
        e,
        FALLBACK_DATABASE_URL,
    )
    engine = make_engine(FALLBACK_DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db(bind: Engine | None = None) -> None:
    """Create missing tables. Migrations under alembic/ remain the source of truth."""
    from country_api import models  # noqa: F401  register mappers

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables ensured on %s", (bind or engine).url.render_as_string(hide_password=True))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
