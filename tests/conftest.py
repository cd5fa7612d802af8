import os
import sys
from typing import Callable, Iterator

# Keep the application engine off the developer database during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

# Ensure project root is on sys.path when pytest runs from a different CWD.
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from country_api import models, schemas  # noqa: E402
from country_api.config import settings  # noqa: E402
from country_api.database import Base, get_db  # noqa: E402
from country_api.main import app  # noqa: E402
from country_api.services.fetch_data import get_gateway  # noqa: E402


class FakeGateway:
    """Stands in for DataGateway; raises the configured errors instead of calling out."""

    def __init__(self, countries=None, rates=None):
        self.countries = list(countries or [])
        self.rates = dict(rates or {})
        self.countries_error = None
        self.rates_error = None
        self.calls = []

    def fetch_countries(self):
        self.calls.append("countries")
        if self.countries_error is not None:
            raise self.countries_error
        return [schemas.UpstreamCountry.model_validate(c) for c in self.countries]

    def fetch_exchange_rates(self):
        self.calls.append("rates")
        if self.rates_error is not None:
            raise self.rates_error
        return dict(self.rates)


class FixedRandom:
    """Deterministic randomness source returning one value."""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture(autouse=True)
def cache_dir(tmp_path, monkeypatch):
    path = tmp_path / "cache"
    monkeypatch.setattr(settings, "CACHE_DIR", path)
    return path


@pytest.fixture
def session_factory():
    # StaticPool keeps a single in-memory DB across threads/requests
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def gateway():
    return FakeGateway()


def override_get_db(SessionLocal) -> Callable[[], Iterator]:
    def _get_db():
        db = SessionLocal()
        try:
            yield db
        finally:
            db.close()

    return _get_db


@pytest.fixture
def client(session_factory, gateway):
    app.dependency_overrides[get_db] = override_get_db(session_factory)
    app.dependency_overrides[get_gateway] = lambda: gateway
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def seed_countries(db):
    def _seed(*rows):
        for row in rows:
            db.add(models.Country(**row))
        db.commit()

    return _seed
