import logging
import math
from typing import Dict, List, Optional

import requests
from pydantic import BaseModel, ValidationError

from country_api import schemas
from country_api.config import Settings, settings as default_settings
from country_api.errors import UpstreamUnavailable

logger = logging.getLogger("country_api.gateway")

COUNTRIES_SOURCE = "RestCountries API"
EXCHANGE_SOURCE = "Exchange Rate API"


class GatewayConfig(BaseModel):
    model_config = {"frozen": True}

    countries_url: str
    exchange_url: str
    timeout_seconds: float = 10.0

    @classmethod
    def from_settings(cls, s: Settings) -> "GatewayConfig":
        return cls(
            countries_url=str(s.COUNTRY_API),
            exchange_url=str(s.EXCHANGE_API),
            timeout_seconds=s.HTTP_TIMEOUT_SECONDS,
        )


class DataGateway:
    """Fetches raw country metadata and USD exchange rates.

    Each call is a single GET. ``config.timeout_seconds`` is handed to
    requests, which applies it to the connect and to every socket read, not
    to the call as a whole: a server that keeps trickling bytes can hold a
    call past that bound. Any transport failure, non-2xx answer, or payload
    of the wrong shape is reported as :class:`UpstreamUnavailable`; nothing
    is retried.
    """

    def __init__(self, config: GatewayConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()

    def _get_json(self, url: str, source: str):
        logger.info("Fetching %s from %s", source, url)
        try:
            resp = self.session.get(url, timeout=self.config.timeout_seconds)
            resp.raise_for_status()
            return resp.json()
        except requests.Timeout as e:
            logger.warning("%s timed out after %.1fs: %s", source, self.config.timeout_seconds, e)
            raise UpstreamUnavailable(source, "timeout") from e
        except requests.RequestException as e:
            logger.warning("%s request failed: %s", source, e)
            raise UpstreamUnavailable(source, str(e)) from e
        except ValueError as e:
            logger.warning("%s returned invalid JSON: %s", source, e)
            raise UpstreamUnavailable(source, "invalid JSON") from e

    def fetch_countries(self) -> List[schemas.UpstreamCountry]:
        payload = self._get_json(self.config.countries_url, COUNTRIES_SOURCE)
        if not isinstance(payload, list):
            logger.warning("%s returned %s instead of a list", COUNTRIES_SOURCE, type(payload).__name__)
            raise UpstreamUnavailable(COUNTRIES_SOURCE, "unexpected response shape")

        countries = []
        for item in payload:
            if not isinstance(item, dict):
                logger.warning("Skipping non-object country entry: %r", item)
                continue
            try:
                countries.append(schemas.UpstreamCountry.model_validate(item))
            except ValidationError as e:
                raise UpstreamUnavailable(COUNTRIES_SOURCE, "unexpected response shape") from e
        logger.info("Fetched %d countries", len(countries))
        return countries

    def fetch_exchange_rates(self) -> Dict[str, float]:
        payload = self._get_json(self.config.exchange_url, EXCHANGE_SOURCE)
        if not isinstance(payload, dict) or payload.get("result") == "error":
            raise UpstreamUnavailable(EXCHANGE_SOURCE, "unexpected response shape")
        raw = payload.get("rates")
        if not isinstance(raw, dict):
            raise UpstreamUnavailable(EXCHANGE_SOURCE, "missing rates")

        rates: Dict[str, float] = {}
        for code, value in raw.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                logger.debug("Dropping unusable rate for %s: %r", code, value)
                continue
            rates[str(code).upper()] = float(value)
        logger.info("Fetched %d exchange rates", len(rates))
        return rates


def get_gateway() -> DataGateway:
    """FastAPI dependency; overridden in tests."""
    return DataGateway(GatewayConfig.from_settings(default_settings))
