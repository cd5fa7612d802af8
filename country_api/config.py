from pathlib import Path

from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    model_config = {"extra": "ignore", "env_file": ".env"}
    DATABASE_URL: str = "sqlite:///./dev.db"
    PORT: int = 8000
    COUNTRY_API: str = "https://restcountries.com/v2/all?fields=name,capital,region,population,flag,currencies"
    EXCHANGE_API: str = "https://open.er-api.com/v6/latest/USD"
    # Single attempt per upstream call, no retries
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Logging configuration used by country_api.logging
    LOG_LEVEL: str = "INFO"
    CONSOLE_LOG_LEVEL: str = "INFO"

    BASE_DIR: Path = BASE_DIR
    # Summary image lives at CACHE_DIR / "summary.png"
    CACHE_DIR: Path = BASE_DIR / "cache"

    # Serialize refresh cycles inside one process
    REFRESH_SERIALIZED: bool = True


settings = Settings()
