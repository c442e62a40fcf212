from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., APP_NAME, DEBUG, DATA_DIR,
    DB_FILENAME, BASE_CURRENCY, EXCHANGE_RATE_PROVIDER, REFRESH_RATES_ON_STARTUP).
    """

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore"
    )

    # Basic app metadata
    app_name: str = "Suby Subscription Tracker"
    debug: bool = False
    version: str = "0.1.0"

    # Data & persistence
    data_dir: Path = Path("data")
    db_filename: str = "suby.sqlite3"
    db_path: Optional[Path] = None  # derived if not provided

    # Currencies
    base_currency: str = "USD"  # every stored rate is relative to this code
    display_currency: str = "USD"

    # Exchange rates
    exchange_api_base_url: AnyHttpUrl = "https://open.er-api.com/v6/latest"  # base currency appended as path segment
    http_timeout_seconds: float = 5.0
    # Allowed: 'open-er-api' (remote JSON endpoint), 'static' (built-in table, no network)
    exchange_rate_provider: str = "open-er-api"
    refresh_rates_on_startup: bool = True
    rates_cache_key: str = "cached_rates"

    def init_post_load(self) -> None:
        """Finalize derived fields and ensure directories exist."""
        if self.db_path is None:
            self.db_path = self.data_dir / self.db_filename
        # Ensure persistence directory exists
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.base_currency = self.base_currency.upper()
        self.display_currency = self.display_currency.upper()
        allowed = {"open-er-api", "static"}
        if self.exchange_rate_provider not in allowed:
            raise ValueError(
                f"Unsupported exchange_rate_provider '{self.exchange_rate_provider}'. Allowed: {allowed}"
            )


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
