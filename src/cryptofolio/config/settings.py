"""Application settings and configuration management using Pydantic."""

import json
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

DEFAULT_TRACKED_ASSETS = (
    "bitcoin,ethereum,binancecoin,solana,ripple,"
    "cardano,dogecoin,polygon,chainlink,litecoin"
)


class Settings(BaseSettings):
    """Main application settings combining all configuration sections."""

    # Environment and deployment
    environment: str = "development"
    debug: bool = False

    # Ledger settings
    starting_balance: float = 100.0
    fee_rate: float = 0.001
    default_buy_amount: float = 10.0
    quantity_epsilon: float = 1e-9

    # Price feed settings
    coingecko_api_url: str = "https://api.coingecko.com/api/v3"
    tracked_assets: str = DEFAULT_TRACKED_ASSETS  # comma separated CoinGecko ids
    vs_currency: str = "usd"
    price_refresh_interval_seconds: int = 60
    price_request_timeout_seconds: float = 10.0

    # Scheduler settings
    scheduler_enabled: bool = True
    scheduler_max_workers: int = 3

    # API settings
    endpoint_host: str = "0.0.0.0"
    endpoint_port: int = 8000
    api_reload: bool = False
    api_log_level: str = "INFO"

    # Database settings
    database_url: Optional[str] = None
    data_directory: str = "data"
    database_echo_sql: bool = False
    database_pool_pre_ping: bool = True
    database_pool_recycle: int = 3600

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "structured"  # 'structured' or 'plain'
    log_file_enabled: bool = True
    log_file_path: str = "data/cryptofolio.log"
    log_max_file_size: str = "10MB"
    log_backup_count: int = 5

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        valid_environments = ["development", "testing", "production"]
        if v.lower() not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v.lower()

    @field_validator("starting_balance")
    @classmethod
    def validate_starting_balance(cls, v):
        """Validate starting balance is not negative."""
        if v < 0:
            raise ValueError("Starting balance cannot be negative")
        return v

    @field_validator("fee_rate")
    @classmethod
    def validate_fee_rate(cls, v):
        """Validate fee rate is a fraction below one."""
        if v < 0 or v >= 1:
            raise ValueError("Fee rate must be between 0 and 1 (0-100%)")
        return v

    @field_validator("default_buy_amount")
    @classmethod
    def validate_default_buy_amount(cls, v):
        """Validate default buy amount."""
        if v <= 0:
            raise ValueError("Default buy amount must be positive")
        return v

    @field_validator("tracked_assets")
    @classmethod
    def validate_tracked_assets(cls, v):
        """Validate that at least one asset id is tracked."""
        if v.strip().startswith("["):
            items = json.loads(v)
        else:
            items = v.split(",")
        ids = [str(item).strip() for item in items if str(item).strip()]
        if not ids:
            raise ValueError("At least one tracked asset is required")
        return ",".join(ids)

    @field_validator("price_refresh_interval_seconds")
    @classmethod
    def validate_interval(cls, v):
        """Validate refresh interval is reasonable."""
        if v < 5 or v > 3600:  # 5 seconds to 1 hour
            raise ValueError("Refresh interval must be between 5 and 3600 seconds")
        return v

    @field_validator("endpoint_port")
    @classmethod
    def validate_port(cls, v):
        """Validate port number is in valid range."""
        if v < 1 or v > 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("log_level", "api_log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Validate log format."""
        valid_formats = ["structured", "plain"]
        if v.lower() not in valid_formats:
            raise ValueError(f"Log format must be one of: {valid_formats}")
        return v.lower()

    @property
    def tracked_asset_ids(self) -> List[str]:
        """CoinGecko asset ids polled by the price feed."""
        return self.tracked_assets.split(",")

    def get_database_url(self) -> str:
        """Get the complete database URL."""
        if self.database_url:
            return self.database_url

        # Default to SQLite in data directory
        db_dir = Path(self.data_directory)
        db_dir.mkdir(exist_ok=True)
        db_path = db_dir / "cryptofolio.db"
        return f"sqlite:///{db_path}"

    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == "testing"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()
