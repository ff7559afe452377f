"""Environment-driven runtime settings.

Values come from ``CUPHANDLE_*`` environment variables or a local ``.env``
file; CLI flags override them per run.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for price retrieval, caching and logging."""

    model_config = SettingsConfigDict(
        env_prefix="CUPHANDLE_",
        env_file=".env",
        extra="ignore",
    )

    # Price cache
    cache_dir: str = "StockData"
    cache_enabled: bool = True

    # Backtest scoring
    unresolved_policy: str = "break_even"

    # Logging
    log_level: str = "INFO"

    @field_validator("unresolved_policy")
    @classmethod
    def check_unresolved_policy(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("break_even", "exclude"):
            raise ValueError("unresolved_policy must be 'break_even' or 'exclude'")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.strip().upper()


settings = Settings()
