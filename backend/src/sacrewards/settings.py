"""Application settings and configuration."""

import sys
from decimal import Decimal
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_SECRET_DEFAULTS = {"change-me-in-production", "secret", "dev_key_change_me"}


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SACREWARDS_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "sacrewards"
    env: Literal["development", "test", "production"] = "development"
    allowed_origins: str = "http://localhost:5000"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["console", "json"] = "console"

    # Database
    database_url: str = Field(
        default="sqlite:///./sacrewards.db",
        description="Database connection URL",
    )
    database_echo: bool = False

    # Sessions
    secret_key: str = "change-me-in-production"
    session_cookie_name: str = "session"
    session_expire_hours: int = 24

    # Rewards
    default_reward_amount: Decimal = Field(
        default=Decimal("400.00"),
        description="Reward credited for each completed referral",
    )

    @property
    def is_production(self) -> bool:
        return self.env == "production"


def check_settings(config: Settings) -> None:
    """Abort startup when production runs with an insecure secret key."""
    if not config.is_production:
        return
    if config.secret_key in _INSECURE_SECRET_DEFAULTS or len(config.secret_key) < 32:
        print(
            "\nFATAL: SACREWARDS_SECRET_KEY is insecure or too short (min 32 chars).\n"
            "   Set a strong random value:  openssl rand -hex 32\n",
            file=sys.stderr,
        )
        sys.exit(1)


# Global settings instance
settings = Settings()
check_settings(settings)
