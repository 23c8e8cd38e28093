"""Application configuration management."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.debug and self.log_level.upper() != "TRACE":
            self.log_level = "DEBUG"

    # Database
    database_url: str

    # Security
    encryption_key: str  # Fernet key for connection API keys

    # Application
    debug: bool = False
    log_level: str = "INFO"
    timezone: str = "UTC"  # Used to resolve "today" for a sync run

    # Odoo XML-RPC
    rpc_timeout_seconds: float = 30.0
    rpc_max_retries: int = 3

    # Scheduled sync
    sync_enabled: bool = True
    sync_cron: str = "55 23 * * *"


# Global settings instance
settings = Settings()
