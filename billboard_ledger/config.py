"""Configuration management using Pydantic Settings"""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "billboard-ledger"
    log_level: str = "INFO"

    # Ledger write-back
    ledger_webhook_url: str = "http://localhost:8002/ledger/distributions"
    http_timeout_seconds: float = 5.0
    webhook_max_retries: int = 5
    webhook_backoff_base: float = 1.0  # Exponential backoff base in seconds

    # Pricing policy; fallback prices stay unset so missing sizes are reported
    default_faces: int = 2
    fallback_install_price: Decimal | None = None
    fallback_print_price: Decimal | None = None

    # Tolerances
    distribution_epsilon: Decimal = Decimal("0.01")
    allocation_tolerance: Decimal = Decimal("0.1")


settings = Settings()
