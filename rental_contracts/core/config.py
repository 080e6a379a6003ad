from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # ─────────── APP ───────────
    app_name: str = "Rental Contract Lifecycle Service"
    environment: str = "dev"
    log_level: str = "INFO"

    # ─────────── API ───────────
    api_prefix: str = "/api/v1"
    request_id_header: str = "X-Request-Id"

    # ─────────── DATABASE ───────────
    database_url: str

    # ─────────── JWT / AUTH ───────────
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    jwt_access_token_minutes: int = 1440  # 24 hours

    # ─────────── CONTRACT LIFECYCLE ───────────
    tenant_sign_window_days: int = 3
    modification_window_hours: int = 24
    contract_pdf_base_path: str = "/api/v1/contracts"

    # ─────────── EXPIRATION SWEEPER ───────────
    expiration_sweeper_enabled: bool = True
    expiration_sweep_interval_seconds: int = 3600  # hourly


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
