"""
Application Settings.

Centralizes all configuration via .env / environment variables.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    # --- App ---
    env: str = "development"
    debug: bool = True
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    # --- LLM (Gemini) ---
    gemini_api_key: str = ""
    gemini_fallback_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    llm_max_output_tokens: int = 2000
    llm_temperature: float = 0.1
    # Variants that reject an explicit temperature
    llm_models_without_temperature: list[str] = []

    # --- Pipeline ---
    verify_text_char_budget: int = 4000
    scan_text_char_budget: int = 15000
    min_pdf_text_chars: int = 50

    # --- Object storage ---
    storage_backend: str = "local"          # "local" or "s3"
    storage_bucket: str = "customer-documents"
    storage_local_root: str = "storage"
    storage_public_base_url: str = "http://localhost:8000/files"
    s3_endpoint_url: str = ""
    s3_access_key: str = ""
    s3_secret_key: str = ""
    s3_region: str = "us-east-1"

    # --- Identity verification vendor (Veriff) ---
    veriff_api_key: str = ""
    veriff_api_secret: str = ""
    veriff_webhook_secret: str = ""
    veriff_base_url: str = "https://stationapi.veriff.com"
    http_timeout_seconds: float = 30.0

    # --- Notifications ---
    notification_max_attempts: int = 3

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def model_api_keys(self) -> list[str]:
        """Credentials in the order they are tried."""
        return [key for key in (self.gemini_api_key, self.gemini_fallback_api_key) if key]


@lru_cache
def get_settings() -> Settings:
    """Settings singleton."""
    return Settings()
