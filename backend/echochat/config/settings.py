"""
Configuration Settings.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # App info
    app_name: str = "EchoChat"
    app_version: str = "1.0.0"
    debug: bool = True

    # Storage
    local_storage_path: str = "./data"
    sessions_file: str = "sessions.json"
    settings_file: str = "settings.json"

    # Chat backend
    chat_backend: str = "simulated"  # "simulated" or "remote"
    simulated_delay_seconds: float = 2.0

    # Outbound HTTP
    http_request_timeout: float = 30.0
    http_resource_timeout: float = 120.0

    # Provider endpoints (per-provider overrides live in AppSettings.custom_endpoints)
    openai_base_url: str = "https://api.openai.com/v1"
    anthropic_base_url: str = "https://api.anthropic.com"
    google_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai"

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:8080",
        "http://127.0.0.1:3000",
    ]

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/echochat.log"
    log_file_enabled: bool = True
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console
    log_api_requests: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = False

    def default_base_urls(self) -> dict[str, str]:
        """Provider key -> default base URL."""
        return {
            "openai": self.openai_base_url,
            "anthropic": self.anthropic_base_url,
            "google": self.google_base_url,
        }


def get_default_base_url(provider: str, config: Optional[Settings] = None) -> Optional[str]:
    """Default endpoint for a provider key, or None if the provider is unknown."""
    config = config or settings
    return config.default_base_urls().get(provider.lower())


settings = Settings()
