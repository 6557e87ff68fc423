"""
Configuration Settings.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # App info
    app_name: str = "CareTrack"
    app_version: str = "1.0.0"
    debug: bool = False

    # Security
    secret_key: str = "your-secret-key-change-this-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24  # 1 day
    id_encryption_key: str = "your-id-encryption-key-change-this"

    # Storage
    storage_type: str = "local"  # local, mongo
    local_storage_path: str = "./data"
    mongo_url: str = "mongodb://localhost:27017"
    mongo_database: str = "caretrack"
    mongo_server_selection_timeout_ms: int = 30000

    # LLM Provider settings
    llm_provider: str = "openai"
    llm_api_key: Optional[str] = None
    llm_model: Optional[str] = None  # uses provider default if not set
    llm_base_url: Optional[str] = None  # uses provider default if not set
    llm_timeout: float = 60.0

    # Tracking insights
    insights_model: Optional[str] = "gpt-4.1-mini"
    insights_cache_ttl_minutes: int = 60

    # CORS
    cors_origins: list[str] = [
        "http://localhost:4200",
        "http://localhost:3000",
        "http://127.0.0.1:4200",
    ]

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/caretrack.log"
    log_file_enabled: bool = True
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console
    log_api_requests: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
