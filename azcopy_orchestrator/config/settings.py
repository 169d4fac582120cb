"""
Application settings and configuration.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application configuration settings."""

    # Application settings
    app_name: str = "AzCopy Orchestrator"
    app_version: str = "1.0.0"
    log_level: str = "INFO"
    environment: str = "development"

    # FastAPI settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: List[str] = ["*"]

    # AzCopy executable settings
    azcopy_exe_path: Optional[str] = None
    user_agent_prefix: str = ""
    # Host runtime variables that force the child into another execution mode
    blocked_env_vars: List[str] = ["ELECTRON_RUN_AS_NODE"]

    # Progress reporting
    progress_update_interval_ms: int = 200
    poll_interval_seconds: float = 1.0
    cancel_timeout_seconds: float = 30.0

    # Job store lifecycle
    job_retention_seconds: float = 3600.0

    # OAuth token refresh for RemoteAuth locations
    token_refresh_interval_seconds: float = 600.0
    aad_endpoint: str = "https://storage.azure.com"

    class Config:
        env_prefix = "AZCOPY_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Returns a cached instance of the application settings."""
    return Settings()
