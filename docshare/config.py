"""Configuration settings for the DocShare front server."""
import os
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Backend REST API
    api_url: str = os.getenv("DOCSHARE_API_URL", "http://localhost:8080/api")
    request_timeout: float = float(os.getenv("DOCSHARE_REQUEST_TIMEOUT", "30"))

    # Session persistence (the "token" key lives in this JSON file)
    token_store_path: str = os.getenv(
        "DOCSHARE_TOKEN_STORE", os.path.join(os.path.expanduser("~"), ".docshare", "session.json")
    )

    # Preview configuration
    csv_preview_rows: int = 50
    blob_url_prefix: str = "/preview/blobs"

    # Application configuration
    app_env: str = os.getenv("APP_ENV", "dev")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    cors_origins: Optional[str] = os.getenv("DOCSHARE_CORS_ORIGINS", "*")

    def __init__(self, **kwargs):
        """Initialize settings and normalise the backend URL."""
        super().__init__(**kwargs)
        # httpx joins relative paths onto the base path, a trailing slash would double up
        self.api_url = self.api_url.rstrip("/")
        if not os.path.isabs(self.token_store_path):
            self.token_store_path = os.path.abspath(self.token_store_path)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()
