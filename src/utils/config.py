"""Configuration loading and validation for videovote."""

import os
from pathlib import Path
from urllib.parse import urlparse

from dotenv import load_dotenv

from utils.session_storage import DEFAULT_SESSION_FILE

# Get the project root directory (parent of src)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Load environment variables from .env file in project root
load_dotenv(PROJECT_ROOT / ".env")


def load_config() -> dict:
    """Load configuration from environment variables."""

    def resolve_path(path: str | None, default: Path) -> str:
        if not path:
            return str(default)
        return str(Path(path).expanduser())

    config = {
        # Backend origin; the client appends /api/v1
        "api_url": os.getenv("VIDEOVOTE_API_URL", "http://localhost:8080"),
        # Durable session slots (token + currentUser)
        "session_file": resolve_path(os.getenv("VIDEOVOTE_SESSION_FILE"), DEFAULT_SESSION_FILE),
        "request_timeout": float(os.getenv("VIDEOVOTE_REQUEST_TIMEOUT", "30")),
        "max_upload_mb": int(os.getenv("VIDEOVOTE_MAX_UPLOAD_MB", "100")),
        "author_lookup_concurrency": int(os.getenv("VIDEOVOTE_AUTHOR_LOOKUP_CONCURRENCY", "5")),
        # Logging
        "log_level": os.getenv("LOG_LEVEL", "WARNING"),
        "log_json": os.getenv("LOG_JSON", "false").lower() == "true",
    }

    return config


def validate_config(config: dict) -> list[str]:
    """Validate configuration and return list of errors."""
    errors = []

    parsed = urlparse(config.get("api_url") or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        errors.append("VIDEOVOTE_API_URL must be an http(s) URL")

    if config.get("request_timeout", 0) <= 0:
        errors.append("VIDEOVOTE_REQUEST_TIMEOUT must be positive")

    if config.get("max_upload_mb", 0) <= 0:
        errors.append("VIDEOVOTE_MAX_UPLOAD_MB must be positive")

    if config.get("author_lookup_concurrency", 0) < 1:
        errors.append("VIDEOVOTE_AUTHOR_LOOKUP_CONCURRENCY must be at least 1")

    if str(config.get("log_level", "")).upper() not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        errors.append("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR")

    return errors
