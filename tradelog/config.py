"""TradeLog — application configuration.

Loads .env variables into a typed config object.
Validates values on startup.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    db_path: str
    log_level: str
    api_host: str
    api_port: int

    @property
    def api_url(self) -> str:
        """Base URL the API is served on."""
        return f"http://{self.api_host}:{self.api_port}"


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``ValueError`` with a message naming the variable when a value
    is malformed.
    """
    load_dotenv(dotenv_path=env_path)

    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    if log_level not in _LOG_LEVELS:
        raise ValueError(
            f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got '{log_level}'"
        )

    raw_port = os.environ.get("API_PORT", "8080")
    try:
        api_port = int(raw_port)
    except ValueError:
        raise ValueError(f"API_PORT must be an integer, got '{raw_port}'") from None
    if not 1 <= api_port <= 65535:
        raise ValueError(f"API_PORT must be 1–65535, got {api_port}")

    return Config(
        db_path=os.environ.get("TRADELOG_DB_PATH", "data/tradelog.db"),
        log_level=log_level,
        api_host=os.environ.get("API_HOST", "127.0.0.1"),
        api_port=api_port,
    )
