"""Client settings and configuration management."""

import os
from functools import lru_cache

from dotenv import load_dotenv


class Settings:
    """Pool and timeout configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    @property
    def http_timeout_seconds(self) -> float:
        """Global request timeout in seconds, applied to every request."""
        return float(os.getenv("HTTP_TIMEOUT_SECONDS", "120.0"))

    @property
    def http_pool_max_connections(self) -> int:
        """Maximum number of open connections in the pool."""
        return int(os.getenv("HTTP_POOL_MAX_CONNECTIONS", "1000"))

    @property
    def http_pool_max_keepalive(self) -> int:
        """Maximum number of idle keep-alive connections kept in the pool."""
        return int(os.getenv("HTTP_POOL_MAX_KEEPALIVE", "1000"))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance (singleton pattern)."""
    return Settings()
