"""HTTP client factory with pooled defaults."""

import logging
from typing import Optional

from httpx import BaseTransport, Client, Limits, Timeout

from ...config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 10


class HTTPClientFactory:
    """Factory for creating pooled HTTP clients with consistent configuration."""

    @staticmethod
    def create(
        skip_tls_verification: bool = False,
        settings: Optional[Settings] = None,
        transport: Optional[BaseTransport] = None,
    ) -> Client:
        """Create a new Client with the pool limits and timeout from settings.

        Args:
            skip_tls_verification: Accept any server certificate without validation.
            settings: Settings to read limits and timeout from. Defaults to the
                cached environment settings.
            transport: Optional transport replacing the default pooled one.

        Returns:
            Configured Client instance.
        """
        settings = settings or get_settings()
        timeout = Timeout(settings.http_timeout_seconds)
        limits = Limits(
            max_keepalive_connections=settings.http_pool_max_keepalive,
            max_connections=settings.http_pool_max_connections,
        )
        if skip_tls_verification:
            logger.warning("TLS certificate verification is disabled for this client")

        return Client(
            timeout=timeout,
            limits=limits,
            verify=not skip_tls_verification,
            follow_redirects=True,
            max_redirects=MAX_REDIRECTS,
            transport=transport,
        )
