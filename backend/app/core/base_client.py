"""
Base client for outbound HTTP APIs.
Provides the shared request/timeout/error-logging behaviour.
"""
from typing import Dict, Any, Optional
import httpx
from app.core.config import Settings, get_settings
from app.core.logging import get_logger

logger = get_logger("core.base_client")

class BaseHTTPClient:
    """Base client for JSON HTTP APIs."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        settings: Optional[Settings] = None
    ):
        self.settings = settings or get_settings()
        self.timeout = timeout if timeout is not None else self.settings.catalog_timeout_seconds
        # Tests inject an httpx.MockTransport here
        self.transport = transport

    async def _get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        log_prefix: str = "HTTP Client"
    ) -> Any:
        """
        Make a generic HTTP GET request and decode the JSON body.

        Args:
            url: The full API endpoint URL.
            params: Query string parameters.
            log_prefix: Prefix for log messages.

        Returns:
            The parsed JSON response.

        Raises:
            httpx.HTTPError: On transport failures, timeouts and error statuses.
            ValueError: If the body is not valid JSON.
        """
        logger.debug(f"[{log_prefix}] Calling {url}")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.get(url, params=params)

            logger.debug(f"[{log_prefix}] Response status: {response.status_code}")
            if response.status_code != 200:
                logger.error(f"[{log_prefix}] Error response: {response.text[:500]}")

            response.raise_for_status()
            return response.json()
