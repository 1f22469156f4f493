from __future__ import annotations

import logging

from currency_api.providers.http_client import HTTPClient, HTTPClientConfig, HTTPClientError

logger = logging.getLogger(__name__)


class EcbAPIError(RuntimeError):
    """Raised when the ECB reference-rate feed cannot be downloaded."""


class EcbClientConfig:
    """Configuration parameters for the ECB feed client."""

    def __init__(
        self,
        url: str,
        timeout: float,
        max_retries: int = 3,
        backoff_seconds: float = 0.5,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds


class EcbClient:
    """Downloads the daily reference-rate XML document."""

    def __init__(
        self,
        config: EcbClientConfig,
        client: HTTPClient | None = None,
    ) -> None:
        self._config = config
        self._client = client or HTTPClient(
            HTTPClientConfig(
                base_url=config.url,
                timeout=config.timeout,
                max_retries=config.max_retries,
                backoff_seconds=config.backoff_seconds,
            )
        )

    def fetch_xml(self) -> str:
        logger.info("Fetching exchange rates from ECB: %s", self._config.url)
        try:
            body = self._client.get_text()
        except HTTPClientError as exc:
            raise EcbAPIError(f"HTTP request failed: {exc}") from exc

        if not body or not body.strip():
            raise EcbAPIError("ECB returned an empty document")
        return body
