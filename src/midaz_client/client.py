"""MidazClient - facade wiring configuration, transport and entity services"""

from pathlib import Path

import httpx
from loguru import logger

from midaz_client.core.config import Config
from midaz_client.entities import AssetRatesEntity, TransactionsEntity
from midaz_client.infrastructure.http import (
    RequestExecutor,
    RequestObserver,
    TokenManager,
)


class MidazClient:
    """Midaz ledger API client (facade pattern)

    A lightweight facade that builds one TokenManager and one RequestExecutor
    over a shared httpx.AsyncClient and hands the executor to every entity
    service. Use it as an async context manager, or call ``aclose()``.
    """

    def __init__(
        self,
        config: Config | None = None,
        http_client: httpx.AsyncClient | None = None,
        observer: RequestObserver | None = None,
    ) -> None:
        """Initialize the client

        Args:
            config: Client configuration (defaults to local services)
            http_client: Externally managed client (not closed by ``aclose``)
            observer: Optional request observer, e.g. MetricsCollector

        Raises:
            ConfigurationError: If the configuration is inconsistent
        """
        self.config = config or Config()

        self._token_manager = TokenManager(
            config=self.config.access_manager,
            http_client=http_client,
            static_token=self.config.auth_token,
        )
        self._executor = RequestExecutor(
            token_manager=self._token_manager,
            retry_config=self.config.retry,
            http_client=http_client,
            timeout=self.config.timeout,
            debug=self.config.debug,
            user_agent=self.config.user_agent,
            observer=observer,
        )

        self.asset_rates = AssetRatesEntity(self._executor, self.config.base_urls)
        self.transactions = TransactionsEntity(
            self._executor, self.config.base_urls
        )

        logger.info(
            f"Midaz client ready ({self.config.environment}, "
            f"plugin auth {'enabled' if self._token_manager.enabled else 'disabled'})"
        )

    @classmethod
    def from_env(
        cls,
        dotenv_path: str | Path | None = None,
        observer: RequestObserver | None = None,
    ) -> "MidazClient":
        """Build a client from MIDAZ_* / PLUGIN_AUTH_* environment variables"""
        return cls(Config.from_env(dotenv_path), observer=observer)

    @property
    def executor(self) -> RequestExecutor:
        return self._executor

    @property
    def token_manager(self) -> TokenManager:
        return self._token_manager

    async def aclose(self) -> None:
        """Release the HTTP client and cached credentials"""
        await self._executor.aclose()
        logger.info("Midaz client closed")

    async def __aenter__(self) -> "MidazClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
