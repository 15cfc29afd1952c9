"""Shared plumbing for entity services"""

from urllib.parse import quote

from midaz_client.infrastructure.http import RequestExecutor
from midaz_client.shared.exceptions import (
    ConfigurationError,
    MissingParameterError,
)


class BaseEntity:
    """Base class for services that call one ledger API resource

    Responsibilities:
    - Resolve service base URLs by name
    - Validate required identifiers before any I/O
    - Delegate the HTTP exchange to the shared RequestExecutor
    """

    service = "onboarding"

    def __init__(self, executor: RequestExecutor, base_urls: dict[str, str]):
        self._executor = executor
        self._base_urls = base_urls

    @property
    def executor(self) -> RequestExecutor:
        return self._executor

    def _base_url(self) -> str:
        url = self._base_urls.get(self.service)
        if not url:
            raise ConfigurationError(
                f"No base URL configured for '{self.service}'"
            )
        return url.rstrip("/")

    def _build_url(self, *segments: str) -> str:
        """Join path segments onto the service base URL, escaping each one"""
        path = "/".join(quote(segment, safe="") for segment in segments)
        return f"{self._base_url()}/{path}"

    @staticmethod
    def _require(operation: str, **params: str) -> None:
        """Raise MissingParameterError for the first empty parameter

        Parameters are checked in the order given.
        """
        for name, value in params.items():
            if not value:
                raise MissingParameterError(operation, name)
