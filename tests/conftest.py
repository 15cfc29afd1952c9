"""Pytest fixtures for Midaz client tests"""

import sys
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest
from dotenv import load_dotenv

# =============================================================================
# Global Test Setup
# =============================================================================

# Add src to Python path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

# Load environment variables from .env file for integration tests
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

from midaz_client.infrastructure.http import (  # noqa: E402
    AccessManagerConfig,
    RequestExecutor,
    RetryConfig,
    TokenManager,
)
from tests.factories import AUTH_ADDRESS, MockServer  # noqa: E402


@pytest.fixture
def fast_retry() -> RetryConfig:
    """Retry config with tiny deterministic delays"""
    return RetryConfig(
        max_retries=3, initial_delay=0.001, max_delay=0.01, jitter=False
    )


@pytest.fixture
def access_manager_config() -> AccessManagerConfig:
    """Enabled plugin auth pointing at the mock access manager"""
    return AccessManagerConfig(
        enabled=True,
        address=AUTH_ADDRESS,
        client_id="client-id",
        client_secret="client-secret",
    )


@pytest.fixture
def make_executor(fast_retry) -> Callable[..., RequestExecutor]:
    """Factory for executors whose HTTP client talks to a MockServer

    Example:
        server = MockServer(json_response(200, {"id": "1"}))
        executor = make_executor(server)
    """

    def _make(
        server: MockServer,
        token_manager: TokenManager | None = None,
        retry_config: RetryConfig | None = None,
        **kwargs,
    ) -> RequestExecutor:
        client = httpx.AsyncClient(transport=server.transport())
        if token_manager is not None:
            token_manager.set_http_client(client)
        kwargs.setdefault("debug", False)
        return RequestExecutor(
            token_manager=token_manager,
            retry_config=retry_config or fast_retry,
            http_client=client,
            **kwargs,
        )

    return _make
