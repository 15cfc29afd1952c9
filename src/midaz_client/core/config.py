"""Configuration management for the Midaz client"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

from midaz_client.infrastructure.http.auth import AccessManagerConfig
from midaz_client.infrastructure.http.retry import RetryConfig
from midaz_client.shared.exceptions import ConfigurationError
from midaz_client.version import user_agent

DEFAULT_TIMEOUT = 60.0

# Local services listen on separate ports; hosted ones share a base URL
LOCAL_SERVICE_PORTS = {"onboarding": 3000, "transaction": 3001}

ENVIRONMENT_BASE_URLS = {
    "local": "http://localhost",
    "development": "https://api.dev.midaz.io",
    "production": "https://api.midaz.io",
}


def service_urls(base_url: str, environment: str = "local") -> dict[str, str]:
    """Derive the named service URLs from a base URL

    Args:
        base_url: Scheme and host, e.g. "https://api.midaz.io"
        environment: "local" uses per-service ports, others use path prefixes

    Returns:
        Mapping of service name to base URL
    """
    base_url = base_url.rstrip("/")
    if environment == "local":
        return {
            name: f"{base_url}:{port}/v1"
            for name, port in LOCAL_SERVICE_PORTS.items()
        }
    return {name: f"{base_url}/{name}" for name in LOCAL_SERVICE_PORTS}


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() == "true"


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        parsed = float(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from e
    if parsed <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value!r}")
    return parsed


@dataclass
class Config:
    """Configuration for the Midaz client loaded from environment variables"""

    base_urls: dict[str, str] = field(
        default_factory=lambda: service_urls(ENVIRONMENT_BASE_URLS["local"])
    )
    environment: str = "local"
    auth_token: str = field(default="", repr=False)
    user_agent: str = field(default_factory=user_agent)
    timeout: float = DEFAULT_TIMEOUT
    debug: bool = False
    retry: RetryConfig = field(default_factory=RetryConfig)
    access_manager: AccessManagerConfig = field(
        default_factory=AccessManagerConfig
    )

    def base_url(self, service: str) -> str:
        """Base URL of a named service

        Raises:
            ConfigurationError: If the service has no configured URL
        """
        url = self.base_urls.get(service)
        if not url:
            raise ConfigurationError(f"No base URL configured for '{service}'")
        return url.rstrip("/")

    @classmethod
    def from_env(cls, dotenv_path: str | Path | None = None) -> "Config":
        """Load configuration from environment variables

        URLs take precedence in this order: MIDAZ_ONBOARDING_URL /
        MIDAZ_TRANSACTION_URL, then MIDAZ_BASE_URL, then the default for
        MIDAZ_ENVIRONMENT.

        Args:
            dotenv_path: Optional .env file loaded before reading the environment

        Returns:
            Config instance with values from environment

        Raises:
            ConfigurationError: If a value is invalid or plugin auth is incomplete
        """
        if dotenv_path is not None:
            load_dotenv(dotenv_path)

        environment = os.getenv("MIDAZ_ENVIRONMENT", "local").strip().lower()
        if environment not in ENVIRONMENT_BASE_URLS:
            raise ConfigurationError(f"Invalid environment: {environment!r}")

        base_url = os.getenv("MIDAZ_BASE_URL") or ENVIRONMENT_BASE_URLS[environment]
        base_urls = service_urls(base_url, environment)

        for service in LOCAL_SERVICE_PORTS:
            override = os.getenv(f"MIDAZ_{service.upper()}_URL")
            if override:
                base_urls[service] = override.rstrip("/")

        access_manager = AccessManagerConfig(
            enabled=_env_bool("PLUGIN_AUTH_ENABLED"),
            address=os.getenv("PLUGIN_AUTH_ADDRESS", ""),
            client_id=os.getenv("MIDAZ_CLIENT_ID", ""),
            client_secret=os.getenv("MIDAZ_CLIENT_SECRET", ""),
        )

        config = cls(
            base_urls=base_urls,
            environment=environment,
            auth_token=os.getenv("MIDAZ_AUTH_TOKEN", ""),
            user_agent=user_agent(),
            timeout=_env_float("MIDAZ_TIMEOUT", DEFAULT_TIMEOUT),
            debug=_env_bool("MIDAZ_DEBUG"),
            retry=RetryConfig.from_env(),
            access_manager=access_manager,
        )

        logger.info("Configuration loaded:")
        logger.info(f"  Environment: {config.environment}")
        for service, url in config.base_urls.items():
            logger.info(f"  {service.capitalize()} URL: {url}")
        logger.info(
            f"  Auth Token: {'Configured' if config.auth_token else 'Not configured'}"
        )
        logger.info(
            f"  Access Manager: {'Enabled' if access_manager.enabled else 'Disabled'}"
        )
        logger.info(f"  Timeout: {config.timeout}s")
        logger.info(f"  Max Retries: {config.retry.max_retries}")
        logger.info(f"  Debug: {config.debug}")

        return config
