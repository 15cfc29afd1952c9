"""Client configuration"""

from .config import Config, service_urls

__all__ = ["Config", "service_urls"]
