"""Bridge stdlib logging (httpx) into loguru"""

import logging

from loguru import logger

_BRIDGED_LOGGERS = ("midaz_client", "httpx")
_bridge_installed = False


class _LoguruHandler(logging.Handler):
    """Bridge stdlib logging into loguru"""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(
            level, record.getMessage()
        )


def install_logging_bridge(level: int = logging.INFO) -> None:
    """Route stdlib loggers used by httpx into loguru once per process."""
    global _bridge_installed
    if _bridge_installed:
        return

    handler = _LoguruHandler()
    for name in _BRIDGED_LOGGERS:
        std_logger = logging.getLogger(name)
        std_logger.setLevel(level)
        std_logger.addHandler(handler)
        std_logger.propagate = False

    _bridge_installed = True


def mask_headers(headers) -> dict[str, str]:
    """Return a copy of request headers with credentials masked."""
    return {
        k: ("***" if k.lower() == "authorization" else v)
        for k, v in headers.items()
    }
