from __future__ import annotations

import logging
import os
from typing import Any, Dict

import structlog

_CONFIGURED_SERVICES: set[str] = set()


def _resolve_level(value: str | None) -> int:
    level = logging.getLevelName((value or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(service_name: str) -> None:
    if service_name in _CONFIGURED_SERVICES:
        return
    logging.basicConfig(level=_resolve_level(os.getenv("LOG_LEVEL")))
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _CONFIGURED_SERVICES.add(service_name)
    get_logger(service_name).info("logging_configured")


def log_event(logger: structlog.BoundLogger, event_type: str, payload: Dict[str, Any]) -> None:
    logger.info(event_type, **payload)


def get_logger(service_name: str) -> structlog.BoundLogger:
    return structlog.get_logger(service=service_name)
