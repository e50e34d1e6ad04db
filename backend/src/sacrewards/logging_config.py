"""Logging configuration."""

import logging
import sys
from typing import Any

import structlog

from sacrewards.settings import Settings, settings as default_settings

# Event keys whose values never reach the log output
SECRET_KEYS = frozenset({"password", "token", "secret_key", "session"})
# Bank account numbers keep their last four digits
MASKED_KEYS = frozenset({"account_number"})


def redact_sensitive(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Hide credentials and bank account numbers in log events."""
    for key in SECRET_KEYS.intersection(event_dict):
        event_dict[key] = "[redacted]"
    for key in MASKED_KEYS.intersection(event_dict):
        value = str(event_dict[key])
        event_dict[key] = "*" * max(len(value) - 4, 0) + value[-4:]
    return event_dict


def _deployment(config: Settings):
    def add_deployment(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("app", config.app_name)
        event_dict.setdefault("env", config.env)
        return event_dict

    return add_deployment


def configure_logging(config: Settings | None = None) -> None:
    """Configure structured logging."""
    config = config or default_settings

    shared = [
        structlog.contextvars.merge_contextvars,
        redact_sensitive,
        _deployment(config),
        structlog.processors.add_log_level,
    ]
    if config.log_format == "json":
        processors = shared + [
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared + [
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # Also configure standard logging for third-party libraries
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, config.log_level),
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)
