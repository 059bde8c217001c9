"""Structured logging setup shared by the API and the scripts."""
import logging

import structlog

from esrag import config


def configure_logging(level: str = None) -> None:
    """Configure structlog to render JSON lines through the stdlib logger.

    Args:
        level: Log level name (defaults to config.LOG_LEVEL)
    """
    logging.basicConfig(
        format="%(message)s",
        level=(level or config.LOG_LEVEL).upper(),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )
