"""
Logging configuration.

Routes stdlib logging (uvicorn, sqlalchemy) into loguru so the whole service
writes through one set of sinks.
"""
from __future__ import annotations

import logging
import sys

from loguru import logger

from .config import settings

HUMAN_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
PLAIN_FORMAT = "{time} | {level} | {name}:{function}:{line} | {message}"


class InterceptHandler(logging.Handler):
    """Intercept standard logging and redirect to Loguru"""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def configure_logging() -> None:
    logger.remove()

    serialize = settings.LOG_JSON_FORMAT and settings.ENVIRONMENT == "production"
    logger.add(
        sys.stdout,
        format=PLAIN_FORMAT if serialize else HUMAN_FORMAT,
        level=settings.LOG_LEVEL,
        serialize=serialize,
        colorize=not serialize,
    )

    if settings.LOG_FILE:
        logger.add(
            settings.LOG_FILE,
            rotation="00:00",
            retention="30 days",
            level=settings.LOG_LEVEL,
            format=PLAIN_FORMAT,
            serialize=settings.LOG_JSON_FORMAT,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        logging.getLogger(name).handlers = [InterceptHandler()]
    logging.getLogger("sqlalchemy.engine").handlers = [InterceptHandler()]

    logger.info(f"Logging configured: level={settings.LOG_LEVEL}, json={serialize}")
