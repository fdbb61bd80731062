"""
Loguru setup shared by the server, the seed command and the tests.
"""
import sys
from typing import Optional
from loguru import logger
from eventhub.core.config import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(environment: str, level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Replace loguru's default handler.

    Development logs at DEBUG, everything else at INFO unless ``level`` says
    otherwise. Production additionally writes a rotating file.
    """
    level = level or ("DEBUG" if environment == "development" else "INFO")
    logger.remove()
    logger.add(
        sys.stdout,
        format=CONSOLE_FORMAT,
        level=level,
        colorize=environment != "test",
        # Tracebacks of unexpected resolver errors must not print local values
        diagnose=environment == "development",
    )
    if environment == "production":
        logger.add(
            log_file or "logs/eventhub.log",
            rotation="500 MB",
            retention="10 days",
            compression="zip",
            format=FILE_FORMAT,
            level=level,
            enqueue=True,
        )


setup_logging(settings.ENVIRONMENT, settings.LOG_LEVEL, settings.LOG_FILE)

__all__ = ["logger", "setup_logging"]
