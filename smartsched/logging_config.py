import logging
from logging.config import dictConfig
from typing import Optional

from smartsched.config import settings

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None, verbose_sql: bool = False) -> None:
    """Configure process-wide logging for the CLI and service entry points."""
    level = (level or settings.log_level).upper()

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": DEFAULT_LOG_FORMAT,
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {
                "handlers": ["default"],
                "level": level,
            },
        }
    )

    if verbose_sql:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
