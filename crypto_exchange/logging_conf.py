from __future__ import annotations

from logging.config import dictConfig
from typing import Any


def setup_logging(log_level: str = "INFO") -> None:
    """Route app and uvicorn loggers through one stdout handler."""
    level = log_level.upper()

    dict_config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {
                "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "plain",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {
            "level": level,
            "handlers": ["console"],
        },
        "loggers": {
            "uvicorn": {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn.error": {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": "WARNING", "handlers": ["console"], "propagate": False},
            "crypto_exchange": {"level": level, "handlers": ["console"], "propagate": False},
        },
    }

    dictConfig(dict_config)
