from __future__ import annotations

import logging
import logging.config
from typing import Any, Dict


def build_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """dictConfig payload shared by the app factory and the uvicorn launcher."""
    level = level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            },
        },
        "loggers": {
            # Propagates to root so the console handler (and pytest caplog) see it.
            "intake_backend": {"level": level},
            "uvicorn": {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": level, "handlers": ["console"], "propagate": False},
            # SQL echo is noisy; raise explicitly when debugging queries.
            "sqlalchemy.engine": {"level": "WARNING", "handlers": ["console"], "propagate": False},
        },
        "root": {"level": "WARNING", "handlers": ["console"]},
    }


def configure_logging(level: str = "INFO") -> None:
    logging.config.dictConfig(build_logging_config(level))
    logging.getLogger("intake_backend").debug("Logging configured (level=%s)", level)
