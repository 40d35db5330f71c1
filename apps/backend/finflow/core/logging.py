from __future__ import annotations

import logging
from logging.config import dictConfig

_CONFIGURED = False


def configure_logging(level: str = "INFO") -> None:
    """Install a single console handler for the ``finflow`` logger tree.

    Safe to call more than once; only the level is updated after the first call.
    """
    global _CONFIGURED
    level = (level or "INFO").upper()
    if _CONFIGURED:
        logging.getLogger("finflow").setLevel(level)
        return
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                "finflow": {"handlers": ["console"], "level": level, "propagate": True},
            },
        }
    )
    _CONFIGURED = True
