"""Logging setup for sitebooks."""

import logging
import logging.config
import os


def get_logging_config(level: str | None = None) -> dict:
    log_level_name = (level or os.getenv("SITEBOOKS_LOG_LEVEL", "WARNING")).upper()
    log_dir = os.getenv("SITEBOOKS_LOG_DIR")
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
            "formatter": "default",
        },
    }
    root_handlers = ["console"]
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "filename": os.path.join(log_dir, "sitebooks.log"),
            "formatter": "default",
        }
        root_handlers.append("file")

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        },
        "handlers": handlers,
        "loggers": {
            "sitebooks": {
                "handlers": root_handlers,
                "level": log_level_name,
                "propagate": True,
            },
            "sqlalchemy.engine": {
                "handlers": root_handlers,
                "level": "WARNING",
                "propagate": False,
            },
        },
    }


def setup_logging(level: str | None = None) -> None:
    logging.config.dictConfig(get_logging_config(level))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
