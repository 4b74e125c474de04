import logging
import logging.config
import os
from typing import Optional


def ConfigureLogging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """
    Configure logging for the command line scripts. Library modules only create loggers.

    Args:
        verbose (bool, optional): log DEBUG messages instead of INFO. Defaults to False.
        log_file (Optional[str], optional): also log to this file, rotated at 5MB. Defaults to None.
    """
    level = "DEBUG" if verbose else "INFO"
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "level": level,
        }
    }
    if log_file:
        log_dir = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(log_dir, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "default",
            "level": level,
            "filename": log_file,
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 3,
        }

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            }
        },
        "handlers": handlers,
        "loggers": {
            "PaintMixer": {"handlers": list(handlers), "level": level, "propagate": False},
        },
        "root": {"handlers": ["console"], "level": "WARNING"},
    })
