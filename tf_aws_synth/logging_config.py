"""Module to define the logging configuration for tf_aws_synth.

The level comes from the LOG_LEVEL environment variable unless one is
passed to configure_logging(). Log output goes to stderr so that
synthesized JSON on stdout stays clean.
"""
import copy
import logging
import logging.config
import os
from typing import (
    Any,
    Dict,
    Optional,
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

LOGGING_CONFIG_BASE: Dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "[%(asctime)s] [%(levelname)s] [%(name)s] - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": LOG_LEVEL,
            "formatter": "standard",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        "tf_aws_synth": {
            "level": LOG_LEVEL,
            "handlers": ["console"],
            "propagate": False,
        },
        "botocore": {
            "level": "WARNING",
            "handlers": ["console"],
            "propagate": False,
        },
    },
}


def get_logging_config(level: Optional[str] = None) -> Dict[str, Any]:
    """Return a copy of the base configuration at the given level."""
    config = copy.deepcopy(LOGGING_CONFIG_BASE)
    level = (level or LOG_LEVEL).upper()
    config["handlers"]["console"]["level"] = level
    config["loggers"]["tf_aws_synth"]["level"] = level
    return config


def configure_logging(level: Optional[str] = None) -> None:
    logging.config.dictConfig(get_logging_config(level))
