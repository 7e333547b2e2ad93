"""Logging configuration for the application."""

import logging
import os
import sys
from collections.abc import Iterable
from typing import TextIO

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _parse_level(level: str) -> int:
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")
    return numeric_level


def _set_logger_levels(names: Iterable[str], level: int) -> None:
    for name in names:
        logging.getLogger(name).setLevel(level)


def configure_logging(stream: TextIO | None = None) -> None:
    """Configure application-wide logging to a single stream.

    Env vars:
      - LOG_LEVEL: DEBUG/INFO/WARNING/ERROR/CRITICAL (default INFO)
      - LOG_AWS_SDK: true/false (default false), keep boto logs at LOG_LEVEL

    :param stream: Where log records are written. Defaults to stdout.
    """
    level_name = os.environ.get("LOG_LEVEL", "INFO")
    level = _parse_level(level_name)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Hard reset: ensure exactly one handler with our formatter.
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(handler)

    _set_logger_levels(("urllib3", "feedparser"), level=max(level, logging.INFO))

    aws_sdk_enabled = os.environ.get("LOG_AWS_SDK", "false").strip().lower() == "true"
    if not aws_sdk_enabled:
        _set_logger_levels(("botocore", "boto3", "s3transfer"), level=logging.WARNING)

    logging.getLogger(__name__).info("Logging configured: level=%s", level_name.upper())
