"""Logging setup for processes embedding the result store"""

import logging

from pythonjsonlogger.json import JsonFormatter

from result_store.config import Settings

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(settings: Settings, logger_name: str = "result_store") -> logging.Logger:
    """Attach a stream handler to the package logger.

    Safe to call more than once; an existing handler is replaced.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(settings.log_level.upper())

    for handler in list(logger.handlers):
        if getattr(handler, "_result_store_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    if settings.log_format == "json":
        handler.setFormatter(JsonFormatter(JSON_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    handler._result_store_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
