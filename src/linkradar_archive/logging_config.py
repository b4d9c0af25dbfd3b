"""JSON logging for the archive service.

Archive workers log one line per job state change, a warning before each
timeout retry and a traceback for unexpected failures. Records carry
``archive_id``/``link_id``/``url`` through ``extra=`` and come out as one
JSON object per line on stdout, tagged with ``service=linkradar-archive``.

httpx and httpcore log every request at INFO. The fetcher already reports
its outcome per archive, so those loggers are held at WARNING.
"""

import copy
import logging
import logging.config

LOGGING_CONFIG: dict = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
            "rename_fields": {
                "levelname": "severity",
                "asctime": "timestamp",
                "name": "logger",
            },
            "static_fields": {"service": "linkradar-archive"},
        },
    },
    "handlers": {
        "stdout": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "httpx": {"level": "WARNING"},
        "httpcore": {"level": "WARNING"},
    },
    "root": {"level": "INFO", "handlers": ["stdout"]},
}


def configure_logging(level: str = "INFO") -> None:
    """Install the JSON handler with the root logger at ``level``.

    Called from the app lifespan with CONTENT_ARCHIVE_LOG_LEVEL.
    """
    config = copy.deepcopy(LOGGING_CONFIG)
    config["root"]["level"] = level.upper()
    logging.config.dictConfig(config)
