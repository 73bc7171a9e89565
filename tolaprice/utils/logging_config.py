"""
Structured logging configuration.

Text logs for local runs, JSON logs (python-json-logger) for the deployed
calculator API.

Rate fetches and quotes tag their log lines with the metal being priced:

    with log_fields(metal="Gold"):
        logger.warning("rate unavailable")

The fields live in a ContextVar, so concurrent requests and worker threads
each see only their own. PricingFieldsFilter copies them onto records at the
handlers installed by setup_logging.
"""

import logging
import logging.handlers
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Iterator

from pythonjsonlogger import jsonlogger

from tolaprice.utils.config_loader import LoggingConfig

SERVICE_NAME = "tolaprice"

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s%(fields_suffix)s"
JSON_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"

_current_fields: ContextVar[dict[str, Any]] = ContextVar("tolaprice_log_fields", default={})


@contextmanager
def log_fields(**fields: Any) -> Iterator[None]:
    """Attach fields (e.g. metal="Gold") to log records emitted inside the block."""
    token = _current_fields.set({**_current_fields.get(), **fields})
    try:
        yield
    finally:
        _current_fields.reset(token)


def current_log_fields() -> dict[str, Any]:
    return dict(_current_fields.get())


class PricingFieldsFilter(logging.Filter):
    """Copy the active log_fields onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        fields = current_log_fields()
        record.pricing_fields = fields
        record.fields_suffix = (
            " [" + " ".join(f"{key}={value}" for key, value in fields.items()) + "]" if fields else ""
        )
        return True


class JSONFormatter(jsonlogger.JsonFormatter):
    """JSON log formatter adding service, level and caller location."""

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict):
        super().add_fields(log_record, record, message_dict)

        log_record.pop("pricing_fields", None)
        log_record.pop("fields_suffix", None)
        log_record["service"] = SERVICE_NAME
        log_record["timestamp"] = self.formatTime(record)
        log_record["level"] = record.levelname
        log_record["module"] = record.module
        log_record["line"] = record.lineno
        log_record.update(getattr(record, "pricing_fields", {}))


def _make_handler(handler: logging.Handler, formatter: logging.Formatter) -> logging.Handler:
    handler.setFormatter(formatter)
    handler.addFilter(PricingFieldsFilter())
    return handler


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_file: Path | None = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """
    Configure the root logger for the pricing service or CLI.

    Replaces existing root handlers with a stdout handler and, when log_file
    is given, a rotating file handler.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR).
        log_format: "text" or "json".
        log_file: Optional file path for log output.
        max_bytes: Max log file size before rotation.
        backup_count: Number of rotated files to keep.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    if log_format.lower() == "json":
        formatter: logging.Formatter = JSONFormatter(JSON_FORMAT)
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    root_logger.addHandler(_make_handler(logging.StreamHandler(sys.stdout), formatter))

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        root_logger.addHandler(_make_handler(file_handler, formatter))

    # Retry chatter from the rate client's session
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    root_logger.info(f"Logging configured: level={level}, format={log_format}")


def setup_logging_from_config(config: LoggingConfig) -> None:
    """Configure logging from the logging section of AppConfig."""
    setup_logging(
        level=config.level,
        log_format=config.format,
        log_file=Path(config.log_file) if config.log_file else None,
    )
