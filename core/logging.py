"""
Structured logging configuration

JSON lines by default, plain text when LOG_FORMAT=text. Every record carries
the app name, environment and the ``domain`` (d0..d3) of the logger that
emitted it, so gateway, builder and dashboard output can be filtered apart.
"""
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from core.config import settings

# Context keys promoted to top-level JSON fields
CONTEXT_FIELDS = ("domain", "provider", "widget_id", "report_id", "dashboard_id")

_HANDLER_NAME = "analytics-console"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter stamping app, environment and analytics context"""

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["app"] = settings.app_name
        log_record["version"] = settings.app_version
        log_record["environment"] = settings.environment
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_record[field] = value

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


class DomainTextFormatter(logging.Formatter):
    """Text formatter prefixing the message with its domain, e.g. ``[d3]``"""

    def format(self, record: logging.LogRecord) -> str:
        record.domain_tag = f"[{record.domain}] " if getattr(record, "domain", None) else ""
        return super().format(record)


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> logging.Handler:
    """
    Install the console handler on the root logger

    Calling it again replaces the handler installed by the previous call and
    leaves handlers added by anything else alone.

    Returns:
        The installed handler
    """
    level = (level or settings.log_level).upper()
    log_format = log_format or settings.log_format

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level, logging.INFO))
    for handler in root_logger.handlers[:]:
        if handler.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.set_name(_HANDLER_NAME)
    if log_format == "json":
        console_handler.setFormatter(CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    else:
        console_handler.setFormatter(
            DomainTextFormatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(domain_tag)s%(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    root_logger.addHandler(console_handler)

    # Request lines are logged by the gateway itself
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    return console_handler


class LoggerAdapter(logging.LoggerAdapter):
    """Logger adapter attaching fixed context to every record"""

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def with_context(self, **context) -> "LoggerAdapter":
        """Child adapter with extra context, e.g. ``logger.with_context(widget_id=...)``"""
        return LoggerAdapter(self.logger, {**self.extra, **context})


def get_logger(name: str, **context) -> LoggerAdapter:
    """
    Get a logger with fixed context

    Example:
        logger = get_logger(__name__, domain="d3")
        logger.with_context(widget_id=widget.id).warning("Refresh failed")
    """
    return LoggerAdapter(logging.getLogger(name), context)


setup_logging()
