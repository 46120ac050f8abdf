"""
structlog setup shared by the API, the scheduler and the aggregation job.

Every record is routed through the standard library root logger, so uvicorn,
SQLAlchemy and APScheduler output is rendered the same way as ours: one JSON
object per line in production, coloured key=value pairs elsewhere.

Secrets never reach the output. Keys such as ``password`` or
``refresh_token`` are masked, and third-party credentials embedded in
upstream URLs (``apikey=``, ``key=``, ``client_secret=``) are scrubbed from
string values, which matters because httpx puts the full request URL in its
error messages.
"""

import logging
import re
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor

from nightout.core.config import get_settings

REDACTED = "[redacted]"

SENSITIVE_KEYS = frozenset({
    "password",
    "new_password",
    "password_hash",
    "token",
    "access_token",
    "refresh_token",
    "authorization",
    "secret_key",
})

_CREDENTIAL_PARAM = re.compile(
    r"\b((?:apikey|api_key|key|client_id|client_secret)=)[^&\s'\"]+", re.IGNORECASE
)

# Library loggers that are chatty at INFO
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "apscheduler": logging.WARNING,
}


def redact_secrets(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    for key, value in event_dict.items():
        if key.lower() in SENSITIVE_KEYS and value is not None:
            event_dict[key] = REDACTED
        elif isinstance(value, str) and "=" in value:
            event_dict[key] = _CREDENTIAL_PARAM.sub(rf"\g<1>{REDACTED}", value)
    return event_dict


def add_service_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    settings = get_settings()
    event_dict.setdefault("service", settings.APP_NAME)
    event_dict.setdefault("env", settings.ENVIRONMENT)
    return event_dict


def _processors(json_logs: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_logs:
        processors += [add_service_context, structlog.processors.format_exc_info]
    # last, so rendered tracebacks are scrubbed too
    processors.append(redact_secrets)
    return processors


class _NightoutHandler(logging.StreamHandler):
    """Marker type so repeated setup replaces our handler instead of stacking."""


def setup_logging(json_logs: Optional[bool] = None, level: Optional[str] = None) -> None:
    """
    Configure structlog and the root logger.

    ``json_logs`` defaults to True in production; ``level`` defaults to
    LOG_LEVEL. Safe to call more than once.
    """
    settings = get_settings()
    if json_logs is None:
        json_logs = settings.is_production
    level_name = (level or settings.LOG_LEVEL).upper()

    processors = _processors(json_logs)
    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = _NightoutHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            # records from plain stdlib loggers get the same treatment
            foreign_pre_chain=processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    for existing in [h for h in root_logger.handlers if isinstance(h, _NightoutHandler)]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
