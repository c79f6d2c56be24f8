"""Log setup for the videovote client.

Service modules log through plain ``logging.getLogger(__name__)``; the CLI
uses ``get_logger`` for key/value events. Both end up in one structlog
formatter on stderr, tagged with the signed-in user's email. Credentials
never reach the output.
"""

import logging
import sys
from contextvars import ContextVar

import structlog

# Email of the signed-in user, maintained by SessionStore
current_user_email: ContextVar[str | None] = ContextVar("current_user_email", default=None)

SECRET_KEYS = frozenset({"token", "access_token", "authorization", "password", "password2"})
REDACTED = "***"

# Third-party loggers that report every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore")


def add_user(_logger, _method_name, event_dict):
    """Tag the event with the signed-in user, when there is one."""
    email = current_user_email.get()
    if email:
        event_dict["user"] = email
    return event_dict


def redact_secrets(_logger, _method_name, event_dict):
    """Mask credential-bearing keys passed as structured fields."""
    for key in event_dict.keys() & SECRET_KEYS:
        event_dict[key] = REDACTED
    return event_dict


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_user,
        redact_secrets,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def setup_logging(log_level: str = "WARNING", json_output: bool = False) -> None:
    """Route stdlib and structlog records through one stderr handler.

    Args:
        log_level: Root level name (DEBUG, INFO, WARNING, ERROR)
        json_output: One JSON object per line instead of the colored console view
    """
    shared = _shared_processors()
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # foreign_pre_chain gives stdlib records the same user tag and timestamp
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper()))

    for logger_name in QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def set_user_context(email: str) -> None:
    current_user_email.set(email)


def clear_user_context() -> None:
    current_user_email.set(None)
