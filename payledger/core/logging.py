import logging
import sys

import structlog

APP_NAME = "payledger"


def add_app_name(logger, method_name: str, event_dict: dict) -> dict:
    event_dict.setdefault("app", APP_NAME)
    return event_dict


def configure_logging(level: str = "WARNING") -> None:
    """Send JSON events to stderr so command output on stdout stays clean."""

    level = level.upper()
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        add_app_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
    ]

    structlog.configure(
        processors=shared_processors
        + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )

    logging.basicConfig(level=level, stream=sys.stderr)


def get_logger(name: str) -> structlog.BoundLogger:
    """Logger with ``component`` bound to the short module name."""
    return structlog.get_logger(component=name.rsplit(".", 1)[-1])
