"""
Logging Setup.

structlog on top of stdlib logging, driven by config/settings/logging.yaml.
Every module gets its logger from get_logger(__name__); nothing else
configures handlers.

Each record carries timestamp, level, logger, event, func_name and lineno.
Inside a request the middleware adds request_id, frontend, method and
path, and the auth dependency adds user_id.

Usage:
    from notekeeper.backend.core.logging import get_logger, setup_logging

    setup_logging()                                   # values from logging.yaml
    setup_logging(level="DEBUG", format_type="console")

    logger = get_logger(__name__)
    logger.info("Note created", extra={"note_id": note.id})
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Any

import structlog
from structlog.typing import Processor

# Chatty third-party loggers capped at WARNING regardless of the app level
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "multipart", "python_multipart")


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
    ]


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
    enable_console: bool | None = None,
    enable_file_logging: bool | None = None,
) -> None:
    """
    Configure structlog and the root logger.

    Arguments left as None fall back to logging.yaml.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        format_type: "json" or "console"
        enable_console: Write to stdout
        enable_file_logging: Write JSON lines to the rotating file
    """
    from notekeeper.backend.core.config import find_project_root, get_app_config

    config = get_app_config().logging
    console_cfg = config.handlers.console
    file_cfg = config.handlers.file

    level = (level or config.level).upper()
    format_type = format_type or config.format
    if enable_console is None:
        enable_console = console_cfg.enabled
    if enable_file_logging is None:
        enable_file_logging = file_cfg.enabled

    processors = _shared_processors()
    structlog.configure(
        processors=processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    json_formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=processors,
    )
    if format_type == "console":
        console_formatter = structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
            foreign_pre_chain=processors,
        )
    else:
        console_formatter = json_formatter

    root = logging.getLogger()
    root.setLevel(getattr(logging, level))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if enable_console:
        stream = logging.StreamHandler(sys.stdout)
        stream.setFormatter(console_formatter)
        root.addHandler(stream)

    if enable_file_logging:
        log_path = find_project_root() / file_cfg.path
        log_path.parent.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(
            filename=str(log_path),
            maxBytes=file_cfg.max_bytes,
            backupCount=file_cfg.backup_count,
            encoding="utf-8",
        )
        rotating.setFormatter(json_formatter)
        root.addHandler(rotating)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    """Return the structlog logger for a module name."""
    return structlog.get_logger(name)
