"""
Logging configuration

structlog renders every event, and the standard library handlers write the
result, so package logs reach stderr and the optional log file alike.
Third-party loggers (tenacity, googleapiclient) go through the same handlers.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

import structlog

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_configured_level: Optional[int] = None


def _level_number(level: str) -> int:
    name = level.upper()
    if name not in LOG_LEVELS:
        raise ValueError(f"Unknown log level '{level}'; expected one of {', '.join(LOG_LEVELS)}")
    return getattr(logging, name)


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure structlog on top of the root logger.

    Args:
        level: Log level name, case-insensitive
        log_file: Optional path that receives the same lines as stderr,
            without colour codes

    Raises:
        ValueError: If level is not a known level name
    """
    global _configured_level
    log_level = _level_number(level)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    foreign_pre_chain = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(),
        foreign_pre_chain=foreign_pre_chain,
    ))
    handlers = [console]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=False),
            foreign_pre_chain=foreign_pre_chain,
        ))
        handlers.append(file_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        force=True
    )

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False
    )

    _configured_level = log_level


def setup_logger(
    name: Optional[str] = None,
    level: str = "INFO",
    log_file: Optional[str] = None
) -> structlog.BoundLogger:
    """
    Return a structlog logger, configuring logging on first use.

    Later calls keep the existing configuration; call configure_logging()
    to change level or file.
    """
    if _configured_level is None:
        configure_logging(level, log_file)
    return structlog.get_logger(name)
