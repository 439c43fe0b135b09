"""
Logging Configuration for Sales Warehouse Analytics

All log output goes to stderr through one stdlib handler, so report output
on stdout stays machine readable. SQL statement logging is controlled by
``DatabaseSettings.echo`` and uses the same handler.
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import add_log_level, ProcessorFormatter

from sales_warehouse.config.settings import Settings, get_settings

SQL_LOGGER = "sqlalchemy.engine"


def _renderer(log_format: str):
    if log_format == "json":
        return JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(log_level: Optional[str] = None, settings: Optional[Settings] = None) -> None:
    """
    Route structlog and stdlib logging to stderr.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
        settings: Settings to read defaults from
    """
    settings = settings or get_settings()
    level = (log_level or settings.monitoring.log_level).upper()
    numeric_level = getattr(logging, level, logging.INFO)

    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=pre_chain + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ProcessorFormatter(
            processor=_renderer(settings.monitoring.log_format),
            foreign_pre_chain=pre_chain,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(numeric_level)

    # Statements log at INFO; the engine itself is created with echo off
    sql_logger = logging.getLogger(SQL_LOGGER)
    sql_logger.setLevel(logging.INFO if settings.database.echo else logging.WARNING)

    structlog.get_logger(__name__).debug(
        "Logging configured",
        level=level,
        format=settings.monitoring.log_format,
        sql_echo=settings.database.echo,
    )
