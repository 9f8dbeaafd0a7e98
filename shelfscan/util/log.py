import logging
import os

import structlog


def configure_logging(level: str | None = None, json_logs: bool | None = None):
    if level is None:
        level = os.getenv("SHELFSCAN_APP__LOG_LEVEL", "INFO")
    if json_logs is None:
        json_logs = os.getenv("SHELFSCAN_LOG_JSON", "false").lower() == "true"

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
        ),
        cache_logger_on_first_use=False,
    )


configure_logging()

logger = structlog.get_logger("shelfscan")
