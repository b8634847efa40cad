"""
Logging setup shared by the entrypoint and anything embedding cidfetch
"""
import logging
import sys

import structlog

DEFAULT_FORMAT = "%(message)s"


def configure_logging(level: str = "INFO", fmt: str = DEFAULT_FORMAT):
    """Route structlog events through stdlib logging to stdout as JSON lines."""
    logging.basicConfig(
        format=fmt,
        stream=sys.stdout,
        level=getattr(logging, str(level).upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
