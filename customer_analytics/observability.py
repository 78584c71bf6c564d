"""Structured logging configuration.

Logs go to stderr so that JSON written to stdout by the command line stays
machine readable.
"""

from __future__ import annotations

import logging
import sys

import structlog


def configure_logging(level: int = logging.INFO, json_output: bool = True) -> None:
    """Configure stdlib logging and structlog for the engine.

    Args:
        level: Minimum log level for both stdlib and structlog loggers.
        json_output: Render events as JSON lines; otherwise use the
            human-friendly console renderer.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )
