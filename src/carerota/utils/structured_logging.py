"""
Structured Logging
==================
structlog integration for swap lifecycle and audit events.

Usage:
    from carerota.utils.structured_logging import get_structured_logger

    log = get_structured_logger("carerota.swaps")
    log.info("swap_requested", swap_id="abc", requester_id="u1")
"""
import logging
from typing import Any

import structlog
import structlog.contextvars


def configure_structlog(json_output: bool = False, level: int = logging.INFO) -> None:
    """
    Configure structlog for the application.

    Args:
        json_output: If True, output JSON lines (for production).
                     If False, use colored console output (for development).
        level: Minimum level passed through the filtering logger.
    """
    if json_output:
        renderer = structlog.processors.JSONRenderer()
        timestamper = structlog.processors.TimeStamper(fmt="iso")
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)
        timestamper = structlog.processors.TimeStamper(fmt="%H:%M:%S")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            timestamper,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_structured_logger(name: str) -> Any:
    """
    Get a structured logger.

    Args:
        name: Logger name (e.g., "carerota.swaps")

    Returns:
        structlog bound logger
    """
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """
    Bind context variables for all subsequent log calls.

    Args:
        **kwargs: Context values (e.g., swap_id="abc123")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all context variables."""
    structlog.contextvars.clear_contextvars()


def bound_context(**kwargs):
    """
    Bind context variables for the duration of a ``with`` block.

    Only the given keys are touched; values bound by the caller survive
    and any key that was shadowed is restored on exit.

    Usage:
        with bound_context(swap_id="abc123"):
            log.info("swap_approved")
    """
    return structlog.contextvars.bound_contextvars(**kwargs)
