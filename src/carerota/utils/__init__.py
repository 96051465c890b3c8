"""Utilities package for the care rota core."""
from .logging_setup import (
    TRACE,
    SolverLogger,
    get_logger,
    level_for_verbosity,
    log_constraint,
    log_function_call,
    setup_logging,
)
from .time_utils import (
    absolute_interval,
    duration_hours,
    intervals_overlap,
    normalized_interval,
    parse_hhmm,
    rest_period_minutes,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "level_for_verbosity",
    "log_function_call",
    "log_constraint",
    "SolverLogger",
    "TRACE",
    "parse_hhmm",
    "normalized_interval",
    "duration_hours",
    "intervals_overlap",
    "absolute_interval",
    "rest_period_minutes",
]
