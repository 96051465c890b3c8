"""
Care Rota: Logging Infrastructure
==================================
Console and rotating-file logging for solves, conflict checks and swaps.

Levels:
    TRACE (5): Solver entry points with argument shapes
    DEBUG (10): Scores, exchange moves, passing rule checks
    INFO (20): Solve phases, swap transitions
    WARNING (30): Understaffed shifts, detected conflicts
    ERROR (40): Storage failures, exceptions
"""
import functools
import logging
import sys
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Optional

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

ROOT_LOGGER_NAME = "carerota"

CONSOLE_FORMAT = "[%(asctime)s] %(levelname)-7s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"

CHECK_MARKS = {True: "✓", False: "✗"}


def _trace(self, message, *args, **kwargs):
    if self.isEnabledFor(TRACE):
        self._log(TRACE, message, args, **kwargs)


logging.Logger.trace = _trace


class ColoredFormatter(logging.Formatter):
    """Level-colored console lines; plain text when stderr is not a terminal."""

    COLORS = {
        TRACE: "\033[90m",
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, fmt: str = CONSOLE_FORMAT, datefmt: str = "%H:%M:%S", stream=None):
        super().__init__(fmt, datefmt=datefmt)
        self.stream = stream if stream is not None else sys.stderr

    def format(self, record):
        line = super().format(record)
        color = self.COLORS.get(record.levelno)
        isatty = getattr(self.stream, "isatty", None)
        if color and isatty is not None and isatty():
            return f"{color}{line}{self.RESET}"
        return line


def _level(name: Optional[str], default: int = logging.INFO) -> int:
    if not name:
        return default
    if name.upper() == "TRACE":
        return TRACE
    return getattr(logging, name.upper(), default)


def level_for_verbosity(verbose: int) -> str:
    """Map a count of ``-v`` flags to a level name."""
    if verbose >= 3:
        return "TRACE"
    if verbose == 2:
        return "DEBUG"
    if verbose == 1:
        return "INFO"
    return "WARNING"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    console_level: Optional[str] = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> logging.Logger:
    """
    Configure the ``carerota`` logger tree.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Level for the log file, and for the console unless
            ``console_level`` is given. ``TRACE`` is accepted.
        log_file: Rotating log file; parent directories are created.
            None disables file output.
        console_level: Separate level for stderr output
        max_bytes: File size that triggers rotation
        backup_count: Rotated files kept

    Returns:
        The ``carerota`` logger
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(TRACE)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    file_level = _level(level)
    stderr_level = _level(console_level, file_level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(stderr_level)
    console.setFormatter(ColoredFormatter(stream=sys.stderr))
    root.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        rotating.setLevel(file_level)
        rotating.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(rotating)

    root.debug(
        "Logging ready: console=%s file=%s",
        logging.getLevelName(stderr_level),
        f"{path} ({logging.getLevelName(file_level)})" if log_file else "off",
    )
    return root


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _shape(value: Any) -> str:
    # Collections of shifts or staff are summarised by size
    if isinstance(value, (list, tuple, set, frozenset)):
        return f"{type(value).__name__}[{len(value)}]"
    if isinstance(value, dict):
        return f"dict[{len(value)}]"
    text = repr(value)
    return text if len(text) <= 40 else text[:37] + "..."


def log_function_call(func: Callable) -> Callable:
    """
    Trace entry, exit and elapsed time of a solver entry point.

    Arguments are logged by shape (``list[12]``) rather than content.
    Exceptions are logged at ERROR and re-raised.
    """
    logger = logging.getLogger(func.__module__)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        name = func.__qualname__
        if logger.isEnabledFor(TRACE):
            shown = [_shape(a) for a in args] + [f"{k}={_shape(v)}" for k, v in kwargs.items()]
            logger.log(TRACE, f"→ {name}({', '.join(shown)})")
        started = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.error(f"✖ {name} raised: {type(e).__name__}: {e}")
            raise
        logger.log(TRACE, f"← {name} -> {_shape(result)} in {time.perf_counter() - started:.3f}s")
        return result

    return wrapper


def log_constraint(
    logger: logging.Logger,
    name: str,
    satisfied: bool,
    details: str = "",
    level: int = logging.DEBUG,
):
    """Log one rule check; failures always go out at WARNING."""
    line = f"[{CHECK_MARKS[bool(satisfied)]}] {name}"
    if details:
        line = f"{line} : {details}"
    logger.log(level if satisfied else logging.WARNING, line)


class SolverLogger:
    """
    Phase/step logger used by the solve pipeline.

    ``phase`` starts a timed section, ``enter``/``exit`` indent DEBUG
    details beneath the current step.
    """

    def __init__(self, name: str = "carerota.solver"):
        self.logger = logging.getLogger(name)
        self.indent = 0
        self._phase_started: Optional[float] = None

    @property
    def pad(self) -> str:
        return "  " * self.indent

    def phase(self, name: str):
        self.indent = 0
        self._phase_started = time.perf_counter()
        self.logger.info(f"{'=' * 12} {name} {'=' * 12}")

    def elapsed(self) -> float:
        if self._phase_started is None:
            return 0.0
        return time.perf_counter() - self._phase_started

    def step(self, description: str):
        self.logger.info(f"{self.pad}▸ {description}")

    def detail(self, key: str, value: Any):
        self.logger.debug(f"{self.pad}  {key}: {value}")

    def enter(self, context: str):
        self.logger.debug(f"{self.pad}┌─ {context}")
        self.indent += 1

    def exit(self, context: str = ""):
        self.indent = max(0, self.indent - 1)
        if context:
            self.logger.debug(f"{self.pad}└─ {context}")
