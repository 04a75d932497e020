# clinical_markdown/A_core/A00_logging.py
"""
Logging for the clinical markdown parser.

Every project logger hangs off the ``clinical_markdown`` logger, so one call to
``configure_logging`` sets up the parse stages, the pipeline, the exporter
and the CLI together. Parse stages log at DEBUG only. The pipeline emits one
INFO summary per document. Console output goes to stderr so the CLI can keep
stdout for its per-file summary lines.

Key Components:
    - configure_logging: (Re)attach the console and optional rotating file handler
    - get_logger: Logger inside the project namespace
    - get_log_file: Path of the active log file, if any
    - ColoredFormatter: Level-coloured console formatter
    - LogContext: Starting / Completed / Failed messages around a block
    - timed: Decorator logging the duration of a call

Example:
    >>> from A_core.A00_logging import get_logger, LogContext
    >>> logger = get_logger(__name__)
    >>> with LogContext(logger, "parse cardiology.md"):
    ...     document = pipeline.parse(text)

Dependencies:
    - logging.handlers.RotatingFileHandler for the optional log file
"""

from __future__ import annotations

import functools
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Dict, Generator, Optional, TypeVar, Union

F = TypeVar("F", bound=Callable[..., Any])

ROOT_LOGGER_NAME = "clinical_markdown"

LOG_DIR = Path("logs")
CONSOLE_FORMAT = "%(levelname)-8s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

LEVEL_COLORS: Dict[str, str] = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"


# -------------------------
# Formatting
# -------------------------


class ColoredFormatter(logging.Formatter):
    """
    Colours the level name when the console is a terminal.

    Formats a copy of the record, so handlers sharing the record (the log
    file) never see escape codes.
    """

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelname) if self.use_colors else None
        if color is None:
            return super().format(record)
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{_RESET}"
        return super().format(colored)


# -------------------------
# Handlers
# -------------------------


def _project_logger() -> logging.Logger:
    return logging.getLogger(ROOT_LOGGER_NAME)


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, DATE_FORMAT))
    return handler


def _file_handler(log_dir: Path, run_id: str, level: int) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / f"{ROOT_LOGGER_NAME}_{run_id}.log",
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, DATE_FORMAT))
    return handler


def configure_logging(
    log_dir: Optional[Union[str, Path]] = None,
    log_level: int = logging.INFO,
    run_id: Optional[str] = None,
    enable_file_logging: bool = False,
    enable_console_logging: bool = True,
) -> None:
    """
    Configure the project loggers.

    Calling it again replaces the handlers from the previous call; the CLI
    calls it once per run.

    Args:
        log_dir: Directory for the log file (``./logs`` by default).
        log_level: Minimum level for the project loggers and their handlers.
        run_id: Log file suffix; a timestamp when omitted.
        enable_file_logging: Also write a rotating ``clinical_markdown_<run_id>.log``.
        enable_console_logging: Write to stderr.
    """
    project = _project_logger()
    project.setLevel(log_level)
    for handler in list(project.handlers):
        project.removeHandler(handler)
        handler.close()

    if enable_console_logging:
        project.addHandler(_console_handler(log_level))
    if enable_file_logging:
        run_id = run_id or datetime.now().strftime("%Y%m%d_%H%M%S")
        project.addHandler(_file_handler(Path(log_dir) if log_dir else LOG_DIR, run_id, log_level))


def get_logger(name: str) -> logging.Logger:
    """
    Logger inside the ``clinical_markdown`` namespace.

    Example:
        >>> get_logger("H_pipeline.H01_document_pipeline").name
        'clinical_markdown.H_pipeline.H01_document_pipeline'
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def get_log_file() -> Optional[Path]:
    for handler in _project_logger().handlers:
        if isinstance(handler, RotatingFileHandler):
            return Path(handler.baseFilename)
    return None


# -------------------------
# Operation tracking
# -------------------------


@contextmanager
def LogContext(
    logger: logging.Logger,
    operation: str,
    level: int = logging.INFO,
) -> Generator[None, None, None]:
    """
    Log the start and end of an operation with its duration.

    Example:
        >>> with LogContext(logger, "parse notes.md"):
        ...     pipeline.parse(text)
        INFO | Starting: parse notes.md
        INFO | Completed: parse notes.md (0.01s)
    """
    logger.log(level, f"Starting: {operation}")
    started = time.perf_counter()
    try:
        yield
    except Exception as e:
        logger.error(f"Failed: {operation} ({time.perf_counter() - started:.2f}s) - {type(e).__name__}: {e}")
        raise
    logger.log(level, f"Completed: {operation} ({time.perf_counter() - started:.2f}s)")


def timed(logger: Optional[logging.Logger] = None, level: int = logging.DEBUG) -> Callable[[F], F]:
    """Decorator logging how long each call of the wrapped function took."""

    def decorator(func: F) -> F:
        log = logger or get_logger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log.error(f"{func.__name__} failed after {time.perf_counter() - started:.2f}s: {e}")
                raise
            else:
                log.log(level, f"{func.__name__} completed in {time.perf_counter() - started:.3f}s")
            return result

        return wrapper  # type: ignore[return-value]

    return decorator


__all__ = [
    "ROOT_LOGGER_NAME",
    "ColoredFormatter",
    "LogContext",
    "configure_logging",
    "get_log_file",
    "get_logger",
    "timed",
]
