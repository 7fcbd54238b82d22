"""Logging for the ``datavault`` package.

Every module logger is a child of one package logger that owns the
handlers, so the console and the daily log file are opened once per
process. Records pass through :class:`RedactionFilter` before any
handler writes them: credentials and bearer tokens never reach a log.
"""

import logging
import re
import sys
from datetime import datetime
from pathlib import Path

from datavault.settings import settings

PACKAGE_LOGGER = "datavault"
REDACTED = "***"

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_LOGGERS_CACHE: dict[str, logging.Logger] = {}

_SECRET_ASSIGNMENT_RE = re.compile(
    r"(?i)\b(password|passwd|secret|token|api[_-]?key)(\s*[:=]\s*)([^\s,;'\"]+)"
)
_BEARER_RE = re.compile(r"(?i)\b(bearer\s+)[A-Za-z0-9._~+/=-]+")
_JWT_RE = re.compile(r"\beyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*")


# =============================================================================
# REDACTION
# =============================================================================


def redact(text: str) -> str:
    """Mask secret assignments, bearer credentials and JWTs in a message."""
    text = _SECRET_ASSIGNMENT_RE.sub(lambda m: f"{m.group(1)}{m.group(2)}{REDACTED}", text)
    text = _BEARER_RE.sub(lambda m: f"{m.group(1)}{REDACTED}", text)
    return _JWT_RE.sub(REDACTED, text)


class RedactionFilter(logging.Filter):
    """Rewrite each record's message with secrets masked.

    The message is rendered once with its arguments, so secrets passed as
    ``%s`` arguments are masked as well.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact(record.getMessage())
        record.args = None
        return True


# =============================================================================
# SETUP
# =============================================================================


def configure_logging(
    level: int | None = None,
    log_dir: Path | None = None,
    *,
    force: bool = False,
) -> logging.Logger:
    """Attach the shared handlers to the package logger.

    Args:
        level: Package level. If None, uses LOG_LEVEL from settings.
        log_dir: Directory for the daily file. If None, uses LOG_DIR from settings.
        force: Replace handlers that are already attached.

    Returns:
        The package logger.
    """
    package = logging.getLogger(PACKAGE_LOGGER)
    if package.handlers and not force:
        return package

    for handler in package.handlers:
        handler.close()
    package.handlers.clear()
    package.propagate = False
    package.setLevel(level if level is not None else logging.getLevelName(settings.logging.level))

    formatter = logging.Formatter(_LOG_FORMAT, _LOG_DATE_FORMAT)
    package.addHandler(_create_console_handler(formatter))

    if settings.logging.to_file:
        file_handler = _create_file_handler(formatter, log_dir)
        if file_handler:
            package.addHandler(file_handler)

    return package


def setup_logger(name: str, level: int | None = None) -> logging.Logger:
    """Return the module logger ``datavault.<name>``.

    Args:
        name: Dotted module name (e.g., 'services.consent_ledger').
        level: Level for this logger only. If None, inherits the package level.

    Returns:
        Logger writing through the package handlers.
    """
    if name in _LOGGERS_CACHE:
        return _LOGGERS_CACHE[name]

    configure_logging()
    logger = logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
    if level is not None:
        logger.setLevel(level)

    _LOGGERS_CACHE[name] = logger
    return logger


def _create_console_handler(formatter: logging.Formatter) -> logging.StreamHandler:
    """Stderr handler with redaction."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.addFilter(RedactionFilter())
    return handler


def _create_file_handler(
    formatter: logging.Formatter,
    log_dir: Path | None,
) -> logging.FileHandler | None:
    """Create the handler for today's log file.

    Args:
        formatter: Log formatter.
        log_dir: Directory for log files.

    Returns:
        Configured FileHandler or None when the directory is unusable.
    """
    try:
        handler = logging.FileHandler(_get_log_file_path(log_dir), encoding="utf-8")
    except OSError as e:
        print(f"Warning: Could not create log file: {e}", file=sys.stderr)
        return None
    handler.setFormatter(formatter)
    handler.addFilter(RedactionFilter())
    return handler


def _get_log_file_path(log_dir: Path | None) -> Path:
    """Path of today's log file, creating its directory."""
    if log_dir is None:
        log_dir = Path(settings.logging.log_dir)

    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / f"datavault_{datetime.now():%Y%m%d}.log"
