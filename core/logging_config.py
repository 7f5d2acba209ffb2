"""
Root logger setup.

Every record carries the ``request_id`` of the HTTP request it was emitted
under (``-`` outside a request), so one prediction submission can be traced
through auth, eligibility and the upsert. Values passed through ``extra=``
are appended to the line; credentials among them are masked.
"""

import json
import logging
import logging.handlers
import sys
from contextvars import ContextVar
from datetime import datetime, timezone

request_id_ctx: ContextVar[str] = ContextVar("request_id", default="-")

_SENSITIVE_KEYS = frozenset({"access_token", "refresh_token", "authorization", "password", "code"})

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RESERVED = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime", "request_id"}

_LINE_FORMAT = "%(asctime)s  %(levelname)s  [%(request_id)s]  %(name)s:%(lineno)d  %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _context_fields(record: logging.LogRecord) -> dict:
    return {
        key: "***" if key.lower() in _SENSITIVE_KEYS else value
        for key, value in vars(record).items()
        if key not in _RESERVED
    }


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx.get()
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", "-"),
            "message": record.getMessage(),
            "line": record.lineno,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        context = _context_fields(record)
        if context:
            entry["context"] = context

        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """Colored level names, context appended as ``key=value``."""

    COLORS = {
        "DEBUG":    "\033[36m",
        "INFO":     "\033[32m",
        "WARNING":  "\033[33m",
        "ERROR":    "\033[31m",
        "CRITICAL": "\033[41m",
    }
    RESET = "\033[0m"

    def __init__(self, *args, color: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        if self.color:
            color = self.COLORS.get(record.levelname, self.RESET)
            line = line.replace(record.levelname, f"{color}{record.levelname:<8}{self.RESET}", 1)
        context = _context_fields(record)
        if context:
            line += "  " + " ".join(f"{k}={v}" for k, v in context.items())
        return line


def setup_logging(
    level: int | str = logging.INFO,
    json_output: bool = False,
    log_file: str | None = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure and return the root logger.

    Args:
        level:        Minimum log level (e.g. logging.DEBUG or "DEBUG").
        json_output:  JSON lines on stdout when True, colored text otherwise.
        log_file:     Optional rotating log file, always plain text.
        max_bytes:    Max size of each log file before rotation.
        backup_count: Number of rotated log files to retain.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    request_filter = RequestIdFilter()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(level)
    stdout_handler.addFilter(request_filter)
    if json_output:
        stdout_handler.setFormatter(JSONFormatter())
    else:
        stdout_handler.setFormatter(
            HumanFormatter(fmt=_LINE_FORMAT, datefmt=_DATE_FORMAT, color=sys.stdout.isatty())
        )
    root_logger.addHandler(stdout_handler)

    if log_file:
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.addFilter(request_filter)
        file_handler.setFormatter(HumanFormatter(fmt=_LINE_FORMAT, datefmt=_DATE_FORMAT, color=False))
        root_logger.addHandler(file_handler)

    # httpx logs every PostgREST round trip at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))

    return root_logger
