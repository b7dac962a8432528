"""Centralized logging configuration for sysv-service.

Entry points (the CLI, a foreground workload) call configure_logging() early.
Services that need their own sink ask the backend for one: a Rich console
logger when attached to a terminal, a syslog logger otherwise.

Logging Levels:
- DEBUG: Subprocess invocations, individual link operations
- INFO: Install, uninstall and control operations
- WARNING: Best-effort steps that failed, ignored options
- ERROR: Failures that affect operation
"""

import logging
import logging.handlers
import os
import sys
from collections.abc import Callable

ENV_VAR = "SYSV_SERVICE_LOG_LEVEL"
SYSLOG_ADDRESS = "/dev/log"

ErrorCallback = Callable[[BaseException], None]


def is_interactive() -> bool:
    """Check whether the process is attached to a terminal session."""
    try:
        return sys.stdin.isatty()
    except (AttributeError, ValueError):
        return False


class ComponentFormatter(logging.Formatter):
    """Formatter that extracts component name from logger path.

    Converts full module paths to short component names:
    - sysv_service.service.sysv.install -> service
    - sysv_service.cli.app -> cli
    """

    def format(self, record: logging.LogRecord) -> str:
        parts = record.name.split(".")
        if len(parts) >= 2 and parts[0] == "sysv_service":
            record.component = parts[1]
        else:
            record.component = parts[0]
        return super().format(record)


class ReportingSysLogHandler(logging.handlers.SysLogHandler):
    """Syslog handler that hands emit failures to a callback.

    The default handler prints a traceback to stderr, which nobody reads
    when running as a daemon.
    """

    def __init__(self, on_error: ErrorCallback | None = None, **kwargs):
        super().__init__(**kwargs)
        self._on_error = on_error

    def handleError(self, record: logging.LogRecord) -> None:
        exc = sys.exc_info()[1]
        if self._on_error is not None and exc is not None:
            self._on_error(exc)
            return
        super().handleError(record)


def _resolve_level(level: str | None) -> int:
    if level is None:
        level = os.environ.get(ENV_VAR, "INFO").upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            level = "INFO"
    return getattr(logging, level.upper())


def configure_logging(level: str | None = None, use_rich: bool = False) -> None:
    """Configure logging for sysv-service.

    Call this once at application startup.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
            If None, uses SYSV_SERVICE_LOG_LEVEL env var or INFO.
        use_rich: Use Rich handler for colorful output.
    """
    log_level = _resolve_level(level)

    if use_rich:
        from rich.logging import RichHandler

        console_handler: logging.Handler = RichHandler(
            rich_tracebacks=False,
            show_path=False,
            show_time=True,
            markup=False,
        )
        console_handler.setFormatter(ComponentFormatter("%(component)s | %(message)s"))
    else:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%H:%M:%S",
            )
        )

    logging.basicConfig(
        level=log_level,
        handlers=[console_handler],
        force=True,
    )


def console_logger(name: str) -> logging.Logger:
    """Get a logger writing to the terminal through Rich."""
    from rich.logging import RichHandler

    service_logger = logging.getLogger(f"sysv_service.console.{name}")
    if not service_logger.handlers:
        handler = RichHandler(show_path=False, markup=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        service_logger.addHandler(handler)
        service_logger.propagate = False
    return service_logger


def system_logger(
    name: str,
    on_error: ErrorCallback | None = None,
    address: str = SYSLOG_ADDRESS,
) -> logging.Logger:
    """Get a logger writing to the system log under the service name.

    Failures to reach the syslog socket are reported to on_error when a
    record is emitted.
    """
    service_logger = logging.getLogger(f"sysv_service.syslog.{name}")
    for handler in list(service_logger.handlers):
        service_logger.removeHandler(handler)
        handler.close()

    handler = ReportingSysLogHandler(on_error=on_error, address=address)
    handler.setFormatter(logging.Formatter(f"{name}: %(message)s"))
    service_logger.addHandler(handler)
    service_logger.propagate = False
    return service_logger
