"""
CosmosMind Logging
==================
One package logger, silent until setup() is called. The MCP server and
the CLI call setup() on start; library users attach their own handlers.

stderr gets COSMOS_LOG_LEVEL and up, the rotating file in COSMOS_HOME
gets everything. Operations wrapped in timed() log their duration and
warn when they run past COSMOS_SLOW_MS.
"""

import logging
import logging.handlers
import time
from pathlib import Path
from typing import Optional

from cosmosmind import config

log = logging.getLogger("cosmosmind")
log.addHandler(logging.NullHandler())

_configured = False

FORMAT = "[%(asctime)s] %(levelname)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup(level: Optional[str] = None, log_file: Optional[Path] = None):
    """Attach stderr and file handlers. Later calls are no-ops."""
    global _configured
    if _configured:
        return
    _configured = True

    stderr_level = getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO)
    path = Path(log_file) if log_file else config.LOG_FILE
    fmt = logging.Formatter(FORMAT, datefmt=DATE_FORMAT)
    log.setLevel(logging.DEBUG)

    stderr_handler = logging.StreamHandler()
    stderr_handler.setLevel(stderr_level)
    stderr_handler.setFormatter(fmt)
    log.addHandler(stderr_handler)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            str(path), maxBytes=config.LOG_MAX_BYTES, backupCount=config.LOG_BACKUPS,
            encoding="utf-8",
        )
    except OSError as e:
        log.warning(f"File logging disabled: {e}")
        return
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(fmt)
    log.addHandler(file_handler)
    log.debug(f"Logging to {path} (stderr at {logging.getLevelName(stderr_level)})")


class Timer:
    """Wall-clock timer for one engine operation."""

    def __init__(self, operation: str, slow_ms: float):
        self.operation = operation
        self.slow_ms = slow_ms
        self.start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self):
        self.start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.elapsed_ms = (time.perf_counter() - self.start) * 1000
        if exc_type is not None:
            log.debug(f"{self.operation} failed after {self.elapsed_ms:.2f}ms")
        elif self.elapsed_ms > self.slow_ms:
            log.warning(f"{self.operation} took {self.elapsed_ms:.2f}ms (slow)")
        else:
            log.debug(f"{self.operation} took {self.elapsed_ms:.2f}ms")
        return False


def timed(operation: str, slow_ms: Optional[float] = None) -> Timer:
    """Time a block: `with timed("save") as t: ...`, then read t.elapsed_ms."""
    return Timer(operation, config.SLOW_OPERATION_MS if slow_ms is None else slow_ms)
