# --- Standard library imports ---
import sys
import logging
from typing import Optional


# --- Custom log levels ---
WHATIF = 25   # Between INFO (20) and WARNING (30)
logging.addLevelName(WHATIF, "WHATIF")

def whatif(self, message, *args, **kwargs):
    """Add `whatif` method to Logger for dry-run intent lines."""
    if self.isEnabledFor(WHATIF):
        self._log(WHATIF, message, args, stacklevel=2, **kwargs)

logging.Logger.whatif = whatif

# --- Format configuration constants ---
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

ANSI_RESET = "\033[0m"

LOG_LEVEL_COLORS = {
    logging.DEBUG: "\033[90m",     # grey
    logging.INFO: "\033[36m",      # cyan
    WHATIF: "\033[35m",            # magenta
    logging.WARNING: "\033[33m",   # yellow
    logging.ERROR: "\033[31m",     # red
    logging.CRITICAL: "\033[1;31m",
}

LEVEL_NAME_MAP = {
    "WARNING": "WARN",
    "CRITICAL": "FATAL",
}

# --- Formatters ---
class LevelFormatter(logging.Formatter):
    """
    Formatter that shortens log level names and, for
    terminals, colors the whole line by level.
    """
    def __init__(self, use_color: bool = False):
        super().__init__(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        # Shorten on a copy so other handlers still see the original name
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = LEVEL_NAME_MAP.get(record.levelname, record.levelname)
        line = super().format(record)

        color = LOG_LEVEL_COLORS.get(record.levelno) if self.use_color else None
        if color:
            return f"{color}{line}{ANSI_RESET}"
        return line

# --- Handlers ---
class BestEffortFileHandler(logging.FileHandler):
    """Append-only file handler whose write failures never reach the caller."""

    def __init__(self, path: str):
        super().__init__(path, mode="a", encoding="utf-8")

    def handleError(self, record: logging.LogRecord) -> None:
        # Console output carries on; the file copy is optional
        pass

# --- Public logging setup API ---
def setup_logging(
    level=logging.INFO,
    log_path: Optional[str] = None,
    stream=None,
) -> None:
    """
    Configure global logging for a remediation run.

    Console output always; an additional append-mode file
    when `log_path` is given and can be opened.
    """
    stream = stream or sys.stdout

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(stream)
    use_color = hasattr(stream, "isatty") and stream.isatty()
    handler.setFormatter(LevelFormatter(use_color=use_color))
    root.addHandler(handler)

    if not log_path:
        return

    try:
        file_handler = BestEffortFileHandler(log_path)
    except OSError as e:
        get_logger("logger").warning(
            f"Log file unavailable, continuing console-only: {log_path} ({e.__class__.__name__})"
        )
        return

    file_handler.setFormatter(LevelFormatter(use_color=False))
    root.addHandler(file_handler)

def get_logger(name: str) -> logging.Logger:
    """
    Return a namespaced logger for any module.
    """
    return logging.getLogger(f"{name}")
