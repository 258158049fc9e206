# --- Standard library imports ---
import os
from dataclasses import dataclass
from typing import Optional

# --- Third-party imports ---
from dotenv import load_dotenv


# Load .env once
load_dotenv()

class Config:
    """Centralized defaults for remediation parameters and platform timeouts"""

    # --- Remediation Policy (CLI overridable) ---
    ADAPTER_PATTERN = os.getenv("ADAPTER_PATTERN", "Ethernet*")

    try:
        MAX_RETRIES = int(os.getenv("MAX_RETRIES", 5))
    except ValueError:
        MAX_RETRIES = 5

    try:
        STEP_DELAY = int(os.getenv("STEP_DELAY", 2))
    except ValueError:
        STEP_DELAY = 2

    # Link negotiation wait after adapters report enabled
    try:
        SETTLE_DELAY = int(os.getenv("SETTLE_DELAY", 10))
    except ValueError:
        SETTLE_DELAY = 10

    # --- Network Policy ---
    try:
        PROBE_TIMEOUT = int(os.getenv("PROBE_TIMEOUT", 2))
    except ValueError:
        PROBE_TIMEOUT = 2

    # --- Network Constants (NOT user configurable) ---
    PROBE_HOSTS = ("8.8.8.8", "1.1.1.1", "208.67.222.222")
    PROBE_TCP_PORT = 80

    # --- Platform Policy ---
    try:
        COMMAND_TIMEOUT = int(os.getenv("COMMAND_TIMEOUT", 60))
    except ValueError:
        COMMAND_TIMEOUT = 60

    # --- Observability Policy ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_PATH = os.getenv("LOG_PATH") or None


@dataclass(frozen=True)
class RunConfig:
    """
    Immutable inputs for a single remediation run.

    Built once at startup from the command line and never mutated.
    """
    adapter_pattern: str = Config.ADAPTER_PATTERN
    max_retries: int = Config.MAX_RETRIES
    step_delay: int = Config.STEP_DELAY
    dry_run: bool = False
    log_path: Optional[str] = None
    debug: bool = False
    settle_delay: int = Config.SETTLE_DELAY
    probe_timeout: int = Config.PROBE_TIMEOUT

    def __post_init__(self):
        if not self.adapter_pattern:
            raise ValueError("adapter_pattern must not be empty")
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be >= 1 (got {self.max_retries})")
        if self.step_delay < 0:
            raise ValueError(f"step_delay must be >= 0 (got {self.step_delay})")
        if self.settle_delay < 0:
            raise ValueError(f"settle_delay must be >= 0 (got {self.settle_delay})")

    @classmethod
    def from_args(cls, args) -> "RunConfig":
        """Build a RunConfig from a parsed argparse namespace."""
        return cls(
            adapter_pattern=args.adapter_pattern,
            max_retries=args.max_retries,
            step_delay=args.step_delay,
            dry_run=args.dry_run,
            log_path=args.log_path,
            debug=args.debug,
        )
