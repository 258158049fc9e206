# --- Standard library imports ---
import sys
import logging
import argparse

# --- Project imports ---
from .config import Config, RunConfig
from .logger import get_logger, setup_logging
from .orchestrator import ExitCode, RemediationOrchestrator, RunContext


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer (got {value})")
    return number

def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be zero or greater (got {value})")
    return number

def _pattern(value: str) -> str:
    if not value.strip():
        raise argparse.ArgumentTypeError("must not be empty")
    return value

def build_parser() -> argparse.ArgumentParser:
    # String defaults so argparse runs `type` on env-supplied values too
    parser = argparse.ArgumentParser(
        prog="adapter-recovery",
        description=(
            "Disable and re-enable network adapters, then force a system "
            "clock resync, to recover a VM from transient connectivity loss."
        ),
    )
    parser.add_argument(
        "--debug", action="store_true",
        help="verbose step tracing",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="report intended actions without performing any",
    )
    parser.add_argument(
        "--log-path", default=Config.LOG_PATH, metavar="PATH",
        help="also append log lines to this file",
    )
    parser.add_argument(
        "--adapter-pattern", type=_pattern, default=Config.ADAPTER_PATTERN, metavar="GLOB",
        help="adapter name pattern (default: %(default)s)",
    )
    parser.add_argument(
        "--max-retries", type=_positive_int, default=str(Config.MAX_RETRIES), metavar="N",
        help="retry ceiling for adapter enable and time resync (default: %(default)s)",
    )
    parser.add_argument(
        "--step-delay", type=_non_negative_int, default=str(Config.STEP_DELAY), metavar="SECONDS",
        help="wait between steps and retries (default: %(default)s)",
    )
    return parser

def main(argv=None) -> int:
    """
    Entry point: parse arguments, configure logging, run one remediation.

    Returns the process exit code.
    """
    args = build_parser().parse_args(argv)

    try:
        run_config = RunConfig.from_args(args)
    except Exception as e:
        setup_logging()
        get_logger("main").error(f"Invalid run configuration ({e.__class__.__name__}: {e})")
        return int(ExitCode.UNEXPECTED_FAULT)

    level = logging.DEBUG if run_config.debug else getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO)
    setup_logging(level=level, log_path=run_config.log_path)
    logger = get_logger("main")
    logger.debug(f"Python version: {sys.version}")

    orchestrator = RemediationOrchestrator(RunContext(run_config))

    try:
        result = orchestrator.run()
    except KeyboardInterrupt:
        logger.error("Interrupted; adapter state may be inconsistent")
        return int(ExitCode.UNEXPECTED_FAULT)

    return int(result.exit_code)

if __name__ == "__main__":
    sys.exit(main())
