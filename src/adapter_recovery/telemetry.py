# --- Standard library imports ---
import logging


def tlog(
    logger: logging.Logger,
    subsystem: str,
    state: str,
    primary: str = "---",
    meta: str | None = None,
    level: int = logging.INFO,
) -> None:
    """
    Emit a standardized telemetry log "tlog" line.

    Format:
        SUBSYSTEM STATE PRIMARY | meta data
    """
    msg = f"{subsystem:<12} {state:<16} {primary}"
    if meta:
        msg += f" | {meta}"

    logger.log(level, msg, stacklevel=2)
