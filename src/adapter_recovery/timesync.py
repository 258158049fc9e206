# --- Project imports ---
from .logger import get_logger
from .shell import run_command


logger = get_logger("timesync")

TIME_SYNC_FAILURE_PHRASE = "no time data was available"
RESYNC_COMMAND = ["w32tm", "/resync", "/force"]


def is_resync_failure(output: str) -> bool:
    """Return True if resync output carries the known failure signature."""
    return TIME_SYNC_FAILURE_PHRASE in (output or "").lower()


class TimeSyncAgent:
    """
    Force a system clock resync and classify the result.

    Success is the absence of the failure phrase in the combined
    output, whatever the command's own exit status says.
    """

    def __init__(self, runner=run_command):
        self._run = runner

    def resync(self) -> bool:
        try:
            result = self._run(RESYNC_COMMAND)
        except Exception as e:
            logger.warning(f"Time resync invocation failed ({e.__class__.__name__}: {e})")
            return False

        if is_resync_failure(result.output):
            logger.warning(f"Time resync reported no time data: {result.output}")
            return False

        logger.debug(f"Time resync output: {result.output}")
        return True
