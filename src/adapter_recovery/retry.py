# --- Standard library imports ---
import time
from dataclasses import dataclass
from typing import Callable

# --- Project imports ---
from .logger import get_logger


logger = get_logger("retry")

@dataclass(frozen=True)
class RetryOutcome:
    succeeded: bool
    attempts_used: int


class RetryExecutor:
    """
    Bounded retry driver.

    Invariants:
      - `operation` runs at most `max_attempts` times
      - returns on the first True result, with no trailing delay
      - every failed attempt is followed by `delay`, the last one included
      - an exception from `operation` counts as a failed attempt
    """

    def __init__(self, sleep: Callable[[float], None] = time.sleep):
        self.sleep = sleep

    def run(
        self,
        operation: Callable[[], bool],
        max_attempts: int,
        delay: float,
        label: str = "operation",
    ) -> RetryOutcome:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1 (got {max_attempts})")

        for attempt in range(1, max_attempts + 1):
            logger.debug(f"{label}: attempt {attempt}/{max_attempts}")
            try:
                ok = bool(operation())
            except Exception as e:
                logger.warning(
                    f"{label}: attempt {attempt}/{max_attempts} raised "
                    f"{e.__class__.__name__}: {e}"
                )
                ok = False

            if ok:
                return RetryOutcome(succeeded=True, attempts_used=attempt)

            logger.warning(f"{label}: attempt {attempt}/{max_attempts} failed")
            self.sleep(delay)

        return RetryOutcome(succeeded=False, attempts_used=max_attempts)
