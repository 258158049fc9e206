# --- Standard library imports ---
import os
import ctypes
import platform

# --- Project imports ---
from .logger import get_logger


logger = get_logger("privilege")

def is_elevated() -> bool:
    """
    Cross-platform check for administrative privileges.

    Windows: shell32.IsUserAnAdmin(); elsewhere: effective UID 0.
    Any failure to determine the answer counts as not elevated.
    """
    try:
        if platform.system() == "Windows":
            return ctypes.windll.shell32.IsUserAnAdmin() != 0
        return os.geteuid() == 0
    except (AttributeError, OSError) as e:
        logger.debug(f"Privilege query failed ({e.__class__.__name__})")
        return False


class PrivilegeGuard:
    """Pure query gate: does this process hold elevated rights?"""

    def __init__(self, query=is_elevated):
        self._query = query

    def is_elevated(self) -> bool:
        return bool(self._query())
