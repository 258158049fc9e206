# --- Standard library imports ---
import subprocess
from dataclasses import dataclass

# --- Project imports ---
from .config import Config
from .logger import get_logger


logger = get_logger("shell")

# Hide console windows spawned from a GUI session (Windows only, ignored elsewhere)
CREATE_NO_WINDOW = 0x08000000


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a single platform command."""
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_command(cmd: list[str], timeout: float | None = None) -> CommandResult:
    """
    Run a platform command and capture combined stdout + stderr.

    Raises:
        OSError: executable missing or not runnable.
        subprocess.TimeoutExpired: command exceeded `timeout`.
    """
    timeout = Config.COMMAND_TIMEOUT if timeout is None else timeout
    logger.debug(f"exec: {' '.join(cmd)}")

    kwargs = {}
    if hasattr(subprocess, "CREATE_NO_WINDOW"):
        kwargs["creationflags"] = CREATE_NO_WINDOW

    proc = subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        timeout=timeout,
        **kwargs,
    )
    output = ((proc.stdout or "") + (proc.stderr or "")).strip()
    return CommandResult(returncode=proc.returncode, output=output)


def run_powershell(script: str, timeout: float | None = None) -> CommandResult:
    """Run a PowerShell snippet non-interactively."""
    return run_command(
        [
            "powershell",
            "-NoProfile",
            "-NonInteractive",
            "-ExecutionPolicy", "Bypass",
            "-Command", script,
        ],
        timeout=timeout,
    )


def ps_quote(value: str) -> str:
    """Quote a value as a PowerShell single-quoted string literal."""
    return "'" + value.replace("'", "''") + "'"
