# --- Standard library imports ---
import json
import fnmatch
import subprocess
from dataclasses import dataclass
from typing import Iterable

# --- Project imports ---
from .logger import get_logger
from .shell import run_powershell, ps_quote


logger = get_logger("adapters")

DISABLED_STATUS = "disabled"


class AdapterCommandError(RuntimeError):
    """A platform adapter command exited unsuccessfully."""


@dataclass(frozen=True)
class AdapterSnapshot:
    """
    Point-in-time view of one network interface.

    Never cached across steps: the remediation sequence changes
    adapter state on purpose, so status is always re-queried.
    """
    name: str
    status: str
    link_speed: str = ""

    @property
    def disabled(self) -> bool:
        return self.status.strip().lower() == DISABLED_STATUS


def matches_pattern(name: str, pattern: str) -> bool:
    """Case-insensitive glob match of an adapter name (NetAdapter -Name semantics)."""
    return fnmatch.fnmatchcase(name.lower(), pattern.lower())


def parse_adapter_json(text: str) -> list[AdapterSnapshot]:
    """
    Parse `ConvertTo-Json` output of Get-NetAdapter.

    PowerShell emits a bare object for one adapter, an array for
    several, and nothing at all when none matched.
    """
    text = text.strip()
    if not text:
        return []

    data = json.loads(text)
    if isinstance(data, dict):
        data = [data]

    return [
        AdapterSnapshot(
            name=str(item.get("Name", "")),
            status=str(item.get("Status", "")),
            link_speed=str(item.get("LinkSpeed") or ""),
        )
        for item in data
        if item.get("Name")
    ]


class NetAdapterBackend:
    """
    Thin wrapper over the PowerShell NetAdapter cmdlets.

    Raises AdapterCommandError on non-zero exit; OS-level
    process failures propagate unchanged.
    """

    def __init__(self, runner=run_powershell):
        self._run = runner

    def list_adapters(self, pattern: str) -> list[AdapterSnapshot]:
        result = self._run(
            f"Get-NetAdapter -Name {ps_quote(pattern)} -ErrorAction SilentlyContinue "
            "| Select-Object Name,Status,LinkSpeed | ConvertTo-Json -Compress"
        )
        if not result.ok:
            raise AdapterCommandError(f"Get-NetAdapter failed: {result.output}")
        return parse_adapter_json(result.output)

    def disable(self, name: str) -> None:
        result = self._run(f"Disable-NetAdapter -Name {ps_quote(name)} -Confirm:$false")
        if not result.ok:
            raise AdapterCommandError(f"Disable-NetAdapter {name!r} failed: {result.output}")

    def enable(self, name: str) -> None:
        result = self._run(f"Enable-NetAdapter -Name {ps_quote(name)} -Confirm:$false")
        if not result.ok:
            raise AdapterCommandError(f"Enable-NetAdapter {name!r} failed: {result.output}")


# Faults the enable path absorbs as a retry signal
ADAPTER_FAULTS = (
    AdapterCommandError,
    OSError,
    subprocess.SubprocessError,
    ValueError,   # includes json.JSONDecodeError
)


class AdapterController:
    """
    Discover, disable, and re-enable interfaces selected by a glob pattern.

    Failure semantics differ per operation:
    • discover / disable_all: faults propagate (adapter state unknown)
    • enable_disabled       : faults become a False retry signal
    • all_enabled           : faults propagate to the retry driver
    """

    def __init__(self, backend: NetAdapterBackend | None = None):
        self.backend = backend or NetAdapterBackend()

    def _query(self, pattern: str) -> list[AdapterSnapshot]:
        return [
            adapter
            for adapter in self.backend.list_adapters(pattern)
            if matches_pattern(adapter.name, pattern)
        ]

    def discover(self, pattern: str) -> list[AdapterSnapshot]:
        """Return adapters matching `pattern`; empty (with a warning) if none."""
        adapters = self._query(pattern)
        if not adapters:
            logger.warning(f"No network adapters match pattern '{pattern}'")
            return []

        for adapter in adapters:
            logger.info(
                f"Adapter found: {adapter.name} [{adapter.status}]"
                + (f" {adapter.link_speed}" if adapter.link_speed else "")
            )
        return adapters

    def disable_all(self, adapters: Iterable[AdapterSnapshot]) -> None:
        for adapter in adapters:
            logger.info(f"Disabling adapter: {adapter.name}")
            self.backend.disable(adapter.name)

    def enable_disabled(self, pattern: str) -> bool:
        """
        Enable whichever matching adapters are disabled right now.

        Returns:
            True if every enable command was issued, False on any fault.
        """
        try:
            disabled = [a for a in self._query(pattern) if a.disabled]
            for adapter in disabled:
                logger.info(f"Enabling adapter: {adapter.name}")
                self.backend.enable(adapter.name)
            return True
        except ADAPTER_FAULTS as e:
            logger.warning(f"Enable attempt failed ({e.__class__.__name__}: {e})")
            return False

    def all_enabled(self, pattern: str) -> bool:
        """True iff no matching adapter currently reports Disabled."""
        still_disabled = [a.name for a in self._query(pattern) if a.disabled]
        if still_disabled:
            logger.debug(f"Still disabled: {', '.join(still_disabled)}")
        return not still_disabled
