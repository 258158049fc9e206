# ─── Standard library imports ───
import time
from enum import Enum, IntEnum, auto
from dataclasses import dataclass, field
from typing import Callable, Optional

# ─── Project imports ───
from .config import RunConfig
from .telemetry import tlog
from .logger import get_logger
from .retry import RetryExecutor
from .privilege import PrivilegeGuard
from .timesync import TimeSyncAgent
from .connectivity import ConnectivityProbe
from .adapters import AdapterController, AdapterSnapshot


class RemediationState(Enum):
    """
    Remediation sequence states.

    INIT → PRIVILEGE_CHECK → DISCOVER → (DRY_RUN_REPORT | BASELINE_PROBE)
         → DISABLE → ENABLE_RETRY → SETTLE_WAIT → POST_PROBE
         → TIME_SYNC_RETRY → FINAL_PROBE → DONE
    """
    INIT = auto()
    PRIVILEGE_CHECK = auto()
    DISCOVER = auto()
    DRY_RUN_REPORT = auto()
    BASELINE_PROBE = auto()
    DISABLE = auto()
    ENABLE_RETRY = auto()
    SETTLE_WAIT = auto()
    POST_PROBE = auto()
    TIME_SYNC_RETRY = auto()
    FINAL_PROBE = auto()
    DONE = auto()

    def __str__(self) -> str:
        return self.name


class ExitCode(IntEnum):
    SUCCESS = 0
    NOT_ELEVATED = 1
    NO_ADAPTERS = 2
    ENABLE_EXHAUSTED = 3
    DEGRADED = 4
    UNEXPECTED_FAULT = 5

    @property
    def description(self) -> str:
        return EXIT_CODE_DESCRIPTIONS[self]


EXIT_CODE_DESCRIPTIONS = {
    ExitCode.SUCCESS: "connectivity restored",
    ExitCode.NOT_ELEVATED: "not running with elevated privileges",
    ExitCode.NO_ADAPTERS: "no matching adapters",
    ExitCode.ENABLE_EXHAUSTED: "adapters still disabled after retries",
    ExitCode.DEGRADED: "completed with degraded connectivity",
    ExitCode.UNEXPECTED_FAULT: "unexpected fault",
}


@dataclass(frozen=True)
class RunResult:
    exit_code: ExitCode
    elapsed_s: float
    last_state: RemediationState
    time_synced: Optional[bool] = None


@dataclass
class RunContext:
    """
    Per-run state owned by the orchestrator: inputs plus timing.
    """
    config: RunConfig
    clock: Callable[[], float] = time.monotonic
    started_at: float = field(init=False, default=0.0)

    def start(self) -> None:
        self.started_at = self.clock()

    def elapsed(self) -> float:
        return self.clock() - self.started_at


class RemediationOrchestrator:
    """
    Drives a single adapter-cycle + clock-resync remediation run.

    Responsibilities:
    • Sequence the guarded steps and log every transition
    • Own timing and the process exit code
    • Dispatch on collaborator result values only

    Non-responsibilities:
    • No platform calls of its own
    • No retry mechanics (RetryExecutor)
    """

    def __init__(
        self,
        context: RunContext,
        privilege: PrivilegeGuard | None = None,
        adapters: AdapterController | None = None,
        probe: ConnectivityProbe | None = None,
        timesync: TimeSyncAgent | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        # ─── Dependencies / Configuration ───
        self.context = context
        self.config = context.config
        self.privilege = privilege or PrivilegeGuard()
        self.adapters = adapters or AdapterController()
        self.probe = probe or ConnectivityProbe()
        self.timesync = timesync or TimeSyncAgent()
        self.sleep = sleep
        self.retry = RetryExecutor(sleep=sleep)

        # ─── Observability ───
        self.logger = get_logger("orchestrator")

        # ─── Runtime State ───
        self.state = RemediationState.INIT
        self.time_synced: Optional[bool] = None

    # ──────────────────────────────────────────────────────────────
    # Public API
    # ──────────────────────────────────────────────────────────────

    def run(self) -> RunResult:
        self.context.start()
        self._log_banner()

        try:
            exit_code = self._execute()
        except Exception as e:
            self.logger.exception(
                f"Unhandled fault during {self.state} ({e.__class__.__name__}: {e})"
            )
            exit_code = ExitCode.UNEXPECTED_FAULT

        last_state = self.state
        self._transition(RemediationState.DONE, meta=f"exit={int(exit_code)}")

        result = RunResult(
            exit_code=exit_code,
            elapsed_s=self.context.elapsed(),
            last_state=last_state,
            time_synced=self.time_synced,
        )
        self._log_summary(result)
        return result

    # ──────────────────────────────────────────────────────────────
    # State machine
    # ──────────────────────────────────────────────────────────────

    def _execute(self) -> ExitCode:
        cfg = self.config

        # ─── Gate: elevation ───
        self._transition(RemediationState.PRIVILEGE_CHECK)
        if not self.privilege.is_elevated():
            self.logger.error("Administrator privileges are required to cycle network adapters")
            return ExitCode.NOT_ELEVATED

        # ─── Gate: something to cycle ───
        self._transition(RemediationState.DISCOVER, primary=cfg.adapter_pattern)
        adapters = self.adapters.discover(cfg.adapter_pattern)
        if not adapters:
            self.logger.error(f"No adapters match '{cfg.adapter_pattern}'; nothing to do")
            return ExitCode.NO_ADAPTERS

        if cfg.dry_run:
            self._transition(RemediationState.DRY_RUN_REPORT)
            self._report_intended_actions(adapters)
            return ExitCode.SUCCESS

        self._transition(RemediationState.BASELINE_PROBE)
        baseline = self.probe.check(cfg.probe_timeout)
        self._log_probe("Baseline", baseline)

        self._transition(RemediationState.DISABLE, primary=f"{len(adapters)} adapter(s)")
        self.adapters.disable_all(adapters)
        self.logger.info(f"Waiting {cfg.step_delay}s before re-enabling...")
        self.sleep(cfg.step_delay)

        self._transition(RemediationState.ENABLE_RETRY, meta=f"max_attempts={cfg.max_retries}")
        enabled = self.retry.run(
            self._enable_adapters,
            max_attempts=cfg.max_retries,
            delay=cfg.step_delay,
            label="adapter enable",
        )
        if not enabled.succeeded:
            self.logger.error(
                f"Adapters still disabled after {enabled.attempts_used} attempt(s)"
            )
            return ExitCode.ENABLE_EXHAUSTED
        self.logger.info(f"All adapters enabled (attempt {enabled.attempts_used})")

        self._transition(RemediationState.SETTLE_WAIT, meta=f"settle={cfg.settle_delay}s")
        self.sleep(cfg.settle_delay)

        self._transition(RemediationState.POST_PROBE)
        self._log_probe("Post-enable", self.probe.check(cfg.probe_timeout))

        self._transition(RemediationState.TIME_SYNC_RETRY, meta=f"max_attempts={cfg.max_retries}")
        synced = self.retry.run(
            self.timesync.resync,
            max_attempts=cfg.max_retries,
            delay=cfg.step_delay,
            label="time resync",
        )
        self.time_synced = synced.succeeded
        if synced.succeeded:
            self.logger.info(f"System time resynchronized (attempt {synced.attempts_used})")
        else:
            self.logger.warning(
                f"Time resync failed after {synced.attempts_used} attempt(s); continuing"
            )

        self._transition(RemediationState.FINAL_PROBE)
        final = self.probe.check(cfg.probe_timeout)
        self._log_probe("Final", final)

        return ExitCode.SUCCESS if final else ExitCode.DEGRADED

    def _enable_adapters(self) -> bool:
        """One enable attempt: re-enable what is disabled, then verify."""
        pattern = self.config.adapter_pattern
        if not self.adapters.enable_disabled(pattern):
            return False
        return self.adapters.all_enabled(pattern)

    # ──────────────────────────────────────────────────────────────
    # Reporting helpers
    # ──────────────────────────────────────────────────────────────

    def _report_intended_actions(self, adapters: list[AdapterSnapshot]) -> None:
        cfg = self.config
        for adapter in adapters:
            self.logger.whatif(f"Would disable adapter '{adapter.name}' [{adapter.status}]")
        self.logger.whatif(f"Would wait {cfg.step_delay}s")
        for adapter in adapters:
            self.logger.whatif(
                f"Would enable adapter '{adapter.name}' "
                f"(up to {cfg.max_retries} attempts, {cfg.step_delay}s apart)"
            )
        self.logger.whatif(f"Would wait {cfg.settle_delay}s for link negotiation")
        self.logger.whatif("Would probe connectivity")
        self.logger.whatif(
            f"Would force a time resync (up to {cfg.max_retries} attempts, {cfg.step_delay}s apart)"
        )
        self.logger.whatif("Would run a final connectivity probe")
        self.logger.info("Dry run complete; no changes made")

    def _transition(
        self,
        state: RemediationState,
        primary: str | None = None,
        meta: str | None = None,
    ) -> None:
        prev = self.state
        self.state = state
        details = {"meta": meta}
        if primary:
            details["primary"] = primary
        tlog(self.logger, "STATE", f"{prev} → {state}", **details)

    def _log_probe(self, label: str, reachable: bool) -> None:
        if reachable:
            self.logger.info(f"{label} connectivity: reachable")
        else:
            self.logger.warning(f"{label} connectivity: unreachable")

    def _log_banner(self) -> None:
        cfg = self.config
        self.logger.info("===== Network Adapter Remediation =====")
        self.logger.info(f"Adapter pattern:   {cfg.adapter_pattern}")
        self.logger.info(f"Max retries:       {cfg.max_retries}")
        self.logger.info(f"Step delay:        {cfg.step_delay}s")
        self.logger.info(f"Settle delay:      {cfg.settle_delay}s")
        self.logger.info(f"Dry run:           {cfg.dry_run}")
        self.logger.info(f"Log file:          {cfg.log_path or '-'}")

    def _log_summary(self, result: RunResult) -> None:
        level_call = self.logger.info if result.exit_code == ExitCode.SUCCESS else self.logger.error
        if result.exit_code == ExitCode.DEGRADED:
            level_call = self.logger.warning
        level_call(
            f"Finished with exit code {int(result.exit_code)} "
            f"({result.exit_code.description}) in {result.elapsed_s:.1f}s"
        )
