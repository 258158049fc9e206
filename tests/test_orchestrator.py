import pytest
import logging

from adapter_recovery.config import RunConfig
from adapter_recovery.adapters import AdapterCommandError, AdapterController, AdapterSnapshot
from adapter_recovery.orchestrator import (
    ExitCode,
    RemediationOrchestrator,
    RemediationState,
    RunContext,
)


# ========
# FIXTURES
# ========
class FakePrivilege:
    def __init__(self, elevated=True):
        self.elevated = elevated
        self.calls = 0

    def is_elevated(self):
        self.calls += 1
        return self.elevated

class FakeBackend:
    """
    Adapter table that can refuse to come back up for the
    first `enable_failures` enable attempts.
    """
    def __init__(self, names, enable_failures=0, disable_error=None):
        self.status = {name: "Up" for name in names}
        self.enable_failures = enable_failures
        self.disable_error = disable_error
        self.list_calls = 0
        self.disabled = []
        self.enabled = []

    def list_adapters(self, pattern):
        self.list_calls += 1
        return [AdapterSnapshot(n, s, "1 Gbps") for n, s in self.status.items()]

    def disable(self, name):
        if self.disable_error:
            raise self.disable_error
        self.disabled.append(name)
        self.status[name] = "Disabled"

    def enable(self, name):
        self.enabled.append(name)
        if self.enable_failures > 0:
            self.enable_failures -= 1
            return   # command accepted, adapter stays disabled
        self.status[name] = "Up"

class SpyController(AdapterController):
    """Real controller over a fake backend, counting enable batches."""
    def __init__(self, backend):
        super().__init__(backend)
        self.discover_calls = 0
        self.disable_batches = 0
        self.enable_batches = 0

    def discover(self, pattern):
        self.discover_calls += 1
        return super().discover(pattern)

    def disable_all(self, adapters):
        self.disable_batches += 1
        return super().disable_all(adapters)

    def enable_disabled(self, pattern):
        self.enable_batches += 1
        return super().enable_disabled(pattern)

class FakeProbe:
    """Answers each check() with the next queued result."""
    def __init__(self, *results, error=None):
        self.results = list(results)
        self.error = error
        self.calls = 0

    def check(self, timeout=2):
        self.calls += 1
        if self.error:
            raise self.error
        return self.results.pop(0)

class FakeTimeSync:
    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    def resync(self):
        self.calls += 1
        return self.results.pop(0)

class FakeClock:
    def __init__(self, *ticks):
        self.ticks = list(ticks)

    def __call__(self):
        return self.ticks.pop(0)

class Harness:
    def __init__(
        self,
        names=("Ethernet", "Ethernet 2"),
        elevated=True,
        probe=None,
        timesync=None,
        enable_failures=0,
        disable_error=None,
        **config,
    ):
        config.setdefault("max_retries", 3)
        config.setdefault("step_delay", 2)
        config.setdefault("settle_delay", 10)
        self.config = RunConfig(**config)
        self.privilege = FakePrivilege(elevated)
        self.backend = FakeBackend(names, enable_failures, disable_error)
        self.controller = SpyController(self.backend)
        self.probe = probe or FakeProbe(False, True, True)
        self.timesync = timesync or FakeTimeSync(True)
        self.sleeps = []
        self.context = RunContext(self.config, clock=FakeClock(100.0, 142.5))

    def run(self):
        orchestrator = RemediationOrchestrator(
            self.context,
            privilege=self.privilege,
            adapters=self.controller,
            probe=self.probe,
            timesync=self.timesync,
            sleep=self.sleeps.append,
        )
        return orchestrator.run()


def state_transitions(caplog):
    return [r.getMessage() for r in caplog.records if r.getMessage().startswith("STATE")]


# ==============================
# TEST GROUP: Terminal Gates
# ==============================
def test_not_elevated_exits_1_before_discovery():
    harness = Harness(elevated=False)

    result = harness.run()

    assert result.exit_code == ExitCode.NOT_ELEVATED
    assert result.last_state == RemediationState.PRIVILEGE_CHECK
    assert harness.controller.discover_calls == 0
    assert harness.backend.list_calls == 0

def test_no_matching_adapters_exits_2_without_side_effects():
    harness = Harness(names=("Wi-Fi",))

    result = harness.run()

    assert result.exit_code == ExitCode.NO_ADAPTERS
    assert harness.backend.disabled == []
    assert harness.backend.enabled == []
    assert harness.probe.calls == 0
    assert harness.timesync.calls == 0
    assert harness.sleeps == []


# ==============================
# TEST GROUP: Dry Run
# ==============================
@pytest.mark.parametrize("max_retries, step_delay", [(1, 0), (5, 2), (9, 30)])
def test_dry_run_mutates_nothing_and_exits_0(caplog, max_retries, step_delay):
    harness = Harness(dry_run=True, max_retries=max_retries, step_delay=step_delay)

    with caplog.at_level(logging.DEBUG):
        result = harness.run()

    assert result.exit_code == ExitCode.SUCCESS
    assert result.last_state == RemediationState.DRY_RUN_REPORT
    assert harness.backend.disabled == []
    assert harness.backend.enabled == []
    assert harness.timesync.calls == 0
    assert harness.probe.calls == 0
    assert harness.sleeps == []

    whatif = [r.getMessage() for r in caplog.records if r.levelname == "WHATIF"]
    assert "Would disable adapter 'Ethernet' [Up]" in whatif
    assert "Would disable adapter 'Ethernet 2' [Up]" in whatif
    assert any("time resync" in line for line in whatif)
    assert any("final connectivity probe" in line for line in whatif)


# ==============================
# TEST GROUP: Enable Retry Loop
# ==============================
def test_enable_exhaustion_exits_3_without_time_sync():
    harness = Harness(enable_failures=100, max_retries=4)

    result = harness.run()

    assert result.exit_code == ExitCode.ENABLE_EXHAUSTED
    assert result.last_state == RemediationState.ENABLE_RETRY
    assert harness.controller.enable_batches == 4
    assert harness.timesync.calls == 0
    assert harness.probe.calls == 1   # baseline only
    # post-disable wait, then one delay per failed attempt
    assert harness.sleeps == [2, 2, 2, 2, 2]

def test_enable_recovers_on_later_attempt():
    # Both adapters refuse on the first batch, come up on the second
    harness = Harness(enable_failures=2)

    result = harness.run()

    assert result.exit_code == ExitCode.SUCCESS
    assert harness.controller.enable_batches == 2
    assert harness.backend.enabled == ["Ethernet", "Ethernet 2", "Ethernet", "Ethernet 2"]
    assert harness.sleeps == [2, 2, 10]


# ==============================
# TEST GROUP: Outcome Mapping
# ==============================
def test_connectivity_restored_exits_0():
    """Baseline down, post-enable up, resync OK → success"""
    harness = Harness(probe=FakeProbe(False, True, True), timesync=FakeTimeSync(True))

    result = harness.run()

    assert result.exit_code == ExitCode.SUCCESS
    assert result.time_synced is True
    assert result.last_state == RemediationState.FINAL_PROBE

@pytest.mark.parametrize("sync_results", [(True,), (False, False, False)])
def test_final_probe_failure_exits_4_regardless_of_time_sync(sync_results):
    harness = Harness(probe=FakeProbe(True, True, False), timesync=FakeTimeSync(*sync_results))

    result = harness.run()

    assert result.exit_code == ExitCode.DEGRADED

def test_time_sync_failure_alone_is_a_warning(caplog):
    harness = Harness(probe=FakeProbe(False, True, True), timesync=FakeTimeSync(False, False, False))

    with caplog.at_level(logging.WARNING):
        result = harness.run()

    assert result.exit_code == ExitCode.SUCCESS
    assert result.time_synced is False
    assert harness.timesync.calls == 3
    assert any("Time resync failed" in r.getMessage() for r in caplog.records)

def test_time_sync_retries_until_success():
    harness = Harness(timesync=FakeTimeSync(False, True))

    result = harness.run()

    assert result.exit_code == ExitCode.SUCCESS
    assert harness.timesync.calls == 2
    # post-disable wait, settle, one failed resync delay
    assert harness.sleeps == [2, 10, 2]


# ==============================
# TEST GROUP: Unexpected Faults
# ==============================
def test_disable_fault_exits_5():
    harness = Harness(disable_error=AdapterCommandError("Access is denied"))

    result = harness.run()

    assert result.exit_code == ExitCode.UNEXPECTED_FAULT
    assert result.last_state == RemediationState.DISABLE
    assert harness.controller.enable_batches == 0
    assert harness.timesync.calls == 0

def test_unclassified_fault_exits_5(caplog):
    harness = Harness(probe=FakeProbe(error=RuntimeError("probe exploded")))

    with caplog.at_level(logging.ERROR):
        result = harness.run()

    assert result.exit_code == ExitCode.UNEXPECTED_FAULT
    assert result.last_state == RemediationState.BASELINE_PROBE
    assert any(r.exc_info for r in caplog.records)


# ==============================
# TEST GROUP: End-to-End Scenario
# ==============================
def test_end_to_end_two_adapters(caplog):
    """
    Two adapters cycle cleanly on the first enable attempt, baseline
    probe down, post probe up, resync succeeds on attempt 1.
    """
    harness = Harness(
        names=("Ethernet", "Ethernet 2"),
        probe=FakeProbe(False, True, True),
        timesync=FakeTimeSync(True),
    )

    with caplog.at_level(logging.INFO):
        result = harness.run()

    assert result.exit_code == ExitCode.SUCCESS
    assert result.elapsed_s == pytest.approx(42.5)

    assert harness.controller.disable_batches == 1
    assert harness.backend.disabled == ["Ethernet", "Ethernet 2"]
    assert harness.controller.enable_batches == 1
    assert harness.backend.enabled == ["Ethernet", "Ethernet 2"]
    assert harness.timesync.calls == 1
    assert harness.probe.calls == 3
    assert harness.sleeps == [2, 10]

    expected_order = [
        "PRIVILEGE_CHECK", "DISCOVER", "BASELINE_PROBE", "DISABLE",
        "ENABLE_RETRY", "SETTLE_WAIT", "POST_PROBE", "TIME_SYNC_RETRY",
        "FINAL_PROBE", "DONE",
    ]
    transitions = state_transitions(caplog)
    assert len(transitions) == len(expected_order)
    for line, state in zip(transitions, expected_order):
        assert f"→ {state}" in line

    messages = [r.getMessage() for r in caplog.records]
    assert "Finished with exit code 0 (connectivity restored) in 42.5s" in messages

def test_transition_lines_use_placeholder_without_padding(caplog):
    harness = Harness()

    with caplog.at_level(logging.INFO):
        harness.run()

    transitions = state_transitions(caplog)
    assert all(line == line.rstrip() for line in transitions)
    assert transitions[0].endswith("INIT → PRIVILEGE_CHECK ---")
    assert any(line.endswith(f"DISCOVER {harness.config.adapter_pattern}") for line in transitions)
    assert any("SETTLE_WAIT" in line and line.endswith("| settle=10s") for line in transitions)
