"""Tests for the ProcessMonitor."""

import subprocess
import threading

import pytest

from pipemake.monitor import ProcessMonitor, ProcessMonitorClosedError

from tests.pipeline_test_helpers import PYTHON, FakeProcess, RecordingWriter


@pytest.fixture
def writer():
    return RecordingWriter()


@pytest.fixture
def monitor(writer):
    mon = ProcessMonitor(writer)
    yield mon
    mon.shutdown()


class TestTracking:
    def test_add_tracks_running_process(self, monitor):
        proc = FakeProcess()
        monitor.add(proc)
        assert monitor.tracked_ids() == {proc.pid}

    def test_add_ignores_exited_process(self, monitor):
        proc = FakeProcess(running=False)
        monitor.add(proc)
        assert monitor.tracked_ids() == frozenset()

    def test_remove(self, monitor):
        proc = FakeProcess()
        monitor.add(proc)
        monitor.remove(proc)
        assert monitor.tracked_ids() == frozenset()

    def test_remove_unknown_process_is_ignored(self, monitor):
        monitor.remove(FakeProcess())
        assert monitor.tracked_ids() == frozenset()


class TestKill:
    def test_kill_running_process(self, monitor):
        proc = FakeProcess()
        monitor.add(proc)
        monitor.kill(proc)
        assert proc.kill_calls == 1
        assert monitor.is_killed(proc) is True
        assert monitor.tracked_ids() == frozenset()

    def test_kill_of_exited_process_changes_nothing(self, monitor):
        proc = FakeProcess()
        monitor.add(proc)
        proc.running = False
        monitor.kill(proc)
        assert proc.kill_calls == 0
        assert monitor.is_killed(proc) is False
        assert monitor.tracked_ids() == {proc.pid}

    def test_is_killed_false_for_unknown_process(self, monitor):
        assert monitor.is_killed(FakeProcess()) is False

    def test_kill_error_is_reported_not_raised(self, monitor, writer, caplog):
        proc = FakeProcess(kill_error=PermissionError("denied"))
        monitor.add(proc)
        with caplog.at_level("WARNING", logger="pipemake.monitor.process_monitor"):
            monitor.kill(proc)
        assert monitor.is_killed(proc) is True
        assert any("Failed to kill process" in line for line in writer.lines)
        assert any("Failed to kill process" in r.getMessage() for r in caplog.records)


class TestKillAll:
    def test_kills_every_running_process(self, monitor):
        procs = [FakeProcess() for _ in range(3)]
        exited = FakeProcess()
        for p in procs + [exited]:
            monitor.add(p)
        exited.running = False

        monitor.kill_all()

        state = monitor.snapshot()
        assert state.tracked == frozenset()
        assert state.killed == {p.pid for p in procs}
        assert all(p.kill_calls == 1 for p in procs)
        assert exited.kill_calls == 0

    def test_process_added_after_kill_all_is_killed(self, monitor):
        monitor.kill_all()
        late = FakeProcess()
        exited = FakeProcess(running=False)
        monitor.add(late)
        monitor.add(exited)

        assert late.kill_calls == 1
        assert exited.kill_calls == 0
        assert monitor.is_killed(late) is True
        assert monitor.is_killed(exited) is False
        assert monitor.tracked_ids() == frozenset()

    def test_kill_all_with_nothing_tracked(self, monitor):
        monitor.kill_all()
        assert monitor.snapshot().killed == frozenset()

    def test_concurrent_callers(self, monitor):
        procs = [FakeProcess() for _ in range(50)]
        threads = [threading.Thread(target=monitor.add, args=(p,)) for p in procs]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(monitor.tracked_ids()) == 50
        monitor.kill_all()
        assert len(monitor.killed_ids()) == 50

    def test_kills_real_process(self, monitor):
        proc = subprocess.Popen([PYTHON, "-c", "import time; time.sleep(30)"])
        try:
            monitor.add(proc)
            monitor.kill_all()
            assert proc.wait(timeout=10) is not None
            assert monitor.is_killed(proc)
        finally:
            if proc.poll() is None:
                proc.kill()
                proc.wait()


class TestShutdown:
    def test_calls_after_shutdown_raise(self):
        mon = ProcessMonitor()
        mon.shutdown()
        assert mon.is_closed
        with pytest.raises(ProcessMonitorClosedError):
            mon.add(FakeProcess())

    def test_shutdown_is_idempotent(self):
        mon = ProcessMonitor()
        mon.shutdown()
        mon.shutdown()

    def test_context_manager_shuts_down(self):
        with ProcessMonitor() as mon:
            mon.add(FakeProcess())
        assert mon.is_closed
