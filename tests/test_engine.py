"""Tests for the pipeline execution engine."""

import threading
import time
from datetime import timedelta

import pytest

from pipemake.action import Abort, Recoverable, StepFailedError, Unhandled, action, fail
from pipemake.cancellation import CancellationToken
from pipemake.cmd import Cmd
from pipemake.pipeline import (
    ConditionalStep,
    Pipeline,
    PipelineRunner,
    RunArgs,
    Step,
    StepFailed,
    StepSkipped,
    StepSuccess,
    run_pipeline,
)
from pipemake.prefix import PrefixOption

from tests.pipeline_test_helpers import PYTHON, RecordingWriter


@pytest.fixture
def writer():
    return RecordingWriter()


def recording_step(name: str, log: list, delay: float = 0.0) -> Step:
    def body(ctx):
        time.sleep(delay)
        log.append(name)

    return Step.create(name, body)


def failing_step(name: str, message: str = "boom") -> Step:
    return Step.create(name, fail(message))


def run(pipeline, writer, **kwargs):
    return run_pipeline(pipeline, RunArgs(writer=writer, **kwargs))


class TestSequential:
    def test_all_steps_succeed(self, writer):
        log = []
        pipeline = (
            Pipeline.create("build")
            .run(recording_step("restore", log))
            .run(recording_step("compile", log))
            .build()
        )
        result = run(pipeline, writer)

        assert result.success is True
        assert result.exit_code == 0
        assert log == ["restore", "compile"]
        assert [type(r) for r in result.results] == [StepSuccess, StepSuccess]
        assert writer.lines[0] == "==> Running pipeline build"
        assert "==> Running restore" in writer.lines
        assert writer.lines[-1] == "==> build pipeline complete"

    def test_stops_after_failure(self, writer):
        log = []
        pipeline = (
            Pipeline.create("build")
            .run(recording_step("ok", log))
            .run(failing_step("failing"))
            .run(recording_step("never", log))
            .build()
        )
        result = run(pipeline, writer)

        assert result.success is False
        assert result.exit_code == 1
        assert len(result.results) == 2
        assert isinstance(result.results[0], StepSuccess)
        assert isinstance(result.results[1], StepFailed)
        assert log == ["ok"]
        assert "==> boom" in writer.lines
        assert writer.lines[-1] == "==> build pipeline failed"

    def test_sequential_failure_is_not_prefixed_by_default(self, writer):
        run(Pipeline.create("p").run(failing_step("step")).build(), writer)
        assert "==> boom" in writer.lines

    def test_exception_becomes_unhandled_failure(self, writer):
        def body(ctx):
            raise RuntimeError("kaput")

        result = run(Pipeline.create("p").run(Step.create("explode", body)).build(), writer)
        failure = result.results[0].failure
        assert isinstance(failure, Unhandled)
        assert str(failure.exception) == "kaput"
        assert "==> Exception:" in writer.lines

    def test_step_failed_error_in_body(self, writer):
        def body(ctx):
            raise StepFailedError("lint errors")

        result = run(Pipeline.create("p").run(Step.create("lint", body)).build(), writer)
        assert isinstance(result.results[0].failure, Recoverable)

    def test_empty_pipeline_succeeds(self, writer):
        result = run(Pipeline.create("empty").build(), writer)
        assert result.success is True
        assert result.results == []
        assert result.finished_at is not None

    def test_total_time_covers_step_durations(self, writer):
        log = []
        pipeline = (
            Pipeline.create("timed")
            .run(recording_step("a", log, delay=0.05))
            .run(recording_step("b", log, delay=0.03))
            .build()
        )
        result = run(pipeline, writer)
        assert result.total_time >= timedelta(milliseconds=80)
        assert all(r.stat.execution_time > timedelta() for r in result.results)


class TestContext:
    def test_context_fields(self, writer):
        seen = []

        def body(ctx):
            seen.append(ctx)

        pipeline = (
            Pipeline.create("ctx")
            .run(Step.create("seq", body))
            .run_parallel([Step.create("par", body)])
            .build()
        )
        run(pipeline, writer, extra_args=("--fast", "x"))

        seq, par = seen
        assert seq.pipeline_name == "ctx"
        assert seq.step_name == "seq"
        assert seq.is_parallel is False
        assert par.is_parallel is True
        assert seq.extra_args == ("--fast", "x")
        assert seq.prefix.text == "seq | "
        assert seq.console is writer

    def test_monitor_is_shut_down_after_run(self, writer):
        monitors = []

        def body(ctx):
            monitors.append(ctx.process_monitor)

        run(Pipeline.create("p").run(Step.create("a", body)).build(), writer)
        assert monitors[0].is_closed


class TestParallel:
    def test_results_keep_declaration_order(self, writer):
        log = []
        pipeline = (
            Pipeline.create("par")
            .run_parallel(
                [
                    recording_step("slow", log, delay=0.2),
                    recording_step("fast", log),
                ]
            )
            .build()
        )
        result = run(pipeline, writer)

        assert [r.step.name for r in result.results] == ["slow", "fast"]
        assert log == ["fast", "slow"]
        assert "==> Running slow, fast in parallel" in writer.lines

    def test_steps_run_concurrently(self, writer):
        barrier = threading.Barrier(2, timeout=5)

        def body(ctx):
            barrier.wait()

        pipeline = (
            Pipeline.create("par")
            .run_parallel([Step.create("a", body), Step.create("b", body)])
            .build()
        )
        assert run(pipeline, writer).success is True

    def test_max_workers_limits_concurrency(self, writer):
        active = []
        peak = []
        lock = threading.Lock()

        def body(ctx):
            with lock:
                active.append(1)
                peak.append(len(active))
            time.sleep(0.02)
            with lock:
                active.pop()

        steps = [Step.create(f"s{i}", body) for i in range(4)]
        result = run(Pipeline.create("p").run_parallel(steps).build(), writer, max_workers=1)
        assert result.success is True
        assert max(peak) == 1

    def test_failure_waits_for_siblings_then_stops(self, writer):
        log = []
        pipeline = (
            Pipeline.create("par")
            .run_parallel([failing_step("bad"), recording_step("good", log, delay=0.1)])
            .run(recording_step("after", log))
            .build()
        )
        result = run(pipeline, writer)

        assert result.success is False
        assert [type(r) for r in result.results] == [StepFailed, StepSuccess]
        assert log == ["good"]

    def test_parallel_failure_messages_are_prefixed(self, writer):
        pipeline = (
            Pipeline.create("par")
            .run_parallel([failing_step("bad"), recording_step("longer", [])])
            .build()
        )
        run(pipeline, writer)
        assert "bad    | ==> boom" in writer.lines

    def test_prefix_never(self, writer):
        pipeline = Pipeline.create("par").run_parallel([failing_step("bad")]).build()
        run(pipeline, writer, prefix_option=PrefixOption.NEVER)
        assert "==> boom" in writer.lines


class TestConditional:
    def test_sequential_condition_false_skips(self, writer):
        log = []
        pipeline = (
            Pipeline.create("cond")
            .maybe_run(recording_step("publish", log), False)
            .run(recording_step("after", log))
            .build()
        )
        result = run(pipeline, writer)

        assert result.success is True
        assert isinstance(result.results[0], StepSkipped)
        assert log == ["after"]
        assert "==> Skipping step publish, condition not met" in writer.lines

    def test_sequential_condition_true_runs(self, writer):
        log = []
        result = run(
            Pipeline.create("cond").maybe_run(recording_step("publish", log), True).build(), writer
        )
        assert log == ["publish"]
        assert isinstance(result.results[0], StepSuccess)
        assert "==> Running publish, condition passed" in writer.lines

    def test_parallel_condition_false_skips_all(self, writer):
        log = []
        pipeline = (
            Pipeline.create("cond")
            .maybe_run_parallel([recording_step("a", log), recording_step("b", log)], False)
            .build()
        )
        result = run(pipeline, writer)
        assert result.success is True
        assert all(isinstance(r, StepSkipped) for r in result.results)
        assert log == []
        assert "==> Skipping step(s) a, b, condition not met" in writer.lines

    def test_parallel_condition_true_runs_all(self, writer):
        log = []
        pipeline = (
            Pipeline.create("cond")
            .maybe_run_parallel([recording_step("a", log), recording_step("b", log)], True)
            .build()
        )
        result = run(pipeline, writer)
        assert sorted(log) == ["a", "b"]
        assert all(isinstance(r, StepSuccess) for r in result.results)

    def test_individual_conditions_keep_declaration_order(self, writer):
        log = []
        s1, s2, s3 = (recording_step(n, log) for n in ("s1", "s2", "s3"))
        pipeline = Pipeline.create("maybes").run_parallel_maybes([s1, (s2, False), s3]).build()
        result = run(pipeline, writer)

        assert [(type(r), r.step.name) for r in result.results] == [
            (StepSuccess, "s1"),
            (StepSkipped, "s2"),
            (StepSuccess, "s3"),
        ]
        assert sorted(log) == ["s1", "s3"]
        assert "==> Skipping step(s) s2, condition not met" in writer.lines
        assert "==> Running s1, s3 in parallel" in writer.lines

    def test_individual_conditions_all_skipped(self, writer):
        log = []
        pipeline = (
            Pipeline.create("maybes")
            .run_parallel_maybes([ConditionalStep(recording_step("a", log), False)])
            .run(recording_step("next", log))
            .build()
        )
        result = run(pipeline, writer)
        assert result.success is True
        assert log == ["next"]
        assert not any("in parallel" in line for line in writer.lines)

    def test_individual_condition_failure_stops_pipeline(self, writer):
        log = []
        pipeline = (
            Pipeline.create("maybes")
            .run_parallel_maybes([failing_step("bad"), (recording_step("skip", log), False)])
            .run(recording_step("never", log))
            .build()
        )
        result = run(pipeline, writer)
        assert [type(r) for r in result.results] == [StepFailed, StepSkipped]
        assert log == []


class TestReportOutput:
    def test_report_lists_each_step(self, writer):
        pipeline = (
            Pipeline.create("report")
            .run(recording_step("first", []))
            .maybe_run(recording_step("second", []), False)
            .build()
        )
        run(pipeline, writer)
        text = writer.text()
        assert f"{'first':<35}: " in text
        assert f"{'second':<24} (skipped) : 00:00:000" in text
        assert f"{'Total':<35}: " in text


class TestCancellation:
    def test_cancel_kills_running_process_and_aborts(self, writer):
        token = CancellationToken()
        started = threading.Event()
        captured = {}
        log = []

        @action
        def capture(ctx):
            captured["monitor"] = ctx.process_monitor
            started.set()

        sleeper = Cmd.create(PYTHON, ["-c", "import time; time.sleep(30)"]).run()
        pipeline = (
            Pipeline.create("cancel")
            .run(Step.create("sleep", capture.then(sleeper)))
            .run(recording_step("never", log))
            .build()
        )

        def canceller():
            started.wait(10)
            monitor = captured["monitor"]
            deadline = time.monotonic() + 10
            while not monitor.tracked_ids() and time.monotonic() < deadline:
                time.sleep(0.02)
            token.cancel()

        thread = threading.Thread(target=canceller)
        thread.start()
        start = time.perf_counter()
        result = PipelineRunner(RunArgs(writer=writer, cancellation=token)).run(pipeline)
        thread.join(10)

        assert time.perf_counter() - start < 20
        assert result.success is False
        assert isinstance(result.results[0].failure, Abort)
        assert len(result.results) == 1
        assert log == []

    def test_command_after_cancelling_step_is_aborted(self, writer):
        token = CancellationToken()

        @action
        def cancel(ctx):
            token.cancel()

        sleeper = Cmd.create(PYTHON, ["-c", "import time; time.sleep(30)"]).run()
        pipeline = (
            Pipeline.create("cancel")
            .run(Step.create("cancel", cancel))
            .run(Step.create("sleep", sleeper))
            .build()
        )

        start = time.perf_counter()
        result = run(pipeline, writer, cancellation=token)

        assert time.perf_counter() - start < 20
        assert result.success is False
        assert isinstance(result.results[0], StepSuccess)
        assert isinstance(result.results[1].failure, Abort)

    def test_already_cancelled_token_aborts_commands(self, writer):
        token = CancellationToken()
        token.cancel()
        sleeper = Cmd.create(PYTHON, ["-c", "import time; time.sleep(30)"]).run()
        start = time.perf_counter()
        result = run(Pipeline.create("p").run(Step.create("sleep", sleeper)).build(), writer, cancellation=token)
        assert time.perf_counter() - start < 20
        assert isinstance(result.results[0].failure, Abort)

    def test_already_cancelled_token_does_not_block_process_free_steps(self, writer):
        token = CancellationToken()
        token.cancel()
        log = []
        result = run(Pipeline.create("p").run(recording_step("a", log)).build(), writer, cancellation=token)
        assert result.success is True
        assert log == ["a"]
