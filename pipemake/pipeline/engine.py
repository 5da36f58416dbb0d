"""Pipeline execution engine."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from pipemake import console
from pipemake.action import ActionContext
from pipemake.cancellation import CancellationToken
from pipemake.console import ConsoleWriter
from pipemake.monitor import ProcessMonitor
from pipemake.prefix import PrefixOption, add_optional_prefixes, create_prefix

from .models import (
    ParallelConditionalStage,
    ParallelIndividualConditionalStage,
    ParallelStage,
    Pipeline,
    PipelineResult,
    SequentialConditionalStage,
    SequentialStage,
    Stage,
    Step,
    StepFailed,
    StepResult,
    StepSkipped,
    StepSuccess,
    any_failed,
)
from .report import print_report
from .step_runner import run_step

logger = logging.getLogger(__name__)


@dataclass
class RunArgs:
    """Arguments for a pipeline run.

    Attributes:
        writer: Console writer shared by every step.
        extra_args: Arguments passed after ``--`` on the command line.
        prefix_option: When step output is prefixed.
        cancellation: Cancelling it kills every process spawned by the run.
        max_workers: Thread cap for parallel stages; defaults to one
            thread per step.
    """

    writer: ConsoleWriter
    extra_args: tuple[str, ...] = field(default_factory=tuple)
    prefix_option: PrefixOption = PrefixOption.WHEN_PARALLEL
    cancellation: CancellationToken = field(default_factory=CancellationToken)
    max_workers: Optional[int] = None


def longest_step_name_length(stages: list[Stage]) -> int:
    """Length of the longest step name across all stages, 0 if there are none."""
    return max((len(step.name) for stage in stages for step in stage.all_steps), default=0)


def concat_names(steps: list[Step]) -> str:
    return ", ".join(step.name for step in steps)


class PipelineRunner:
    """Runs pipelines stage by stage.

    Sequential stages run on the calling thread. Parallel stages run on a
    thread pool and always wait for every step, even after one has failed.
    The run stops after the first stage that produced a failure; skipped
    steps never count as failures.

    Example:
        runner = PipelineRunner(RunArgs(writer=create_writer(OutputType.ANSI, Verbosity.NORMAL)))
        result = runner.run(pipeline)
        sys.exit(result.exit_code)
    """

    def __init__(self, args: RunArgs):
        self.args = args
        self.writer = args.writer

    def run(self, pipeline: Pipeline) -> PipelineResult:
        """Run every stage of ``pipeline`` and print the summary.

        Args:
            pipeline: The pipeline to run.

        Returns:
            PipelineResult with one entry per step that ran or was skipped.
        """
        result = PipelineResult(pipeline_name=pipeline.name, started_at=datetime.now())
        longest = longest_step_name_length(list(pipeline.stages))
        logger.debug("Running pipeline %s with %d stages", pipeline.name, len(pipeline.stages))

        self.writer.write_line(console.info("Running pipeline ").append_token(pipeline.name))

        with ProcessMonitor(self.writer) as monitor:
            with self.args.cancellation.register(monitor.kill_all):
                for stage in pipeline.stages:
                    stage_results = self._run_stage(pipeline, monitor, longest, stage)
                    result.results.extend(stage_results)
                    if any_failed(stage_results):
                        break

        result.finished_at = datetime.now()
        print_report(self.writer, pipeline.name, result.results, result.success)
        logger.debug(
            "Pipeline %s finished, success=%s, steps=%d",
            pipeline.name,
            result.success,
            len(result.results),
        )
        return result

    def _context(
        self, pipeline: Pipeline, monitor: ProcessMonitor, longest: int, step: Step, is_parallel: bool
    ) -> ActionContext:
        return ActionContext(
            pipeline_name=pipeline.name,
            step_name=step.name,
            is_parallel=is_parallel,
            console=self.writer,
            prefix=create_prefix(longest, step.name),
            prefix_option=self.args.prefix_option,
            process_monitor=monitor,
            extra_args=tuple(self.args.extra_args),
        )

    def _run_stage(self, pipeline, monitor, longest, stage: Stage) -> list[StepResult]:
        if isinstance(stage, SequentialStage):
            self.writer.write_line(console.info("Running ").append_token(stage.step.name))
            return [self._run_sequential(pipeline, monitor, longest, stage.step)]

        if isinstance(stage, ParallelStage):
            self._announce_parallel(stage.all_steps)
            return self._run_parallel(pipeline, monitor, longest, stage.all_steps)

        if isinstance(stage, SequentialConditionalStage):
            if not stage.condition:
                self.writer.write_line(
                    console.warn("Skipping step ")
                    .append_token(stage.step.name)
                    .append(", condition not met")
                )
                return [StepSkipped(stage.step)]
            self.writer.write_line(
                console.info("Running ").append_token(stage.step.name).append(", condition passed")
            )
            return [self._run_sequential(pipeline, monitor, longest, stage.step)]

        if isinstance(stage, ParallelConditionalStage):
            if not stage.condition:
                self._announce_skipped(stage.all_steps)
                return [StepSkipped(step) for step in stage.steps]
            self._announce_parallel(stage.all_steps)
            return self._run_parallel(pipeline, monitor, longest, stage.all_steps)

        if isinstance(stage, ParallelIndividualConditionalStage):
            to_run, to_skip = stage.partition()
            if to_skip:
                self._announce_skipped(to_skip)
            ran: list[StepResult] = []
            if to_run:
                self._announce_parallel(to_run)
                ran = self._run_parallel(pipeline, monitor, longest, to_run)
            ran_iter = iter(ran)
            return [
                next(ran_iter) if entry.should_run else StepSkipped(entry.step)
                for entry in stage.entries
            ]

        raise TypeError(f"Unknown stage: {stage!r}")

    def _announce_parallel(self, steps: list[Step]) -> None:
        self.writer.write_line(
            console.info("Running ").append_token(concat_names(steps)).append(" in parallel")
        )

    def _announce_skipped(self, steps: list[Step]) -> None:
        self.writer.write_line(
            console.warn("Skipping step(s) ")
            .append_token(concat_names(steps))
            .append(", condition not met")
        )

    def _run_sequential(self, pipeline, monitor, longest, step: Step) -> StepResult:
        ctx = self._context(pipeline, monitor, longest, step, is_parallel=False)
        return self._to_result(ctx, step)

    def _run_parallel(self, pipeline, monitor, longest, steps: list[Step]) -> list[StepResult]:
        if not steps:
            return []
        contexts = [self._context(pipeline, monitor, longest, step, is_parallel=True) for step in steps]
        workers = self.args.max_workers or len(steps)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="pipemake-step") as pool:
            # map() yields in submission order, whatever the completion order.
            return list(pool.map(self._to_result, contexts, steps))

    def _to_result(self, ctx: ActionContext, step: Step) -> StepResult:
        run = run_step(ctx, step)
        if run.failure is None:
            return StepSuccess(step, run.stat)
        self.writer.write_lines(
            add_optional_prefixes(
                run.failure.to_messages(), ctx.is_parallel, ctx.prefix_option, ctx.prefix
            )
        )
        return StepFailed(step, run.stat, run.failure)


def run_pipeline(pipeline: Pipeline, args: RunArgs) -> PipelineResult:
    """Run ``pipeline`` with ``args``; see PipelineRunner."""
    return PipelineRunner(args).run(pipeline)
