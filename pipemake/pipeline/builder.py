"""Fluent builder for pipelines."""

from dataclasses import replace
from typing import Iterable, Optional, Union

from .models import (
    ConditionalStep,
    ParallelConditionalStage,
    ParallelIndividualConditionalStage,
    ParallelStage,
    Pipeline,
    SequentialConditionalStage,
    SequentialStage,
    Stage,
    Step,
)

ParallelEntry = Union[Step, ConditionalStep, tuple]


def _to_conditional(entry: ParallelEntry) -> ConditionalStep:
    if isinstance(entry, ConditionalStep):
        return entry
    if isinstance(entry, Step):
        return ConditionalStep(entry)
    step, condition = entry
    return ConditionalStep(step, condition)


class PipelineBuilder:
    """Appends stages to a pipeline, one call per stage.

    Each call replaces the builder's pipeline with a new immutable one, so
    a pipeline used as a base (see Pipeline.create_from) is never modified.

    Example:
        pipeline = (
            Pipeline.create("build", "Builds and tests")
            .run(restore)
            .run_parallel([lint, compile])
            .maybe_run(publish, is_release)
            .run_parallel_maybes([unit_tests, (integration_tests, has_db)])
            .build()
        )
    """

    def __init__(self, pipeline: Pipeline):
        self._pipeline = pipeline

    def add(self, stage: Stage) -> "PipelineBuilder":
        self._pipeline = self._pipeline.append(stage)
        return self

    def run(self, step: Step) -> "PipelineBuilder":
        return self.add(SequentialStage(step))

    def maybe_run(self, step: Step, condition: bool) -> "PipelineBuilder":
        return self.add(SequentialConditionalStage(step, bool(condition)))

    def run_parallel(self, steps: Iterable[Step]) -> "PipelineBuilder":
        return self.add(ParallelStage(tuple(steps)))

    def maybe_run_parallel(self, steps: Iterable[Step], condition: bool) -> "PipelineBuilder":
        return self.add(ParallelConditionalStage(tuple(steps), bool(condition)))

    def run_parallel_maybes(self, entries: Iterable[ParallelEntry]) -> "PipelineBuilder":
        """Add a parallel stage where each step may carry its own condition.

        Entries are a Step (always runs), a ``(step, condition)`` pair or a
        ConditionalStep.
        """
        return self.add(
            ParallelIndividualConditionalStage(tuple(_to_conditional(e) for e in entries))
        )

    def describe(self, description: Optional[str]) -> "PipelineBuilder":
        self._pipeline = replace(self._pipeline, description=description or "")
        return self

    def build(self) -> Pipeline:
        return self._pipeline
