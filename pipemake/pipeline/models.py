"""Data models for steps, stages, pipelines and run results."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional, Union

from pipemake.action import Action, ActionContext, Failure, action


@dataclass(frozen=True)
class Step:
    """A named Action; the unit of work users write.

    Names are for display only and need not be unique.
    """

    name: str
    action: Action[None]

    @classmethod
    def create(cls, name: str, body: Union[Action, Callable[[ActionContext], object]]) -> "Step":
        """Create a step from an Action or a plain ``body(ctx)`` function."""
        if not isinstance(body, Action):
            body = action(body)
        return cls(name=name, action=body.map(lambda _: None))


@dataclass(frozen=True)
class ConditionalStep:
    """A step in a per-step conditional parallel stage.

    ``condition`` of None means the step always runs.
    """

    step: Step
    condition: Optional[bool] = None

    @property
    def should_run(self) -> bool:
        return self.condition is None or bool(self.condition)


@dataclass(frozen=True)
class SequentialStage:
    step: Step

    @property
    def all_steps(self) -> list[Step]:
        return [self.step]


@dataclass(frozen=True)
class ParallelStage:
    steps: tuple[Step, ...]

    @property
    def all_steps(self) -> list[Step]:
        return list(self.steps)


@dataclass(frozen=True)
class SequentialConditionalStage:
    step: Step
    condition: bool

    @property
    def all_steps(self) -> list[Step]:
        return [self.step]


@dataclass(frozen=True)
class ParallelConditionalStage:
    steps: tuple[Step, ...]
    condition: bool

    @property
    def all_steps(self) -> list[Step]:
        return list(self.steps)


@dataclass(frozen=True)
class ParallelIndividualConditionalStage:
    entries: tuple[ConditionalStep, ...]

    @property
    def all_steps(self) -> list[Step]:
        return [entry.step for entry in self.entries]

    def partition(self) -> tuple[list[Step], list[Step]]:
        """Split the declared steps into (to run, to skip)."""
        to_run = [e.step for e in self.entries if e.should_run]
        to_skip = [e.step for e in self.entries if not e.should_run]
        return to_run, to_skip


Stage = Union[
    SequentialStage,
    ParallelStage,
    SequentialConditionalStage,
    ParallelConditionalStage,
    ParallelIndividualConditionalStage,
]


@dataclass(frozen=True)
class Pipeline:
    """A named, ordered sequence of stages.

    Pipelines are immutable; append() returns a new pipeline. Use
    Pipeline.create() or Pipeline.create_from() for the fluent builder.
    """

    name: str
    stages: tuple[Stage, ...] = field(default_factory=tuple)
    description: str = ""

    def append(self, stage: Stage) -> "Pipeline":
        return replace(self, stages=self.stages + (stage,))

    @staticmethod
    def create(name: str, description: str = ""):
        from .builder import PipelineBuilder

        return PipelineBuilder(Pipeline(name=name, description=description))

    @staticmethod
    def create_from(base: "Pipeline", name: str, description: Optional[str] = None):
        """Start a builder from ``base``'s stages under a new name.

        ``base`` itself is left unchanged.
        """
        from .builder import PipelineBuilder

        return PipelineBuilder(
            Pipeline(
                name=name,
                stages=base.stages,
                description=base.description if description is None else description,
            )
        )


@dataclass(frozen=True)
class RunStat:
    """Wall-clock duration of one step invocation."""

    step_name: str
    execution_time: timedelta


@dataclass(frozen=True)
class StepSuccess:
    step: Step
    stat: RunStat


@dataclass(frozen=True)
class StepFailed:
    step: Step
    stat: RunStat
    failure: Failure


@dataclass(frozen=True)
class StepSkipped:
    step: Step


StepResult = Union[StepSuccess, StepFailed, StepSkipped]


def any_failed(results: Iterable[StepResult]) -> bool:
    return any(isinstance(r, StepFailed) for r in results)


def total_time(results: Iterable[StepResult]) -> timedelta:
    """Sum of execution times; skipped steps count as zero."""
    total = timedelta()
    for r in results:
        if isinstance(r, (StepSuccess, StepFailed)):
            total += r.stat.execution_time
    return total


@dataclass
class PipelineResult:
    """Aggregate result of a full pipeline run."""

    pipeline_name: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    results: list[StepResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not any_failed(self.results)

    @property
    def total_time(self) -> timedelta:
        return total_time(self.results)

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1
