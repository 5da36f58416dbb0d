"""Steps, stages, pipelines and the engine that runs them.

Public API:
    - Step, ConditionalStep: units of work
    - SequentialStage, ParallelStage, SequentialConditionalStage,
      ParallelConditionalStage, ParallelIndividualConditionalStage: stages
    - Pipeline, PipelineBuilder: immutable pipelines and their builder
    - PipelineRunner, RunArgs, run_pipeline: the execution engine
    - Pipelines, PipelinesBuilder: a build script's pipeline collection
    - StepSuccess, StepFailed, StepSkipped, PipelineResult: run results
    - PipelineError, PipelineNotFoundError, NoDefaultPipelineError
"""

from .builder import PipelineBuilder
from .engine import PipelineRunner, RunArgs, longest_step_name_length, run_pipeline
from .exceptions import NoDefaultPipelineError, PipelineError, PipelineNotFoundError
from .models import (
    ConditionalStep,
    ParallelConditionalStage,
    ParallelIndividualConditionalStage,
    ParallelStage,
    Pipeline,
    PipelineResult,
    RunStat,
    SequentialConditionalStage,
    SequentialStage,
    Stage,
    Step,
    StepFailed,
    StepResult,
    StepSkipped,
    StepSuccess,
    any_failed,
    total_time,
)
from .pipelines import Pipelines, PipelinesBuilder, cancel_on_interrupt
from .step_runner import StepRun, run_step

__all__ = [
    "ConditionalStep",
    "NoDefaultPipelineError",
    "ParallelConditionalStage",
    "ParallelIndividualConditionalStage",
    "ParallelStage",
    "Pipeline",
    "PipelineBuilder",
    "PipelineError",
    "PipelineNotFoundError",
    "PipelineResult",
    "PipelineRunner",
    "Pipelines",
    "PipelinesBuilder",
    "RunArgs",
    "RunStat",
    "SequentialConditionalStage",
    "SequentialStage",
    "Stage",
    "Step",
    "StepFailed",
    "StepResult",
    "StepRun",
    "StepSkipped",
    "StepSuccess",
    "any_failed",
    "cancel_on_interrupt",
    "longest_step_name_length",
    "run_pipeline",
    "run_step",
    "total_time",
]
