"""pipemake: build pipelines as Python scripts.

Steps are named Actions, usually external commands built with Cmd.
Steps are grouped into sequential, parallel and conditional stages,
stages into pipelines, and a build script hands its Pipelines to main().

Public API:
    - Action, action, retry, memo, memo_race and the other Action combinators
    - Cmd, ExitCodeCheck, RedirectOption: external commands
    - Step, Pipeline, Pipelines, PipelineRunner, RunArgs: pipelines
    - ProcessMonitor, CancellationToken: run control
    - Glob: file-pattern matching for clean-up steps
    - main: entry point for build scripts
"""

__version__ = "0.1.0"

from .action import (
    Action,
    ActionContext,
    StepAbortError,
    StepFailedError,
    abort,
    action,
    context,
    fail,
    memo,
    memo_race,
    retry,
    succeed,
    zero,
)
from .cancellation import CancellationToken
from .cli import main
from .cmd import Cmd, ExitCodeCheck, ProcessResult, RedirectOption
from .exceptions import PipemakeError
from .glob import Glob
from .monitor import ProcessMonitor
from .pipeline import (
    ConditionalStep,
    Pipeline,
    PipelineResult,
    PipelineRunner,
    Pipelines,
    RunArgs,
    Step,
    run_pipeline,
)
from .prefix import PrefixOption

__all__ = [
    "Action",
    "ActionContext",
    "CancellationToken",
    "Cmd",
    "ConditionalStep",
    "ExitCodeCheck",
    "Glob",
    "Pipeline",
    "PipelineResult",
    "PipelineRunner",
    "Pipelines",
    "PipemakeError",
    "PrefixOption",
    "ProcessMonitor",
    "ProcessResult",
    "RedirectOption",
    "RunArgs",
    "Step",
    "StepAbortError",
    "StepFailedError",
    "__version__",
    "abort",
    "action",
    "context",
    "fail",
    "main",
    "memo",
    "memo_race",
    "retry",
    "run_pipeline",
    "succeed",
    "zero",
]
