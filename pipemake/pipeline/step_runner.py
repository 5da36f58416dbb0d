"""Runs a single step and measures it."""

import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from pipemake.action import ActionContext, Err, Failure, Unhandled

from .models import RunStat, Step

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepRun:
    """Timing of one step invocation and its failure, if any."""

    stat: RunStat
    failure: Optional[Failure] = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None


def run_step(ctx: ActionContext, step: Step) -> StepRun:
    """Run ``step`` once, timing it including any internal retries.

    Exceptions escaping the step's action are converted into an
    ``Unhandled`` failure; they never propagate to the engine.
    """
    start = time.perf_counter()
    try:
        outcome = step.action(ctx)
        failure = outcome.failure if isinstance(outcome, Err) else None
    except Exception as e:
        logger.debug("Step %s raised", step.name, exc_info=True)
        failure = Unhandled(e)
    elapsed = timedelta(seconds=time.perf_counter() - start)
    return StepRun(stat=RunStat(step_name=step.name, execution_time=elapsed), failure=failure)
