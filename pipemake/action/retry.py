"""Retry combinator for Actions."""

import logging

from pipemake import console

from .action import Action
from .models import Abort, ActionContext, Err, Ok, Outcome, Unhandled, exception_to_messages

logger = logging.getLogger(__name__)


def retry(attempts: int, act: Action) -> Action:
    """Create an Action that re-runs ``act`` after a retryable failure.

    ``attempts`` is the total number of runs, including the first one.
    Abort failures are returned immediately. Recoverable failures and
    raised exceptions are printed along with a "Retrying, attempt N"
    notice, until the attempts are used up; the last failure is then
    returned (a raised exception becomes Unhandled).

    Example:
        test = Cmd.create("pytest").run().retry(2)
    """
    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}")

    def retry_notice(ctx: ActionContext, next_attempt: int) -> None:
        ctx.write_lines([console.warn("Retrying, attempt ").append_token(str(next_attempt))])

    def run(ctx: ActionContext) -> Outcome:
        attempt = 1
        while True:
            try:
                result = act(ctx)
            except Exception as e:
                if attempt >= attempts:
                    return Err(Unhandled(e))
                logger.debug("Step '%s' raised on attempt %d", ctx.step_name, attempt, exc_info=True)
                ctx.write_lines(exception_to_messages(e))
            else:
                if isinstance(result, Ok) or isinstance(result.failure, Abort):
                    return result
                if attempt >= attempts:
                    return result
                logger.debug("Step '%s' failed on attempt %d", ctx.step_name, attempt)
                ctx.write_lines(result.failure.to_messages())

            attempt += 1
            retry_notice(ctx, attempt)

    return Action(run)
