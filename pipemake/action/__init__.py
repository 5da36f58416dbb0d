"""Composable, failure-aware Actions.

Public API:
    - Action: wraps ``ActionContext -> Ok | Err``
    - action: decorator turning ``body(ctx)`` into an Action
    - succeed, zero, context, fail, fail_messages, abort, abort_messages
    - map_action, bind_action, zip_actions, sequence
    - retry, memo, memo_race: control-flow combinators
    - Ok, Err, Abort, Recoverable, Unhandled: outcomes and failures
    - ActionContext: per-step execution context
    - StepFailedError, StepAbortError: raised from ``@action`` bodies
"""

from .action import (
    Action,
    abort,
    abort_messages,
    action,
    bind_action,
    context,
    fail,
    fail_messages,
    map_action,
    sequence,
    succeed,
    zero,
    zip_actions,
)
from .exceptions import ActionError, StepAbortError, StepFailedError
from .memo import memo, memo_race
from .models import (
    Abort,
    ActionContext,
    Err,
    Failure,
    Ok,
    Outcome,
    Recoverable,
    Unhandled,
    exception_to_messages,
    is_retryable,
)
from .retry import retry

__all__ = [
    "Abort",
    "Action",
    "ActionContext",
    "ActionError",
    "Err",
    "Failure",
    "Ok",
    "Outcome",
    "Recoverable",
    "StepAbortError",
    "StepFailedError",
    "Unhandled",
    "abort",
    "abort_messages",
    "action",
    "bind_action",
    "context",
    "exception_to_messages",
    "fail",
    "fail_messages",
    "is_retryable",
    "map_action",
    "memo",
    "memo_race",
    "retry",
    "sequence",
    "succeed",
    "zero",
    "zip_actions",
]
