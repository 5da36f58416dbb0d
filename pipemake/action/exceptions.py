"""Exceptions for the action module."""

from pipemake.exceptions import PipemakeError


class ActionError(PipemakeError):
    """Base exception for errors raised from inside an Action body."""

    pass


class StepFailedError(ActionError):
    """Raised inside an ``@action`` body to fail with a retryable error."""

    pass


class StepAbortError(ActionError):
    """Raised inside an ``@action`` body to abort without retrying."""

    pass
