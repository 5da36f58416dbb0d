"""The Action type and its core combinators.

An Action is a function from an ActionContext to an Outcome: ``Ok(value)``
or ``Err(failure)``. Actions are composed by value and never mutated.

Example:
    version = Cmd.create("git", ["describe"]).redirect_output(RedirectOption.REDIRECT).result()
    tag = version.map(lambda res: res.output.std.strip())
"""

import functools
from typing import Any, Callable, Generic, Iterable, TypeVar

from pipemake import console
from pipemake.console import Message

from .exceptions import StepAbortError, StepFailedError
from .models import Abort, ActionContext, Err, Failure, Ok, Outcome, Recoverable

T = TypeVar("T")
U = TypeVar("U")


class Action(Generic[T]):
    """A composable, failure-aware unit of work."""

    def __init__(self, run: Callable[[ActionContext], Outcome]):
        self._run = run

    def __call__(self, ctx: ActionContext) -> Outcome:
        return self._run(ctx)

    def map(self, mapping: Callable[[T], U]) -> "Action[U]":
        return map_action(mapping, self)

    def bind(self, binder: Callable[[T], "Action[U]"]) -> "Action[U]":
        return bind_action(binder, self)

    def then(self, other: "Action[U]") -> "Action[U]":
        """Run ``other`` after this action succeeds, discarding this value."""
        return bind_action(lambda _: other, self)

    def zip(self, other: "Action[U]") -> "Action[tuple[T, U]]":
        return zip_actions(self, other)

    def retry(self, attempts: int) -> "Action[T]":
        from .retry import retry

        return retry(attempts, self)

    def memo(self) -> "Action[T]":
        from .memo import memo

        return memo(self)

    def memo_race(self) -> "Action[T]":
        from .memo import memo_race

        return memo_race(self)


def map_action(mapping: Callable[[T], U], act: Action[T]) -> Action[U]:
    """Transform the success value; failures pass through unchanged."""

    def run(ctx: ActionContext) -> Outcome:
        result = act(ctx)
        if isinstance(result, Ok):
            return Ok(mapping(result.value))
        return result

    return Action(run)


def bind_action(binder: Callable[[T], Action[U]], act: Action[T]) -> Action[U]:
    """Sequence two actions; the binder only runs if ``act`` succeeded."""

    def run(ctx: ActionContext) -> Outcome:
        result = act(ctx)
        if isinstance(result, Ok):
            return binder(result.value)(ctx)
        return result

    return Action(run)


def zip_actions(first: Action[T], second: Action[U]) -> Action[tuple[T, U]]:
    """Run both actions in order and pair their values.

    Both actions always run. The first failure, left to right, wins.
    """

    def run(ctx: ActionContext) -> Outcome:
        first_result = first(ctx)
        second_result = second(ctx)
        if isinstance(first_result, Err):
            return first_result
        if isinstance(second_result, Err):
            return second_result
        return Ok((first_result.value, second_result.value))

    return Action(run)


def sequence(actions: Iterable[Action[Any]]) -> Action[list[Any]]:
    """Run actions one after another, stopping at the first failure."""
    actions = list(actions)

    def run(ctx: ActionContext) -> Outcome:
        values = []
        for act in actions:
            result = act(ctx)
            if isinstance(result, Err):
                return result
            values.append(result.value)
        return Ok(values)

    return Action(run)


def succeed(value: T) -> Action[T]:
    return Action(lambda _ctx: Ok(value))


def zero() -> Action[None]:
    return succeed(None)


def context() -> Action[ActionContext]:
    """An action whose value is the current context."""
    return Action(Ok)


def fail(message: str) -> Action[Any]:
    return fail_messages([console.error(message)])


def fail_messages(messages: Iterable[Message]) -> Action[Any]:
    failure = Recoverable(tuple(messages))
    return Action(lambda _ctx: Err(failure))


def abort(message: str) -> Action[Any]:
    return abort_messages([console.error(message)])


def abort_messages(messages: Iterable[Message]) -> Action[Any]:
    failure = Abort(tuple(messages))
    return Action(lambda _ctx: Err(failure))


def failure_of(exc: Exception) -> Failure:
    if isinstance(exc, StepAbortError):
        return Abort((console.error(str(exc)),))
    return Recoverable((console.error(str(exc)),))


def action(body: Callable[[ActionContext], T]) -> Action[T]:
    """Turn a plain ``body(ctx)`` function into an Action.

    Raising StepFailedError or StepAbortError inside the body produces a
    Recoverable or Abort failure. Any other exception escapes.
    """

    @functools.wraps(body)
    def run(ctx: ActionContext) -> Outcome:
        try:
            return Ok(body(ctx))
        except (StepFailedError, StepAbortError) as e:
            return Err(failure_of(e))

    return Action(run)
