"""Data models for Actions: outcomes, failures and the execution context."""

import traceback
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar, Union

from pipemake import console
from pipemake.console import ConsoleWriter, Level, Message
from pipemake.prefix import PrefixOption, add_optional_prefix, add_optional_prefixes

if TYPE_CHECKING:
    from pipemake.console import Colorized
    from pipemake.monitor import ProcessMonitor

T = TypeVar("T")


@dataclass(frozen=True)
class Abort:
    """Non-retryable failure: user cancellation or an explicit abort."""

    messages: tuple[Message, ...]

    def to_messages(self) -> list[Message]:
        return list(self.messages)


@dataclass(frozen=True)
class Recoverable:
    """Retryable application-level failure."""

    messages: tuple[Message, ...]

    def to_messages(self) -> list[Message]:
        return list(self.messages)


@dataclass(frozen=True)
class Unhandled:
    """An exception escaped while running an Action."""

    exception: BaseException

    def to_messages(self) -> list[Message]:
        return exception_to_messages(self.exception)


Failure = Union[Abort, Recoverable, Unhandled]


def is_retryable(failure: Failure) -> bool:
    return not isinstance(failure, Abort)


def exception_to_messages(exc: BaseException) -> list[Message]:
    """Render an exception and its traceback as error lines."""
    text = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    lines = [console.error("Exception:")]
    for line in text.rstrip("\n").splitlines():
        lines.append(console.message_color(Level.ERROR, console.ERROR_COLOR, line))
    return lines


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    failure: Failure

    @property
    def is_ok(self) -> bool:
        return False


Outcome = Union[Ok[T], Err]


@dataclass(frozen=True)
class ActionContext:
    """Everything an Action can see while it runs.

    Created fresh by the pipeline engine for each step invocation.

    Attributes:
        pipeline_name: Name of the running pipeline.
        step_name: Name of the running step.
        is_parallel: Whether the step runs in a parallel stage.
        console: Writer shared by every step of the run.
        prefix: Colored output prefix for this step.
        prefix_option: When the prefix is applied.
        process_monitor: Tracks processes spawned during the run.
        extra_args: Arguments passed after ``--`` on the command line.
    """

    pipeline_name: str
    step_name: str
    is_parallel: bool
    console: ConsoleWriter
    prefix: "Colorized"
    prefix_option: PrefixOption
    process_monitor: "ProcessMonitor"
    extra_args: tuple[str, ...] = field(default_factory=tuple)

    def prefixed(self, message: Message) -> Message:
        """Apply this step's prefix according to the prefix policy."""
        return add_optional_prefix(message, self.is_parallel, self.prefix_option, self.prefix)

    def write_lines(self, messages: Any) -> None:
        """Write messages through the console with the prefix policy applied."""
        self.console.write_lines(
            add_optional_prefixes(messages, self.is_parallel, self.prefix_option, self.prefix)
        )
