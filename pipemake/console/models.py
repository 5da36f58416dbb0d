"""Data models for console messages."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Union


class Level(Enum):
    """Severity of a console message."""

    ERROR = "error"
    IMPORTANT = "important"
    WARN = "warn"
    INFO = "info"
    VERBOSE = "verbose"


class Verbosity(Enum):
    """How much console output is shown."""

    DISABLED = "disabled"
    QUIET = "quiet"
    NORMAL = "normal"
    ALL = "all"

    def allows(self, level: Level) -> bool:
        """Return True if a message of ``level`` should be printed."""
        if self is Verbosity.DISABLED:
            return False
        if self is Verbosity.QUIET:
            return level in (Level.ERROR, Level.IMPORTANT)
        if self is Verbosity.NORMAL:
            return level in (Level.ERROR, Level.IMPORTANT, Level.WARN, Level.INFO)
        return True


class Color(Enum):
    """Display colors understood by the console writers."""

    CYAN = "cyan"
    DARK_CYAN = "dark_cyan"
    DARK_YELLOW = "dark_yellow"
    GRAY = "gray"
    GREEN = "green"
    MAGENTA = "magenta"
    RED = "red"
    WHITE = "white"
    YELLOW = "yellow"


INFO_COLOR = Color.CYAN
SUCCESS_COLOR = Color.GREEN
WARN_COLOR = Color.YELLOW
ERROR_COLOR = Color.RED


class OutputType(Enum):
    """How colors are rendered."""

    STANDARD = "standard"
    ANSI = "ansi"


@dataclass(frozen=True)
class Text:
    """Plain text."""

    text: str


@dataclass(frozen=True)
class Token:
    """Text rendered in the message's token color."""

    text: str


@dataclass(frozen=True)
class Colorized:
    """Text rendered in an explicit color."""

    text: str
    color: Color


TextPart = Union[Text, Token, Colorized]


@dataclass(frozen=True)
class Message:
    """A single console line made of typed text parts.

    Attributes:
        level: Severity used for verbosity filtering.
        parts: Ordered text fragments.
        token_color: Color used for Token parts.
        prefix: Optional part written before everything else
            (the per-step output prefix).
    """

    level: Level
    parts: tuple[TextPart, ...] = field(default_factory=tuple)
    token_color: Color = INFO_COLOR
    prefix: Optional[TextPart] = None

    def append_parts(self, parts) -> "Message":
        return replace(self, parts=self.parts + tuple(parts))

    def append(self, text: str) -> "Message":
        return self.append_parts([Text(text)])

    def append_token(self, text: str) -> "Message":
        return self.append_parts([Token(text)])

    def append_color(self, color: Color, text: str) -> "Message":
        return self.append_parts([Colorized(text, color)])

    def with_prefix(self, prefix: TextPart) -> "Message":
        return replace(self, prefix=prefix)

    @property
    def plain_text(self) -> str:
        """The message text without any color information."""
        text = "".join(part.text for part in self.parts)
        if self.prefix is not None:
            text = self.prefix.text + text
        return text


def message_empty(level: Level, token_color: Color = INFO_COLOR) -> Message:
    return Message(level=level, token_color=token_color)


def message_parts(level: Level, parts, token_color: Color = INFO_COLOR) -> Message:
    return Message(level=level, parts=tuple(parts), token_color=token_color)


def message(level: Level, text: str) -> Message:
    return message_parts(level, [Text(text)])


def message_color(level: Level, color: Color, text: str) -> Message:
    return message_parts(level, [Colorized(text, color)], token_color=color)


def status_message(level: Level, color: Color, text: str) -> Message:
    """A "==> " status line whose tokens use ``color``."""
    return message_parts(level, [Token("==> "), Text(text)], token_color=color)


def info(text: str) -> Message:
    return status_message(Level.INFO, INFO_COLOR, text)


def warn(text: str) -> Message:
    return status_message(Level.WARN, WARN_COLOR, text)


def error(text: str) -> Message:
    return status_message(Level.ERROR, ERROR_COLOR, text)


def success(text: str) -> Message:
    return status_message(Level.INFO, SUCCESS_COLOR, text)
