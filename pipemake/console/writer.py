"""Console writers that render Messages to a terminal."""

import threading
from abc import ABC, abstractmethod
from typing import Iterable, Optional, TextIO

from rich.console import Console
from rich.text import Text as RichText

from .models import Color, Colorized, Level, Message, OutputType, Text, Token, Verbosity

# Shared by every writer so concurrent steps never split a line.
_write_lock = threading.RLock()

RICH_STYLES = {
    Color.CYAN: "bright_cyan",
    Color.DARK_CYAN: "cyan",
    Color.DARK_YELLOW: "yellow",
    Color.GRAY: "white",
    Color.GREEN: "bright_green",
    Color.MAGENTA: "bright_magenta",
    Color.RED: "bright_red",
    Color.WHITE: "bright_white",
    Color.YELLOW: "bright_yellow",
}


class ConsoleWriter(ABC):
    """Abstract sink for console messages.

    Subclasses only implement ``_render``; verbosity filtering and the
    global write lock are handled here.
    """

    def __init__(self, verbosity: Verbosity = Verbosity.NORMAL):
        self.verbosity = verbosity

    @abstractmethod
    def _render(self, message: Message, newline: bool) -> None:
        """Physically write a message. Called with the write lock held."""
        pass

    def write(self, message: Message) -> None:
        """Write a message without a trailing newline."""
        if not self.verbosity.allows(message.level):
            return
        with _write_lock:
            self._render(message, newline=False)

    def write_line(self, message: Message) -> None:
        """Write a message followed by a newline."""
        if not self.verbosity.allows(message.level):
            return
        with _write_lock:
            self._render(message, newline=True)

    def write_lines(self, messages: Iterable[Message]) -> None:
        """Write several messages as consecutive lines."""
        with _write_lock:
            for msg in messages:
                self.write_line(msg)

    def write_blank(self, level: Level = Level.INFO) -> None:
        """Write an empty line at the given level."""
        self.write_line(Message(level=level))


class RichWriter(ConsoleWriter):
    """Renders messages through a rich Console."""

    def __init__(self, verbosity: Verbosity, console: Console):
        super().__init__(verbosity)
        self._console = console

    def _to_rich(self, message: Message) -> RichText:
        parts = list(message.parts)
        if message.prefix is not None:
            parts.insert(0, message.prefix)
        text = RichText()
        for part in parts:
            if isinstance(part, Token):
                text.append(part.text, style=RICH_STYLES[message.token_color])
            elif isinstance(part, Colorized):
                text.append(part.text, style=RICH_STYLES[part.color])
            elif isinstance(part, Text):
                text.append(part.text)
        return text

    def _render(self, message: Message, newline: bool) -> None:
        self._console.print(self._to_rich(message), end="\n" if newline else "")


class AnsiWriter(RichWriter):
    """Always emits ANSI color codes, even when the stream is not a terminal."""

    def __init__(self, verbosity: Verbosity = Verbosity.NORMAL, stream: Optional[TextIO] = None):
        super().__init__(
            verbosity,
            Console(
                file=stream,
                force_terminal=True,
                color_system="256",
                no_color=False,
                legacy_windows=False,
                highlight=False,
                markup=False,
                emoji=False,
                soft_wrap=True,
            ),
        )


class StandardWriter(RichWriter):
    """Lets rich pick the terminal's color mechanism, or none for plain streams."""

    def __init__(self, verbosity: Verbosity = Verbosity.NORMAL, stream: Optional[TextIO] = None):
        super().__init__(
            verbosity,
            Console(
                file=stream,
                highlight=False,
                markup=False,
                emoji=False,
                soft_wrap=True,
            ),
        )


def create_writer(
    output_type: OutputType,
    verbosity: Verbosity,
    stream: Optional[TextIO] = None,
) -> ConsoleWriter:
    """Create the writer for an output type."""
    if output_type is OutputType.ANSI:
        return AnsiWriter(verbosity, stream)
    return StandardWriter(verbosity, stream)
