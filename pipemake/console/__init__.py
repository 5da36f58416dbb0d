"""Console output for pipelines.

Messages are built as values (typed text parts plus a level) and handed
to a ConsoleWriter, which filters by verbosity and renders colors.

Public API:
    - Message, Text, Token, Colorized: message model
    - Level, Verbosity, Color, OutputType: enums
    - info, warn, error, success, message, ...: message builders
    - ConsoleWriter, RichWriter, AnsiWriter, StandardWriter, create_writer: writers
"""

from .models import (
    ERROR_COLOR,
    INFO_COLOR,
    SUCCESS_COLOR,
    WARN_COLOR,
    Color,
    Colorized,
    Level,
    Message,
    OutputType,
    Text,
    TextPart,
    Token,
    Verbosity,
    error,
    info,
    message,
    message_color,
    message_empty,
    message_parts,
    status_message,
    success,
    warn,
)
from .writer import AnsiWriter, ConsoleWriter, RichWriter, StandardWriter, create_writer

__all__ = [
    "AnsiWriter",
    "Color",
    "Colorized",
    "ConsoleWriter",
    "ERROR_COLOR",
    "INFO_COLOR",
    "Level",
    "Message",
    "OutputType",
    "RichWriter",
    "SUCCESS_COLOR",
    "StandardWriter",
    "Text",
    "TextPart",
    "Token",
    "Verbosity",
    "WARN_COLOR",
    "create_writer",
    "error",
    "info",
    "message",
    "message_color",
    "message_empty",
    "message_parts",
    "status_message",
    "success",
    "warn",
]
