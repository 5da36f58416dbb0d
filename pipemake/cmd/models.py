"""Data models for external commands."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RedirectOption(Enum):
    """What to do with a command's stdout/stderr."""

    REDIRECT = "redirect"
    REDIRECT_TO_BOTH = "redirect_to_both"


@dataclass(frozen=True)
class ExitCodeCheck:
    """Expected exit code, with an optional custom failure message.

    Use the constructors rather than building this directly:
    ExitCodeCheck.zero(), .zero_with_message(msg), .code(n),
    .code_with_message(n, msg).
    """

    expected: int = 0
    message: Optional[str] = None

    @classmethod
    def zero(cls) -> "ExitCodeCheck":
        return cls(expected=0)

    @classmethod
    def zero_with_message(cls, message: str) -> "ExitCodeCheck":
        return cls(expected=0, message=message)

    @classmethod
    def code(cls, code: int) -> "ExitCodeCheck":
        return cls(expected=code)

    @classmethod
    def code_with_message(cls, code: int, message: str) -> "ExitCodeCheck":
        return cls(expected=code, message=message)

    def failure_message(self, full_command: str, exit_code: int) -> Optional[str]:
        """Return the failure message if ``exit_code`` is unexpected."""
        if exit_code == self.expected:
            return None
        if self.message is not None:
            return self.message
        if self.expected == 0:
            return f'"{full_command}" failed with {exit_code} exit code'
        return f'"{full_command}" failed with {exit_code} exit code, expected {self.expected}'


@dataclass(frozen=True)
class RedirectedOutput:
    """Captured output of a command."""

    std: str
    std_err: str


@dataclass(frozen=True)
class ProcessResult:
    """Exit code and, when redirected, the captured output of a command."""

    exit_code: int
    output: Optional[RedirectedOutput] = None
