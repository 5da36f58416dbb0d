"""External commands as Actions.

Public API:
    - Cmd: immutable command description with run() / result()
    - ExitCodeCheck, RedirectOption: command options
    - ProcessResult, RedirectedOutput: command results
    - CmdError: invalid command configuration
"""

from .cmd import Cmd
from .exceptions import CmdError
from .models import ExitCodeCheck, ProcessResult, RedirectedOutput, RedirectOption

__all__ = [
    "Cmd",
    "CmdError",
    "ExitCodeCheck",
    "ProcessResult",
    "RedirectOption",
    "RedirectedOutput",
]
