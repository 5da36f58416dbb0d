"""Exceptions for the cmd module."""

from pipemake.exceptions import PipemakeError


class CmdError(PipemakeError):
    """Raised when a command is configured incorrectly."""

    pass
