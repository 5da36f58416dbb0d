"""Exceptions for the process monitor module."""

from pipemake.exceptions import PipemakeError


class ProcessMonitorError(PipemakeError):
    """Base exception for process monitor errors."""

    pass


class ProcessMonitorClosedError(ProcessMonitorError):
    """Raised when a message is sent to a monitor that was shut down."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Cannot {operation}: the process monitor has been shut down")
