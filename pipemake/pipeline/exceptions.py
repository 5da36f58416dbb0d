"""Exceptions for pipeline lookup and execution."""

from pipemake.exceptions import PipemakeError


class PipelineError(PipemakeError):
    """Base exception for pipeline errors."""
    pass


class PipelineNotFoundError(PipelineError):
    """Raised when no pipeline matches the requested name."""

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = available
        listed = ", ".join(available) if available else "none"
        super().__init__(f'Pipeline "{name}" not found. Available pipelines: {listed}')


class NoDefaultPipelineError(PipelineError):
    """Raised when no pipeline was requested and no default is set."""

    def __init__(self):
        super().__init__("No pipeline specified and no default pipeline is set")
