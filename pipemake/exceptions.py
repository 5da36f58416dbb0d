"""Root of the pipemake exception hierarchy."""


class PipemakeError(Exception):
    """Base exception for all pipemake errors."""

    pass
