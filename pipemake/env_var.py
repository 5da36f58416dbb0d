"""Helpers for reading environment variables inside steps.

Example:
    token = env_var.get("NUGET_API_KEY")
    jobs = env_var.get_option_as("BUILD_JOBS", int) or 4
    is_ci = env_var.get_option_as("CI", bool) or False
"""

import os
from typing import Callable, Optional, TypeVar

from pipemake.exceptions import PipemakeError

T = TypeVar("T")

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


class EnvVarError(PipemakeError):
    """Raised when an environment variable is missing or cannot be converted."""
    pass


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"Cannot convert {value!r} to bool")


def get(name: str) -> str:
    """Return the value of ``name``.

    Raises:
        EnvVarError: If the variable is not set.
    """
    value = os.environ.get(name)
    if value is None:
        raise EnvVarError(f'Could not get a value for the environment variable "{name}"')
    return value


def get_option(name: str) -> Optional[str]:
    return os.environ.get(name)


def get_as(name: str, type_: Callable[[str], T]) -> T:
    """Return ``name`` converted with ``type_``.

    ``bool`` accepts 1/0, true/false, yes/no and on/off (case-insensitive).

    Raises:
        EnvVarError: If the variable is not set or cannot be converted.
    """
    value = get(name)
    convert = parse_bool if type_ is bool else type_
    try:
        return convert(value)
    except (TypeError, ValueError) as e:
        raise EnvVarError(
            f'Could not convert the environment variable "{name}" with {getattr(type_, "__name__", type_)}: {e}'
        ) from e


def get_option_as(name: str, type_: Callable[[str], T]) -> Optional[T]:
    """Like get_as(), but returns None when missing or not convertible."""
    try:
        return get_as(name, type_)
    except EnvVarError:
        return None
