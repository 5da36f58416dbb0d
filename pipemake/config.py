"""Runner configuration read from environment variables."""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from pipemake.console import OutputType, Verbosity
from pipemake.exceptions import PipemakeError
from pipemake.prefix import PrefixOption

logger = logging.getLogger(__name__)

VERBOSITY_ENV = "PIPEMAKE_VERBOSITY"
CONSOLE_OUTPUT_ENV = "PIPEMAKE_CONSOLE_OUTPUT"
PREFIX_ENV = "PIPEMAKE_PREFIX"
MAX_WORKERS_ENV = "PIPEMAKE_MAX_WORKERS"

VERBOSITY_NAMES = {
    "disabled": Verbosity.DISABLED,
    "quiet": Verbosity.QUIET,
    "normal": Verbosity.NORMAL,
    "all": Verbosity.ALL,
}


class ConfigError(PipemakeError):
    """Raised when a configuration value is invalid."""

    def __init__(self, variable: str, value: str, expected: str):
        self.variable = variable
        self.value = value
        super().__init__(f"Invalid value {value!r} for {variable}, expected {expected}")


@dataclass(frozen=True)
class RunnerConfig:
    """Defaults for a pipeline run; command-line flags override them.

    Attributes:
        verbosity: Console verbosity.
        console_output: Writer implementation.
        prefix_option: When step output is prefixed.
        max_workers: Thread cap for parallel stages, None for one per step.
    """

    verbosity: Verbosity = Verbosity.NORMAL
    console_output: OutputType = OutputType.STANDARD
    prefix_option: PrefixOption = PrefixOption.WHEN_PARALLEL
    max_workers: Optional[int] = None

    @classmethod
    def from_env(cls) -> "RunnerConfig":
        """Build a config from PIPEMAKE_* environment variables.

        Unset variables keep their defaults.

        Raises:
            ConfigError: If a variable is set to an unsupported value.
        """
        config = cls(
            verbosity=_choice(VERBOSITY_ENV, VERBOSITY_NAMES, Verbosity.NORMAL),
            console_output=_choice(
                CONSOLE_OUTPUT_ENV, {o.value: o for o in OutputType}, OutputType.STANDARD
            ),
            prefix_option=_choice(
                PREFIX_ENV, {o.value: o for o in PrefixOption}, PrefixOption.WHEN_PARALLEL
            ),
            max_workers=_positive_int(MAX_WORKERS_ENV),
        )
        logger.debug("Loaded runner config %s", config)
        return config


def _choice(variable: str, choices: dict, default):
    raw = os.getenv(variable)
    if raw is None or raw.strip() == "":
        return default
    key = raw.strip().lower()
    if key not in choices:
        raise ConfigError(variable, raw, "one of " + "|".join(choices))
    return choices[key]


def _positive_int(variable: str) -> Optional[int]:
    raw = os.getenv(variable)
    if raw is None or raw.strip() == "":
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(variable, raw, "a positive integer") from None
    if value < 1:
        raise ConfigError(variable, raw, "a positive integer")
    return value
