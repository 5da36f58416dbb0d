"""Per-step output prefixes.

Parallel steps share one console, so their lines are prefixed with the
padded step name in a color picked from a small palette. The color is
derived from a stable hash of the step name, so a step is colored the
same way on every run.
"""

import zlib
from enum import Enum
from typing import Iterable

from pipemake.console import Color, Colorized, Message

PALETTE = (
    Color.CYAN,
    Color.DARK_CYAN,
    Color.DARK_YELLOW,
    Color.GREEN,
    Color.MAGENTA,
    Color.YELLOW,
)


class PrefixOption(Enum):
    """When step output is prefixed."""

    ALWAYS = "always"
    NEVER = "never"
    WHEN_PARALLEL = "when-parallel"


def prefix_color(step_name: str) -> Color:
    return PALETTE[zlib.crc32(step_name.encode("utf-8")) % len(PALETTE)]


def create_prefix(longest_step_name: int, step_name: str) -> Colorized:
    """Build the colored ``"name | "`` prefix, padded to the longest name."""
    return Colorized(f"{step_name:<{longest_step_name}} | ", prefix_color(step_name))


def should_prefix(is_parallel: bool, option: PrefixOption) -> bool:
    if option is PrefixOption.ALWAYS:
        return True
    if option is PrefixOption.NEVER:
        return False
    return is_parallel


def add_optional_prefix(
    message: Message, is_parallel: bool, option: PrefixOption, prefix: Colorized
) -> Message:
    if should_prefix(is_parallel, option):
        return message.with_prefix(prefix)
    return message


def add_optional_prefixes(
    messages: Iterable[Message], is_parallel: bool, option: PrefixOption, prefix: Colorized
) -> list[Message]:
    return [add_optional_prefix(m, is_parallel, option, prefix) for m in messages]
