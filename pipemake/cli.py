"""Command-line parsing and the entry point for build scripts.

A build script declares its pipelines and hands control to main():

    pipelines = (
        Pipelines.create()
        .add_default(build)
        .add(release)
        .build()
    )

    if __name__ == "__main__":
        sys.exit(main(pipelines))

Command line: ``[pipeline] [options] [-- extra args]``.
"""

import argparse
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Optional

from dotenv import load_dotenv

from pipemake import __version__, console
from pipemake.config import VERBOSITY_NAMES, RunnerConfig
from pipemake.console import ConsoleWriter, Level, OutputType, Verbosity
from pipemake.exceptions import PipemakeError
from pipemake.logging_config import configure_logging
from pipemake.prefix import PrefixOption

if TYPE_CHECKING:
    from pipemake.pipeline import Pipelines

logger = logging.getLogger(__name__)

EXTRA_ARGS_SEPARATOR = "--"


class CliError(PipemakeError):
    """Raised when the command line cannot be parsed."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


@dataclass(frozen=True)
class CliArgs:
    """Parsed command line.

    Attributes:
        pipeline: Requested pipeline name, None for the default pipeline.
        verbosity: Console verbosity.
        console_output: Writer implementation.
        prefix_option: When step output is prefixed.
        max_workers: Thread cap for parallel stages.
        no_logo: Suppress the version banner.
        log_level: Overrides LOG_LEVEL for diagnostics.
        print_help: Print usage and exit.
        extra_args: Everything after ``--``, verbatim.
    """

    pipeline: Optional[str] = None
    verbosity: Verbosity = Verbosity.NORMAL
    console_output: OutputType = OutputType.STANDARD
    prefix_option: PrefixOption = PrefixOption.WHEN_PARALLEL
    max_workers: Optional[int] = None
    no_logo: bool = False
    log_level: Optional[str] = None
    print_help: bool = False
    extra_args: tuple[str, ...] = field(default_factory=tuple)


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that raises CliError instead of exiting."""

    def error(self, message):
        raise CliError([message])


def split_extra_args(argv: Iterable[str]) -> tuple[list[str], tuple[str, ...]]:
    """Split ``argv`` at the first ``--`` into (options, extra args)."""
    argv = list(argv)
    if EXTRA_ARGS_SEPARATOR in argv:
        index = argv.index(EXTRA_ARGS_SEPARATOR)
        return argv[:index], tuple(argv[index + 1:])
    return argv, ()


def _build_parser(config: RunnerConfig) -> _Parser:
    parser = _Parser(add_help=False, allow_abbrev=False)
    parser.add_argument("pipeline", nargs="?", default=None)
    parser.add_argument("-h", "--help", action="store_true", dest="print_help")
    parser.add_argument(
        "-v",
        "--verbosity",
        choices=list(VERBOSITY_NAMES),
        default=None,
    )
    parser.add_argument(
        "-o",
        "--console-output",
        choices=[o.value for o in OutputType],
        default=None,
    )
    parser.add_argument(
        "--prefix",
        choices=[o.value for o in PrefixOption],
        default=None,
    )
    parser.add_argument("-j", "--max-workers", type=int, default=config.max_workers)
    parser.add_argument("--no-logo", action="store_true")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        default=None,
    )
    return parser


def parse_args(argv: Iterable[str], config: Optional[RunnerConfig] = None) -> CliArgs:
    """Parse a build script's command line.

    Args:
        argv: Arguments without the program name.
        config: Defaults for options that are not given; RunnerConfig()
            when omitted.

    Returns:
        The parsed CliArgs.

    Raises:
        CliError: On unknown options, invalid option values or stray
            arguments.
    """
    config = config or RunnerConfig()
    options, extra_args = split_extra_args(argv)
    parsed = _build_parser(config).parse_args(options)

    if parsed.max_workers is not None and parsed.max_workers < 1:
        raise CliError([f"argument -j/--max-workers: must be positive, got {parsed.max_workers}"])

    return CliArgs(
        pipeline=parsed.pipeline,
        verbosity=VERBOSITY_NAMES[parsed.verbosity] if parsed.verbosity else config.verbosity,
        console_output=OutputType(parsed.console_output) if parsed.console_output else config.console_output,
        prefix_option=PrefixOption(parsed.prefix) if parsed.prefix else config.prefix_option,
        max_workers=parsed.max_workers,
        no_logo=parsed.no_logo,
        log_level=parsed.log_level,
        print_help=parsed.print_help,
        extra_args=extra_args,
    )


def program_name() -> str:
    return os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "build.py"


def usage_text(pipelines: Optional["Pipelines"] = None, prog: Optional[str] = None) -> str:
    lines = [f"Usage: {prog or program_name()} [pipeline] [options] [-- extra args]"]
    if pipelines is not None and pipelines.pipelines:
        lines.append("Pipelines:")
        width = max(len(p.name) for p in pipelines.pipelines) + 2
        for pipeline in pipelines.pipelines:
            description = pipeline.description
            if pipelines.default is not None and pipeline.name == pipelines.default.name:
                description = f"{description} (default)".strip()
            lines.append(f"  {pipeline.name:<{width}} {description}".rstrip())
    lines.extend(
        [
            "Options:",
            "  -h, --help                                    Shows help and usage information",
            "  -v, --verbosity <disabled|quiet|normal|all>   The verbosity level of the output [default: normal]",
            "  -o, --console-output <standard|ansi>          The type of console output produced [default: standard]",
            "  --prefix <always|never|when-parallel>         When step output is prefixed [default: when-parallel]",
            "  -j, --max-workers <n>                         Maximum threads per parallel stage",
            "  --no-logo                                     Do not print the version banner",
            "  --log-level <DEBUG|INFO|WARNING|ERROR>        Diagnostic log level (overrides LOG_LEVEL)",
        ]
    )
    return "\n".join(lines)


def logo_message() -> console.Message:
    return console.message(Level.IMPORTANT, "pipemake ").append_token(__version__)


def print_usage(
    writer: ConsoleWriter,
    pipelines: Optional["Pipelines"] = None,
    errors: Iterable[str] = (),
    prog: Optional[str] = None,
) -> None:
    """Write the banner, any parse errors and the usage text."""
    errors = list(errors)
    writer.write_line(logo_message())
    if errors:
        writer.write_blank(Level.ERROR)
        writer.write_lines(console.error(e) for e in errors)
    writer.write_line(console.message(Level.IMPORTANT, usage_text(pipelines, prog)))


def peek_log_level(argv: Iterable[str]) -> Optional[str]:
    """Read ``--log-level`` ahead of full parsing, ignoring everything else."""
    options, _ = split_extra_args(argv)
    peek = argparse.ArgumentParser(add_help=False, allow_abbrev=False)
    peek.add_argument("--log-level", default=None)
    known, _ = peek.parse_known_args(options)
    return known.log_level


def main(pipelines: "Pipelines", argv: Optional[Iterable[str]] = None) -> int:
    """Entry point for build scripts.

    Loads ``.env``, configures logging and runs the pipeline selected on
    the command line.

    Args:
        pipelines: The pipelines the script declares.
        argv: Arguments without the program name; sys.argv[1:] when omitted.

    Returns:
        Process exit code: 0 on success, 1 on any failure.
    """
    load_dotenv()
    argv = list(sys.argv[1:] if argv is None else argv)
    configure_logging(level_override=peek_log_level(argv))
    logger.debug("Starting with arguments %s", argv)
    return pipelines.run_with_args(argv)
