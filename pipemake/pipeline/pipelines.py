"""A build script's collection of pipelines and its command-line driver."""

import logging
import signal
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from pipemake import console
from pipemake.cancellation import CancellationToken
from pipemake.cli import CliArgs, CliError, logo_message, parse_args, print_usage
from pipemake.config import ConfigError, RunnerConfig
from pipemake.console import ConsoleWriter, create_writer

from .engine import RunArgs, run_pipeline
from .exceptions import NoDefaultPipelineError, PipelineError, PipelineNotFoundError
from .models import Pipeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Pipelines:
    """The pipelines a build script exposes, plus an optional default.

    Example:
        pipelines = Pipelines.create().add_default(build).add(release).build()
        sys.exit(pipelines.run_with_args(sys.argv[1:]))
    """

    pipelines: tuple[Pipeline, ...] = field(default_factory=tuple)
    default: Optional[Pipeline] = None

    @staticmethod
    def create() -> "PipelinesBuilder":
        return PipelinesBuilder()

    @property
    def names(self) -> list[str]:
        return [p.name for p in self.pipelines]

    def find(self, name: Optional[str]) -> Pipeline:
        """Resolve a pipeline by name, case-insensitively.

        Args:
            name: Requested name, or None for the default pipeline.

        Raises:
            NoDefaultPipelineError: If name is None and no default is set.
            PipelineNotFoundError: If no pipeline has that name.
        """
        if name is None:
            if self.default is None:
                raise NoDefaultPipelineError()
            return self.default
        wanted = name.casefold()
        for pipeline in self.pipelines:
            if pipeline.name.casefold() == wanted:
                return pipeline
        raise PipelineNotFoundError(name, self.names)

    def run(self, args: CliArgs, writer: Optional[ConsoleWriter] = None) -> int:
        """Run the pipeline selected by ``args``.

        Returns:
            0 if the pipeline succeeded (or help was printed), otherwise 1.
        """
        writer = writer or create_writer(args.console_output, args.verbosity)
        if args.print_help:
            print_usage(writer, self)
            return 0

        try:
            pipeline = self.find(args.pipeline)
        except PipelineError as e:
            logger.debug("Pipeline lookup failed: %s", e)
            writer.write_line(console.error(str(e)))
            return 1

        if not args.no_logo:
            writer.write_line(logo_message())

        token = CancellationToken()
        run_args = RunArgs(
            writer=writer,
            extra_args=args.extra_args,
            prefix_option=args.prefix_option,
            cancellation=token,
            max_workers=args.max_workers,
        )
        with cancel_on_interrupt(token, writer):
            result = run_pipeline(pipeline, run_args)
        return result.exit_code

    def run_with_args(self, argv: Iterable[str], config: Optional[RunnerConfig] = None) -> int:
        """Parse ``argv`` and run the selected pipeline.

        Args:
            argv: Arguments without the program name.
            config: Option defaults; read from the environment when omitted.

        Returns:
            Process exit code: 0 on success, 1 on any failure.
        """
        fallback = RunnerConfig()
        try:
            config = config or RunnerConfig.from_env()
        except ConfigError as e:
            writer = create_writer(fallback.console_output, fallback.verbosity)
            writer.write_line(console.error(str(e)))
            return 1

        try:
            args = parse_args(argv, config)
        except CliError as e:
            logger.debug("Invalid command line: %s", e)
            writer = create_writer(config.console_output, config.verbosity)
            print_usage(writer, self, e.errors)
            return 1

        return self.run(args)


class PipelinesBuilder:
    """Collects pipelines for Pipelines.create()."""

    def __init__(self):
        self._pipelines: list[Pipeline] = []
        self._default: Optional[Pipeline] = None

    def add(self, pipeline: Pipeline) -> "PipelinesBuilder":
        self._pipelines.append(pipeline)
        return self

    def default(self, pipeline: Pipeline) -> "PipelinesBuilder":
        """Run ``pipeline`` when no name is given on the command line."""
        self._default = pipeline
        return self

    def add_default(self, pipeline: Pipeline) -> "PipelinesBuilder":
        return self.add(pipeline).default(pipeline)

    def build(self) -> Pipelines:
        return Pipelines(pipelines=tuple(self._pipelines), default=self._default)


@contextmanager
def cancel_on_interrupt(token: CancellationToken, writer: ConsoleWriter) -> Iterator[None]:
    """Cancel ``token`` on Ctrl+C while the block runs.

    The token is cancelled from a helper thread so that the signal handler
    never blocks on the locks of a running step. Outside the main thread
    signal handlers cannot be installed and the block runs unchanged.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def cancel() -> None:
        writer.write_line(console.warn("Cancellation requested, stopping running processes"))
        token.cancel()

    def handler(signum, frame) -> None:
        threading.Thread(target=cancel, name="pipemake-cancel", daemon=True).start()

    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)
