"""Cmd - runs external processes as Actions."""

import logging
import os
import subprocess
import threading
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Optional

from pipemake import console
from pipemake.action import (
    Abort,
    Action,
    ActionContext,
    Err,
    Ok,
    Outcome,
    Recoverable,
)
from pipemake.console import INFO_COLOR, Level
from pipemake.prefix import should_prefix

from .exceptions import CmdError
from .models import ExitCodeCheck, ProcessResult, RedirectedOutput, RedirectOption

logger = logging.getLogger(__name__)

# How long to wait for output readers after a process was killed.
KILLED_READER_TIMEOUT = 5.0


@dataclass(frozen=True)
class Cmd:
    """Immutable description of an external command.

    Every helper returns a new Cmd. Call run() or result() to get an Action.

    Example:
        build = (
            Cmd.create("make", ["all"])
            .with_env_vars({"CFLAGS": "-O2"})
            .with_timeout(600)
            .check_exit_code(ExitCodeCheck.zero())
            .run()
        )
    """

    command: str
    args: tuple[str, ...] = field(default_factory=tuple)
    env_vars: tuple[tuple[str, str], ...] = field(default_factory=tuple)
    working_dir: Optional[str] = None
    timeout: Optional[float] = None
    prefix: bool = True
    exit_code_check: Optional[ExitCodeCheck] = None
    redirect: Optional[RedirectOption] = None

    def __post_init__(self):
        if not self.command:
            raise CmdError("A command must not be empty")

    @classmethod
    def create(cls, command: str, args: Iterable[str] = ()) -> "Cmd":
        return cls(command=command, args=tuple(args))

    def with_args(self, args: Iterable[str]) -> "Cmd":
        return replace(self, args=tuple(args))

    def args_maybe(self, condition: bool, args: Iterable[str]) -> "Cmd":
        """Append ``args`` only when ``condition`` is true."""
        if not condition:
            return self
        return replace(self, args=self.args + tuple(args))

    def arg_maybe(self, condition: bool, arg: str) -> "Cmd":
        return self.args_maybe(condition, [arg])

    def with_env_vars(self, env_vars) -> "Cmd":
        """Set environment overrides from a mapping or (key, value) pairs."""
        items = env_vars.items() if hasattr(env_vars, "items") else env_vars
        return replace(self, env_vars=tuple((str(k), str(v)) for k, v in items))

    def with_working_dir(self, path: Optional[str]) -> "Cmd":
        return replace(self, working_dir=None if path is None else str(path))

    def with_timeout(self, seconds: float) -> "Cmd":
        if seconds <= 0:
            raise CmdError(f"Timeout must be positive, got {seconds}")
        return replace(self, timeout=float(seconds))

    def with_prefix(self, use_prefix: bool) -> "Cmd":
        return replace(self, prefix=use_prefix)

    def check_exit_code(self, check: ExitCodeCheck) -> "Cmd":
        return replace(self, exit_code_check=check)

    def redirect_output(self, redirect: RedirectOption) -> "Cmd":
        return replace(self, redirect=redirect)

    @property
    def full_command(self) -> str:
        return " ".join((self.command,) + self.args)

    def result(self) -> Action[ProcessResult]:
        """An Action that runs the command and returns its ProcessResult."""
        return Action(lambda ctx: _execute(self, ctx))

    def run(self) -> Action[None]:
        """An Action that runs the command and discards the result."""
        return self.result().map(lambda _: None)


def _output_writer(ctx: ActionContext, use_prefix: bool) -> Callable[[str], None]:
    def write(line: str) -> None:
        msg = console.message_empty(Level.INFO).append(line)
        if use_prefix:
            msg = msg.with_prefix(ctx.prefix)
        ctx.console.write_line(msg)

    return write


def _start_reader(stream, sinks: list[Callable[[str], None]]) -> threading.Thread:
    def read() -> None:
        with stream:
            for line in iter(stream.readline, ""):
                text = line.rstrip("\r\n")
                for sink in sinks:
                    sink(text)

    thread = threading.Thread(target=read, daemon=True)
    thread.start()
    return thread


def _execute(cmd: Cmd, ctx: ActionContext) -> Outcome:
    use_prefix = cmd.prefix and should_prefix(ctx.is_parallel, ctx.prefix_option)
    to_console = _output_writer(ctx, use_prefix)
    full_command = cmd.full_command

    echo = console.message_empty(Level.INFO).append_color(INFO_COLOR, f"> {full_command}")
    ctx.console.write_line(echo.with_prefix(ctx.prefix) if use_prefix else echo)

    capture = cmd.redirect is not None
    pipe_output = capture or use_prefix
    std_lines: list[str] = []
    std_err_lines: list[str] = []

    env = None
    if cmd.env_vars:
        env = dict(os.environ)
        env.update(dict(cmd.env_vars))

    try:
        proc = subprocess.Popen(
            [cmd.command, *cmd.args],
            cwd=cmd.working_dir,
            env=env,
            stdout=subprocess.PIPE if pipe_output else None,
            stderr=subprocess.PIPE if pipe_output else None,
            text=True,
            errors="replace",
        )
    except OSError as e:
        logger.debug("Failed to start %s", full_command, exc_info=True)
        return Err(Recoverable((console.error(f'"{full_command}" failed to start: {e}'),)))

    monitor = ctx.process_monitor
    monitor.add(proc)
    readers: list[threading.Thread] = []
    killed = False
    try:
        if pipe_output:
            std_sinks: list[Callable[[str], None]] = []
            err_sinks: list[Callable[[str], None]] = []
            if capture:
                std_sinks.append(std_lines.append)
                err_sinks.append(std_err_lines.append)
            if not capture or cmd.redirect is RedirectOption.REDIRECT_TO_BOTH:
                std_sinks.append(to_console)
                err_sinks.append(to_console)
            readers.append(_start_reader(proc.stdout, std_sinks))
            readers.append(_start_reader(proc.stderr, err_sinks))

        try:
            exit_code = proc.wait(timeout=cmd.timeout)
        except subprocess.TimeoutExpired:
            monitor.kill(proc)
            proc.wait()
            killed = True
            logger.debug("%s timed out after %ss", full_command, cmd.timeout)
            return Err(
                Recoverable(
                    (console.error(f'"{full_command}" failed to complete before timeout expired'),)
                )
            )

        if monitor.is_killed(proc):
            killed = True
            return Err(Abort((console.error(f'"{full_command}" was aborted'),)))
    finally:
        for reader in readers:
            reader.join(KILLED_READER_TIMEOUT if killed else None)
        monitor.remove(proc)

    if cmd.exit_code_check is not None:
        failure = cmd.exit_code_check.failure_message(full_command, exit_code)
        if failure is not None:
            return Err(Recoverable((console.error(failure),)))

    output = None
    if capture:
        output = RedirectedOutput(
            std="".join(line + "\n" for line in std_lines),
            std_err="".join(line + "\n" for line in std_err_lines),
        )
    return Ok(ProcessResult(exit_code=exit_code, output=output))
