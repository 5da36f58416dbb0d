"""End-of-run summary: per-step timings and the pipeline status line."""

from datetime import timedelta
from typing import Iterable

from pipemake import console
from pipemake.console import ConsoleWriter, Level, Message

from .models import StepFailed, StepResult, StepSkipped, StepSuccess, total_time

SEPARATOR = "----------------------------------------------"


def format_time(elapsed: timedelta) -> str:
    """Format a duration as ``mm:ss:fff``; hours are dropped."""
    millis = elapsed // timedelta(milliseconds=1)
    minutes, millis = divmod(millis, 60_000)
    seconds, millis = divmod(millis, 1000)
    return f"{minutes % 60:02d}:{seconds:02d}:{millis:03d}"


def result_line(result: StepResult) -> Message:
    if isinstance(result, StepSuccess):
        return console.message_color(
            Level.INFO, console.SUCCESS_COLOR, f"{result.stat.step_name:<35}"
        ).append(f": {format_time(result.stat.execution_time)}")
    if isinstance(result, StepFailed):
        return console.message_color(
            Level.INFO, console.ERROR_COLOR, f"{result.stat.step_name:<25}"
        ).append(f" (failed) : {format_time(result.stat.execution_time)}")
    if isinstance(result, StepSkipped):
        return console.message_color(
            Level.INFO, console.WARN_COLOR, f"{result.step.name:<24}"
        ).append(" (skipped) : 00:00:000")
    raise TypeError(f"Unknown step result: {result!r}")


def summary_lines(results: Iterable[StepResult]) -> list[Message]:
    results = list(results)
    lines = [console.message(Level.INFO, SEPARATOR)]
    lines.extend(result_line(r) for r in results)
    lines.append(console.message(Level.INFO, SEPARATOR))
    lines.append(
        console.message(Level.INFO, f"{'Total':<35}: {format_time(total_time(results))}")
    )
    return lines


def status_line(pipeline_name: str, succeeded: bool) -> Message:
    if succeeded:
        return (
            console.status_message(Level.INFO, console.SUCCESS_COLOR, "")
            .append_token(pipeline_name)
            .append(" pipeline complete")
        )
    return (
        console.status_message(Level.INFO, console.ERROR_COLOR, "")
        .append_token(pipeline_name)
        .append(" pipeline failed")
    )


def print_report(writer: ConsoleWriter, pipeline_name: str, results: list[StepResult], succeeded: bool) -> None:
    """Write the timing summary followed by the pipeline status line."""
    writer.write_blank()
    writer.write_lines(summary_lines(results))
    writer.write_blank()
    writer.write_line(status_line(pipeline_name, succeeded))
