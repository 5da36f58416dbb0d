"""Tests for console messages and writers."""

import io
import threading

import pytest

from pipemake import console
from pipemake.console import (
    AnsiWriter,
    Color,
    Colorized,
    Level,
    Message,
    OutputType,
    StandardWriter,
    Text,
    Token,
    Verbosity,
    create_writer,
)


class TestVerbosity:
    @pytest.mark.parametrize("level", list(Level))
    def test_disabled_prints_nothing(self, level):
        assert Verbosity.DISABLED.allows(level) is False

    def test_quiet_prints_errors_and_important(self):
        allowed = {level for level in Level if Verbosity.QUIET.allows(level)}
        assert allowed == {Level.ERROR, Level.IMPORTANT}

    def test_normal_excludes_verbose(self):
        assert Verbosity.NORMAL.allows(Level.INFO)
        assert Verbosity.NORMAL.allows(Level.WARN)
        assert not Verbosity.NORMAL.allows(Level.VERBOSE)

    def test_all_prints_everything(self):
        assert all(Verbosity.ALL.allows(level) for level in Level)


class TestMessage:
    def test_status_builders_start_with_arrow_token(self):
        msg = console.info("Running ")
        assert msg.parts[0] == Token("==> ")
        assert msg.token_color is Color.CYAN
        assert msg.level is Level.INFO

    def test_error_and_warn_colors(self):
        assert console.error("x").token_color is Color.RED
        assert console.error("x").level is Level.ERROR
        assert console.warn("x").token_color is Color.YELLOW
        assert console.success("x").token_color is Color.GREEN

    def test_append_helpers_build_parts_in_order(self):
        msg = (
            console.message(Level.INFO, "a")
            .append("b")
            .append_token("c")
            .append_color(Color.MAGENTA, "d")
        )
        assert msg.parts == (Text("a"), Text("b"), Token("c"), Colorized("d", Color.MAGENTA))
        assert msg.plain_text == "abcd"

    def test_messages_are_immutable_values(self):
        base = console.info("x")
        base.append("y")
        assert base.plain_text == "==> x"

    def test_prefix_is_rendered_first(self):
        msg = console.message(Level.INFO, "hello").with_prefix(Colorized("build | ", Color.GREEN))
        assert msg.plain_text == "build | hello"


class TestAnsiWriter:
    def test_renders_ansi_codes(self):
        stream = io.StringIO()
        writer = AnsiWriter(Verbosity.NORMAL, stream)
        writer.write_line(console.message_color(Level.INFO, Color.CYAN, "hi"))
        assert stream.getvalue() == "\u001b[96mhi\u001b[0m\n"

    def test_tokens_use_the_message_token_color(self):
        stream = io.StringIO()
        writer = AnsiWriter(Verbosity.NORMAL, stream)
        writer.write_line(console.error("failed ").append_token("build"))
        assert stream.getvalue() == "\u001b[91m==> \u001b[0mfailed \u001b[91mbuild\u001b[0m\n"

    def test_colors_even_when_no_color_is_set(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        stream = io.StringIO()
        AnsiWriter(Verbosity.NORMAL, stream).write_line(console.message_color(Level.INFO, Color.GREEN, "ok"))
        assert stream.getvalue() == "\u001b[92mok\u001b[0m\n"

    def test_write_without_newline(self):
        stream = io.StringIO()
        writer = AnsiWriter(Verbosity.NORMAL, stream)
        writer.write(console.message(Level.INFO, "a"))
        writer.write(console.message(Level.INFO, "b"))
        assert stream.getvalue() == "ab"

    def test_drops_messages_above_verbosity(self):
        stream = io.StringIO()
        writer = AnsiWriter(Verbosity.QUIET, stream)
        writer.write_line(console.info("hidden"))
        writer.write_line(console.message(Level.IMPORTANT, "shown"))
        assert stream.getvalue() == "shown\n"

    def test_write_blank(self):
        stream = io.StringIO()
        AnsiWriter(Verbosity.NORMAL, stream).write_blank()
        assert stream.getvalue() == "\n"

    def test_concurrent_lines_are_never_split(self):
        stream = io.StringIO()
        writer = AnsiWriter(Verbosity.NORMAL, stream)

        def spam(name):
            for i in range(200):
                writer.write_line(console.message(Level.INFO, f"{name}-{i}-" + "x" * 50))

        threads = [threading.Thread(target=spam, args=(n,)) for n in ("a", "b", "c")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        lines = stream.getvalue().splitlines()
        assert len(lines) == 600
        assert all(line.endswith("x" * 50) and line.count("-") == 2 for line in lines)


class TestStandardWriter:
    def test_writes_plain_text_to_non_terminal_stream(self, monkeypatch):
        monkeypatch.delenv("FORCE_COLOR", raising=False)
        stream = io.StringIO()
        writer = StandardWriter(Verbosity.NORMAL, stream)
        writer.write_line(console.info("Running ").append_token("build"))
        assert stream.getvalue() == "==> Running build\n"

    def test_respects_verbosity(self):
        stream = io.StringIO()
        writer = StandardWriter(Verbosity.DISABLED, stream)
        writer.write_line(console.error("boom"))
        assert stream.getvalue() == ""


class TestCreateWriter:
    def test_standard(self):
        writer = create_writer(OutputType.STANDARD, Verbosity.ALL)
        assert isinstance(writer, StandardWriter)
        assert writer.verbosity is Verbosity.ALL

    def test_ansi(self):
        writer = create_writer(OutputType.ANSI, Verbosity.QUIET, io.StringIO())
        assert isinstance(writer, AnsiWriter)
        assert writer.verbosity is Verbosity.QUIET

    def test_empty_message_renders_empty_line(self):
        stream = io.StringIO()
        create_writer(OutputType.ANSI, Verbosity.NORMAL, stream).write_line(Message(Level.INFO))
        assert stream.getvalue() == "\n"
