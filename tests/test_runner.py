"""Tests for the blocking subprocess helpers."""

from __future__ import annotations

import sys
import time

import pytest

from dnstest import runner
from dnstest.errors import CommandFailedError, OutputEncodingError, SpawnError


def _python(code: str) -> list[str]:
    return [sys.executable, "-c", code]


class TestRun:
    def test_strips_every_trailing_newline(self) -> None:
        output = runner.run(
            _python(
                "import sys; sys.stdout.write('hello\\r\\n\\n\\n');"
                " sys.stderr.write('oops\\n\\r')"
            )
        )
        assert output.success
        assert output.stdout == "hello"
        assert output.stderr == "oops"

    def test_keeps_inner_and_leading_newlines(self) -> None:
        output = runner.run(_python("import sys; sys.stdout.write('\\na\\nb\\n')"))
        assert output.stdout == "\na\nb"

    def test_reports_exit_status_without_raising(self) -> None:
        output = runner.run(_python("import sys; sys.exit(3)"))
        assert output.status == 3
        assert not output.success

    def test_rejects_non_utf8_output(self) -> None:
        with pytest.raises(OutputEncodingError) as excinfo:
            runner.run(_python("import sys; sys.stdout.buffer.write(b'\\xff\\xfe')"))
        assert excinfo.value.stream == "stdout"

    def test_missing_executable_is_a_spawn_error(self) -> None:
        with pytest.raises(SpawnError) as excinfo:
            runner.run(["dnstest-no-such-binary", "--version"])
        assert "dnstest-no-such-binary --version" in str(excinfo.value)


class TestRunChecked:
    def test_returns_output_on_success(self) -> None:
        assert runner.run_checked(_python("print('ok')")).stdout == "ok"

    def test_failure_carries_command_and_output(self) -> None:
        command = _python("import sys; print('partial'); sys.exit(1)")
        with pytest.raises(CommandFailedError) as excinfo:
            runner.run_checked(command)
        error = excinfo.value
        assert error.command == command
        assert error.output is not None
        assert error.output.stdout == "partial"
        assert "sys.exit(1)" in str(error)


def test_status_returns_exit_code() -> None:
    assert runner.status(_python("pass")) == 0
    assert runner.status(_python("import sys; sys.exit(5)")) == 5


def test_spawn_returns_before_the_process_exits() -> None:
    process = runner.spawn(_python("import time; time.sleep(30)"))
    try:
        assert process.poll() is None
    finally:
        process.kill()
        process.communicate()


def test_decode_output_trims_both_streams() -> None:
    output = runner.decode_output(["x"], 0, b"a\n", b"b\r\n")
    assert (output.stdout, output.stderr) == ("a", "b")


def test_start_detached_does_not_wait() -> None:
    started = time.monotonic()
    runner.start_detached(_python("import time; time.sleep(2)"))
    assert time.monotonic() - started < 2


def test_start_detached_missing_executable_is_a_spawn_error() -> None:
    with pytest.raises(SpawnError):
        runner.start_detached(["dnstest-no-such-binary"])
