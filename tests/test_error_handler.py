"""Tests for command error handling and exit codes."""

import click
import pytest

from fhirindex.indexer.exceptions import IndexBuildError, MalformedRecordError, SinkError
from fhirindex.utils.error_handler import CommandFailed, handle_exceptions
from fhirindex.utils.exit_codes import ExitCodes


@pytest.fixture(autouse=True)
def in_tmp(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


def failing(error):
    @handle_exceptions
    def command():
        raise error

    return command


def test_success_passes_through():
    @handle_exceptions
    def command(x):
        return x * 2

    assert command(4) == 8


def test_failure_becomes_click_exception(tmp_path):
    with pytest.raises(CommandFailed) as exc_info:
        failing(RuntimeError("disk on fire"))()

    assert "RuntimeError: disk on fire" in exc_info.value.message
    assert exc_info.value.exit_code == ExitCodes.BUILD_FAILED
    log = (tmp_path / ".fhirindex" / "error.log").read_text(encoding="utf-8")
    assert "Error in command: command" in log
    assert "disk on fire" in log


def test_invalid_input_exit_code():
    cause = MalformedRecordError("invalid JSON", "r.ndjson", 3)
    error = IndexBuildError(str(cause), "stream records")
    error.__cause__ = cause

    with pytest.raises(CommandFailed) as exc_info:
        failing(error)()

    assert exc_info.value.exit_code == ExitCodes.INVALID_INPUT


def test_sink_failure_is_build_failure():
    error = IndexBuildError("locked", "stream records")
    error.__cause__ = SinkError("locked")

    with pytest.raises(CommandFailed) as exc_info:
        failing(error)()

    assert exc_info.value.exit_code == ExitCodes.BUILD_FAILED


def test_click_exceptions_are_not_wrapped():
    with pytest.raises(click.BadParameter):
        failing(click.BadParameter("nope"))()


def test_exit_code_descriptions():
    assert "Success" in ExitCodes.get_description(ExitCodes.SUCCESS)
    assert "Unknown" in ExitCodes.get_description(99)
