"""Centralized error handler for fhirindex commands."""

import traceback
from collections.abc import Callable
from datetime import datetime
from functools import wraps
from typing import Any

import click

from fhirindex.utils.logging import logger

from .constants import ERROR_LOG_FILE, STATE_DIR
from .exit_codes import ExitCodes


class CommandFailed(click.ClickException):
    """ClickException carrying a specific exit code."""

    def __init__(self, message: str, exit_code: int = ExitCodes.BUILD_FAILED):
        super().__init__(message)
        self.exit_code = exit_code


def _exit_code_for(error: Exception) -> int:
    from fhirindex.indexer.exceptions import (
        IndexBuildError,
        MalformedRecordError,
        ViewDefinitionError,
    )

    cause = error.__cause__ if isinstance(error, IndexBuildError) else error
    if isinstance(cause, (MalformedRecordError, ViewDefinitionError, FileNotFoundError)):
        return ExitCodes.INVALID_INPUT
    return ExitCodes.BUILD_FAILED


def handle_exceptions(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator that logs a failed command and turns it into a ClickException."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except click.ClickException:
            raise
        except Exception as e:
            STATE_DIR.mkdir(parents=True, exist_ok=True)

            error_type = type(e).__name__
            error_msg = str(e)
            tb = traceback.format_exc()

            logger.opt(exception=True).error(
                "Command '{cmd}' failed: {err}",
                cmd=func.__name__,
                err=error_msg,
            )

            with open(ERROR_LOG_FILE, "a", encoding="utf-8") as f:
                f.write("\n" + "=" * 80 + "\n")
                f.write(f"[{datetime.now().isoformat()}] Error in command: {func.__name__}\n")
                f.write("=" * 80 + "\n")
                f.write(f"{error_type}: {error_msg}\n\n")
                f.write(tb)
                f.write("=" * 80 + "\n\n")

            user_message = (
                f"{error_type}: {error_msg}\n\n"
                f"Full traceback logged to: {ERROR_LOG_FILE}"
            )

            raise CommandFailed(user_message, exit_code=_exit_code_for(e)) from e

    return wrapper
