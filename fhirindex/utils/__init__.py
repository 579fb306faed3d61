"""fhirindex utilities package."""

from .constants import (
    CONFIG_FILE,
    DEFAULT_DATA_FILE,
    DEFAULT_OUTPUT_DB,
    DEFAULT_VIEWS_FILE,
    ERROR_LOG_FILE,
    STATE_DIR,
)
from .error_handler import CommandFailed, handle_exceptions
from .exit_codes import ExitCodes
from .logging import logger

__all__ = [
    "STATE_DIR",
    "ERROR_LOG_FILE",
    "CONFIG_FILE",
    "DEFAULT_VIEWS_FILE",
    "DEFAULT_DATA_FILE",
    "DEFAULT_OUTPUT_DB",
    "CommandFailed",
    "handle_exceptions",
    "ExitCodes",
    "logger",
]
