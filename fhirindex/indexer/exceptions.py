"""Custom exceptions for the indexer module.

Contains exception classes for specific failure modes that require
explicit handling rather than generic error propagation.
"""

from fhirindex.views.models import ViewDefinitionError


class IndexBuildError(Exception):
    """Raised when a build stage fails and the build must be aborted.

    Attributes:
        stage: Which part of the build failed ("load views",
            "extract expressions", "open sink", "stream records", "finalize")
    """

    def __init__(self, message: str, stage: str):
        super().__init__(f"[{stage}] {message}")
        self.stage = stage


class MalformedRecordError(ValueError):
    """Raised when an input line is not a JSON object.

    A corrupt record means a corrupt input source, so it is fatal unless
    the caller explicitly asked for bad lines to be skipped.
    """

    def __init__(self, message: str, source: str, line_number: int):
        super().__init__(f"{source}:{line_number}: {message}")
        self.source = source
        self.line_number = line_number


class SinkError(RuntimeError):
    """Raised when the SQLite sink rejects a write, commit or index build."""


class DataFidelityError(Exception):
    """Raised when stored row counts do not match produced row counts.

    Attributes:
        message: Human-readable error description
        details: Dict containing errors and warnings for debugging
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


__all__ = [
    "IndexBuildError",
    "ViewDefinitionError",
    "MalformedRecordError",
    "SinkError",
    "DataFidelityError",
]
