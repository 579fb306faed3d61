"""Centralized exit codes for the fhirindex CLI."""


class ExitCodes:
    """Standard exit codes for fhirindex CLI commands."""

    SUCCESS = 0

    BUILD_FAILED = 1
    INVALID_INPUT = 2

    @classmethod
    def get_description(cls, code: int) -> str:
        """Get human-readable description for an exit code."""
        descriptions = {
            cls.SUCCESS: "Success - index built",
            cls.BUILD_FAILED: "Build failed - no new index artifact was produced",
            cls.INVALID_INPUT: "Input could not be read (views, records or expression)",
        }
        return descriptions.get(code, f"Unknown exit code: {code}")
