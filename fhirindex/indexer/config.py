"""Indexer configuration - constants only.

This module contains all configuration values for the indexer package.
NO business logic here; runtime overrides live in fhirindex.config_runtime.
"""

import os

# =============================================================================
# PERFORMANCE CONFIGURATION
# =============================================================================


def _get_int(env_var: str, default: int, max_value: int) -> int:
    """Get a positive integer from environment or use default."""
    try:
        value = int(os.environ.get(env_var, default))
    except (ValueError, TypeError):
        return default
    if value <= 0:
        return default
    return min(value, max_value)


# Index rows buffered client-side before one executemany + commit.
# Higher values = fewer commits = faster build, more memory.
MAX_BATCH_SIZE = 50000
DEFAULT_BATCH_SIZE = _get_int("FHIRINDEX_DB_BATCH_SIZE", 1000, MAX_BATCH_SIZE)

# Progress line every N records
PROGRESS_INTERVAL = _get_int("FHIRINDEX_PROGRESS_INTERVAL", 1000, 10_000_000)


# =============================================================================
# RECORD CONFIGURATION
# =============================================================================

# Substituted for a missing id or resourceType
UNKNOWN_PLACEHOLDER = "unknown"


# =============================================================================
# EXPRESSION CONFIGURATION
# =============================================================================

# %-variables bound by the indexer itself; any other %name is runtime-only
ALLOWED_VARIABLES: frozenset[str] = frozenset({"resource"})

# Truncation for expression listings
EXPRESSION_PREVIEW_CHARS = 60

# FHIR release used for type-qualified paths
FHIR_MODEL = "r4"
