"""Centralized constants for the fhirindex utils package.

Single source of truth for the state directory and the files kept in it.
"""

from pathlib import Path

# ============================================================================
# OUTPUT DIRECTORIES
# ============================================================================

# Per-project state directory (runtime config, error log)
STATE_DIR = Path("./.fhirindex")

ERROR_LOG_FILE = STATE_DIR / "error.log"
CONFIG_FILE = STATE_DIR / "config.json"

# ============================================================================
# DEFAULT ARTIFACT LOCATIONS
# ============================================================================

DEFAULT_VIEWS_FILE = Path("views/medications.yaml")
DEFAULT_DATA_FILE = Path("data/medications-10k.ndjson")
DEFAULT_OUTPUT_DB = Path("output/index.db")
