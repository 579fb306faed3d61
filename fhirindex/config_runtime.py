"""Runtime configuration for fhirindex - centralized configuration management."""

import copy
import json
import os
from pathlib import Path
from typing import Any

from fhirindex.utils.constants import (
    CONFIG_FILE,
    DEFAULT_DATA_FILE,
    DEFAULT_OUTPUT_DB,
    DEFAULT_VIEWS_FILE,
)
from fhirindex.utils.logging import logger

DEFAULTS = {
    "paths": {
        "views": str(DEFAULT_VIEWS_FILE),
        "data": str(DEFAULT_DATA_FILE),
        "output": str(DEFAULT_OUTPUT_DB),
    },
    "limits": {
        "batch_size": 1000,
        "progress_interval": 1000,
    },
    "ingest": {
        "on_bad_line": "fail",
        "copy_records": False,
    },
}

ON_BAD_LINE_CHOICES = ("fail", "skip")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _coerce(value: str, default_value: Any) -> Any:
    """Coerce an environment string to the type of the default value."""
    if isinstance(default_value, bool):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ValueError(f"expected a boolean, got {value!r}")
    if isinstance(default_value, int):
        return int(value)
    if isinstance(default_value, float):
        return float(value)
    if isinstance(default_value, list):
        return [v.strip() for v in value.split(",")]
    return value


def load_runtime_config(root: str = ".") -> dict[str, Any]:
    """
    Load runtime configuration from .fhirindex/config.json and environment variables.

    Config priority (highest to lowest):
    1. Environment variables (FHIRINDEX_<SECTION>_<KEY>)
    2. .fhirindex/config.json file
    3. Built-in defaults

    Args:
        root: Root directory to look for config file

    Returns:
        Configuration dictionary with merged values
    """
    cfg = copy.deepcopy(DEFAULTS)

    path = Path(root) / CONFIG_FILE
    try:
        if path.exists():
            with open(path, encoding="utf-8") as f:
                user = json.load(f)

            if isinstance(user, dict):
                for section in cfg:
                    if section in user and isinstance(user[section], dict):
                        for key, value in user[section].items():
                            if key in cfg[section] and isinstance(value, type(cfg[section][key])):
                                cfg[section][key] = value
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Could not load config file from {path}: {e}")
        logger.info("Continuing with default configuration")

    for section in cfg:
        for key in cfg[section]:
            env_var = f"FHIRINDEX_{section.upper()}_{key.upper()}"
            if env_var in os.environ:
                value = os.environ[env_var]
                try:
                    cfg[section][key] = _coerce(value, cfg[section][key])
                except (ValueError, AttributeError) as e:
                    logger.warning(
                        f"Invalid value for environment variable {env_var}: '{value}' - {e}"
                    )
                    logger.info(f"Using default value: {cfg[section][key]}")

    if cfg["ingest"]["on_bad_line"] not in ON_BAD_LINE_CHOICES:
        logger.warning(
            f"Unknown ingest.on_bad_line '{cfg['ingest']['on_bad_line']}', using 'fail'"
        )
        cfg["ingest"]["on_bad_line"] = "fail"

    return cfg
