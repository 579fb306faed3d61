"""Data Fidelity Control System.

Compares what the build produced against what the sink actually holds.
"""

from fhirindex.utils.logging import logger

from .exceptions import DataFidelityError


def reconcile_fidelity(
    manifest: dict[str, int], receipt: dict[str, int], db_path: str, strict: bool = True
) -> dict[str, object]:
    """Compare produced counts (manifest) vs stored counts (receipt), per table."""

    tables = {k for k in manifest if not k.startswith("_")}
    tables.update({k for k in receipt if not k.startswith("_")})

    errors = []
    warnings = []

    for table in sorted(tables):
        produced = manifest.get(table, 0)
        stored = receipt.get(table, 0)

        if produced > 0 and stored == 0:
            errors.append(f"{table}: produced {produced} -> stored 0 (100% LOSS)")

        elif produced != stored:
            delta = produced - stored
            message = f"{table}: produced {produced} -> stored {stored} (delta: {delta})"
            if strict:
                errors.append(message)
            else:
                warnings.append(message)

    result = {
        "status": "FAILED" if errors else ("WARNING" if warnings else "OK"),
        "errors": errors,
        "warnings": warnings,
    }

    if errors:
        error_msg = f"Fidelity check FAILED for {db_path}.\n" + "\n".join(
            f"  - {e}" for e in errors
        )
        logger.error(error_msg)
        raise DataFidelityError(error_msg, details=result)

    if warnings:
        logger.warning(
            f"Fidelity warnings for {db_path}:\n" + "\n".join(f"  - {w}" for w in warnings)
        )

    return result
