"""Filter facet projection.

Facets are single-valued: each filter keeps the first result of its
valueExpression evaluated against the result item's value.
"""

from typing import Any

from fhirindex.utils.logging import logger

from .expressions import FilterToIndex
from .provenance import PathProvenanceAdapter


def project_filters(
    adapter: PathProvenanceAdapter,
    value: Any,
    filters: list[FilterToIndex],
) -> dict[str, Any] | None:
    """Compute facet name -> value for one result item.

    Returns None (never an empty dict) when no filter produced a value.
    A failing filter only drops its own facet.
    """
    if not filters:
        return None

    facets: dict[str, Any] = {}
    for item in filters:
        try:
            facet_value = adapter.evaluate_simple(value, item.value_expression)
        except Exception as e:
            logger.debug(f"Filter '{item.name}' ({item.value_expression}) failed: {e}")
            continue
        if facet_value is not None:
            facets[item.name] = facet_value

    return facets or None
