"""Index table methods for the DatabaseManager."""

import json
from typing import Any

from ..config import UNKNOWN_PLACEHOLDER
from ..provenance import json_default


def to_json(value: Any) -> str:
    """Canonical JSON for a stored value.

    Evaluator quantities, dates and decimals are converted explicitly; any
    other non-JSON type raises TypeError.
    """
    return json.dumps(value, ensure_ascii=False, default=json_default)


class IndexDatabaseMixin:
    """Mixin providing add_* methods for the three index tables.

    Rows only go into the per-table buffer here; flushing is explicit.
    """

    def add_index_row(
        self,
        expression_id: str,
        source_resource_id: str | None,
        source_resource_type: str | None,
        source_path: str | None,
        value: Any,
        filter_values: dict[str, Any] | None = None,
    ) -> None:
        """Buffer one fhirpath_index row."""
        self.generic_batches["fhirpath_index"].append(
            (
                expression_id,
                source_resource_id or UNKNOWN_PLACEHOLDER,
                source_resource_type or UNKNOWN_PLACEHOLDER,
                source_path or "",
                to_json(value),
                to_json(filter_values) if filter_values else None,
            )
        )

    def add_expression(
        self,
        expression_id: str,
        expression: str,
        projections: list[dict[str, str]] | None = None,
    ) -> None:
        """Buffer one expressions metadata row."""
        self.generic_batches["expressions"].append(
            (
                expression_id,
                expression,
                to_json(projections) if projections else None,
            )
        )

    def add_view(self, view_id: str, definition: dict[str, Any]) -> None:
        """Buffer one views metadata row with the full definition."""
        self.generic_batches["views"].append((view_id, to_json(definition)))
