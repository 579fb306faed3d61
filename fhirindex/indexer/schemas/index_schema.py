"""
Index schema definitions.

Three tables make up an index artifact:
- fhirpath_index: one row per (expression, resource, result item)
- expressions: the deduplicated expressions that were evaluated
- views: the full view definitions, for the render layer

Design Philosophy:
- Single-column lookups (expression, resource id, resource type) are indexed
  at table creation
- The composite (expression_id, source_resource_type) index serves the
  dominant read query and is built once after bulk load
"""

from .utils import Column, TableSchema


# ============================================================================
# INDEX ROWS
# ============================================================================

FHIRPATH_INDEX = TableSchema(
    name="fhirpath_index",
    columns=[
        Column("expression_id", "TEXT", nullable=False),
        Column("source_resource_id", "TEXT", nullable=False),
        Column("source_resource_type", "TEXT", nullable=False),
        Column("source_path", "TEXT"),
        Column("value_json", "TEXT", nullable=False),
        Column("filter_values_json", "TEXT"),  # JSON object or NULL, never '{}'
    ],
    indexes=[
        ("idx_fhirpath_expression", ["expression_id"]),
        ("idx_fhirpath_resource", ["source_resource_id"]),
        ("idx_fhirpath_type", ["source_resource_type"]),
    ],
    deferred_indexes=[
        ("idx_fhirpath_expr_type", ["expression_id", "source_resource_type"]),
    ],
)


# ============================================================================
# METADATA
# ============================================================================

EXPRESSIONS = TableSchema(
    name="expressions",
    columns=[
        Column("id", "TEXT", nullable=False, primary_key=True),
        Column("expression", "TEXT", nullable=False),
        Column("projections_json", "TEXT"),
    ],
)

VIEWS = TableSchema(
    name="views",
    columns=[
        Column("id", "TEXT", nullable=False, primary_key=True),
        Column("definition_json", "TEXT", nullable=False),
    ],
)


INDEX_TABLES: dict[str, TableSchema] = {
    "fhirpath_index": FHIRPATH_INDEX,
    "expressions": EXPRESSIONS,
    "views": VIEWS,
}
