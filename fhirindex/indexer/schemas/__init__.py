"""Schema definitions for the index artifact."""

from .index_schema import EXPRESSIONS, FHIRPATH_INDEX, INDEX_TABLES, VIEWS
from .utils import Column, TableSchema

__all__ = [
    "Column",
    "TableSchema",
    "FHIRPATH_INDEX",
    "EXPRESSIONS",
    "VIEWS",
    "INDEX_TABLES",
]
