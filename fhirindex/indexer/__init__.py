"""fhirindex Indexer Package.

Turns view definitions and an NDJSON stream of FHIR resources into a SQLite
index:

- expressions: derives the deduplicated expressions to evaluate
- provenance: evaluates an expression and keeps the path of every result
- filters: computes single-valued facets per result
- orchestrator: streams records and materializes rows in batches
- database / schema: the three-table artifact and its indexes
- runner: the staged build with atomic promotion of the output file

ROW CONTRACT
============
One fhirpath_index row per (expression, record, result item). Rows for one
(expression, record) pair keep the evaluator's output order. Nothing is ever
updated or deleted; a new build replaces the whole file.
"""

from .orchestrator import IndexerOrchestrator
from .runner import BuildSummary, run_fhirpath_index

__all__ = [
    "IndexerOrchestrator",
    "BuildSummary",
    "run_fhirpath_index",
]
