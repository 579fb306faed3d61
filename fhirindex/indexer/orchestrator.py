"""Indexer orchestration logic: the index materializer."""

import copy
import time
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from fhirindex.utils.logging import logger

from .config import PROGRESS_INTERVAL, UNKNOWN_PLACEHOLDER
from .database import DatabaseManager
from .expressions import ExpressionToIndex
from .filters import project_filters
from .provenance import PathProvenanceAdapter

INDEX_TABLE = "fhirpath_index"


@dataclass
class MaterializeStats:
    record_count: int = 0
    row_count: int = 0
    elapsed: float = 0.0
    failed_evaluations: int = 0
    placeholder_records: int = 0
    rows_flushed: int = 0


class IndexerOrchestrator:
    """Evaluates every expression against every record and stores the rows.

    Records are processed strictly in order, expressions within a record in
    order, result items in evaluator output order. Rows are flushed to the
    database manager whenever its batch size is reached.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        expressions: list[ExpressionToIndex],
        adapter: PathProvenanceAdapter | None = None,
        progress_interval: int = PROGRESS_INTERVAL,
        copy_records: bool = False,
    ):
        self.db_manager = db_manager
        self.expressions = expressions
        self.adapter = adapter or PathProvenanceAdapter()
        self.progress_interval = progress_interval if progress_interval > 0 else PROGRESS_INTERVAL
        self.copy_records = copy_records
        self.stats = MaterializeStats()

    def store_metadata(self, views: Iterable[Any]) -> None:
        """Write the expressions and views tables once, before any index row."""
        for expr in self.expressions:
            self.db_manager.add_expression(expr.id, expr.expression, expr.projections_payload())
        for view in views:
            self.db_manager.add_view(view.id, view.raw)
        self.db_manager.flush_batch("expressions")
        self.db_manager.flush_batch("views")

    def _flush_if_full(self) -> None:
        if self.db_manager.pending_count(INDEX_TABLE) >= self.db_manager.batch_size:
            self.stats.rows_flushed += self.db_manager.flush_batch(INDEX_TABLE)

    def index_record(self, resource: dict[str, Any]) -> int:
        """Materialize all rows for one record. Returns the rows added."""
        resource_id = resource.get("id")
        resource_type = resource.get("resourceType")
        if not resource_id or not resource_type:
            self.stats.placeholder_records += 1
            logger.debug(
                f"Record #{self.stats.record_count} missing id or resourceType, "
                f"using '{UNKNOWN_PLACEHOLDER}'"
            )

        if self.copy_records:
            resource = copy.deepcopy(resource)

        added = 0
        for expr in self.expressions:
            results = self.adapter.evaluate_with_paths(resource, expr.expression)

            for result in results:
                filter_values = (
                    project_filters(self.adapter, result.value, expr.filters)
                    if expr.filters
                    else None
                )
                self.db_manager.add_index_row(
                    expr.id,
                    resource_id,
                    resource_type,
                    result.path,
                    result.value,
                    filter_values,
                )
                added += 1
                self.stats.row_count += 1
                self._flush_if_full()

        return added

    def run(self, records: Iterable[dict[str, Any]]) -> MaterializeStats:
        """Stream records into the index, then build post-load indexes."""
        start_time = time.time()
        failures_before = self.adapter.failures

        for resource in records:
            self.stats.record_count += 1
            self.index_record(resource)

            if self.stats.record_count % self.progress_interval == 0:
                elapsed = time.time() - start_time
                logger.info(
                    f"Processed {self.stats.record_count} resources "
                    f"({self.stats.row_count} index rows, {elapsed:.1f}s)"
                )

        self.stats.rows_flushed += self.db_manager.flush_batch(INDEX_TABLE)

        logger.info("Creating additional indexes...")
        self.db_manager.create_deferred_indexes()

        self.stats.failed_evaluations = self.adapter.failures - failures_before
        self.stats.elapsed = time.time() - start_time
        return self.stats
