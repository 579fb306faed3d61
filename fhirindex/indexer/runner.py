"""Indexer workflow runner.

One build = load views -> extract expressions -> open sink -> stream records
-> finalize. The index is written to a temporary file next to the output and
promoted with os.replace only after every stage succeeded, so a failed build
never leaves a partial artifact at the output path and never touches the
previous one.
"""

import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path

from fhirindex.utils.logging import logger
from fhirindex.views.loader import load_registry

from .config import DEFAULT_BATCH_SIZE, EXPRESSION_PREVIEW_CHARS, PROGRESS_INTERVAL
from .core import ON_BAD_LINE_FAIL, NdjsonReader
from .database import initialize_database, remove_database_files
from .exceptions import IndexBuildError
from .expressions import extract_expressions
from .fidelity import reconcile_fidelity
from .orchestrator import IndexerOrchestrator
from .provenance import Evaluator, PathProvenanceAdapter

STAGE_LOAD_VIEWS = "load views"
STAGE_EXTRACT = "extract expressions"
STAGE_OPEN_SINK = "open sink"
STAGE_STREAM = "stream records"
STAGE_FINALIZE = "finalize"


@dataclass
class BuildSummary:
    output_path: str
    view_count: int
    expression_count: int
    record_count: int
    row_count: int
    elapsed: float
    size_bytes: int
    failed_evaluations: int = 0
    placeholder_records: int = 0
    skipped_lines: int = 0

    @property
    def records_per_second(self) -> float:
        if self.elapsed <= 0:
            return float(self.record_count)
        return self.record_count / self.elapsed


def preview(expression: str, limit: int = EXPRESSION_PREVIEW_CHARS) -> str:
    """Shorten an expression for log output."""
    if len(expression) <= limit:
        return expression
    return expression[:limit] + "..."


def _temp_db_path(output: Path) -> Path:
    fd, name = tempfile.mkstemp(prefix=f".{output.name}.", suffix=".partial", dir=output.parent)
    os.close(fd)
    return Path(name)


def run_fhirpath_index(
    resources_path: str | Path,
    views_path: str | Path,
    output_path: str | Path,
    batch_size: int = DEFAULT_BATCH_SIZE,
    progress_interval: int = PROGRESS_INTERVAL,
    on_bad_line: str = ON_BAD_LINE_FAIL,
    copy_records: bool = False,
    evaluator: Evaluator | None = None,
) -> BuildSummary:
    """Run the complete indexing workflow and return its summary."""
    start_time = time.time()
    resources = Path(resources_path)
    output = Path(output_path)

    logger.info(f"Loading views from {views_path}...")
    try:
        registry = load_registry(views_path)
    except Exception as e:
        raise IndexBuildError(str(e), STAGE_LOAD_VIEWS) from e
    logger.info(f"Found {len(registry.views)} views")

    try:
        expressions = extract_expressions(registry)
    except Exception as e:
        raise IndexBuildError(str(e), STAGE_EXTRACT) from e
    logger.info(f"Extracted {len(expressions)} unique expressions to index")
    for expr in expressions:
        logger.info(f"  [{expr.id}] {preview(expr.expression)}")

    if not resources.is_file():
        raise IndexBuildError(
            f"Resources file not found: {resources}", STAGE_STREAM
        ) from FileNotFoundError(str(resources))

    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        temp_path = _temp_db_path(output)
        logger.info(f"Creating database at {output} (staging {temp_path.name})...")
        db_manager = initialize_database(temp_path, batch_size)
    except Exception as e:
        raise IndexBuildError(str(e), STAGE_OPEN_SINK) from e

    reader = NdjsonReader(resources, on_bad_line=on_bad_line)
    stage = STAGE_STREAM
    try:
        orchestrator = IndexerOrchestrator(
            db_manager,
            expressions,
            adapter=PathProvenanceAdapter(evaluator),
            progress_interval=progress_interval,
            copy_records=copy_records,
        )
        orchestrator.store_metadata(registry.views)

        logger.info(f"Processing resources from {resources}...")
        stats = orchestrator.run(reader)

        stage = STAGE_FINALIZE
        reconcile_fidelity(
            {
                "fhirpath_index": stats.row_count,
                "expressions": len(expressions),
                "views": len(registry.views),
            },
            {
                "fhirpath_index": db_manager.table_count("fhirpath_index"),
                "expressions": db_manager.table_count("expressions"),
                "views": db_manager.table_count("views"),
            },
            str(output),
        )
        db_manager.finalize()
        db_manager.close()
        os.replace(temp_path, output)
    except Exception as e:
        db_manager.close()
        remove_database_files(temp_path)
        raise IndexBuildError(str(e), stage) from e

    summary = BuildSummary(
        output_path=str(output),
        view_count=len(registry.views),
        expression_count=len(expressions),
        record_count=stats.record_count,
        row_count=stats.row_count,
        elapsed=time.time() - start_time,
        size_bytes=output.stat().st_size,
        failed_evaluations=stats.failed_evaluations,
        placeholder_records=stats.placeholder_records,
        skipped_lines=reader.skipped_lines,
    )

    logger.info(
        f"Indexed {summary.record_count} resources into {summary.row_count} rows "
        f"in {summary.elapsed:.1f}s"
    )
    return summary
