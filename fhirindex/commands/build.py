"""Build the FHIRPath index from views and NDJSON resources."""

import click

from fhirindex.config_runtime import ON_BAD_LINE_CHOICES
from fhirindex.utils.error_handler import handle_exceptions


@click.command()
@handle_exceptions
@click.argument("resources", required=False, type=click.Path(dir_okay=False))
@click.argument("views", required=False, type=click.Path(dir_okay=False))
@click.argument("output", required=False, type=click.Path(dir_okay=False))
@click.option("--root", default=".", help="Directory holding .fhirindex/config.json")
@click.option("--batch-size", default=None, type=int, help="Rows per insert transaction")
@click.option("--progress-interval", default=None, type=int, help="Log progress every N records")
@click.option(
    "--on-bad-line",
    default=None,
    type=click.Choice(ON_BAD_LINE_CHOICES),
    help="Abort on a malformed input line (fail) or log and skip it (skip)",
)
@click.option(
    "--copy-records/--no-copy-records",
    default=None,
    help="Deep-copy each record before evaluation",
)
@click.option("--quiet", is_flag=True, help="Do not print the build summary")
def build(root, resources, views, output, batch_size, progress_interval, on_bad_line, copy_records, quiet):
    """Evaluate every view expression against every resource and write the index.

    Reads FHIR resources from an NDJSON file, extracts the distinct FHIRPath
    expressions from the view definitions, and writes one row per matched
    value to a SQLite file, together with the path the value was found at.

    The database is staged next to OUTPUT and only replaces it once the
    build succeeded. A failed build leaves any previous index untouched.

    Examples:
      fhirindex build data/medications-10k.ndjson views/medications.yaml output/index.db
      fhirindex build --on-bad-line skip data/dirty.ndjson views/medications.yaml out.db
      fhirindex build                        # paths from .fhirindex/config.json

    Output tables:
      fhirpath_index   one row per (expression, resource, result item)
      expressions      expression id, text and table projections
      views            view definitions as JSON"""
    from fhirindex.config_runtime import load_runtime_config
    from fhirindex.indexer.runner import run_fhirpath_index
    from fhirindex.pipeline.ui import print_build_summary

    config = load_runtime_config(root)

    if resources is None:
        resources = config["paths"]["data"]
    if views is None:
        views = config["paths"]["views"]
    if output is None:
        output = config["paths"]["output"]
    if batch_size is None:
        batch_size = config["limits"]["batch_size"]
    if progress_interval is None:
        progress_interval = config["limits"]["progress_interval"]
    if on_bad_line is None:
        on_bad_line = config["ingest"]["on_bad_line"]
    if copy_records is None:
        copy_records = config["ingest"]["copy_records"]

    summary = run_fhirpath_index(
        resources_path=resources,
        views_path=views,
        output_path=output,
        batch_size=batch_size,
        progress_interval=progress_interval,
        on_bad_line=on_bad_line,
        copy_records=copy_records,
    )

    if not quiet:
        print_build_summary(summary)
