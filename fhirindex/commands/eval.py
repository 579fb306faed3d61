"""Evaluate one FHIRPath expression against one record."""

import json

import click

from fhirindex.utils.error_handler import handle_exceptions


@click.command("eval")
@handle_exceptions
@click.argument("record", type=click.Path(exists=True, dir_okay=False))
@click.argument("expression")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
def eval_command(record, expression, as_json):
    """Show every result of EXPRESSION on RECORD together with its path.

    RECORD is a file holding a single FHIR resource as JSON. Results are
    printed in evaluator order, exactly as they would be indexed.

    Examples:
      fhirindex eval med.json "Medication.code.coding.code"
      fhirindex eval med.json "Medication.ingredient.strength" --json"""
    from rich.markup import escape

    from fhirindex.indexer.provenance import PathProvenanceAdapter, json_default
    from fhirindex.pipeline.ui import console, print_warning

    with open(record, encoding="utf-8") as f:
        resource = json.load(f)

    if not isinstance(resource, dict):
        raise click.BadParameter("expected a JSON object", param_hint="RECORD")

    adapter = PathProvenanceAdapter()
    results = adapter.evaluate_with_paths(resource, expression)

    if as_json:
        click.echo(json.dumps(
            [{"path": item.path, "value": item.value} for item in results],
            indent=2,
            ensure_ascii=False,
            default=json_default,
        ))
        return

    if adapter.failures:
        print_warning("Expression failed to evaluate, see log output")
        return

    if not results:
        console.print("[dim]No results[/dim]")
        return

    for item in results:
        path = item.path if item.path is not None else "(no path)"
        value = json.dumps(item.value, ensure_ascii=False, default=json_default)
        console.print(f"[path]{escape(path)}[/path] = {escape(value)}", highlight=False)
