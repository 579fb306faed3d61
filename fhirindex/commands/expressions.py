"""List the expressions a build would index."""

import json

import click

from fhirindex.utils.error_handler import handle_exceptions


@click.command()
@handle_exceptions
@click.argument("views", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print the expression list as JSON")
def expressions(views, as_json):
    """Show the deduplicated expressions extracted from a view file.

    Ids are assigned in first-seen order (expr_0, expr_1, ...) and match the
    ids written to the expressions table by `fhirindex build`. Expressions
    that reference runtime parameters other than %resource are left out.

    Examples:
      fhirindex expressions views/medications.yaml
      fhirindex expressions views/medications.yaml --json | jq '.[].expression'"""
    from rich.markup import escape
    from rich.table import Table

    from fhirindex.indexer.expressions import extract_expressions
    from fhirindex.indexer.runner import preview
    from fhirindex.pipeline.ui import console, print_header
    from fhirindex.views.loader import load_registry

    registry = load_registry(views)
    extracted = extract_expressions(registry)

    if as_json:
        payload = [
            {
                "id": expr.id,
                "expression": expr.expression,
                "projections": expr.projections_payload(),
                "filters": [f.to_dict() for f in expr.filters] or None,
            }
            for expr in extracted
        ]
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    print_header(f"{len(extracted)} EXPRESSIONS FROM {len(registry.views)} VIEWS")

    table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    table.add_column("Id", style="cmd")
    table.add_column("Expression", style="expr")
    table.add_column("Columns", style="dim")
    table.add_column("Filters", style="dim")

    for expr in extracted:
        table.add_row(
            expr.id,
            escape(preview(expr.expression)),
            ", ".join(p.name for p in expr.projections),
            ", ".join(f.name for f in expr.filters),
        )

    console.print(table)
