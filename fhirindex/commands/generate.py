"""Generate synthetic Medication resources."""

import click

from fhirindex.config_runtime import ON_BAD_LINE_CHOICES
from fhirindex.utils.error_handler import handle_exceptions


@click.command()
@handle_exceptions
@click.option("--count", default=10000, show_default=True, type=click.IntRange(min=0), help="Number of resources")
@click.option("--output", default=None, type=click.Path(dir_okay=False), help="Output NDJSON path")
@click.option(
    "--source",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="RxNorm JSONL file (built-in catalog when omitted)",
)
@click.option("--seed", default=None, type=int, help="Random seed for reproducible output")
@click.option(
    "--on-bad-line",
    default="fail",
    show_default=True,
    type=click.Choice(ON_BAD_LINE_CHOICES),
    help="Abort on a malformed source line (fail) or log and skip it (skip)",
)
@click.option("--root", default=".", help="Directory holding .fhirindex/config.json")
def generate(count, output, source, seed, on_bad_line, root):
    """Write synthetic FHIR R4 Medication resources as NDJSON.

    Each resource gets an RxNorm code, a SNOMED dose form, ingredients with
    parsed strengths, and optionally a manufacturer and a batch. With --seed
    the same inputs always produce the same file.

    Source lines look like:
      {"code": "197361", "display": "amlodipine 5 MG Oral Tablet",
       "form": "Tab", "strength": "5 MG", "ingredients": ["17767"]}

    Examples:
      fhirindex generate --count 10000 --output data/medications-10k.ndjson
      fhirindex generate --source data/rxnorm.jsonl --seed 42 --count 500"""
    from fhirindex.config_runtime import load_runtime_config
    from fhirindex.generator import generate_medications
    from fhirindex.pipeline.ui import format_size, print_success

    if output is None:
        output = load_runtime_config(root)["paths"]["data"]

    result = generate_medications(
        output_path=output,
        count=count,
        source=source,
        seed=seed,
        on_bad_line=on_bad_line,
    )

    print_success(
        f"Generated {result['count']:,} medications from {result['source_entries']:,} "
        f"source entries in {result['elapsed']:.1f}s"
    )
    click.echo(f"Output: {result['output']} ({format_size(result['size_bytes'])})")
