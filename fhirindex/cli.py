"""fhirindex CLI - Main entry point and command registration hub."""
# ruff: noqa: E402 - Intentional lazy loading: commands imported after cli group definition

import click
from rich.table import Table

from fhirindex import __version__
from fhirindex.pipeline.ui import console


class VerboseGroup(click.Group):
    """Categorized help generated from the registered commands."""

    def format_commands(self, ctx, formatter):
        """Override to suppress default command listing (we use categorized format in format_help)."""
        pass

    COMMAND_CATEGORIES = {
        "BUILD": {
            "title": "BUILD",
            "description": "Materialize the FHIRPath index",
            "commands": ["build"],
            "command_meta": {
                "build": {
                    "run_when": "After changing views or input data",
                },
            },
        },
        "INSPECTION": {
            "title": "INSPECTION",
            "description": "Look at what a build would evaluate",
            "commands": ["expressions", "eval"],
            "command_meta": {
                "expressions": {
                    "use_when": "Checking which expressions get indexed",
                },
                "eval": {
                    "use_when": "Debugging one expression against one record",
                },
            },
        },
        "DATA": {
            "title": "DATA",
            "description": "Test data generation",
            "commands": ["generate"],
            "command_meta": {
                "generate": {
                    "use_when": "Need a synthetic Medication NDJSON file",
                },
            },
        },
    }

    def format_help(self, ctx, formatter):
        """Generate Rich-styled categorized help."""
        super().format_help(ctx, formatter)

        registered = {
            name: cmd
            for name, cmd in self.commands.items()
            if not name.startswith("_") and not getattr(cmd, "hidden", False)
        }

        console.print()
        console.rule("[bold]COMMANDS[/bold]")

        for _category_id, category_data in self.COMMAND_CATEGORIES.items():
            console.print(f"\n[bold cyan]{category_data['title']}[/bold cyan]")
            console.print(f"[dim]{category_data['description']}[/dim]")

            table = Table(show_header=False, box=None, padding=(0, 2, 0, 0))
            table.add_column("Command", style="cmd", width=14)
            table.add_column("Description", style="white")
            table.add_column("When", style="dim", width=44)

            for cmd_name in category_data["commands"]:
                if cmd_name not in registered:
                    continue
                cmd = registered[cmd_name]

                first_line = (cmd.help or "").split("\n")[0].strip()
                period_idx = first_line.find(".")
                short_help = first_line[:period_idx] if period_idx > 0 else first_line
                if len(short_help) > 45:
                    short_help = short_help[:45].rsplit(" ", 1)[0] + "..."

                cmd_meta = category_data.get("command_meta", {}).get(cmd_name, {})
                hint = ""
                if "use_when" in cmd_meta:
                    hint = f"USE: {cmd_meta['use_when']}"
                elif "run_when" in cmd_meta:
                    hint = f"RUN: {cmd_meta['run_when']}"

                table.add_row(cmd_name, short_help, hint)

            console.print(table)

        console.print()
        console.rule()
        console.print("For detailed options: [cmd]fhirindex <command> --help[/cmd]")


@click.group(cls=VerboseGroup)
@click.version_option(version=__version__, prog_name="fhirindex")
@click.help_option("-h", "--help")
def cli():
    """fhirindex - FHIRPath result index for FHIR NDJSON

    \b
    QUICK START:
      fhirindex generate --count 10000 --output data/medications-10k.ndjson
      fhirindex build data/medications-10k.ndjson views/medications.yaml output/index.db

    \b
    For detailed options: fhirindex <command> --help"""
    pass


from fhirindex.commands.build import build
from fhirindex.commands.eval import eval_command
from fhirindex.commands.expressions import expressions
from fhirindex.commands.generate import generate

cli.add_command(build)
cli.add_command(expressions)
cli.add_command(eval_command, name="eval")
cli.add_command(generate)


def main():
    """Main entry point for console script."""
    cli()


if __name__ == "__main__":
    main()
