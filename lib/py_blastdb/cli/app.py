"""
blastdb Command Line Interface

Builds BLAST databases by orchestrating makeblastdb, blastdb_aliastool and
Entrez Direct, and resolves NCBI taxonomy ids to their lowest common ancestor.

Usage:
    blastdb create -r refs.fasta -t taxa.txt -n nodes.dmp -o mydb
    blastdb lca 9606 9598 -n nodes.dmp
    blastdb version

This module defines the Typer app and registers all commands.
Command implementations are in py_blastdb.cli.commands.* modules.
"""

from __future__ import annotations

import sys

import typer

from py_blastdb.cli.commands.create import create
from py_blastdb.cli.commands.taxonomy import lca, lineage, node
from py_blastdb.cli.commands.version import version
from py_blastdb.cli.utils import EXIT_UNHANDLED, console

# ============================================================================
# TYPER APP
# ============================================================================

app = typer.Typer(
    name="blastdb",
    help="Build BLAST databases from FASTAs, GI lists and NCBI taxonomy ids",
    add_completion=True,
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

# ============================================================================
# COMMAND REGISTRATION
# ============================================================================

app.command("create")(create)
app.command("c", hidden=True)(create)  # Alias

# Taxonomy commands
app.command("lca")(lca)
app.command("lineage")(lineage)
app.command("node")(node)

app.command("version")(version)
app.command("v", hidden=True)(version)  # Alias


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except (typer.Exit, typer.Abort):
        # Normal exit from Typer
        raise
    except OSError as e:
        console.print(f"[red]An exception occurred:[/red] {e}")
        sys.exit(EXIT_UNHANDLED)


if __name__ == "__main__":
    main()
