"""
Create command for the blastdb CLI.

Commands:
    blastdb create  - Build an aggregated BLAST database from FASTAs, GI lists,
                      taxid lists and existing databases
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError

from py_blastdb.blastdb import ToolExecutionError, ToolNotFoundError, build_database
from py_blastdb.cli.utils import (
    EXIT_UNHANDLED,
    PANEL_OUTPUT,
    PANEL_SOURCES,
    PANEL_TAXONOMY,
    configure_logging,
    console,
    error,
    info,
    success,
    warning,
)
from py_blastdb.config import (
    ResourceUnavailableError,
    get_blast_path,
    get_nodes_path,
    get_strict_parsing,
)
from py_blastdb.models import BuildRequest
from py_blastdb.taxonomy import InvalidTopologyError, MalformedRecordError


def _require_files(label: str, paths: list[Path]) -> None:
    """Exit with a command-line error if any path does not exist."""
    for path in paths:
        if not path.exists():
            error(f"{label} file does not exist: {path}")


def create(  # noqa: PLR0913
    references: Annotated[
        list[Path] | None,
        typer.Option(
            "--reference",
            "-r",
            help="FASTA file to build a database from (repeatable)",
            rich_help_panel=PANEL_SOURCES,
        ),
    ] = None,
    gi_lists: Annotated[
        list[Path] | None,
        typer.Option(
            "--gi",
            "-g",
            help="Newline-delimited GI number file (repeatable)",
            rich_help_panel=PANEL_SOURCES,
        ),
    ] = None,
    taxa_lists: Annotated[
        list[Path] | None,
        typer.Option(
            "--taxa",
            "-t",
            help="Newline-delimited taxonomy id file (repeatable)",
            rich_help_panel=PANEL_SOURCES,
        ),
    ] = None,
    databases: Annotated[
        list[str] | None,
        typer.Option(
            "--db",
            "-d",
            help="Pre-existing database prefix to aggregate (repeatable)",
            rich_help_panel=PANEL_SOURCES,
        ),
    ] = None,
    dbtype: Annotated[
        str,
        typer.Option("--dbtype", "-D", help='Type of database: "nucl" or "prot"'),
    ] = "nucl",
    blast_path: Annotated[
        Path | None,
        typer.Option(
            "--blast-path",
            "-b",
            help="Path to the nt/nr BLAST databases [env: BLASTDB_PATH]",
        ),
    ] = None,
    nodes_file: Annotated[
        Path | None,
        typer.Option(
            "--nodes",
            "-n",
            help="NCBI taxonomy nodes.dmp for finding the LCA [env: BLASTDB_NODES_DMP]",
            rich_help_panel=PANEL_TAXONOMY,
        ),
    ] = None,
    include_children: Annotated[
        bool,
        typer.Option(
            "--children",
            "-c",
            help="Retrieve GIs from all children of the LCA",
            rich_help_panel=PANEL_TAXONOMY,
        ),
    ] = False,
    broaden: Annotated[
        int,
        typer.Option(
            "--broaden",
            help="Climb this many ranks above the LCA before retrieving GIs",
            rich_help_panel=PANEL_TAXONOMY,
        ),
    ] = 0,
    strict: Annotated[
        bool | None,
        typer.Option(
            "--strict/--lenient",
            help="Reject malformed nodes.dmp records [env: BLASTDB_STRICT_TAXDUMP]",
            rich_help_panel=PANEL_TAXONOMY,
        ),
    ] = None,
    output: Annotated[
        str,
        typer.Option("--output", "-o", help="Output prefix", rich_help_panel=PANEL_OUTPUT),
    ] = "out",
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="Increase verbosity"),
    ] = 0,
) -> None:
    """
    Create a BLAST database.

    Examples:

        # Database from reference FASTAs
        blastdb create -r foo.fasta -r bar.fasta -o refs

        # Database of every record under the LCA of a set of taxa
        blastdb create -t taxa.txt -n nodes.dmp --children -o clade

        # Combine with existing databases
        blastdb create -d refs -g gis.txt -o combined
    """
    configure_logging(verbose)

    references = references or []
    gi_lists = gi_lists or []
    taxa_lists = taxa_lists or []

    _require_files("Reference", references)
    _require_files("GI", gi_lists)
    _require_files("Taxa", taxa_lists)

    resolved_nodes = get_nodes_path(nodes_file) if taxa_lists else None
    if resolved_nodes is not None and not resolved_nodes.exists():
        error(f"Given nodes file does not exist: {resolved_nodes}")

    try:
        request = BuildRequest(
            references=references,
            gi_lists=gi_lists,
            taxa_lists=taxa_lists,
            databases=databases or [],
            dbtype=dbtype,
            blast_path=get_blast_path(blast_path),
            nodes_file=resolved_nodes,
            include_children=include_children,
            broaden=broaden,
            strict_taxdump=get_strict_parsing(strict),
            output=output,
        )
    except ValidationError as e:
        for err in e.errors():
            location = ".".join(str(part) for part in err["loc"]) or "options"
            console.print(f"[red]✗[/red] {location}: {err['msg']}")
        error("Invalid options; see 'blastdb create --help'")

    try:
        result = build_database(request)
    except (
        ResourceUnavailableError,
        InvalidTopologyError,
        MalformedRecordError,
        ToolNotFoundError,
        ToolExecutionError,
    ) as e:
        error(f"An exception occurred:\n{e}", exit_code=EXIT_UNHANDLED)
    except ValueError as e:
        # Unreadable taxid list
        error(str(e))

    if result.lca_tax_id is not None:
        info(f"LCA ID: {result.lca_tax_id}")
    if result.expanded_tax_id is not None and result.expanded_tax_id != result.lca_tax_id:
        info(f"Expanded taxon ID: {result.expanded_tax_id}")
    for message in result.warnings:
        warning(message)
    if result.databases:
        success(f"Created database '{result.output}' from: {', '.join(result.databases)}")
