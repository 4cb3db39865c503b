"""
Taxonomy commands for the blastdb CLI.

Commands:
    blastdb lca      - Find the lowest common ancestor of a set of taxids
    blastdb lineage  - Show the path from a taxid up to the root
    blastdb node     - Show the nodes.dmp record for a taxid
"""

from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from py_blastdb.cli.utils import (
    EXIT_UNHANDLED,
    PANEL_TAXONOMY,
    configure_logging,
    console,
    error,
    output_json,
    warning,
)
from py_blastdb.config import get_strict_parsing
from py_blastdb.taxid_lists import read_taxid_files
from py_blastdb.taxonomy import (
    UNKNOWN_TAX_ID,
    DataSourceUnavailableError,
    InvalidTopologyError,
    LcaResolver,
    MalformedRecordError,
    load_catalog,
)

NodesOption = Annotated[
    Path | None,
    typer.Option(
        "--nodes",
        "-n",
        help="NCBI taxonomy nodes.dmp [env: BLASTDB_NODES_DMP]",
        rich_help_panel=PANEL_TAXONOMY,
    ),
]
StrictOption = Annotated[
    bool | None,
    typer.Option(
        "--strict/--lenient",
        help="Reject malformed nodes.dmp records [env: BLASTDB_STRICT_TAXDUMP]",
        rich_help_panel=PANEL_TAXONOMY,
    ),
]
JsonOption = Annotated[bool, typer.Option("--json", help="Output as JSON")]
VerboseOption = Annotated[
    int,
    typer.Option("--verbose", "-v", count=True, help="Increase verbosity"),
]


def _open_resolver(nodes_file: Path | None, strict: bool | None) -> LcaResolver:
    """Load the catalog, turning load failures into CLI errors."""
    try:
        catalog = load_catalog(nodes_file, strict=get_strict_parsing(strict))
    except DataSourceUnavailableError as e:
        error(str(e))
    except MalformedRecordError as e:
        error(str(e), exit_code=EXIT_UNHANDLED)
    return LcaResolver(catalog)


def lca(
    tax_ids: Annotated[
        list[int] | None,
        typer.Argument(help="Taxonomy ids to resolve"),
    ] = None,
    taxa_lists: Annotated[
        list[Path] | None,
        typer.Option("--taxa", "-t", help="Newline-delimited taxonomy id file (repeatable)"),
    ] = None,
    nodes_file: NodesOption = None,
    strict: StrictOption = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = 0,
) -> None:
    """
    Find the lowest common ancestor of a set of taxids.

    Prints -1 when the taxids share no common ancestor in the dump.

    Examples:

        blastdb lca 9606 9598 -n nodes.dmp

        blastdb lca --taxa taxa.txt --json
    """
    configure_logging(verbose)

    query = list(tax_ids or [])
    if taxa_lists:
        try:
            query.extend(read_taxid_files(taxa_lists))
        except DataSourceUnavailableError as e:
            error(str(e))
        except ValueError as e:
            error(str(e))

    if not query:
        error("No taxids given; pass them as arguments or with --taxa")

    resolver = _open_resolver(nodes_file, strict)
    try:
        result = resolver.resolve_lca(query)
    except InvalidTopologyError as e:
        error(str(e), exit_code=EXIT_UNHANDLED)

    if json_output:
        output_json({"tax_ids": query, "lca": result})
        return

    console.print(result)
    if result == UNKNOWN_TAX_ID:
        warning("Taxids share no common ancestor; consider broadening the query")


def lineage(
    tax_id: Annotated[int, typer.Argument(help="Taxonomy id")],
    nodes_file: NodesOption = None,
    strict: StrictOption = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = 0,
) -> None:
    """Show the known ancestors of a taxid, from the root down."""
    configure_logging(verbose)
    resolver = _open_resolver(nodes_file, strict)
    try:
        nodes = resolver.lineage(tax_id)
    except InvalidTopologyError as e:
        error(str(e), exit_code=EXIT_UNHANDLED)

    if not nodes:
        error(f"Taxid {tax_id} not found in {resolver.catalog.source}")

    if json_output:
        output_json(
            {
                "tax_id": tax_id,
                "path": [n.tax_id for n in reversed(nodes)],
                "ranks": [n.rank for n in reversed(nodes)],
            },
        )
        return

    table = Table(title=f"Lineage of {tax_id}", show_header=True, header_style="bold cyan")
    table.add_column("Taxid", justify="right")
    table.add_column("Rank")
    table.add_column("Parent", justify="right")
    for n in nodes:
        table.add_row(str(n.tax_id), n.rank, str(n.parent_tax_id))
    console.print(table)


def node(
    tax_id: Annotated[int, typer.Argument(help="Taxonomy id")],
    nodes_file: NodesOption = None,
    strict: StrictOption = None,
    json_output: JsonOption = False,
) -> None:
    """Show the nodes.dmp record for a taxid."""
    resolver = _open_resolver(nodes_file, strict)
    record = resolver.catalog.get(tax_id)
    if record is None:
        error(f"Taxid {tax_id} not found in {resolver.catalog.source}")

    if json_output:
        output_json(asdict(record))
        return

    table = Table(title=f"Taxon {tax_id}", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for field, value in asdict(record).items():
        table.add_row(field, str(value))
    console.print(table)
