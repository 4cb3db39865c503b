"""
BLAST database construction via the NCBI command-line tools.

Wraps makeblastdb, blastdb_aliastool and the Entrez Direct utilities
(esearch/efetch) and strings them together into a single build:

    1. Taxid lists -> LCA (optionally broadened) -> GI list via esearch|efetch
    2. Reference FASTAs -> makeblastdb
    3. GI lists -> blastdb_aliastool against nt/nr
    4. All of the above plus pre-existing databases -> one aggregated alias

None of these tools are invoked through a shell; each command is an argument
list and its output is captured and logged.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from py_blastdb.models import (
    BASE_DATABASES,
    ENTREZ_DATABASES,
    BuildRequest,
    BuildResult,
    DbType,
)
from py_blastdb.taxid_lists import read_taxid_files
from py_blastdb.taxonomy import UNKNOWN_TAX_ID, LcaResolver, TaxonCatalog

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

REQUIRED_TOOLS = ("makeblastdb", "blastdb_aliastool", "esearch", "efetch")


class ToolNotFoundError(FileNotFoundError):
    """Raised when an external tool is not on PATH."""

    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(f"Required tool not found on PATH: {tool}")


class ToolExecutionError(subprocess.CalledProcessError):
    """Raised when an external tool exits with a non-zero status."""

    def __str__(self) -> str:
        message = super().__str__()
        if self.stderr:
            message = f"{message}\n{self.stderr.strip()}"
        return message


# ============================================================================
# NAMING HELPERS
# ============================================================================


def remove_extension(path: Path | str) -> str:
    """Strip everything from the first '.' of the file name ("foo.fa.gz" -> "foo")."""
    return Path(path).name.split(".", 1)[0]


def join_names(
    paths: Iterable[Path | str],
    sep: str = " ",
    modify: Callable[[Path | str], str] | None = None,
) -> str:
    """
    Join paths into a single command-line value.

    Example:
        >>> join_names(["foo.fasta", "bar.fasta"])
        'foo.fasta bar.fasta'
        >>> join_names(["foo.fasta", "bar.fasta"], "_", remove_extension)
        'foo_bar'
    """
    return sep.join(modify(p) if modify else str(p) for p in paths)


def unique_temp_path(
    prefix: str,
    ext: str = "temp",
    directory: Path | str | None = None,
) -> Path:
    """
    Find an unused file name of the form prefix.ext, prefix_1.ext, prefix_2.ext, ...

    The file is not created; the caller is responsible for removing it.
    """
    directory = Path(directory) if directory is not None else Path()
    candidate = directory / f"{prefix}.{ext}"
    count = 0
    while candidate.exists():
        count += 1
        candidate = directory / f"{prefix}_{count}.{ext}"
    return candidate


# ============================================================================
# TOOL INVOCATION
# ============================================================================


def run_tool(command: list[str], *, input_text: str | None = None) -> str:
    """
    Run an external tool and return its stdout.

    Raises:
        ToolNotFoundError: If the executable is not on PATH.
        ToolExecutionError: If the tool exits with a non-zero status.
    """
    logger.info(f"Running command: {' '.join(command)}")
    try:
        result = subprocess.run(
            command,
            input=input_text,
            check=True,
            text=True,
            capture_output=True,
        )
    except FileNotFoundError as e:
        raise ToolNotFoundError(command[0]) from e
    except subprocess.CalledProcessError as e:
        logger.error(f"{command[0]} failed with exit status {e.returncode}")
        raise ToolExecutionError(e.returncode, e.cmd, e.output, e.stderr) from e

    logger.debug(result.stdout.strip())
    if result.stderr:
        logger.debug(result.stderr.strip())
    return result.stdout


def fetch_taxon_gis(
    tax_id: int,
    dbtype: DbType,
    output: Path | str,
    *,
    include_children: bool = False,
) -> int:
    """
    Write the GI numbers linked to a taxon to `output`.

    Runs `esearch -query "txid<N>[Organism:exp|noexp]" | efetch -format uid`.
    With include_children the search expands to all descendant taxa.

    Returns:
        Number of bytes written (0 means no records were found).
    """
    scope = "exp" if include_children else "noexp"
    search = run_tool(
        [
            "esearch",
            "-db",
            ENTREZ_DATABASES[dbtype],
            "-query",
            f"txid{tax_id}[Organism:{scope}]",
        ],
    )
    gis = run_tool(["efetch", "-format", "uid"], input_text=search)

    output = Path(output)
    output.write_text(gis)
    return output.stat().st_size


def make_reference_db(references: list[Path], dbtype: DbType) -> str:
    """Build a BLAST database from FASTA files and return its name."""
    name = join_names(references, "_", remove_extension)
    run_tool(
        [
            "makeblastdb",
            "-dbtype",
            dbtype,
            "-in",
            join_names(references),
            "-out",
            name,
        ],
    )
    return name


def make_gilist_db(gi_lists: list[Path], dbtype: DbType, blast_path: Path) -> str:
    """Alias the nt/nr database restricted to the given GI lists and return its name."""
    name = join_names(gi_lists, "_", remove_extension)
    run_tool(
        [
            "blastdb_aliastool",
            "-db",
            str(Path(blast_path) / BASE_DATABASES[dbtype]),
            "-dbtype",
            dbtype,
            "-gilist",
            join_names(gi_lists),
            "-out",
            name,
            "-title",
            name,
        ],
    )
    return name


def aggregate_databases(databases: list[str], dbtype: DbType, output: str) -> str:
    """Combine databases into a single alias database named `output`."""
    run_tool(
        [
            "blastdb_aliastool",
            "-dbtype",
            dbtype,
            "-dblist",
            join_names(databases),
            "-out",
            output,
            "-title",
            output,
        ],
    )
    return output


# ============================================================================
# BUILD ORCHESTRATION
# ============================================================================


def _expand_taxa(
    request: BuildRequest,
    result: BuildResult,
    workdir: Path,
) -> Path | None:
    """Resolve the taxa lists to a taxon and fetch its GIs into a temp file."""
    tax_ids = read_taxid_files(request.taxa_lists)
    logger.info("Finding LCA's taxonomy ID")
    catalog = TaxonCatalog(request.nodes_file, strict=request.strict_taxdump)
    resolver = LcaResolver(catalog)

    lca = resolver.resolve_lca(tax_ids)
    result.lca_tax_id = lca
    logger.info(f"LCA ID: {lca}")
    if lca == UNKNOWN_TAX_ID:
        msg = (
            f"The {len(tax_ids)} given taxids share no common ancestor; "
            "skipping GI expansion"
        )
        logger.warning(msg)
        result.warnings.append(msg)
        return None

    target = resolver.broaden(lca, request.broaden)
    result.expanded_tax_id = target
    if target != lca:
        logger.info(f"Broadened LCA {lca} by {request.broaden} rank(s) to {target}")

    logger.info("Finding the GIs associated with LCA")
    gi_file = unique_temp_path("LCA_GIs", directory=workdir)
    written = fetch_taxon_gis(
        target,
        request.dbtype,
        gi_file,
        include_children=request.include_children,
    )
    if written > 0:
        return gi_file

    msg = (
        f"No direct links found for last common ancestor (ID: {target}). "
        "Try using --children"
    )
    logger.warning(msg)
    result.warnings.append(msg)
    gi_file.unlink(missing_ok=True)
    return None


def build_database(request: BuildRequest, workdir: Path | str | None = None) -> BuildResult:
    """
    Run a complete database build.

    Temporary GI files are written to `workdir` (default: the current
    directory) and removed afterwards, even if a step fails.

    Raises:
        DataSourceUnavailableError: If a taxid list or nodes.dmp cannot be read.
        InvalidTopologyError: If nodes.dmp contains a cycle.
        ToolNotFoundError, ToolExecutionError: If an external tool fails.
    """
    workdir = Path(workdir) if workdir is not None else Path()
    result = BuildResult(output=request.output)
    databases = list(request.databases)
    gi_lists = list(request.gi_lists)
    temp_files: list[Path] = []

    try:
        if request.taxa_lists:
            gi_file = _expand_taxa(request, result, workdir)
            if gi_file is not None:
                temp_files.append(gi_file)
                gi_lists.append(gi_file)

        if request.references:
            databases.append(make_reference_db(request.references, request.dbtype))

        if gi_lists:
            databases.append(
                make_gilist_db(gi_lists, request.dbtype, request.blast_path),
            )

        if databases:
            aggregate_databases(databases, request.dbtype, request.output)
        else:
            msg = "Nothing to aggregate; no database was written"
            logger.warning(msg)
            result.warnings.append(msg)
    finally:
        for temp_file in temp_files:
            temp_file.unlink(missing_ok=True)

    result.databases = databases
    return result
