"""
Path and option resolution.

Every path the tool needs is resolved with the same hierarchical fallback:
    1. Explicit argument (from the CLI)
    2. Environment variable
    3. Built-in default

Path Resolution:
    BLAST databases: BLASTDB_PATH env var > /media/Storage2/BlastDB
    Taxonomy nodes:  BLASTDB_NODES_DMP env var > ./nodes.dmp
    Strict parsing:  BLASTDB_STRICT_TAXDUMP env var ("1"/"true") > lenient
"""

from __future__ import annotations

import os
from pathlib import Path

# Environment variables for overriding default paths
ENV_VAR_BLAST_PATH = "BLASTDB_PATH"
ENV_VAR_NODES = "BLASTDB_NODES_DMP"
ENV_VAR_STRICT = "BLASTDB_STRICT_TAXDUMP"

DEFAULT_BLAST_PATH = Path("/media/Storage2/BlastDB")
DEFAULT_NODES_FILE = Path("nodes.dmp")

# Downloadable from ftp://ftp.ncbi.nih.gov/pub/taxonomy/taxdump.tar.gz
TAXDUMP_URL = "https://ftp.ncbi.nlm.nih.gov/pub/taxonomy/taxdump.tar.gz"


class ResourceUnavailableError(Exception):
    """
    Base class for errors when a required resource is unavailable.

    Attributes:
        resource_path: Path to the resource (dump file, taxid list, etc.)
        operation: What operation was being attempted
        reason: Human-readable explanation of why the resource is unavailable
        original_error: The underlying exception that caused the failure
    """

    # Subclasses should override these
    resource_type: str = "Resource"
    recovery_hint: str = "check that the path exists and is readable"

    def __init__(
        self,
        resource_path: Path | str,
        operation: str,
        reason: str,
        original_error: Exception | None = None,
    ):
        self.resource_path = (
            Path(resource_path) if isinstance(resource_path, str) else resource_path
        )
        self.operation = operation
        self.reason = reason
        self.original_error = original_error
        super().__init__(
            f"{self.resource_type} unavailable during '{operation}': {reason}\n"
            f"Path: {resource_path}\n"
            f"To continue, {self.recovery_hint}."
        )


def get_blast_path(explicit_path: Path | str | None = None) -> Path:
    """
    Resolve the directory holding the nt/nr BLAST databases.

    Priority:
        1. Explicit path argument (from CLI)
        2. BLASTDB_PATH environment variable
        3. Default: /media/Storage2/BlastDB
    """
    if explicit_path is not None:
        return Path(explicit_path)
    if ENV_VAR_BLAST_PATH in os.environ:
        return Path(os.environ[ENV_VAR_BLAST_PATH])
    return DEFAULT_BLAST_PATH


def get_nodes_path(explicit_path: Path | str | None = None) -> Path:
    """
    Resolve the NCBI taxonomy nodes.dmp file.

    Priority:
        1. Explicit path argument (from CLI)
        2. BLASTDB_NODES_DMP environment variable
        3. Default: nodes.dmp in the working directory

    The file is not required to exist; callers decide whether a missing
    dump is an error.
    """
    if explicit_path is not None:
        return Path(explicit_path)
    if ENV_VAR_NODES in os.environ:
        return Path(os.environ[ENV_VAR_NODES])
    return DEFAULT_NODES_FILE


def get_strict_parsing(explicit: bool | None = None) -> bool:  # noqa: FBT001
    """Resolve whether taxonomy dumps are parsed strictly."""
    if explicit is not None:
        return explicit
    return os.environ.get(ENV_VAR_STRICT, "").lower() in ("1", "true")
