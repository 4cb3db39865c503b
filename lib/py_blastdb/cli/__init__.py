"""
blastdb CLI - A Typer-based command-line interface for building BLAST databases.

Usage:
    blastdb create --reference refs.fasta --output mydb
    blastdb lca 9606 9598 --nodes nodes.dmp
    blastdb version
    blastdb --help
"""

# Import app and main from the app module
from py_blastdb.cli.app import app, main

# Import utilities from the utils module
from py_blastdb.cli.utils import (
    console,
    error,
    info,
    success,
    warning,
)

__all__ = [
    # App and entry point
    "app",
    "main",
    # Utilities
    "console",
    "error",
    "info",
    "success",
    "warning",
]
