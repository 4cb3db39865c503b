"""
Command modules for the blastdb CLI.

Each submodule defines one or more Typer commands that are registered
with the main app in py_blastdb/cli/app.py.
"""

from py_blastdb.cli.commands import create, taxonomy, version

__all__: list[str] = [
    "create",
    "taxonomy",
    "version",
]
