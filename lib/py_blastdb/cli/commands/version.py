"""
Version command for the blastdb CLI.

Commands:
    blastdb version  - Show version information and external tool status
"""

from __future__ import annotations

from rich.panel import Panel

from py_blastdb import __version__
from py_blastdb.blastdb import REQUIRED_TOOLS
from py_blastdb.cli.utils import check_command_exists, console


def version() -> None:
    """Show version information."""
    console.print(
        Panel.fit(
            f"[bold cyan]blastdb[/bold cyan]\n"
            f"Version: {__version__}\n\n"
            f"Builds BLAST databases from FASTAs, GI lists and NCBI taxonomy ids.",
            title="Version Info",
            border_style="cyan",
        ),
    )

    console.print("\n[bold]External tools:[/bold]")
    for tool in REQUIRED_TOOLS:
        if check_command_exists(tool):
            console.print(f"  ✓ {tool}")
        else:
            console.print(f"  ✗ {tool} not found")

    console.print()
