"""
Shared utilities for the blastdb CLI.

This module provides common functions, constants, and the Rich console
instance used across all CLI commands.
"""

from __future__ import annotations

import json
import shutil
import sys

from loguru import logger
from rich.console import Console

# ============================================================================
# CONSTANTS
# ============================================================================

# Exit codes
EXIT_SUCCESS = 0
EXIT_COMMAND_LINE = 1
EXIT_UNHANDLED = 2

# Help panel names for organizing --help output
PANEL_SOURCES = "Database Sources"
PANEL_TAXONOMY = "Taxonomy"
PANEL_OUTPUT = "Output"

# ============================================================================
# CONSOLE AND OUTPUT UTILITIES
# ============================================================================

console = Console()


def error(message: str, exit_code: int = EXIT_COMMAND_LINE) -> None:
    """Print error message and exit."""
    console.print(f"[red]✗ Error:[/red] {message}")
    sys.exit(exit_code)


def success(message: str) -> None:
    """Print success message."""
    console.print(f"[green]✓[/green] {message}")


def info(message: str) -> None:
    """Print info message."""
    console.print(f"[cyan]i[/cyan]  {message}")


def warning(message: str) -> None:
    """Print warning message."""
    console.print(f"[yellow]⚠[/yellow]  {message}")


def output_json(data: dict | list) -> None:
    """Print data as formatted JSON."""
    console.print_json(json.dumps(data, default=str))


# ============================================================================
# LOGGING
# ============================================================================


def configure_logging(verbosity: int) -> None:
    """
    Configure loguru logging based on verbosity level.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG
    """
    logger.remove()  # Remove default handler

    if verbosity == 0:
        level = "WARNING"
    elif verbosity == 1:
        level = "INFO"
    else:
        level = "DEBUG"

    logger.add(
        sys.stderr,
        level=level,
        format="<level>{level: <8}</level> | {message}",
    )


# ============================================================================
# ENVIRONMENT DETECTION
# ============================================================================


def check_command_exists(command: str) -> bool:
    """Check if a command exists in PATH."""
    return shutil.which(command) is not None
