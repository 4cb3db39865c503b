"""
Readers for newline-delimited taxid lists.

Each file holds one taxonomy id per line (extra whitespace-separated ids on
a line are accepted). Blank lines and '#' comments are ignored. Multiple
files are concatenated in the order given.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from py_blastdb.taxonomy import DataSourceUnavailableError

if TYPE_CHECKING:
    from collections.abc import Iterable


def parse_taxids(text: str, source: str = "<string>") -> list[int]:
    """Parse taxids from the contents of a taxid list."""
    tax_ids: list[int] = []
    for line_number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.split("#", 1)[0]
        for token in line.split():
            try:
                tax_ids.append(int(token))
            except ValueError:
                msg = f"{source}:{line_number}: not a taxonomy id: {token!r}"
                raise ValueError(msg) from None
    return tax_ids


def read_taxid_file(path: Path | str) -> list[int]:
    """
    Read one taxid list.

    Raises:
        DataSourceUnavailableError: If the file cannot be read.
        ValueError: If the file is not UTF-8 text or a token is not an integer.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        msg = f"{path}: not a text file: {e.reason} at byte {e.start}"
        raise ValueError(msg) from e
    except OSError as e:
        raise DataSourceUnavailableError(
            resource_path=path,
            operation="Reading taxid list",
            reason=e.strerror or str(e),
            original_error=e,
        ) from e
    return parse_taxids(text, str(path))


def read_taxid_files(paths: Iterable[Path | str]) -> list[int]:
    """Read and concatenate several taxid lists."""
    tax_ids: list[int] = []
    for path in paths:
        ids = read_taxid_file(path)
        logger.debug(f"Read {len(ids)} taxids from {path}")
        tax_ids.extend(ids)
    return tax_ids
