"""Shared pytest fixtures for py_blastdb tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from py_blastdb.taxonomy import FIELD_DELIMITER, ROW_DELIMITER


def nodes_record(tax_id: int, parent_tax_id: int, rank: str = "no rank") -> str:
    """Format one full 13-field nodes.dmp record."""
    fields = [
        str(tax_id),
        str(parent_tax_id),
        rank,
        "",  # embl code
        "0",  # division id
        "0",  # inherited division flag
        "1",  # genetic code id
        "1",  # inherited GC flag
        "0",  # mitochondrial genetic code id
        "1",  # inherited MGC flag
        "0",  # GenBank hidden flag
        "0",  # hidden subtree root flag
        "",  # comments
    ]
    return FIELD_DELIMITER.join(fields) + ROW_DELIMITER


def write_nodes(path: Path, rows: list[tuple[int, int, str]]) -> Path:
    """Write a nodes.dmp file from (tax_id, parent_tax_id, rank) rows."""
    path.write_text("".join(nodes_record(*row) for row in rows))
    return path


# Small taxonomy tree:
#     1 (root)
#     ├── 10 (genus)
#     │   ├── 100 (species)
#     │   └── 101 (species)
#     └── 20 (genus)
#         └── 200 (species)
SIMPLE_TREE = [
    (1, 1, "no rank"),
    (10, 1, "genus"),
    (20, 1, "genus"),
    (100, 10, "species"),
    (101, 10, "species"),
    (200, 20, "species"),
]

# Human/chimp lineage from NCBI:
#     1 (root)
#     └── 131567 (cellular organisms)
#         └── 2759 (Eukaryota)
#             └── 33208 (Metazoa)
#                 └── 9604 (Hominidae)
#                     └── 207598 (Homininae)
#                         ├── 9605 (Homo)
#                         │   └── 9606 (Homo sapiens)
#                         └── 9596 (Pan)
#                             └── 9598 (Pan troglodytes)
HOMINID_TREE = [
    (1, 1, "no rank"),
    (131567, 1, "no rank"),
    (2759, 131567, "superkingdom"),
    (33208, 2759, "kingdom"),
    (9604, 33208, "family"),
    (207598, 9604, "subfamily"),
    (9605, 207598, "genus"),
    (9606, 9605, "species"),
    (9596, 207598, "genus"),
    (9598, 9596, "species"),
]


@pytest.fixture
def simple_nodes(tmp_path: Path) -> Path:
    """nodes.dmp for the small 1/10/20 tree."""
    return write_nodes(tmp_path / "nodes.dmp", SIMPLE_TREE)


@pytest.fixture
def hominid_nodes(tmp_path: Path) -> Path:
    """nodes.dmp for the human/chimp lineage."""
    return write_nodes(tmp_path / "hominid_nodes.dmp", HOMINID_TREE)
