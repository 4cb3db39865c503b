"""
Data models for py_blastdb.

Pydantic dataclasses provide validation, serialization, and type safety.
All data crossing API boundaries uses these models.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.dataclasses import dataclass

# Type aliases for constrained values
DbType = Literal["nucl", "prot"]

# Entrez database searched when expanding a taxon into sequence identifiers
ENTREZ_DATABASES: dict[str, str] = {"nucl": "nuccore", "prot": "protein"}

# Preformatted BLAST database aliased by GI lists, relative to the BLAST path
BASE_DATABASES: dict[str, str] = {"nucl": "nt", "prot": "nr"}


@dataclass(frozen=True)
class TaxonNode:
    """
    One row of an NCBI taxonomy nodes.dmp file.

    Only tax_id and parent_tax_id take part in ancestor traversal; the rest
    is carried verbatim from the dump.
    """

    tax_id: int
    parent_tax_id: int
    rank: str = ""
    embl_code: str = ""
    division_id: int = 0
    inherited_division: bool = False
    genetic_code_id: int = 0
    inherited_genetic_code: bool = False
    mitochondrial_genetic_code_id: int = 0
    inherited_mitochondrial_genetic_code: bool = False
    genbank_hidden: bool = False
    hidden_subtree_root: bool = False
    comments: str = ""

    @property
    def is_root(self) -> bool:
        """A node that is its own parent terminates ancestor traversal."""
        return self.tax_id == self.parent_tax_id


class BuildRequest(BaseModel):
    """
    All inputs for one database build.

    Sources are combined in order: the taxid lists are reduced to their LCA
    and expanded into a GI list, reference FASTAs become a new database, GI
    lists are aliased against nt/nr, and everything is aggregated under
    `output` together with any pre-existing `databases`.
    """

    references: list[Path] = Field(
        default_factory=list,
        description="FASTA files to build a reference database from",
    )
    gi_lists: list[Path] = Field(
        default_factory=list,
        description="Newline-delimited GI number files",
    )
    taxa_lists: list[Path] = Field(
        default_factory=list,
        description="Newline-delimited taxonomy id files",
    )
    databases: list[str] = Field(
        default_factory=list,
        description="Pre-existing database prefixes to aggregate",
    )
    dbtype: DbType = Field("nucl", description="Type of database: nucl or prot")
    blast_path: Path = Field(..., description="Path to the nt/nr BLAST databases")
    nodes_file: Path | None = Field(
        None,
        description="NCBI taxonomy nodes.dmp (required with taxa lists)",
    )
    include_children: bool = Field(
        False,
        description="Retrieve GIs of all descendant taxa of the LCA",
    )
    broaden: int = Field(
        0,
        description="Climb this many ranks above the LCA before expanding",
    )
    strict_taxdump: bool = Field(False, description="Reject malformed dump records")
    output: str = Field("out", description="Output prefix")

    @field_validator("broaden")
    @classmethod
    def validate_broaden(cls, v: int) -> int:
        """Validate that broaden is non-negative."""
        if v < 0:
            raise ValueError(f"Must be >= 0, got {v}")
        return v

    @field_validator("output")
    @classmethod
    def validate_output(cls, v: str) -> str:
        """Validate that the output prefix is not blank."""
        if not v.strip():
            raise ValueError("Output prefix must not be empty")
        return v

    @model_validator(mode="after")
    def validate_sources(self) -> BuildRequest:
        """Require at least one source and a nodes file when taxa are given."""
        if not (self.references or self.gi_lists or self.taxa_lists or self.databases):
            raise ValueError(
                "At least one of references, gi_lists, taxa_lists or databases is required",
            )
        if self.taxa_lists and self.nodes_file is None:
            raise ValueError("nodes_file is required when taxa_lists are given")
        return self


@dataclass
class BuildResult:
    """
    Outcome of a database build.

    Note: This is a mutable dataclass (not frozen) because the build
    process fills it in step by step.
    """

    output: str
    lca_tax_id: int | None = None
    expanded_tax_id: int | None = None
    databases: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
