"""
Taxonomy tree model and LCA resolution.

Parses an NCBI nodes.dmp file into an in-memory catalog keyed by taxid and
resolves sets of taxids to their Lowest Common Ancestor by walking parent
pointers.

Features:
    - Configurable row/field delimiters (defaults match nodes.dmp)
    - Lenient (legacy, zero-filling) or strict record parsing
    - Read-only snapshots, swapped atomically on reload, so any number of
      threads can resolve while a single writer reloads
    - Cycle detection while tracing ancestors

Usage:
    catalog = TaxonCatalog.from_dump("nodes.dmp")
    resolver = LcaResolver(catalog)
    resolver.resolve_lca([9606, 9598])  # Human and Chimp -> Homininae
"""

from __future__ import annotations

import re
import threading
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING

from loguru import logger

from py_blastdb.config import (
    TAXDUMP_URL,
    ResourceUnavailableError,
    get_nodes_path,
    get_strict_parsing,
)
from py_blastdb.models import TaxonNode

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

# nodes.dmp layout: tax_id<tab>|<tab>parent_tax_id<tab>|<tab>rank<tab>|<tab>...<tab>|<newline>
FIELD_DELIMITER = "\t|\t"
ROW_DELIMITER = "\t|\n"
REQUIRED_FIELDS = 13

ROOT_TAX_ID = 1
UNKNOWN_TAX_ID = -1

_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")
_STRICT_INT = re.compile(r"[+-]?[0-9]+")


class DataSourceUnavailableError(ResourceUnavailableError):
    """
    Raised when a taxonomy dump or taxid list cannot be read.

    Attributes:
        resource_path: Path to the file that could not be read
        operation: What operation was being attempted
        reason: Human-readable explanation of why the file is unavailable
        original_error: The underlying exception that caused the failure
    """

    resource_type = "Data source"
    recovery_hint = (
        f"check the path, or download nodes.dmp from {TAXDUMP_URL} and pass --nodes"
    )


class MalformedRecordError(ValueError):
    """
    Raised in strict mode when a dump record cannot be parsed.

    Attributes:
        record_number: 1-based position of the record in the dump
        field_count: Number of fields found in the record
        reason: What was wrong with it
    """

    def __init__(self, record_number: int, field_count: int, reason: str):
        self.record_number = record_number
        self.field_count = field_count
        self.reason = reason
        super().__init__(
            f"Malformed taxonomy record #{record_number} ({field_count} fields): {reason}",
        )


class InvalidTopologyError(Exception):
    """
    Raised when the parent relation contains a cycle.

    Attributes:
        tax_id: The taxid whose ancestry was being traced
        cycle_at: The taxid that was visited twice
    """

    def __init__(self, tax_id: int, cycle_at: int):
        self.tax_id = tax_id
        self.cycle_at = cycle_at
        super().__init__(
            f"Cycle in taxonomy parent relation: tracing {tax_id} revisited {cycle_at}",
        )


# ============================================================================
# DUMP PARSING
# ============================================================================


def _lenient_int(text: str) -> int:
    """Parse leading digits like C atoi(); anything else is 0."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _strict_int(text: str, record_number: int, field_count: int, name: str) -> int:
    value = text.strip()
    if not _STRICT_INT.fullmatch(value):
        raise MalformedRecordError(
            record_number,
            field_count,
            f"{name} is not an integer: {text!r}",
        )
    return int(value)


def _strict_flag(text: str, record_number: int, field_count: int, name: str) -> bool:
    value = text.strip()
    if value not in ("0", "1"):
        raise MalformedRecordError(
            record_number,
            field_count,
            f"{name} is not a 0/1 flag: {text!r}",
        )
    return value == "1"


def parse_record(
    fields: list[str],
    *,
    strict: bool = False,
    record_number: int = 0,
) -> TaxonNode:
    """
    Build a TaxonNode from the fields of one dump record.

    In lenient mode missing fields are treated as empty and unparsable
    numbers become 0, matching the legacy loader. In strict mode both raise
    MalformedRecordError.
    """
    field_count = len(fields)
    if field_count < REQUIRED_FIELDS:
        if strict:
            raise MalformedRecordError(
                record_number,
                field_count,
                f"expected at least {REQUIRED_FIELDS} fields",
            )
        fields = fields + [""] * (REQUIRED_FIELDS - field_count)

    if strict:

        def as_int(index: int, name: str) -> int:
            return _strict_int(fields[index], record_number, field_count, name)

        def as_flag(index: int, name: str) -> bool:
            return _strict_flag(fields[index], record_number, field_count, name)

    else:

        def as_int(index: int, name: str) -> int:  # noqa: ARG001
            return _lenient_int(fields[index])

        def as_flag(index: int, name: str) -> bool:  # noqa: ARG001
            return _lenient_int(fields[index]) != 0

    return TaxonNode(
        tax_id=as_int(0, "tax_id"),
        parent_tax_id=as_int(1, "parent_tax_id"),
        rank=fields[2],
        embl_code=fields[3],
        division_id=as_int(4, "division_id"),
        inherited_division=as_flag(5, "inherited_division"),
        genetic_code_id=as_int(6, "genetic_code_id"),
        inherited_genetic_code=as_flag(7, "inherited_genetic_code"),
        mitochondrial_genetic_code_id=as_int(8, "mitochondrial_genetic_code_id"),
        inherited_mitochondrial_genetic_code=as_flag(
            9,
            "inherited_mitochondrial_genetic_code",
        ),
        genbank_hidden=as_flag(10, "genbank_hidden"),
        hidden_subtree_root=as_flag(11, "hidden_subtree_root"),
        comments=fields[12],
    )


def parse_dump(
    text: str,
    *,
    strict: bool = False,
    field_delimiter: str = FIELD_DELIMITER,
    row_delimiter: str = ROW_DELIMITER,
) -> dict[int, TaxonNode]:
    """
    Parse the contents of a nodes.dmp file into a taxid -> TaxonNode table.

    Blank records are skipped. When a taxid appears more than once, the first
    record wins.
    """
    nodes: dict[int, TaxonNode] = {}
    for record_number, row in enumerate(text.split(row_delimiter), start=1):
        if not row.strip():
            continue
        node = parse_record(
            row.split(field_delimiter),
            strict=strict,
            record_number=record_number,
        )
        nodes.setdefault(node.tax_id, node)
    return nodes


# ============================================================================
# CATALOG
# ============================================================================


class TaxonCatalog:
    """
    Read-only lookup table of taxonomy nodes.

    Populated once by load() or load_from_table(). A reload builds a complete
    new table first and then publishes it with a single assignment, so
    readers always see either the old or the new snapshot and a failed
    load leaves the previous contents untouched.
    """

    def __init__(
        self,
        source: Path | str | None = None,
        *,
        strict: bool = False,
        field_delimiter: str = FIELD_DELIMITER,
        row_delimiter: str = ROW_DELIMITER,
    ) -> None:
        self._strict = strict
        self._field_delimiter = field_delimiter
        self._row_delimiter = row_delimiter
        self._write_lock = threading.Lock()
        self._nodes: Mapping[int, TaxonNode] = MappingProxyType({})
        self._loaded = False
        self.source: Path | None = None
        if source is not None:
            self.load(source)

    @classmethod
    def from_dump(
        cls,
        source: Path | str,
        *,
        strict: bool = False,
        field_delimiter: str = FIELD_DELIMITER,
        row_delimiter: str = ROW_DELIMITER,
    ) -> TaxonCatalog:
        """Create a catalog loaded from a nodes.dmp file."""
        return cls(
            source,
            strict=strict,
            field_delimiter=field_delimiter,
            row_delimiter=row_delimiter,
        )

    @classmethod
    def from_table(cls, table: Mapping[int, TaxonNode]) -> TaxonCatalog:
        """Create a catalog from an already-parsed taxid -> TaxonNode table."""
        catalog = cls()
        catalog.load_from_table(table)
        return catalog

    def load(self, source: Path | str) -> None:
        """
        Parse a nodes.dmp file, replacing any previous contents.

        Raises:
            DataSourceUnavailableError: If the file cannot be read.
            MalformedRecordError: In strict mode, if a record is malformed.
        """
        path = Path(source)
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise DataSourceUnavailableError(
                resource_path=path,
                operation="Loading taxonomy dump",
                reason=e.strerror or str(e),
                original_error=e,
            ) from e

        nodes = parse_dump(
            raw.decode("utf-8", errors="replace"),
            strict=self._strict,
            field_delimiter=self._field_delimiter,
            row_delimiter=self._row_delimiter,
        )
        self._publish(nodes, path)
        logger.info(f"Loaded {len(nodes)} taxa from {path}")

    def load_from_table(self, table: Mapping[int, TaxonNode]) -> None:
        """Adopt a copy of a taxid -> TaxonNode table, replacing any previous contents."""
        self._publish(dict(table), None)
        logger.debug(f"Loaded {len(table)} taxa from table")

    def _publish(self, nodes: dict[int, TaxonNode], source: Path | None) -> None:
        with self._write_lock:
            self._nodes = MappingProxyType(nodes)
            self._loaded = True
            self.source = source

    def snapshot(self) -> Mapping[int, TaxonNode]:
        """Return the current read-only taxid -> TaxonNode mapping."""
        return self._nodes

    def get(self, tax_id: int) -> TaxonNode | None:
        """Look up a taxon. Unknown taxids return None."""
        return self._nodes.get(tax_id)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, tax_id: object) -> bool:
        return tax_id in self._nodes

    def __repr__(self) -> str:
        return f"TaxonCatalog(source={self.source!r}, taxa={len(self)})"


def load_catalog(
    nodes_file: Path | str | None = None,
    *,
    strict: bool | None = None,
) -> TaxonCatalog:
    """
    Load a catalog using the configured nodes.dmp path and parse policy.

    Args:
        nodes_file: Explicit dump path. If None, resolves via
                    BLASTDB_NODES_DMP, then ./nodes.dmp
        strict: Explicit parse policy. If None, resolves via
                BLASTDB_STRICT_TAXDUMP, then lenient
    """
    return TaxonCatalog(get_nodes_path(nodes_file), strict=get_strict_parsing(strict))


# ============================================================================
# LCA RESOLUTION
# ============================================================================


class LcaResolver:
    """
    Lowest Common Ancestor lookups against a TaxonCatalog.

    Holds a reference to the catalog but never modifies it. Every call works
    on one snapshot of the catalog, so resolvers are safe to share between
    threads.
    """

    def __init__(self, catalog: TaxonCatalog, *, root_tax_id: int = ROOT_TAX_ID) -> None:
        self._catalog = catalog
        self._root_tax_id = root_tax_id

    @property
    def catalog(self) -> TaxonCatalog:
        return self._catalog

    def _walk(self, nodes: Mapping[int, TaxonNode], tax_id: int) -> Iterator[int]:
        """
        Yield tax_id and then each of its ancestors.

        Stops after the root (or any self-parented node), or after a taxid
        the catalog does not know.

        Raises:
            InvalidTopologyError: If a taxid is visited twice.
        """
        seen: set[int] = set()
        current = tax_id
        while True:
            if current in seen:
                raise InvalidTopologyError(tax_id, current)
            seen.add(current)
            yield current

            if current == self._root_tax_id:
                return
            node = nodes.get(current)
            if node is None or node.is_root:
                return
            current = node.parent_tax_id

    def parent_of(self, tax_id: int) -> int:
        """Return the parent taxid, or UNKNOWN_TAX_ID (-1) if tax_id is not in the catalog."""
        node = self._catalog.get(tax_id)
        return UNKNOWN_TAX_ID if node is None else node.parent_tax_id

    def path_to_root(self, tax_id: int) -> list[int]:
        """
        Return taxids from tax_id up to the root (inclusive).

        If tax_id is not in the catalog the path is just [tax_id]. If an
        ancestor's parent is unknown, the path ends at that parent.

        Example:
            >>> resolver.path_to_root(9606)
            [9606, 9605, 207598, 9604, 33208, 2759, 131567, 1]
        """
        return list(self._walk(self._catalog.snapshot(), tax_id))

    def resolve_lca(self, tax_ids: Iterable[int]) -> int:
        """
        Find the Lowest Common Ancestor of a collection of taxids.

        Order and duplicates do not affect the result.

        Returns:
            The LCA taxid. An empty collection, or taxids with no common
            ancestor in the catalog, give UNKNOWN_TAX_ID (-1). A single
            taxid is returned unchanged.

        Raises:
            InvalidTopologyError: If a cycle is met while tracing ancestors.
        """
        ids = list(tax_ids)
        if not ids:
            return UNKNOWN_TAX_ID
        if len(ids) == 1:
            return ids[0]

        nodes = self._catalog.snapshot()

        # Ancestors of everything seen so far, nearest first. Entries before
        # `start` are strict descendants of the current common ancestor.
        frontier = list(self._walk(nodes, ids[0]))
        positions = {tax_id: index for index, tax_id in enumerate(frontier)}
        start = 0

        for tax_id in ids[1:]:
            for ancestor in self._walk(nodes, tax_id):
                index = positions.get(ancestor)
                if index is not None and index >= start:
                    start = index
                    break
            else:
                logger.debug(f"Taxid {tax_id} shares no ancestor with {frontier[start]}")
                return UNKNOWN_TAX_ID

        return frontier[start]

    def lineage(self, tax_id: int) -> list[TaxonNode]:
        """Return the catalog nodes from the root down to tax_id, skipping unknown taxids."""
        nodes = self._catalog.snapshot()
        path = list(self._walk(nodes, tax_id))
        return [nodes[t] for t in reversed(path) if t in nodes]

    def broaden(self, tax_id: int, levels: int) -> int:
        """
        Climb `levels` parents above tax_id.

        Stops early at the root or at the last known ancestor. Used to widen
        an LCA whose own records are too sparse to build a database from.
        """
        if levels < 0:
            raise ValueError(f"levels must be >= 0, got {levels}")
        path = self.path_to_root(tax_id)
        return path[min(levels, len(path) - 1)]
