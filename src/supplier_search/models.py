# supplier_search/models.py
"""
Data models for the supplier search engine.

- Word: one positioned token extracted from an invoice.
- Page: all words sharing one page id plus the two lookup indexes built
  after sorting (text -> positions, text -> word records).
- Supplier: one catalog entry (id + space separated name).
- SuppliersForPage: candidates gathered from the catalog index for a page.
- SearchResult: what a search hands back to callers.

Errors raised by the engine are defined here as well so that every layer
(loader, index, search, CLI, web) shares one taxonomy.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class SupplierSearchError(Exception):
    """Base class for errors raised by the supplier search engine."""


class MalformedInputError(SupplierSearchError, ValueError):
    """An invoice record, catalog line or catalog entry could not be parsed."""

    def __init__(self, message: str, *, source: Optional[str] = None,
                 line_no: Optional[int] = None) -> None:
        self.source = source
        self.line_no = line_no
        where = ""
        if source is not None:
            where = f" ({source}" + (f":{line_no}" if line_no is not None else "") + ")"
        super().__init__(f"{message}{where}")


class ConfigurationError(SupplierSearchError, ValueError):
    """Rejected configuration (worker count, mode, buffer size)."""


@dataclass(frozen=True, slots=True)
class Word:
    """
    One token of the invoice layout.

    Attributes
    ----------
    word : str
        The token text, compared by exact equality (case-sensitive).
    page_id : int
        Page the token was found on.
    line_id : int
        OCR line inside the page.
    pos_id : int
        Horizontal position inside the line.
    """
    word: str
    page_id: int
    line_id: int
    pos_id: int

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.line_id, self.pos_id)


@dataclass(slots=True)
class Page:
    """
    Words of one page.

    `words` is mutable until the page is indexed. After `layout.index_page()`
    it is sorted by (line_id, pos_id) and both maps are consistent with it:

    word_positions : text -> ascending indexes into `words`
    word_records   : text -> Word records ordered by (line_id, pos_id)

    Both maps are None while the page is not indexed.
    """
    page_id: int
    words: List[Word] = field(default_factory=list)
    word_positions: Optional[Dict[str, List[int]]] = None
    word_records: Optional[Dict[str, List[Word]]] = None

    @property
    def indexed(self) -> bool:
        return self.word_positions is not None and self.word_records is not None


@dataclass(frozen=True, slots=True)
class Supplier:
    id: str
    name: str

    @property
    def name_tokens(self) -> List[str]:
        return self.name.split(" ") if self.name else []


@dataclass(slots=True)
class SuppliersForPage:
    page: Page
    suppliers: List[Supplier] = field(default_factory=list)


class SearchState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    INDEXED = "indexed"
    SEARCHING = "searching"
    FOUND = "found"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class SearchResult:
    """
    Outcome of one search. `supplier` is None when nothing matched; that is a
    normal terminal state (NOT_FOUND), not an error.
    """
    supplier: Optional[Supplier]
    state: SearchState
    mode: str

    @property
    def found(self) -> bool:
        return self.supplier is not None

    def to_dict(self) -> dict:
        return {
            "found": self.found,
            "id": self.supplier.id if self.supplier else None,
            "name": self.supplier.name if self.supplier else None,
            "state": self.state.value,
            "mode": self.mode,
        }


@dataclass(frozen=True, slots=True)
class IndexArtifacts:
    indexed_path: str
    offsets_path: str
    groups: int
    entries: int
