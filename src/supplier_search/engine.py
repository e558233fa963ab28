# supplier_search/engine.py
from __future__ import annotations

import os
import logging
from typing import Iterable, List, Optional

from . import config as CFG
from .DB.catalog_index import CatalogIndex, CatalogIndexWriter, artifact_paths
from .layout import build_pages
from .loader import CatalogStream, load_catalog_file, load_invoice_file
from .models import (ConfigurationError, IndexArtifacts, Page, SearchResult,
                     SearchState, Supplier, Word)
from .search import search_exhaustive, search_selective, validate_workers

log = logging.getLogger(__name__)


class Engine:
    """
    Thin orchestration layer that glues together:
      - invoice loading and the page layout (layout.build_pages),
      - the supplier catalog, streamed or through the catalog index,
      - the search strategies in search.py.

    Public API (used by the CLI and the Flask app):
      * build_index():            catalog -> <catalog>.indexed + <catalog>.idx
      * find_supplier(path, ...): invoice dump on disk -> SearchResult
      * find_supplier_in_words(words, ...): already parsed words -> SearchResult
      * shutdown():               back to IDLE

    Modes:
      - "search":   every catalog entry, streamed to `workers` threads
      - "searchv2": only entries whose leading word occurs on the invoice
    """

    # ------------- lifecycle -------------

    def __init__(self, catalog_path: str, *, verbose: bool = False) -> None:
        self.catalog_path = catalog_path
        self.state = SearchState.IDLE
        self.last_result: Optional[SearchResult] = None
        if verbose or CFG.VERBOSE:
            logging.basicConfig(level=logging.INFO)
            os.environ["SUPPLIER_SEARCH_VERBOSE"] = "1"

    @property
    def artifacts(self) -> tuple[str, str]:
        return artifact_paths(self.catalog_path)

    def has_index(self) -> bool:
        return all(os.path.exists(p) for p in self.artifacts)

    # /* ~~~ Flatten the catalog by leading word and persist the offset map ~~~ */
    def build_index(self) -> IndexArtifacts:
        log.info("Building catalog index from %s", self.catalog_path)
        suppliers = load_catalog_file(self.catalog_path)
        indexed_path, offsets_path = self.artifacts
        return CatalogIndexWriter().save(indexed_path, offsets_path, suppliers)

    # ------------- query -------------

    def find_supplier(self, invoice_path: str, *, mode: str = CFG.DEFAULT_MODE,
                      workers: int = CFG.WORKERS) -> SearchResult:
        self._check_request(mode, workers)
        self._transition(SearchState.LOADING)
        try:
            words = load_invoice_file(invoice_path)
        except BaseException:
            self._transition(SearchState.IDLE)
            raise
        return self._search(words, mode=mode, workers=workers)

    def find_supplier_in_words(self, words: Iterable[Word], *, mode: str = CFG.DEFAULT_MODE,
                               workers: int = CFG.WORKERS) -> SearchResult:
        self._check_request(mode, workers)
        self._transition(SearchState.LOADING)
        return self._search(list(words), mode=mode, workers=workers)

    # ------------- teardown -------------

    def shutdown(self) -> None:
        self.last_result = None
        self._transition(SearchState.IDLE)
        log.info("Engine shutdown complete")

    # ------------- internals -------------

    def _check_request(self, mode: str, workers: int) -> None:
        if mode not in CFG.MODES:
            raise ConfigurationError(f"invalid mode: {mode!r} (expected one of {', '.join(CFG.MODES)})")
        validate_workers(workers)

    def _search(self, words: List[Word], *, mode: str, workers: int) -> SearchResult:
        try:
            pages = build_pages(words)
            self._transition(SearchState.INDEXED)
            log.info("Invoice layout ready: pages=%d words=%d", len(pages), len(words))

            if mode == CFG.MODE_SEARCH:
                supplier = self._run_exhaustive(pages, workers)
            else:
                supplier = self._run_selective(pages)
        except BaseException:
            self._transition(SearchState.IDLE)
            raise

        if supplier is not None:
            log.info("supplier name found: %s,%s", supplier.id, supplier.name)
            self._transition(SearchState.FOUND)
        else:
            log.info("supplier name not found")
            self._transition(SearchState.NOT_FOUND)
        self.last_result = SearchResult(supplier=supplier, state=self.state, mode=mode)
        return self.last_result

    def _run_exhaustive(self, pages: List[Page], workers: int) -> Optional[Supplier]:
        stream = CatalogStream(self.catalog_path, buffer_size=CFG.BUFFER_SIZE)
        self._transition(SearchState.SEARCHING)
        with stream:
            supplier = search_exhaustive(pages, stream, workers)
        log.info("Streamed %d catalog entries to %d workers", stream.produced, workers)
        return supplier

    def _run_selective(self, pages: List[Page]) -> Optional[Supplier]:
        indexed_path, offsets_path = self.artifacts
        with CatalogIndex(indexed_path, offsets_path) as index:
            self._transition(SearchState.SEARCHING)
            return search_selective(pages, index)

    def _transition(self, state: SearchState) -> None:
        log.debug("state %s -> %s", self.state.value, state.value)
        self.state = state
