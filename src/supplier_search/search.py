# supplier_search/search.py
"""
Search orchestration over an indexed invoice layout.

Two ways to feed catalog entries to the matchers:

search_exhaustive   every catalog entry, streamed; N worker threads race with
                    the position-index matcher and the first hit cancels the rest
search_selective    only entries whose leading word occurs on the invoice,
                    fetched through the catalog index; adjacency matcher, one pass
"""
from __future__ import annotations
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Sequence

from .DB.catalog_index import CatalogIndex
from .loader import CatalogStream
from .matcher import ADJACENCY, POSITION_INDEX, PageMatcher, search_supplier_in_pages
from .models import ConfigurationError, Page, Supplier, SuppliersForPage

log = logging.getLogger(__name__)


def validate_workers(workers: int) -> int:
    if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
        raise ConfigurationError(f"invalid worker num: {workers!r}")
    return workers


# ---------- exhaustive ----------

def run_worker(pages: Sequence[Page], stream: CatalogStream, done: threading.Event,
               matcher: PageMatcher = POSITION_INDEX) -> Optional[Supplier]:
    """Pull entries until one matches, the stream ends, or another worker wins."""
    while not done.is_set():
        supplier = stream.get()
        if supplier is None:
            return None
        if done.is_set():
            # another worker won while we were waiting
            return None
        if search_supplier_in_pages(pages, supplier, matcher) is not None:
            done.set()
            stream.cancel()
            return supplier
    return None


def search_exhaustive(pages: Sequence[Page], stream: CatalogStream, workers: int,
                      matcher: PageMatcher = POSITION_INDEX) -> Optional[Supplier]:
    """
    Race `workers` threads over the streamed catalog.

    Which supplier is reported when several would match is unspecified: the
    first worker to finish wins, not the first entry in catalog order.
    Errors raised inside a worker (e.g. a malformed catalog line surfaced by
    the stream) stop the others and are re-raised here.
    """
    validate_workers(workers)
    done = threading.Event()
    found: Optional[Supplier] = None
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="supplier-worker") as ex:
        futures = [ex.submit(run_worker, pages, stream, done, matcher) for _ in range(workers)]
        try:
            for fut in as_completed(futures):
                supplier = fut.result()
                if supplier is not None and found is None:
                    found = supplier
        except BaseException:
            done.set()
            stream.cancel()
            raise
    return found


# ---------- selective ----------

def filter_potential_suppliers_for_page(pages: Sequence[Page], index: CatalogIndex) -> List[SuppliersForPage]:
    """
    For every distinct word on each page, fetch the catalog group keyed by it.
    Pages without any hit are left out.
    """
    out: List[SuppliersForPage] = []
    for page in pages:
        seen: Dict[str, None] = {}
        suppliers: List[Supplier] = []
        for w in page.words:
            if w.word in seen:
                continue
            seen[w.word] = None
            suppliers.extend(index.read_group(w.word))
        if suppliers:
            out.append(SuppliersForPage(page=page, suppliers=suppliers))
    log.debug("selective candidates: %s",
              [(sp.page.page_id, len(sp.suppliers)) for sp in out])
    return out


def search_candidates(candidates: Sequence[SuppliersForPage],
                      matcher: PageMatcher = ADJACENCY) -> Optional[Supplier]:
    for group in candidates:
        for supplier in group.suppliers:
            if matcher.matches(supplier.name_tokens, group.page):
                return supplier
    return None


def search_selective(pages: Sequence[Page], index: CatalogIndex,
                     matcher: PageMatcher = ADJACENCY) -> Optional[Supplier]:
    return search_candidates(filter_potential_suppliers_for_page(pages, index), matcher)
