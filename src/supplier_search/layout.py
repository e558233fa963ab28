"""
Invoice layout model.

Turns the flat list of invoice words into pages and prepares each page for
the matchers:

    group_invoice_words(words)   -> pages in first-seen page order
    sort_words_in_page(page)     -> words ordered by (line_id, pos_id)
    build_word_positions(page)   -> text -> ascending sequence positions
    build_word_records(page)     -> text -> Word records in layout order
    index_page(page)             -> sort + both maps, always together
"""
from __future__ import annotations
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from .models import Page, Word


def group_invoice_words(words: Iterable[Word]) -> List[Page]:
    """Partition words by page id; pages keep first-seen order, words keep input order."""
    pages: List[Page] = []
    by_id: Dict[int, Page] = {}
    for w in words:
        page = by_id.get(w.page_id)
        if page is None:
            page = Page(page_id=w.page_id)
            by_id[w.page_id] = page
            pages.append(page)
        page.words.append(w)
    return pages


def sort_words_in_page(page: Optional[Page]) -> Optional[Page]:
    if page is None or not page.words:
        return page
    # sorting moves positions around, stale maps must not survive it
    page.word_positions = None
    page.word_records = None
    page.words.sort(key=lambda w: w.sort_key)
    return page


def build_word_positions(page: Optional[Page]) -> None:
    if page is None:
        return
    positions: Dict[str, List[int]] = defaultdict(list)
    for idx, w in enumerate(page.words):
        positions[w.word].append(idx)
    page.word_positions = dict(positions)


def build_word_records(page: Optional[Page]) -> None:
    if page is None:
        return
    records: Dict[str, List[Word]] = defaultdict(list)
    for w in page.words:
        records[w.word].append(w)
    page.word_records = dict(records)


def index_page(page: Optional[Page]) -> Optional[Page]:
    if page is None:
        return None
    sort_words_in_page(page)
    build_word_positions(page)
    build_word_records(page)
    return page


def build_pages(words: Iterable[Word]) -> List[Page]:
    pages = group_invoice_words(words)
    for page in pages:
        index_page(page)
    return pages
