# supplier_search/matcher.py
"""
Page matchers: does an ordered list of name tokens occur inside one page?

Three implementations share the PageMatcher contract:

LinearMatcher          forward subsequence scan over the sorted words
PositionIndexMatcher   same answer, driven by page.word_positions + bisect
AdjacencyMatcher       subsequence where each next token lies strictly after
                       the previous one and at most one line below it

Tokens are compared by exact string equality.
"""
from __future__ import annotations
import bisect
from typing import Dict, Optional, Protocol, Sequence

from .models import Page, Word


class PageMatcher(Protocol):
    name: str

    def matches(self, name_tokens: Sequence[str], page: Optional[Page]) -> bool: ...


class LinearMatcher:
    name = "linear"

    def matches(self, name_tokens: Sequence[str], page: Optional[Page]) -> bool:
        if page is None or not name_tokens or not page.words:
            return False
        idx_name = 0
        for w in page.words:
            if w.word == name_tokens[idx_name]:
                idx_name += 1
                if idx_name == len(name_tokens):
                    return True
        return False


class PositionIndexMatcher:
    name = "position-index"

    def matches(self, name_tokens: Sequence[str], page: Optional[Page]) -> bool:
        if page is None or not name_tokens or not page.word_positions:
            return False
        cursor = -1  # nothing consumed yet
        for token in name_tokens:
            positions = page.word_positions.get(token)
            if not positions:
                return False
            i = bisect.bisect_right(positions, cursor)
            if i == len(positions):
                return False
            cursor = positions[i]
        return True


class AdjacencyMatcher:
    """
    Name words may wrap onto the next OCR line but never skip one.

    Backtracks over every occurrence of each word; depth is bounded by the
    number of words in the name.
    """
    name = "adjacency"

    def matches(self, name_tokens: Sequence[str], page: Optional[Page]) -> bool:
        if page is None:
            return False
        if not name_tokens:
            return True
        if not page.word_records:
            return False
        return self._match(name_tokens, 0, page.word_records, None)

    def _match(self, tokens: Sequence[str], at: int,
               records: Dict[str, list], previous: Optional[Word]) -> bool:
        if at == len(tokens):
            return True
        candidates = records.get(tokens[at])
        if not candidates:
            return False
        start = 0
        if previous is not None:
            start = bisect.bisect_right(candidates, previous.sort_key, key=_layout_key)
        for cand in candidates[start:]:
            if previous is not None and cand.line_id > previous.line_id + 1:
                # ordered by line, nothing further down can qualify
                break
            if self._match(tokens, at + 1, records, cand):
                return True
        return False


def _layout_key(w: Word) -> tuple[int, int]:
    return w.sort_key


LINEAR = LinearMatcher()
POSITION_INDEX = PositionIndexMatcher()
ADJACENCY = AdjacencyMatcher()


def search_supplier_in_pages(pages, supplier, matcher: PageMatcher):
    """Return `supplier` if its name matches on any page, else None."""
    tokens = supplier.name_tokens
    for page in pages:
        if matcher.matches(tokens, page):
            return supplier
    return None
