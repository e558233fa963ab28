import random

import pytest

from supplier_search.layout import build_pages, index_page
from supplier_search.matcher import (ADJACENCY, LINEAR, POSITION_INDEX, search_supplier_in_pages)
from supplier_search.models import Page, Supplier, Word

ALL = [LINEAR, POSITION_INDEX, ADJACENCY]


def W(word, line, pos, page=1):
    return Word(word=word, page_id=page, line_id=line, pos_id=pos)


def _page(*words):
    return index_page(Page(page_id=1, words=list(words)))


@pytest.mark.parametrize("matcher", ALL, ids=lambda m: m.name)
def test_same_line_name_matches(matcher):
    page = _page(W("INVOICE", 0, 1), W("Demo", 4, 0), W("Company", 4, 1))
    assert matcher.matches(["Demo", "Company"], page)


@pytest.mark.parametrize("matcher", ALL, ids=lambda m: m.name)
def test_name_wrapped_onto_next_line_matches(matcher):
    page = _page(W("INVOICE", 0, 1), W("Demo", 3, 2), W("invoice", 3, 3), W("Company", 4, 1))
    assert matcher.matches(["Demo", "Company"], page)


@pytest.mark.parametrize("matcher", ALL, ids=lambda m: m.name)
def test_wrong_order_does_not_match(matcher):
    page = _page(W("Company", 0, 0), W("Demo", 0, 1))
    assert not matcher.matches(["Demo", "Company"], page)


@pytest.mark.parametrize("matcher", ALL, ids=lambda m: m.name)
def test_matching_is_case_sensitive(matcher):
    page = _page(W("demo", 0, 0), W("company", 0, 1))
    assert not matcher.matches(["Demo", "Company"], page)


@pytest.mark.parametrize("matcher", ALL, ids=lambda m: m.name)
def test_repeated_word_needs_two_occurrences(matcher):
    once = _page(W("Bora", 0, 0))
    twice = _page(W("Bora", 0, 0), W("Bora", 0, 1))
    assert not matcher.matches(["Bora", "Bora"], once)
    assert matcher.matches(["Bora", "Bora"], twice)


def test_line_skip_only_rejected_by_adjacency():
    page = _page(W("Demo", 0, 0), W("Company", 20, 0))
    assert LINEAR.matches(["Demo", "Company"], page)
    assert POSITION_INDEX.matches(["Demo", "Company"], page)
    assert not ADJACENCY.matches(["Demo", "Company"], page)


def test_adjacency_backtracks_to_a_later_first_word():
    # first "Demo" is too far from "Company"; the second one is right above it
    page = _page(W("Demo", 0, 0), W("Demo", 7, 3), W("Company", 8, 0))
    assert ADJACENCY.matches(["Demo", "Company"], page)


def test_adjacency_requires_strictly_later_position_on_same_line():
    page = _page(W("Company", 2, 0), W("Demo", 2, 5))
    assert not ADJACENCY.matches(["Demo", "Company"], page)


def test_empty_name_and_empty_page():
    page = _page(W("Demo", 0, 0))
    assert not LINEAR.matches([], page)
    assert not POSITION_INDEX.matches([], page)
    # an empty name is the recursion's base case
    assert ADJACENCY.matches([], page)

    empty = index_page(Page(page_id=1))
    for m in ALL:
        assert not m.matches(["Demo"], empty)
        assert not m.matches(["Demo"], None)


def test_unindexed_page_never_matches_index_driven_variants():
    raw = Page(page_id=1, words=[W("Demo", 0, 0)])
    assert LINEAR.matches(["Demo"], raw)
    assert not POSITION_INDEX.matches(["Demo"], raw)
    assert not ADJACENCY.matches(["Demo"], raw)


def test_search_supplier_in_pages_needs_one_page():
    pages = build_pages([W("Demo", 4, 0, page=2), W("Company", 4, 1, page=1), W("INVOICE", 0, 1, page=1)])
    s = Supplier(id="123", name="Demo Company")
    for m in ALL:
        assert search_supplier_in_pages(pages, s, m) is None

    pages = build_pages([W("Demo", 4, 0), W("Company", 4, 1)])
    assert search_supplier_in_pages(pages, s, POSITION_INDEX) is s


def test_linear_and_position_index_agree_and_adjacency_refines():
    rng = random.Random(20261019)
    vocab = ["Demo", "Company", "Ltd", "Acme", "Inc", "of"]
    for _ in range(400):
        words = [W(rng.choice(vocab), rng.randrange(6), rng.randrange(6))
                 for _ in range(rng.randrange(0, 12))]
        # keep (line, pos) unique so the layout order is total
        uniq = {w.sort_key: w for w in words}
        page = _page(*uniq.values())
        name = [rng.choice(vocab) for _ in range(rng.randrange(1, 4))]
        lin = LINEAR.matches(name, page)
        assert lin == POSITION_INDEX.matches(name, page)
        if ADJACENCY.matches(name, page):
            assert lin
