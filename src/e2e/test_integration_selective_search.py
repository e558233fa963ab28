from pathlib import Path
import pytest

from supplier_search.engine import Engine
from supplier_search.layout import build_pages
from supplier_search.DB.catalog_index import CatalogIndex
from supplier_search.models import SearchState, Word
from supplier_search.search import filter_potential_suppliers_for_page


def _invoice(tmp: Path, words) -> str:
    p = tmp / "invoice.txt"
    p.write_text(
        "".join(
            f"{{'pos_id': {pos}, 'word': {word!r}, 'line_id': {line}, 'page_id': {page}}}\n"
            for word, page, line, pos in words
        ),
        encoding="utf-8",
    )
    return str(p)


def _indexed_engine(tmp: Path, rows) -> Engine:
    p = tmp / "suppliernames.txt"
    p.write_text("SupplierId,SupplierName\n" + "".join(f"{i},{n}\n" for i, n in rows), encoding="utf-8")
    eng = Engine(str(p))
    eng.build_index()
    return eng


SAMPLE = [("INVOICE", 1, 0, 1), ("Demo", 1, 4, 0), ("Company", 1, 4, 1)]


@pytest.mark.e2e
def test_build_then_search_v2(tmp_path: Path):
    eng = _indexed_engine(tmp_path, [(7, "Acme Inc"), (123, "Demo Company")])
    assert eng.has_index()
    res = eng.find_supplier(_invoice(tmp_path, SAMPLE), mode="searchv2")
    assert res.found and res.supplier.id == "123"
    assert res.mode == "searchv2" and res.state is SearchState.FOUND


@pytest.mark.e2e
def test_whole_leading_word_group_is_considered(tmp_path: Path):
    # "Demo Ltd" is first in the group; reading only one line would miss the match
    eng = _indexed_engine(tmp_path, [(1, "Demo Ltd"), (2, "Demo Holdings"), (123, "Demo Company")])
    res = eng.find_supplier(_invoice(tmp_path, SAMPLE), mode="searchv2")
    assert res.found and res.supplier.id == "123"


@pytest.mark.e2e
def test_search_v2_rejects_line_skips(tmp_path: Path):
    words = [("Demo", 1, 0, 0), ("Company", 1, 20, 0)]
    eng = _indexed_engine(tmp_path, [(123, "Demo Company")])
    invoice = _invoice(tmp_path, words)
    assert not eng.find_supplier(invoice, mode="searchv2").found
    assert eng.state is SearchState.NOT_FOUND
    # the exhaustive mode only asks for order
    assert eng.find_supplier(invoice, mode="search", workers=2).found


@pytest.mark.e2e
def test_wrapped_name_found_by_search_v2(tmp_path: Path):
    words = [("INVOICE", 1, 0, 1), ("Demo", 1, 3, 2), ("invoice", 1, 3, 3), ("Company", 1, 4, 1)]
    eng = _indexed_engine(tmp_path, [(123, "Demo Company")])
    assert eng.find_supplier(_invoice(tmp_path, words), mode="searchv2").found


@pytest.mark.e2e
def test_candidates_are_grouped_by_page_in_discovery_order(tmp_path: Path):
    eng = _indexed_engine(tmp_path, [(1, "Demo Company"), (2, "Acme Inc"), (3, "Demo Ltd")])
    pages = build_pages([
        Word("Acme", 2, 0, 0),
        Word("Demo", 1, 0, 0),
        Word("Demo", 1, 1, 0),
        Word("Inc", 2, 0, 1),
        Word("Zeta", 3, 0, 0),
    ])
    indexed, offsets = eng.artifacts
    with CatalogIndex(indexed, offsets) as idx:
        groups = filter_potential_suppliers_for_page(pages, idx)
    assert [g.page.page_id for g in groups] == [2, 1]
    assert [s.id for s in groups[0].suppliers] == ["2"]
    # "Demo" appears twice on page 1 but its group is fetched once
    assert [s.id for s in groups[1].suppliers] == ["1", "3"]


@pytest.mark.e2e
def test_search_v2_without_index_is_an_io_error(tmp_path: Path):
    p = tmp_path / "suppliernames.txt"
    p.write_text("h\n123,Demo Company\n", encoding="utf-8")
    eng = Engine(str(p))
    assert not eng.has_index()
    with pytest.raises(FileNotFoundError):
        eng.find_supplier(_invoice(tmp_path, SAMPLE), mode="searchv2")
    assert eng.state is SearchState.IDLE


@pytest.mark.e2e
def test_rebuilding_the_index_replaces_artifacts(tmp_path: Path):
    eng = _indexed_engine(tmp_path, [(1, "Acme Inc")])
    invoice = _invoice(tmp_path, SAMPLE)
    assert not eng.find_supplier(invoice, mode="searchv2").found
    Path(eng.catalog_path).write_text("h\n1,Acme Inc\n123,Demo Company\n", encoding="utf-8")
    art = eng.build_index()
    assert art.entries == 2 and art.groups == 2
    assert eng.find_supplier(invoice, mode="searchv2").supplier.id == "123"
