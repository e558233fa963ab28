"""HTTP surface for the supplier search engine (Flask)."""
from __future__ import annotations
from supplier_search.engine import Engine
from . import web


def initialize(catalog_path: str, *, build_index: bool = False, verbose: bool = False) -> Engine:
    """Create the engine the Flask app serves; optionally (re)build the catalog index."""
    eng = Engine(catalog_path, verbose=verbose)
    if build_index:
        eng.build_index()
    web._engine = eng
    return eng


app = web.app
__all__ = ["app", "initialize"]
