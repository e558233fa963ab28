"""
Supplier search engine.

Finds which supplier from a large catalog appears on a scanned invoice. The
invoice arrives as positioned OCR words (page, line, horizontal position);
the catalog is a flat `id,name` file. A name matches when its words appear
in order on one page.

Main entry points:
    Engine(catalog_path).build_index()
    Engine(catalog_path).find_supplier(invoice_path, mode="search" | "searchv2", workers=5)

Example Usage:
    from supplier_search import Engine

    eng = Engine("suppliernames.txt")
    eng.build_index()                      # once, for "searchv2"
    result = eng.find_supplier("invoice.txt", mode="searchv2")
    if result.found:
        print(result.supplier.id, result.supplier.name)
"""

# src/supplier_search/__init__.py
from .engine import Engine  # re-export
from .models import (ConfigurationError, MalformedInputError, SearchResult,
                     SearchState, Supplier, SupplierSearchError, Word)

__version__ = "1.0.0"
__all__ = [
    "Engine",
    "ConfigurationError",
    "MalformedInputError",
    "SearchResult",
    "SearchState",
    "Supplier",
    "SupplierSearchError",
    "Word",
]
