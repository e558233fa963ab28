# supplier_search/config.py
from __future__ import annotations
import os

from .models import ConfigurationError


def _env_int(key: str, default: int) -> int:
    value = os.environ.get(key, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(f"Environment variable {key} must be an integer") from exc


# workers racing over the streamed catalog (search mode)
WORKERS: int = _env_int("SUPPLIER_SEARCH_WORKERS", 5)

# bounded buffer between the catalog producer and the workers
BUFFER_SIZE: int = _env_int("SUPPLIER_SEARCH_BUFFER", 100)

# how often a producer blocked on a full buffer re-checks for cancellation
PUT_POLL_SECONDS: float = 0.05

ENCODING: str = "utf-8"

# /* ~~~ index artifacts live next to the catalog: <catalog><suffix> ~~~ */
INDEXED_SUFFIX: str = ".indexed"
OFFSETS_SUFFIX: str = ".idx"

# commands / operating modes
CMD_INDEX: str = "index"
MODE_SEARCH: str = "search"        # exhaustive, streamed catalog
MODE_SEARCH_V2: str = "searchv2"   # selective, index-filtered catalog
DEFAULT_MODE: str = MODE_SEARCH
MODES = (MODE_SEARCH, MODE_SEARCH_V2)

# Progress logging (set SUPPLIER_SEARCH_VERBOSE=1 to enable)
VERBOSE: bool = os.environ.get("SUPPLIER_SEARCH_VERBOSE") == "1"
