"""
Invoice and catalog loading.

The invoice dump holds one record per line in a Python-dict-like notation
(not valid JSON), e.g.

    {'pos_id': 1, 'bbox': [...], 'word': 'Demo', 'line_id': 4, 'page_id': 1, ...}

Only the four fields the engine needs are extracted, in any order.

The supplier catalog is a header line followed by `<digits>,<name>` lines.
In search mode it is consumed through a CatalogStream: a background thread
fills a bounded queue while worker threads drain it, so matching starts
before the whole catalog has been read.
"""
from __future__ import annotations
import ast
import logging
import queue
import re
import threading
from typing import IO, Iterable, Iterator, List, Mapping, Optional

from . import config as CFG
from .models import ConfigurationError, MalformedInputError, Supplier, Word

log = logging.getLogger(__name__)

_INT_FIELDS = {
    "pos_id": re.compile(r"""['"]pos_id['"]\s*:\s*(\d+)"""),
    "line_id": re.compile(r"""['"]line_id['"]\s*:\s*(\d+)"""),
    "page_id": re.compile(r"""['"]page_id['"]\s*:\s*(\d+)"""),
}
# single or double quoted literal, escapes allowed
_WORD_FIELD = re.compile(r"""['"]word['"]\s*:\s*('(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")""")

_CATALOG_LINE = re.compile(r"^(\d+),(.+)$")


# ---- invoice ----

def parse_invoice_line(line: str, *, source: str = "<invoice>", line_no: Optional[int] = None) -> Word:
    m_word = _WORD_FIELD.search(line)
    ints = {k: rx.search(line) for k, rx in _INT_FIELDS.items()}
    if m_word is None or any(m is None for m in ints.values()):
        raise MalformedInputError(f"invalid invoice text: {line.strip()!r}", source=source, line_no=line_no)
    try:
        text = ast.literal_eval(m_word.group(1))
    except (ValueError, SyntaxError) as exc:
        raise MalformedInputError(f"invalid invoice word: {m_word.group(1)!r}",
                                  source=source, line_no=line_no) from exc
    return Word(
        word=text,
        page_id=int(ints["page_id"].group(1)),
        line_id=int(ints["line_id"].group(1)),
        pos_id=int(ints["pos_id"].group(1)),
    )


def iter_invoice_words(lines: Iterable[str], *, source: str = "<invoice>") -> Iterator[Word]:
    for line_no, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        yield parse_invoice_line(line, source=source, line_no=line_no)


def load_invoice_file(invoice_path: str) -> List[Word]:
    """Read every word of an invoice dump; any malformed line aborts the load."""
    with open(invoice_path, "r", encoding=CFG.ENCODING) as f:
        words = list(iter_invoice_words(f, source=invoice_path))
    log.info("Loaded %d invoice words from %s", len(words), invoice_path)
    return words


def word_from_record(record: Mapping) -> Word:
    """Build a Word from an in-memory mapping (e.g. a JSON request body)."""
    if not isinstance(record, Mapping):
        raise MalformedInputError(f"invoice record must be an object, got {type(record).__name__}")
    text = record.get("word")
    if not isinstance(text, str):
        raise MalformedInputError(f"invoice record has no text word: {record!r}")
    ids = {}
    for key in ("page_id", "line_id", "pos_id"):
        value = record.get(key)
        # bool is an int subclass; reject it explicitly
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise MalformedInputError(f"invoice record field {key!r} must be a non-negative integer: {record!r}")
        ids[key] = value
    return Word(word=text, **ids)


# ---- catalog ----

def parse_catalog_line(line: str, *, source: str = "<catalog>", line_no: Optional[int] = None) -> Supplier:
    m = _CATALOG_LINE.match(line.rstrip("\r\n"))
    if m is None:
        raise MalformedInputError(f"invalid supplier name text: {line.rstrip()!r}",
                                  source=source, line_no=line_no)
    return Supplier(id=m.group(1), name=m.group(2))


def iter_catalog(f: IO[str], *, source: str = "<catalog>") -> Iterator[Supplier]:
    """Yield suppliers from an open catalog file; the header line is skipped."""
    next(f, None)
    for line_no, line in enumerate(f, start=2):
        yield parse_catalog_line(line, source=source, line_no=line_no)


def load_catalog_file(catalog_path: str) -> List[Supplier]:
    with open(catalog_path, "r", encoding=CFG.ENCODING) as f:
        return list(iter_catalog(f, source=catalog_path))


_CLOSED = object()


class CatalogStream:
    """
    Catalog entries produced by a background thread into a bounded queue.

    Consumers call get() until it returns None. A full queue blocks the
    producer; cancel() releases it. If the producer fails, every consumer
    that reaches the end of the stream re-raises the producer's error.
    """

    def __init__(self, catalog_path: str, buffer_size: int = CFG.BUFFER_SIZE) -> None:
        if buffer_size < 1:
            raise ConfigurationError("buffer size must be at least 1")
        self.path = catalog_path
        self._file = open(catalog_path, "r", encoding=CFG.ENCODING)
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=buffer_size)
        self._cancelled = threading.Event()
        self._error: Optional[BaseException] = None
        self._thread: Optional[threading.Thread] = None
        self.produced = 0

    # ---- lifecycle ----
    def start(self) -> "CatalogStream":
        self._thread = threading.Thread(target=self._produce, name="catalog-producer", daemon=True)
        self._thread.start()
        return self

    def cancel(self) -> None:
        self._cancelled.set()

    def close(self) -> None:
        self.cancel()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        if not self._file.closed:
            self._file.close()

    def __enter__(self) -> "CatalogStream":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.close()

    # ---- consumer side ----
    def get(self) -> Optional[Supplier]:
        item = self._queue.get()
        if item is _CLOSED:
            # hand the marker on to the next consumer, once, without blocking
            try:
                self._queue.put_nowait(_CLOSED)
            except queue.Full:
                log.debug("catalog stream: close marker not re-posted (buffer full)")
            if self._error is not None:
                raise self._error
            return None
        return item  # type: ignore[return-value]

    def __iter__(self) -> Iterator[Supplier]:
        while True:
            supplier = self.get()
            if supplier is None:
                return
            yield supplier

    # ---- producer side ----
    def _produce(self) -> None:
        try:
            with self._file:
                for supplier in iter_catalog(self._file, source=self.path):
                    if not self._put(supplier):
                        return
                    self.produced += 1
        except MalformedInputError as exc:
            log.error("catalog stream stopped at line %s: %s", exc.line_no, exc)
            self._error = exc
        except (OSError, UnicodeDecodeError) as exc:
            log.error("catalog stream failed reading %s: %s", self.path, exc)
            self._error = exc
        finally:
            self._post_close()

    def _put(self, item: object) -> bool:
        while not self._cancelled.is_set():
            try:
                self._queue.put(item, timeout=CFG.PUT_POLL_SECONDS)
                return True
            except queue.Full:
                continue
        return False

    def _post_close(self) -> None:
        if self._put(_CLOSED):
            return
        # cancelled: pending entries are no longer wanted, make room for the marker
        while True:
            try:
                self._queue.put_nowait(_CLOSED)
                return
            except queue.Full:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    pass
