from __future__ import annotations
import logging
import os
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from .. import config as CFG
from ..loader import parse_catalog_line
from ..models import IndexArtifacts, MalformedInputError, Supplier
from .storage import load_offsets, save_offsets

log = logging.getLogger(__name__)


def leading_word(name: str) -> str:
    """First space-delimited word of a catalog name (the index key)."""
    return name.split(" ", 1)[0]


def artifact_paths(catalog_path: str) -> Tuple[str, str]:
    return catalog_path + CFG.INDEXED_SUFFIX, catalog_path + CFG.OFFSETS_SUFFIX


class CatalogIndexWriter:
    """
    Write the flattened catalog plus its offset map.

    Flattened file: `id,name\\n` lines, one contiguous group per leading word
    (groups in first-seen order, entries in catalog order inside a group).
    Offset map: leading word -> byte offset of the group's first line.
    """

    def __init__(self, encoding: str = CFG.ENCODING) -> None:
        self.encoding = encoding

    def save(self, indexed_path: str, offsets_path: str, suppliers: Iterable[Supplier]) -> IndexArtifacts:
        groups: Dict[str, List[Supplier]] = defaultdict(list)
        entries = 0
        for s in suppliers:
            first = leading_word(s.name)
            if not first:
                raise MalformedInputError(f"invalid supplier name: {s.name!r} (id {s.id})")
            groups[first].append(s)
            entries += 1

        offsets: Dict[str, int] = {}
        tmp = f"{indexed_path}.tmp"
        os.makedirs(os.path.dirname(os.path.abspath(indexed_path)), exist_ok=True)
        with open(tmp, "wb") as f:
            off = 0
            for first, members in groups.items():
                chunk = "".join(f"{s.id},{s.name}\n" for s in members).encode(self.encoding)
                offsets[first] = off
                f.write(chunk)
                off += len(chunk)
        os.replace(tmp, indexed_path)
        save_offsets(offsets, offsets_path)

        log.info("Catalog index written: groups=%d entries=%d -> %s", len(offsets), entries, indexed_path)
        return IndexArtifacts(indexed_path=indexed_path, offsets_path=offsets_path,
                              groups=len(offsets), entries=entries)


class CatalogIndex:
    """
    Read-only view over the flattened catalog. lookup(word) -> offset,
    read_entry_at(offset) -> Supplier, read_group(word) -> suppliers.

    Keeps the offset map in memory and one binary handle open for seeks.
    """

    def __init__(self, indexed_path: str, offsets_path: str, encoding: str = CFG.ENCODING) -> None:
        self.indexed_path = os.path.abspath(indexed_path)
        self.encoding = encoding
        self.offsets: Dict[str, int] = load_offsets(offsets_path)
        self._fd = open(self.indexed_path, "rb")

    @classmethod
    def for_catalog(cls, catalog_path: str) -> "CatalogIndex":
        indexed, offsets = artifact_paths(catalog_path)
        return cls(indexed, offsets)

    def lookup(self, word: str) -> Optional[int]:
        return self.offsets.get(word)

    def read_entry_at(self, offset: int) -> Supplier:
        self._fd.seek(offset)
        line = self._read_line()
        if line is None:
            raise MalformedInputError(f"no catalog entry at offset {offset}", source=self.indexed_path)
        return parse_catalog_line(line, source=self.indexed_path)

    def read_group(self, word: str) -> List[Supplier]:
        """All entries whose leading word is `word`; empty when not indexed."""
        offset = self.lookup(word)
        if offset is None:
            return []
        self._fd.seek(offset)
        out: List[Supplier] = []
        while True:
            line = self._read_line()
            if line is None:
                break
            s = parse_catalog_line(line, source=self.indexed_path)
            if leading_word(s.name) != word:
                break
            out.append(s)
        return out

    def _read_line(self) -> Optional[str]:
        raw = self._fd.readline()
        if not raw:
            return None
        try:
            return raw.decode(self.encoding)
        except UnicodeDecodeError as exc:
            raise MalformedInputError(f"undecodable catalog line: {exc}", source=self.indexed_path) from exc

    def close(self) -> None:
        self._fd.close()

    def __enter__(self) -> "CatalogIndex":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
