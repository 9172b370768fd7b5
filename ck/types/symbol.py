from __future__ import annotations
import sys
from typing import Iterator, Optional

from ck import SymbolId


class SymbolTable:
    """Dense, append-only mapping between names and integer ids.

    Named ids come from `intern_named`; literal and function values get
    anonymous ids from `alloc_anonymous`. Both draw from the same counter, so
    an id is never handed out twice and never renumbered.
    """

    __slots__ = ("_ids", "_names")

    def __init__(self):
        self._ids: dict[str, SymbolId] = {}
        # index = id, None for anonymous slots
        self._names: list[Optional[str]] = []

    def intern_named(self, name: str) -> SymbolId:
        sid = self._ids.get(name)
        if sid is None:
            name = sys.intern(name)
            sid = len(self._names)
            self._names.append(name)
            self._ids[name] = sid
        return sid

    def alloc_anonymous(self) -> SymbolId:
        sid = len(self._names)
        self._names.append(None)
        return sid

    def lookup(self, name: str) -> Optional[SymbolId]:
        return self._ids.get(name)

    def name_of(self, sid: SymbolId) -> Optional[str]:
        if 0 <= sid < len(self._names):
            return self._names[sid]
        return None

    def names(self) -> Iterator[str]:
        return iter(self._ids)

    def __contains__(self, name: object) -> bool:
        return name in self._ids

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self):
        return f"SymbolTable({len(self._ids)} named, {len(self._names)} total)"
