"""Global store for Chicken Knife.

There is exactly one namespace. The Environment pairs a SymbolTable with a
flat list of values indexed by symbol id; the list doubles as the literal
pool (anonymous ids) and as variable storage (named ids). Every id the
symbol table hands out gets a slot here immediately, defaulting to Nil.
"""

from __future__ import annotations

from typing import Optional

from ck import CkValue, SymbolId
from ck.errors import CkError
from ck.types.nil import Nil
from ck.types.symbol import SymbolTable


class Environment:
    """Symbol table plus the global store it indexes."""

    __slots__ = ("symbols", "globals")

    def __init__(self):
        self.symbols = SymbolTable()
        self.globals: list[CkValue] = []

    def _cover(self) -> None:
        # grow the store so that it covers the highest allocated id
        missing = len(self.symbols) - len(self.globals)
        if missing > 0:
            self.globals.extend([Nil] * missing)

    def intern(self, name: str) -> SymbolId:
        """Id of `name`, allocating it (bound to Nil) on first use."""
        sid = self.symbols.intern_named(name)
        self._cover()
        return sid

    def alloc(self, value: CkValue = Nil) -> SymbolId:
        """Fresh anonymous id holding `value`; used for literals and functions."""
        sid = self.symbols.alloc_anonymous()
        self._cover()
        self.globals[sid] = value
        return sid

    def lookup(self, sid: SymbolId) -> CkValue:
        try:
            return self.globals[sid]
        except IndexError:
            raise CkError(f"Symbol id {sid} was never allocated") from None

    def set(self, sid: SymbolId, value: CkValue) -> None:
        if not 0 <= sid < len(self.globals):
            raise CkError(f"Symbol id {sid} was never allocated")
        self.globals[sid] = value

    def define(self, name: str, value: CkValue) -> SymbolId:
        """Bind `name` to `value`, interning it if needed."""
        sid = self.intern(name)
        self.globals[sid] = value
        return sid

    def lookup_name(self, name: str) -> CkValue:
        """Value bound to `name`; Nil for names never interned."""
        sid = self.symbols.lookup(name)
        return Nil if sid is None else self.globals[sid]

    def name_of(self, sid: SymbolId) -> Optional[str]:
        return self.symbols.name_of(sid)

    def __len__(self) -> int:
        return len(self.globals)

    def __repr__(self):
        return f"Environment({len(self.globals)} slots)"
