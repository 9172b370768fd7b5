from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ck import SymbolId
from .chunk import Chunk


@dataclass(eq=False)
class Function:
    """A compiled block. `sid` is the anonymous symbol it was interned under;
    top-level chunks handed to the driver have none."""
    chunk: Chunk = field(default_factory=Chunk)
    sid: Optional[SymbolId] = None

    def __len__(self) -> int:
        return len(self.chunk)

    def __repr__(self):
        return f"<func:{self.sid}>" if self.sid is not None else "<func>"
