from __future__ import annotations

# Public surface for the compiler package. Must not import ck.compiler.vm:
# ck.types.values imports Function from here.
from .opcodes import Opcode
from .chunk import Chunk
from .function import Function

__all__ = [
    "Opcode",
    "Chunk",
    "Function",
]
