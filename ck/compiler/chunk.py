from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from ck import SymbolId
from ck.errors import CkError
from ck.compiler.opcodes import Opcode, INSTR_SIZE


U32_MAX = (1 << 32) - 1


@dataclass
class Chunk:
    """A compact instruction sequence.

    Each instruction is one opcode byte followed by a big-endian u32 symbol
    id. Literals and nested functions live in the global store, so a chunk
    needs no constants table of its own.
    """

    code: bytearray = field(default_factory=bytearray)

    # --- Emit helpers ---
    def emit_op(self, op: Opcode) -> int:
        self.code.append(int(op))
        return len(self.code) - 1

    def emit_u32(self, v: int) -> None:
        if not 0 <= v <= U32_MAX:
            raise CkError(f"Symbol id {v} does not fit in an instruction operand")
        self.code.extend(((v >> 24) & 0xFF, (v >> 16) & 0xFF, (v >> 8) & 0xFF, v & 0xFF))

    # --- high-level convenience ---
    def emit(self, op: Opcode, sid: SymbolId) -> None:
        self.emit_op(op)
        self.emit_u32(sid)

    def read_u32(self, ip: int) -> int:
        code = self.code
        return (code[ip] << 24) | (code[ip + 1] << 16) | (code[ip + 2] << 8) | code[ip + 3]

    def instructions(self) -> list[tuple[Opcode, SymbolId]]:
        return list(self)

    def __iter__(self) -> Iterator[tuple[Opcode, SymbolId]]:
        for ip in range(0, len(self.code), INSTR_SIZE):
            yield Opcode(self.code[ip]), self.read_u32(ip + 1)

    def __len__(self) -> int:
        return len(self.code) // INSTR_SIZE
