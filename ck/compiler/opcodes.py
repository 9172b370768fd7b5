from __future__ import annotations

from enum import IntEnum


class Opcode(IntEnum):
    # Every instruction carries one u32 operand: a symbol id
    LOAD = 0x01  # push global[id]
    APP = 0x02  # call the function or builtin bound to global[id]
    SET = 0x03  # pop into global[id]


# opcode byte + u32 operand
INSTR_SIZE = 5
