from __future__ import annotations

from typing import Optional

from ck.types.environment import Environment
from ck.types.values import render

from .chunk import Chunk
from .opcodes import Opcode
from .function import Function


def _describe(env: Optional[Environment], sid: int) -> str:
    if env is None:
        return ""
    name = env.name_of(sid)
    if name is not None:
        return f" ({name})"
    value = env.lookup(sid) if sid < len(env) else None
    if isinstance(value, Function):
        return f" {value!r}"
    if isinstance(value, str):
        return f" {value!r}"
    return f" {render(value)}" if value is not None else ""


def disassemble_chunk(chunk: Chunk, env: Optional[Environment] = None, indent: int = 0) -> str:
    """One line per instruction: `0005: APP 27 (println)`.

    Nested functions referenced by LOAD are disassembled below their
    caller, indented.
    """
    out = []
    pad = "  " * indent
    nested: list[Function] = []
    for i, (op, sid) in enumerate(chunk):
        out.append(f"{pad}{i:04d}: {Opcode(op).name} {sid}{_describe(env, sid)}")
        if env is not None and op == Opcode.LOAD and env.name_of(sid) is None:
            value = env.lookup(sid)
            if isinstance(value, Function) and value not in nested:
                nested.append(value)
    for fn in nested:
        out.append(f"{pad}-- {fn!r} --")
        out.append(disassemble_chunk(fn.chunk, env, indent + 1))
    return "\n".join(line for line in out if line)
