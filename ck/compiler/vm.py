from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Callable, List, Optional, TextIO

from ck import CkValue, SymbolId, config
from ck.errors import (
    CkError,
    CkStackUnderflow,
    CkUndefinedApplication,
    CkCallDepthExceeded,
    CkEndOfInput,
)
from ck.types.environment import Environment
from ck.types.nil import Nil
from ck.types.values import Magic, type_name
from ck.builtin.env_builtin import BUILTINS

from .opcodes import Opcode, INSTR_SIZE
from .function import Function
from .chunk import Chunk


@dataclass
class Frame:
    chunk: Chunk
    ip: int = 0


class VM:
    """Stack machine over one Environment.

    The operand stack outlives `run`: values left by one top-level function
    are there for the next. A runtime error unwinds every frame of the
    current `run` but leaves the stack and the global store as they were at
    the failing instruction.
    """

    def __init__(
        self,
        env: Environment,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        max_call_depth: Optional[int] = None,
    ):
        self.env = env
        self.stack: List[CkValue] = []
        self.frames: List[Frame] = []
        self.max_call_depth = max_call_depth or config.get_max_call_depth()
        # None means the process streams, looked up at use time
        self._stdin = stdin
        self._stdout = stdout
        # Opcode dispatch table
        self._dispatch: dict[int, Callable[[Frame, SymbolId], None]] = {}
        self._init_dispatch()

    def _init_dispatch(self) -> None:
        d = self._dispatch
        d[Opcode.LOAD] = self.op_load
        d[Opcode.APP] = self.op_app
        d[Opcode.SET] = self.op_set

    @property
    def stdin(self) -> TextIO:
        return self._stdin if self._stdin is not None else sys.stdin

    @property
    def stdout(self) -> TextIO:
        return self._stdout if self._stdout is not None else sys.stdout

    # --- Per-op handlers ---
    def op_load(self, frame: Frame, sid: SymbolId) -> None:
        self.push(self.env.lookup(sid))

    def op_set(self, frame: Frame, sid: SymbolId) -> None:
        if not self.stack:
            raise CkStackUnderflow(f"Cannot set '{self._name(sid)}': stack is empty")
        self.env.set(sid, self.pop())

    def op_app(self, frame: Frame, sid: SymbolId) -> None:
        target = self.env.lookup(sid)
        if isinstance(target, Function):
            self.call_function(frame, target)
        elif isinstance(target, Magic):
            self.apply_magic(target)
        else:
            raise CkUndefinedApplication(
                f"'{self._name(sid)}' is {type_name(target)}, not a function or builtin"
            )

    # --- Calls ---
    def call_function(self, frame: Frame, fn: Function) -> None:
        if frame.ip >= len(frame.chunk.code):
            # tail position: the caller has nothing left to run
            self.frames.pop()
        if len(self.frames) >= self.max_call_depth:
            raise CkCallDepthExceeded(f"Call depth exceeded {self.max_call_depth} frames")
        self.frames.append(Frame(chunk=fn.chunk))

    def apply_magic(self, magic: Magic) -> None:
        """Run a builtin. Operands are only removed once it succeeds."""
        arity, impl = BUILTINS[magic]
        if len(self.stack) < arity:
            raise CkStackUnderflow(
                f"'{magic.word}' needs {arity} operand(s), stack has {len(self.stack)}"
            )
        args = self.stack[len(self.stack) - arity:] if arity else []
        result = impl(self, *args)
        if arity:
            del self.stack[-arity:]
        if result is not None:
            self.push(result)

    # --- Stack helpers ---
    def push(self, v: CkValue) -> None:
        self.stack.append(v)

    def pop(self) -> CkValue:
        if not self.stack:
            raise CkStackUnderflow("Stack is empty")
        return self.stack.pop()

    # --- Input helpers for read/readln ---
    def read_line(self) -> str:
        line = self.stdin.readline()
        if not line:
            raise CkEndOfInput("readln: end of input")
        if line.endswith("\n"):
            line = line[:-1]
            if line.endswith("\r"):
                line = line[:-1]
        return line

    def read_token(self) -> str:
        stream = self.stdin
        c = stream.read(1)
        while c and c.isspace():
            c = stream.read(1)
        if not c:
            raise CkEndOfInput("read: end of input")
        chars = []
        # the whitespace that ends the token is consumed with it
        while c and not c.isspace():
            chars.append(c)
            c = stream.read(1)
        return "".join(chars)

    def _name(self, sid: SymbolId) -> str:
        name = self.env.name_of(sid)
        return name if name is not None else f"#{sid}"

    # --- Execution ---
    def run(self, fn: Function) -> CkValue:
        """Execute a top-level function; returns the stack top (Nil if empty)."""
        self.frames.append(Frame(chunk=fn.chunk))
        try:
            while self.frames:
                frame = self.frames[-1]
                code = frame.chunk.code
                ip = frame.ip
                if ip >= len(code):
                    # Implicit return at chunk end
                    self.frames.pop()
                    continue
                op = code[ip]
                sid = frame.chunk.read_u32(ip + 1)
                frame.ip = ip + INSTR_SIZE

                handler = self._dispatch.get(op)
                if handler is None:
                    raise CkError(f"Unknown opcode: {op}")
                handler(frame, sid)
        finally:
            self.frames.clear()
        return self.stack[-1] if self.stack else Nil
