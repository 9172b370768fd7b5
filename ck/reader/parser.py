"""
  Chicken Knife reader and compiler

- Resumable: text arrives in pieces (a file, or one line at a time) and the
  parser keeps its state between calls
- There is no syntax tree; tokens compile straight into LOAD/APP/SET
  instructions over the global store:

    - 42, -7, 3.5, 1e3     -> literal interned under a fresh id, LOAD
    - 'text', ''a'b''      -> string literal interned under a fresh id, LOAD
    - ( ... )              -> nested Function interned under a fresh id, LOAD
    - $name                -> LOAD of the named global
    - $=name               -> SET of the named global
    - name                 -> APP of the named global (call by default)
    - # ...                -> comment to end of line
"""

from __future__ import annotations

import re
from typing import Optional, Union

from ck import SymbolId
from ck.errors import CkIncompleteInput, CkSyntaxError
from ck.types.environment import Environment
from ck.types.values import INT_MIN, INT_MAX
from ck.compiler.chunk import Chunk
from ck.compiler.function import Function
from ck.compiler.opcodes import Opcode


QUOTE_CHARS = frozenset("'\"`")
SPECIAL_CHARS = frozenset("()#") | QUOTE_CHARS

LOAD_SIGIL = "$"
SET_SIGIL = "$="

# decimal digits of INT_MAX
INT_DIGITS = len(str(INT_MAX))

INT_RE = re.compile(r"[+-]?[0-9]+\Z")
FLOAT_RE = re.compile(
    r"[+-]?(?:"
    r"(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"  # 1  1.  1.5  .5  1e9  2.5E-3
    r"|inf|infinity|nan"
    r")\Z",
    re.IGNORECASE,
)


def is_special_char(c: str) -> bool:
    return c in SPECIAL_CHARS or c.isspace()


def parse_number(token: str) -> Optional[Union[int, float]]:
    """Integer if `token` is a signed 64-bit decimal, else float if it reads as
    one, else None. Integers out of range fall through to float."""
    # longer digit strings can never fit, so they skip int() entirely
    if INT_RE.match(token) and len(token.lstrip("+-").lstrip("0")) <= INT_DIGITS:
        n = int(token)
        if INT_MIN <= n <= INT_MAX:
            return n
    if FLOAT_RE.match(token):
        return float(token)
    return None


def read_fenced(source: str, pos: int) -> tuple[str, int]:
    """Read the fenced string opening at source[pos].

    The opening run of N identical quote characters must be closed by a run
    of exactly N followed by a token boundary or a `$` sigil, as in
    `'text'$=name`. Any other run is content; with a single-character
    fence a run of M quotes folds to ceil(M/2) of them, so doubling escapes a
    quote.

    Returns (text, index after the closer). Raises CkIncompleteInput when the
    source ends first.
    """
    n = len(source)
    quote = source[pos]
    i = pos
    while i < n and source[i] == quote:
        i += 1
    open_n = i - pos

    parts: list[str] = []
    while i < n:
        j = source.find(quote, i)
        if j == -1:
            break
        parts.append(source[i:j])
        i = j
        while j < n and source[j] == quote:
            j += 1
        run = j - i
        if run == open_n and (j == n or is_special_char(source[j]) or source[j] == LOAD_SIGIL):
            return "".join(parts), j
        if open_n == 1:
            run = (run + 1) // 2
        parts.append(quote * run)
        i = j
    raise CkIncompleteInput(f"Unterminated string literal opened with {quote * open_n}")


class Parser:
    """Compiles source text into Functions over one Environment.

    State carried between `parse` calls:
    - `partial`: unconsumed text (the start of an unterminated string)
    - `blocks`: instruction lists of enclosing, still-open `(` blocks
    - `chunk`: instructions of the innermost block being compiled
    """

    def __init__(self, env: Environment):
        self.env = env
        self.partial: str = ""
        self.blocks: list[Chunk] = []
        self.chunk = Chunk()

    @property
    def depth(self) -> int:
        """Number of blocks opened but not yet closed."""
        return len(self.blocks)

    def is_pending(self) -> bool:
        """True while a block or string is waiting for more input."""
        return bool(self.blocks) or bool(self.partial)

    def reset(self) -> None:
        self.partial = ""
        self.blocks = []
        self.chunk = Chunk()

    def parse(self, code: str, final: bool = False) -> Function:
        """Feed `code` and return the completed top-level Function.

        Raises CkIncompleteInput (state kept) while a block or string is open,
        unless `final` says no more input is coming, in which case the open
        construct is a CkSyntaxError. Any CkSyntaxError resets the parser.
        """
        self.partial += code
        try:
            self._parse_all()
        except CkIncompleteInput as ex:
            if final:
                self.reset()
                raise CkSyntaxError(str(ex)) from None
            raise
        except CkSyntaxError:
            self.reset()
            raise
        if self.blocks:
            if final:
                depth = self.depth
                self.reset()
                raise CkSyntaxError(f"Unmatched '(' ({depth} block(s) left open)")
            raise CkIncompleteInput(f"{self.depth} block(s) left open")
        fn = Function(chunk=self.chunk)
        self.chunk = Chunk()
        return fn

    def finish(self) -> Function:
        """Signal end of input: whatever is still open becomes fatal."""
        return self.parse("", final=True)

    # --- Emit helpers ---
    def _emit_literal(self, value) -> None:
        self.chunk.emit(Opcode.LOAD, self.env.alloc(value))

    def _emit_named(self, op: Opcode, name: str) -> None:
        self.chunk.emit(op, self.env.intern(name))

    def _open_block(self) -> None:
        self.blocks.append(self.chunk)
        self.chunk = Chunk()

    def _close_block(self) -> None:
        if not self.blocks:
            raise CkSyntaxError("Unexpected ')'")
        sid: SymbolId = self.env.alloc()
        self.env.set(sid, Function(chunk=self.chunk, sid=sid))
        self.chunk = self.blocks.pop()
        self.chunk.emit(Opcode.LOAD, sid)

    def _compile_bareword(self, word: str) -> None:
        if word.startswith(SET_SIGIL):
            self._emit_named(Opcode.SET, word[len(SET_SIGIL):])
        elif word.startswith(LOAD_SIGIL):
            self._emit_named(Opcode.LOAD, word[len(LOAD_SIGIL):])
        else:
            number = parse_number(word)
            if number is not None:
                self._emit_literal(number)
            else:
                self._emit_named(Opcode.APP, word)

    def _parse_all(self) -> None:
        source = self.partial
        n = len(source)
        pos = 0
        while pos < n:
            c = source[pos]
            if c.isspace():
                pos += 1
            elif c == "#":
                nl = source.find("\n", pos)
                pos = n if nl == -1 else nl + 1
            elif c in QUOTE_CHARS:
                try:
                    text, pos = read_fenced(source, pos)
                except CkIncompleteInput:
                    # keep the string's text for the next call
                    self.partial = source[pos:]
                    raise
                self._emit_literal(text)
            elif c == "(":
                self._open_block()
                pos += 1
            elif c == ")":
                self._close_block()
                pos += 1
            else:
                start = pos
                while pos < n and not is_special_char(source[pos]):
                    pos += 1
                self._compile_bareword(source[start:pos])
        self.partial = ""
