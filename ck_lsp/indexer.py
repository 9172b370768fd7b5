from __future__ import annotations

"""
Lightweight indexer for Chicken Knife files without running code.

We scan the text with the reader's own token rules and build an index for:
- definitions: `$=name` (a `$=name` right after a `( ... )` block defines a function)
- references: calls (`name`) and loads (`$name`) with their positions
- structure problems: unmatched parentheses, an unterminated string, and the
  message the real parser gives for the whole document

Nothing is executed; the compile check runs against a scratch Environment.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from ck.errors import CkParseError, CkIncompleteInput
from ck.types.environment import Environment
from ck.reader.parser import (
    Parser,
    QUOTE_CHARS,
    LOAD_SIGIL,
    SET_SIGIL,
    is_special_char,
    parse_number,
    read_fenced,
)


@dataclass
class SymbolDef:
    name: str
    kind: str  # "var" | "function"
    line: int
    col: int


@dataclass
class SymbolRef:
    name: str
    kind: str  # "call" | "load"
    line: int
    col: int


@dataclass
class DocumentIndex:
    symbols: Dict[str, SymbolDef] = field(default_factory=dict)
    references: List[SymbolRef] = field(default_factory=list)
    paren_balance: int = 0
    unmatched_close: List[Tuple[int, int]] = field(default_factory=list)  # (line, col)
    unterminated_string: Optional[Tuple[int, int]] = None
    parse_error: Optional[str] = None

    def undefined_calls(self) -> List[SymbolRef]:
        return [
            ref for ref in self.references
            if ref.kind == "call" and ref.name not in self.symbols and ref.name not in BUILTIN_SIGNATURES
        ]


def _iter_tokens(text: str) -> Iterator[tuple[str, str, int]]:
    """Yield (kind, token, offset); kind is lparen, rparen, string, word or
    unterminated (the rest of the text)."""
    n = len(text)
    pos = 0
    while pos < n:
        c = text[pos]
        if c.isspace():
            pos += 1
        elif c == "#":
            nl = text.find("\n", pos)
            pos = n if nl == -1 else nl + 1
        elif c in QUOTE_CHARS:
            try:
                s, end = read_fenced(text, pos)
            except CkIncompleteInput:
                yield "unterminated", text[pos:], pos
                return
            yield "string", s, pos
            pos = end
        elif c == "(":
            yield "lparen", c, pos
            pos += 1
        elif c == ")":
            yield "rparen", c, pos
            pos += 1
        else:
            start = pos
            while pos < n and not is_special_char(text[pos]):
                pos += 1
            yield "word", text[start:pos], start


def _position_from_offset(text: str, offset: int) -> Tuple[int, int]:
    # Return (line, col), 0-based
    line = text.count("\n", 0, offset)
    last_nl = text.rfind("\n", 0, offset)
    col = offset if last_nl == -1 else offset - last_nl - 1
    return line, col


def build_index(text: str) -> DocumentIndex:
    idx = DocumentIndex()
    prev_kind = None
    for kind, tok, offset in _iter_tokens(text):
        line, col = _position_from_offset(text, offset)
        if kind == "lparen":
            idx.paren_balance += 1
        elif kind == "rparen":
            if idx.paren_balance == 0:
                idx.unmatched_close.append((line, col))
            else:
                idx.paren_balance -= 1
        elif kind == "unterminated":
            idx.unterminated_string = (line, col)
        elif kind == "word":
            if tok.startswith(SET_SIGIL):
                name = tok[len(SET_SIGIL):]
                # first definition wins for navigation
                if name not in idx.symbols:
                    def_kind = "function" if prev_kind == "rparen" else "var"
                    idx.symbols[name] = SymbolDef(name=name, kind=def_kind, line=line, col=col)
            elif tok.startswith(LOAD_SIGIL):
                idx.references.append(SymbolRef(tok[len(LOAD_SIGIL):], "load", line, col))
            elif parse_number(tok) is None:
                idx.references.append(SymbolRef(tok, "call", line, col))
        prev_kind = kind

    try:
        Parser(Environment()).parse(text, final=True)
    except CkParseError as ex:
        idx.parse_error = str(ex)
    return idx


# Builtin stack effects for quick hover/completion without eval
BUILTIN_SIGNATURES: Dict[str, str] = {
    "+": "( a b -- a+b )",
    "-": "( a b -- a-b )",
    "*": "( a b -- a*b )",
    "/": "( a b -- a/b )  integer division truncates",
    "%": "( a b -- a%b )  sign of a",
    "==": "( a b -- 1|0 )",
    "!=": "( a b -- 1|0 )",
    "<": "( a b -- 1|0 )",
    ">": "( a b -- 1|0 )",
    "<=": "( a b -- 1|0 )",
    ">=": "( a b -- 1|0 )",
    "and": "( a b -- 1|0 )",
    "or": "( a b -- 1|0 )",
    "not": "( a -- 1|0 )",
    "neg": "( a -- -a )",
    "print": "( x -- )",
    "println": "( x -- )  with line break",
    "read": "( -- token )",
    "readln": "( -- line )",
    "exit": "( code -- )  terminates",
    "cons": "( a b -- (a . b) )",
    "car": "( (a . b) -- a )",
    "cdr": "( (a . b) -- b )",
}
