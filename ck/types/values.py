"""Runtime values beyond plain literals.

Literals are represented directly by Python values:

    - Nil     -> ck.types.nil.Nil
    - Integer -> int, always inside the signed 64-bit range
    - Float   -> float
    - String  -> str

Pairs are immutable `Cons` nodes whose children may be shared by any number
of parents. Builtins are `Magic` tags and compiled blocks are
`ck.compiler.function.Function` objects.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from ck import CkValue
from ck.types.nil import Nil
from ck.compiler.function import Function


INT_BITS = 64
INT_MIN = -(1 << (INT_BITS - 1))
INT_MAX = (1 << (INT_BITS - 1)) - 1

TRUE = 1
FALSE = 0


@dataclass(frozen=True, eq=False, slots=True)
class Cons:
    left: CkValue
    right: CkValue

    def __repr__(self):
        return render(self)


class Magic(IntEnum):
    ADD = 0
    SUB = 1
    MUL = 2
    DIV = 3
    MOD = 4
    EQ = 5
    NEQ = 6
    LT = 7
    GT = 8
    LEQ = 9
    GEQ = 10
    AND = 11
    OR = 12
    NOT = 13
    NEG = 14
    PRINT = 15
    PRINTLN = 16
    READ = 17
    READLN = 18
    EXIT = 19
    CONS = 20
    CAR = 21
    CDR = 22

    @property
    def word(self) -> str:
        """The name this builtin is registered under."""
        return _MAGIC_WORDS[self]


_MAGIC_WORDS: dict[Magic, str] = {
    Magic.ADD: "+",
    Magic.SUB: "-",
    Magic.MUL: "*",
    Magic.DIV: "/",
    Magic.MOD: "%",
    Magic.EQ: "==",
    Magic.NEQ: "!=",
    Magic.LT: "<",
    Magic.GT: ">",
    Magic.LEQ: "<=",
    Magic.GEQ: ">=",
    Magic.AND: "and",
    Magic.OR: "or",
    Magic.NOT: "not",
    Magic.NEG: "neg",
    Magic.PRINT: "print",
    Magic.PRINTLN: "println",
    Magic.READ: "read",
    Magic.READLN: "readln",
    Magic.EXIT: "exit",
    Magic.CONS: "cons",
    Magic.CAR: "car",
    Magic.CDR: "cdr",
}


# -------------------------------
# Classification
# -------------------------------
def is_int(v: CkValue) -> bool:
    return isinstance(v, int) and not isinstance(v, (bool, Magic))


def is_number(v: CkValue) -> bool:
    return is_int(v) or isinstance(v, float)


def wrap_int(n: int) -> int:
    """Reduce an unbounded Python int to signed 64-bit two's complement."""
    n &= (1 << INT_BITS) - 1
    return n - (1 << INT_BITS) if n > INT_MAX else n


def is_truthy(v: CkValue) -> bool:
    # Nil and integer 0 are false; 0.0 and "" are true
    return not (v is Nil or (is_int(v) and v == 0))


def as_bool(flag: bool) -> int:
    return TRUE if flag else FALSE


def values_equal(a: CkValue, b: CkValue) -> bool:
    """Structural equality for literals, identity for everything else."""
    if a is b:
        return True
    if is_number(a) and is_number(b):
        return float(a) == float(b) if isinstance(a, float) or isinstance(b, float) else a == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    return False


# -------------------------------
# Rendering
# -------------------------------
def _quote(s: str) -> str:
    return '"' + s.replace('"', '""') + '"'


class _Text(str):
    """Literal output queued while walking a Cons."""


_DOT = _Text(" . ")
_CLOSE = _Text(")")


def render(v: CkValue) -> str:
    """Canonical text of a value, as written by print/println."""
    if not isinstance(v, Cons):
        return _render_atom(v)
    # explicit work stack: pair chains can nest deeper than the recursion limit
    parts: list[str] = []
    work: list[CkValue] = [v]
    while work:
        item = work.pop()
        if isinstance(item, _Text):
            parts.append(item)
        elif isinstance(item, Cons):
            parts.append("(")
            work.extend((_CLOSE, item.right, _DOT, item.left))
        elif isinstance(item, str):
            parts.append(_quote(item))
        else:
            parts.append(_render_atom(item))
    return "".join(parts)


def _render_atom(v: CkValue) -> str:
    if v is Nil:
        return "nil"
    if isinstance(v, Magic):
        return f"<magic:{v.word}>"
    if is_int(v):
        return str(v)
    if isinstance(v, float):
        return repr(v)
    if isinstance(v, str):
        return v
    # functions render as <func:ID>
    return repr(v)


def type_name(v: CkValue) -> str:
    if v is Nil:
        return "nil"
    if isinstance(v, Magic):
        return "builtin"
    if is_int(v):
        return "integer"
    if isinstance(v, float):
        return "float"
    if isinstance(v, str):
        return "string"
    if isinstance(v, Cons):
        return "cons"
    if isinstance(v, Function):
        return "function"
    return type(v).__name__
