"""Built-in operations (Magic) for the Chicken Knife VM.

Each builtin is a plain function taking the VM and its operands, left
operand first (the left one was pushed first and sits deeper). It returns
the value to push, or None when nothing is pushed. The VM checks the
operand count before calling and only drops the operands once the builtin
returns, so a failing builtin leaves the stack untouched.

`register` binds every builtin to its canonical name in a fresh
Environment, before any user symbol is interned.
"""
from __future__ import annotations

import math
import sys
from typing import TYPE_CHECKING, Callable

from ck import CkValue
from ck.errors import CkTypeError, CkZeroDivisionError
from ck.types.environment import Environment
from ck.reader.parser import parse_number
from ck.types.values import (
    Cons,
    Magic,
    as_bool,
    is_int,
    is_number,
    is_truthy,
    type_name,
    values_equal,
    wrap_int,
    render,
)

if TYPE_CHECKING:
    from ck.compiler.vm import VM


def _check_numbers(word: str, *args: CkValue) -> bool:
    """Raise unless all args are numbers; True if any of them is a float."""
    for a in args:
        if not is_number(a):
            kinds = " and ".join(type_name(x) for x in args)
            raise CkTypeError(f"'{word}' expects numbers, got {kinds}")
    return any(isinstance(a, float) for a in args)


# -------------------------------
# Arithmetic
# -------------------------------
def add(vm: VM, a: CkValue, b: CkValue) -> CkValue:
    if _check_numbers("+", a, b):
        return float(a) + float(b)
    return wrap_int(a + b)


def sub(vm: VM, a: CkValue, b: CkValue) -> CkValue:
    if _check_numbers("-", a, b):
        return float(a) - float(b)
    return wrap_int(a - b)


def mul(vm: VM, a: CkValue, b: CkValue) -> CkValue:
    if _check_numbers("*", a, b):
        return float(a) * float(b)
    return wrap_int(a * b)


def _float_div(a: float, b: float) -> float:
    # IEEE-754 semantics instead of Python's ZeroDivisionError
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def div(vm: VM, a: CkValue, b: CkValue) -> CkValue:
    """Float division, or integer division truncating toward zero."""
    if _check_numbers("/", a, b):
        return _float_div(float(a), float(b))
    if b == 0:
        raise CkZeroDivisionError("Division by zero")
    q = abs(a) // abs(b)
    return wrap_int(-q if (a < 0) != (b < 0) else q)


def mod(vm: VM, a: CkValue, b: CkValue) -> CkValue:
    """Remainder with the sign of the dividend."""
    if _check_numbers("%", a, b):
        try:
            return math.fmod(float(a), float(b))
        except ValueError:
            return math.nan
    if b == 0:
        raise CkZeroDivisionError("Modulo by zero")
    r = abs(a) % abs(b)
    return -r if a < 0 else r


def neg(vm: VM, a: CkValue) -> CkValue:
    if _check_numbers("neg", a):
        return -a
    return wrap_int(-a)


# -------------------------------
# Comparison
# -------------------------------
def equals(vm: VM, a: CkValue, b: CkValue) -> int:
    return as_bool(values_equal(a, b))


def not_equals(vm: VM, a: CkValue, b: CkValue) -> int:
    return as_bool(not values_equal(a, b))


def _ordered(word: str, a: CkValue, b: CkValue) -> tuple[CkValue, CkValue]:
    if _check_numbers(word, a, b):
        return float(a), float(b)
    return a, b


def lt(vm: VM, a: CkValue, b: CkValue) -> int:
    x, y = _ordered("<", a, b)
    return as_bool(x < y)


def gt(vm: VM, a: CkValue, b: CkValue) -> int:
    x, y = _ordered(">", a, b)
    return as_bool(x > y)


def lte(vm: VM, a: CkValue, b: CkValue) -> int:
    x, y = _ordered("<=", a, b)
    return as_bool(x <= y)


def gte(vm: VM, a: CkValue, b: CkValue) -> int:
    x, y = _ordered(">=", a, b)
    return as_bool(x >= y)


# -------------------------------
# Logic
# -------------------------------
def logical_and(vm: VM, a: CkValue, b: CkValue) -> int:
    return as_bool(is_truthy(a) and is_truthy(b))


def logical_or(vm: VM, a: CkValue, b: CkValue) -> int:
    return as_bool(is_truthy(a) or is_truthy(b))


def logical_not(vm: VM, a: CkValue) -> int:
    return as_bool(not is_truthy(a))


# -------------------------------
# I/O
# -------------------------------
def print_(vm: VM, v: CkValue) -> None:
    vm.stdout.write(render(v))


def println(vm: VM, v: CkValue) -> None:
    vm.stdout.write(render(v) + "\n")


def read(vm: VM) -> CkValue:
    """Next whitespace-delimited token; a number if it reads as one."""
    token = vm.read_token()
    number = parse_number(token)
    return token if number is None else number


def readln(vm: VM) -> str:
    return vm.read_line()


def exit_(vm: VM, code: CkValue) -> None:
    if not is_int(code):
        raise CkTypeError(f"'exit' expects an integer exit code, got {type_name(code)}")
    vm.stdout.flush()
    sys.exit(code)


# -------------------------------
# Pairs
# -------------------------------
def cons(vm: VM, a: CkValue, b: CkValue) -> Cons:
    return Cons(a, b)


def car(vm: VM, xs: CkValue) -> CkValue:
    if not isinstance(xs, Cons):
        raise CkTypeError(f"'car' expects a cons, got {type_name(xs)}")
    return xs.left


def cdr(vm: VM, xs: CkValue) -> CkValue:
    if not isinstance(xs, Cons):
        raise CkTypeError(f"'cdr' expects a cons, got {type_name(xs)}")
    return xs.right


# Magic -> (operand count, implementation)
BUILTINS: dict[Magic, tuple[int, Callable[..., CkValue]]] = {
    Magic.ADD: (2, add),
    Magic.SUB: (2, sub),
    Magic.MUL: (2, mul),
    Magic.DIV: (2, div),
    Magic.MOD: (2, mod),
    Magic.EQ: (2, equals),
    Magic.NEQ: (2, not_equals),
    Magic.LT: (2, lt),
    Magic.GT: (2, gt),
    Magic.LEQ: (2, lte),
    Magic.GEQ: (2, gte),
    Magic.AND: (2, logical_and),
    Magic.OR: (2, logical_or),
    Magic.NOT: (1, logical_not),
    Magic.NEG: (1, neg),
    Magic.PRINT: (1, print_),
    Magic.PRINTLN: (1, println),
    Magic.READ: (0, read),
    Magic.READLN: (0, readln),
    Magic.EXIT: (1, exit_),
    Magic.CONS: (2, cons),
    Magic.CAR: (1, car),
    Magic.CDR: (1, cdr),
}


def register(env: Environment) -> None:
    """Bind each builtin to its canonical name, in Magic order."""
    for magic in Magic:
        env.define(magic.word, magic)
