import math

import pytest
from hypothesis import given, strategies as st

from ck.errors import CkIncompleteInput, CkParseError, CkSyntaxError
from ck.compiler.function import Function
from ck.compiler.opcodes import Opcode
from ck.reader.parser import Parser, parse_number, read_fenced
from ck.types.environment import Environment
from ck.types.values import INT_MIN, INT_MAX


@pytest.fixture
def parser(env):
    return Parser(env)


def loaded(env, fn):
    """Values of the LOAD instructions of a compiled function."""
    return [env.lookup(sid) for op, sid in fn.chunk if op == Opcode.LOAD]


@pytest.mark.parametrize(
    "token,expected",
    [
        ("42", 42),
        ("-7", -7),
        ("+5", 5),
        ("0", 0),
        (str(INT_MAX), INT_MAX),
        (str(INT_MIN), INT_MIN),
        ("3.5", 3.5),
        ("1e3", 1000.0),
        (".5", 0.5),
        ("5.", 5.0),
        ("-2.5E-1", -0.25),
        ("inf", math.inf),
        ("-Infinity", -math.inf),
        # out of i64 range, falls through to float
        ("9223372036854775808", 9223372036854775808.0),
    ]
)
def test_parse_number(token, expected):
    value = parse_number(token)
    assert value == expected
    assert type(value) is type(expected)


@pytest.mark.parametrize("token", ["", "-", "+", ".", "e5", "1_000", "0x10", "1.5e", "in", "12abc"])
def test_parse_number_rejects(token):
    assert parse_number(token) is None


def test_parse_number_nan():
    assert math.isnan(parse_number("nan"))


@pytest.mark.parametrize(
    "source,expected",
    [
        ("'hello'", "hello"),
        ('"double"', "double"),
        ("`tick`", "tick"),
        ("'it''s'", "it's"),
        ("'a'''b'", "a''b"),
        ("'a'b'", "a'b"),
        ("''hello''world''", "hello''world"),
        ("''it's''", "it's"),
        ("'''a''b'''", "a''b"),
        ("'mixed \"quotes\" `here`'", 'mixed "quotes" `here`'),
        ("'two\nlines'", "two\nlines"),
        ("'# not a comment'", "# not a comment"),
    ]
)
def test_fenced_strings(parser, env, source, expected):
    fn = parser.parse(source)
    assert loaded(env, fn) == [expected]


def test_string_closer_before_special_char(parser, env):
    fn = parser.parse("('x')")
    (block,) = loaded(env, fn)
    assert loaded(env, block) == ["x"]


def test_read_fenced_returns_end_offset():
    assert read_fenced("'ab' rest", 0) == ("ab", 4)
    with pytest.raises(CkIncompleteInput):
        read_fenced("'ab", 0)


def test_adjacent_strings(parser, env):
    fn = parser.parse("'a' 'b'")
    assert loaded(env, fn) == ["a", "b"]


def test_sigils_compile_to_load_set_app(parser, env):
    fn = parser.parse("$x $=y z")
    x, y, z = (env.symbols.lookup(n) for n in "xyz")
    assert fn.chunk.instructions() == [(Opcode.LOAD, x), (Opcode.SET, y), (Opcode.APP, z)]


def test_bare_sigils_name_the_empty_symbol(parser, env):
    fn = parser.parse("$ $=")
    sid = env.symbols.lookup("")
    assert fn.chunk.instructions() == [(Opcode.LOAD, sid), (Opcode.SET, sid)]


def test_literals_get_fresh_anonymous_ids(parser, env):
    fn = parser.parse("1 1 'x'")
    ids = [sid for _, sid in fn.chunk]
    assert len(set(ids)) == 3
    assert all(env.name_of(sid) is None for sid in ids)
    assert loaded(env, fn) == [1, 1, "x"]


def test_operators_are_applications(parser, env):
    fn = parser.parse("2 3 +")
    assert [op for op, _ in fn.chunk] == [Opcode.LOAD, Opcode.LOAD, Opcode.APP]
    assert fn.chunk.instructions()[-1][1] == env.symbols.lookup("+")


def test_comments_run_to_end_of_line(parser, env):
    fn = parser.parse("1 # 2 3\n4 #trailing")
    assert loaded(env, fn) == [1, 4]
    assert len(parser.parse("# only a comment")) == 0


def test_block_compiles_to_function_literal(parser, env):
    fn = parser.parse("(1 2 +)")
    (block,) = loaded(env, fn)
    assert isinstance(block, Function)
    assert block.sid is not None
    assert env.lookup(block.sid) is block
    assert loaded(env, block) == [1, 2]
    assert len(block) == 3


def test_nested_blocks(parser, env):
    fn = parser.parse("((1) 2)")
    (outer,) = loaded(env, fn)
    inner, two = loaded(env, outer)
    assert isinstance(inner, Function)
    assert two == 2
    assert loaded(env, inner) == [1]


def test_unmatched_close_is_fatal_and_resets(parser):
    with pytest.raises(CkIncompleteInput):
        parser.parse("(1")
    with pytest.raises(CkSyntaxError):
        parser.parse(")) 2")
    assert not parser.is_pending()


def test_open_block_is_incomplete_then_resumes(parser, env):
    with pytest.raises(CkIncompleteInput):
        parser.parse("(1 2")
    assert parser.depth == 1
    assert parser.is_pending()
    with pytest.raises(CkIncompleteInput):
        parser.parse("+")
    fn = parser.parse(")")
    (block,) = loaded(env, fn)
    assert len(block) == 3
    assert not parser.is_pending()


def test_open_block_with_final_is_fatal(parser):
    with pytest.raises(CkSyntaxError):
        parser.parse("(1 2", final=True)
    assert not parser.is_pending()


def test_finish_after_pending_block(parser):
    with pytest.raises(CkIncompleteInput):
        parser.parse("(")
    with pytest.raises(CkSyntaxError):
        parser.finish()


def test_unterminated_string_resumes_across_calls(parser, env):
    with pytest.raises(CkIncompleteInput):
        parser.parse("1 'abc")
    assert parser.partial == "'abc"
    fn = parser.parse(" def'")
    assert loaded(env, fn) == [1, "abc def"]


def test_unterminated_string_with_final_is_fatal(parser):
    with pytest.raises(CkSyntaxError):
        parser.parse("'abc", final=True)
    assert parser.partial == ""


def test_closing_run_needs_a_boundary(parser):
    # the quote before `println` is content, so the string never closes
    with pytest.raises(CkIncompleteInput):
        parser.parse("'hello'println")


def test_incomplete_and_syntax_errors_are_distinct():
    assert issubclass(CkIncompleteInput, CkParseError)
    assert issubclass(CkSyntaxError, CkParseError)
    assert not issubclass(CkIncompleteInput, CkSyntaxError)
    assert not issubclass(CkSyntaxError, CkIncompleteInput)


@given(st.integers(min_value=INT_MIN, max_value=INT_MAX))
def test_integer_literals_round_trip(n):
    value = parse_number(str(n))
    assert value == n
    assert type(value) is int


@given(st.text(alphabet=st.sampled_from("ab1 ()'\"`#$=\n"), max_size=40))
def test_final_parse_either_compiles_or_fails_cleanly(source):
    p = Parser(Environment())
    try:
        fn = p.parse(source, final=True)
    except CkSyntaxError:
        pass
    else:
        assert isinstance(fn, Function)
    assert not p.is_pending()


def test_very_long_digit_strings_read_as_float():
    assert parse_number("1" * 5000) == math.inf
    assert parse_number("-" + "9" * 400) == -math.inf
    # leading zeros do not count against the integer range
    assert parse_number("0" * 30 + "42") == 42


def test_string_closes_before_sigil(parser, env):
    fn = parser.parse("'hi'$=s $s'more'$t")
    s, t = env.symbols.lookup("s"), env.symbols.lookup("t")
    ops = fn.chunk.instructions()
    assert ops[1] == (Opcode.SET, s)
    assert ops[-1] == (Opcode.LOAD, t)
    literals = [env.lookup(sid) for op, sid in ops if env.name_of(sid) is None]
    assert literals == ["hi", "more"]
