from ck.types.values import Magic
from ck_lsp.indexer import build_index, BUILTIN_SIGNATURES


def test_every_builtin_has_a_signature():
    assert set(BUILTIN_SIGNATURES) == {m.word for m in Magic}


def test_definitions_and_references():
    idx = build_index("( $x $x * ) $=sq\n4 $=x sq println\nfoo")
    assert idx.symbols["sq"].kind == "function"
    assert (idx.symbols["sq"].line, idx.symbols["sq"].col) == (0, 12)
    assert idx.symbols["x"].kind == "var"
    assert idx.symbols["x"].line == 1
    calls = [r.name for r in idx.references if r.kind == "call"]
    assert calls == ["*", "sq", "println", "foo"]
    loads = [r.name for r in idx.references if r.kind == "load"]
    assert loads == ["x", "x"]
    assert [r.name for r in idx.undefined_calls()] == ["foo"]
    assert idx.parse_error is None


def test_numbers_and_strings_are_not_references():
    idx = build_index("1 -2.5 'word' \"x y\"")
    assert idx.references == []


def test_unmatched_close():
    idx = build_index("1\n  )")
    assert idx.unmatched_close == [(1, 2)]
    assert idx.parse_error == "Unexpected ')'"


def test_open_block():
    idx = build_index("(1 (2)")
    assert idx.paren_balance == 1
    assert idx.parse_error is not None


def test_unterminated_string():
    idx = build_index("1 'abc")
    assert idx.unterminated_string == (0, 2)
    assert idx.parse_error is not None


def test_comments_are_skipped():
    idx = build_index("# $=hidden (\n$=shown")
    assert list(idx.symbols) == ["shown"]
    assert idx.paren_balance == 0
