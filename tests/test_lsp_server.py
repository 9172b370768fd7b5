import pytest

pytest.importorskip("pygls")

from lsprotocol.types import (
    CompletionParams,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    DocumentSymbolParams,
    HoverParams,
    Position,
    SymbolKind,
    TextDocumentContentChangeEvent_Type2,
    TextDocumentIdentifier,
    TextDocumentItem,
    VersionedTextDocumentIdentifier,
)

from ck_lsp import server
from ck_lsp.indexer import build_index


URI = "file:///tmp/test.ck"


@pytest.fixture
def published(monkeypatch):
    sent = {}
    monkeypatch.setattr(server.ls, "publish_diagnostics",
                        lambda uri, diags, *a, **kw: sent.__setitem__(uri, diags))
    server.ls.documents.clear()
    return sent


def _open(text):
    server.did_open(DidOpenTextDocumentParams(
        text_document=TextDocumentItem(uri=URI, language_id="ck", version=1, text=text)))


def test_diagnostics_for_unmatched_close():
    diags = server.compute_diagnostics(build_index("1 )"))
    assert [d.message for d in diags] == ["Unexpected ')'"]
    assert diags[0].severity == DiagnosticSeverity.Error
    assert diags[0].range.start.character == 2


def test_diagnostics_for_undefined_call():
    diags = server.compute_diagnostics(build_index("1 frob"))
    assert len(diags) == 1
    assert diags[0].severity == DiagnosticSeverity.Warning
    assert "'frob'" in diags[0].message


def test_clean_document_has_no_diagnostics():
    assert server.compute_diagnostics(build_index("(1 +) $=inc 2 inc println")) == []


def test_open_change_close_publish(published):
    _open("(")
    assert published[URI][0].message.startswith("1 block(s)")
    server.did_change(DidChangeTextDocumentParams(
        text_document=VersionedTextDocumentIdentifier(uri=URI, version=2),
        content_changes=[TextDocumentContentChangeEvent_Type2(text="()")]))
    assert published[URI] == []
    server.did_close(DidCloseTextDocumentParams(text_document=TextDocumentIdentifier(uri=URI)))
    assert URI not in server.ls.documents
    assert published[URI] == []


def _hover(line, character):
    return server.on_hover(HoverParams(
        text_document=TextDocumentIdentifier(uri=URI),
        position=Position(line=line, character=character)))


def test_hover(published):
    _open("4 $=x\n$x println")
    var = _hover(1, 1)
    assert var.contents.value.startswith("x")
    assert "defined at 1:3" in var.contents.value
    builtin = _hover(1, 5)
    assert builtin.contents.value.startswith("println (")
    assert _hover(5, 0) is None


def _complete(line, character):
    return server.on_completion(CompletionParams(
        text_document=TextDocumentIdentifier(uri=URI),
        position=Position(line=line, character=character)))


def test_completion_after_sigil_offers_variables(published):
    _open("4 $=x\n$")
    labels = [item.label for item in _complete(1, 1).items]
    assert labels == ["$x"]


def test_completion_offers_builtins_and_functions(published):
    _open("(1) $=one\n")
    labels = {item.label for item in _complete(1, 0).items}
    assert {"println", "+", "cons", "one"} <= labels


def test_document_symbols(published):
    _open("(1) $=one 2 $=two")
    symbols = server.on_document_symbols(DocumentSymbolParams(
        text_document=TextDocumentIdentifier(uri=URI)))
    kinds = {s.name: s.kind for s in symbols}
    assert kinds == {"one": SymbolKind.Function, "two": SymbolKind.Variable}
