from __future__ import annotations

"""
A minimal pygls-based Language Server for Chicken Knife.

Features:
- Text synchronization and document store
- Diagnostics: parser errors, unmatched parens, unterminated strings, calls
  to words that are neither builtins nor defined with $=name
- Hover: builtin stack effects and locally defined symbols
- Completion: builtins; variables after a `$` or `$=` sigil
- Document Symbols: from indexer

Note: We avoid running the buffer. We build a static index per document.
"""

from typing import Dict, Optional, List
from dataclasses import dataclass

from pygls.server import LanguageServer
from lsprotocol.types import (
    TEXT_DOCUMENT_COMPLETION,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_DOCUMENT_SYMBOL,
    TEXT_DOCUMENT_HOVER,
    CompletionItem,
    CompletionItemKind,
    CompletionList,
    CompletionOptions,
    CompletionParams,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    DocumentSymbol,
    DocumentSymbolParams,
    Hover,
    HoverParams,
    MarkupContent,
    MarkupKind,
    Position,
    Range,
    SymbolKind,
)

from ck import __version__
from ck.reader.parser import LOAD_SIGIL, SET_SIGIL, is_special_char
from ck_lsp.indexer import build_index, BUILTIN_SIGNATURES, DocumentIndex


SOURCE = "ck-ls"


@dataclass
class DocumentState:
    text: str
    index: DocumentIndex


class CkLanguageServer(LanguageServer):
    CMD_NAME = "ck-ls"

    def __init__(self):
        super().__init__(self.CMD_NAME, __version__)
        self.documents: Dict[str, DocumentState] = {}


ls = CkLanguageServer()


# --- Text sync ---
@ls.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(params: DidOpenTextDocumentParams):
    uri = params.text_document.uri
    text = params.text_document.text or ""
    _update(uri, text)


@ls.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: DidChangeTextDocumentParams):
    uri = params.text_document.uri
    if params.content_changes:
        text = params.content_changes[-1].text
    else:
        text = ls.documents[uri].text if uri in ls.documents else ""
    _update(uri, text)


@ls.feature(TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: DidCloseTextDocumentParams):
    uri = params.text_document.uri
    ls.documents.pop(uri, None)
    ls.publish_diagnostics(uri, [])


def _update(uri: str, text: str) -> None:
    idx = build_index(text)
    ls.documents[uri] = DocumentState(text=text, index=idx)
    ls.publish_diagnostics(uri, compute_diagnostics(idx))


# --- Diagnostics ---
def _mk_range(line: int, col: int, length: int = 1) -> Range:
    return Range(start=Position(line=line, character=col), end=Position(line=line, character=col + length))


def compute_diagnostics(idx: DocumentIndex) -> List[Diagnostic]:
    diags: List[Diagnostic] = []

    for line, col in idx.unmatched_close:
        diags.append(
            Diagnostic(
                range=_mk_range(line, col),
                message="Unexpected ')'",
                severity=DiagnosticSeverity.Error,
                source=SOURCE,
            )
        )

    if idx.paren_balance > 0:
        diags.append(
            Diagnostic(
                range=_mk_range(0, 0),
                message=f"{idx.paren_balance} block(s) left open",
                severity=DiagnosticSeverity.Error,
                source=SOURCE,
            )
        )

    if idx.unterminated_string is not None:
        line, col = idx.unterminated_string
        diags.append(
            Diagnostic(
                range=_mk_range(line, col),
                message="Unterminated string literal",
                severity=DiagnosticSeverity.Error,
                source=SOURCE,
            )
        )

    # The parser's own verdict, when the scan above found nothing to point at
    if idx.parse_error and not diags:
        diags.append(
            Diagnostic(
                range=_mk_range(0, 0),
                message=idx.parse_error,
                severity=DiagnosticSeverity.Error,
                source=SOURCE,
            )
        )

    for ref in idx.undefined_calls():
        diags.append(
            Diagnostic(
                range=_mk_range(ref.line, ref.col, len(ref.name)),
                message=f"'{ref.name}' is not a builtin and is never set with {SET_SIGIL}{ref.name}",
                severity=DiagnosticSeverity.Warning,
                source=SOURCE,
            )
        )
    return diags


# --- Hover ---
@ls.feature(TEXT_DOCUMENT_HOVER)
def on_hover(params: HoverParams) -> Optional[Hover]:
    uri = params.text_document.uri
    state = ls.documents.get(uri)
    if not state:
        return None

    word = _extract_word_at(state.text, params.position)
    if not word:
        return None
    name = _strip_sigil(word)

    contents = None
    if word == name and name in BUILTIN_SIGNATURES:
        contents = f"{name} {BUILTIN_SIGNATURES[name]}"
    elif name in state.index.symbols:
        sdef = state.index.symbols[name]
        contents = f"{name} — {sdef.kind} (defined at {sdef.line+1}:{sdef.col+1})"

    if contents is None:
        return None
    return Hover(contents=MarkupContent(kind=MarkupKind.PlainText, value=contents))


# --- Completion ---
@ls.feature(TEXT_DOCUMENT_COMPLETION, CompletionOptions(trigger_characters=["$", "="]))
def on_completion(params: CompletionParams) -> CompletionList:
    uri = params.text_document.uri
    state = ls.documents.get(uri)
    items: List[CompletionItem] = []
    if not state:
        return CompletionList(is_incomplete=False, items=items)

    prefix = _current_word_prefix(_get_line_prefix(state.text, params.position))
    if prefix.startswith(LOAD_SIGIL):
        # after a sigil only variables make sense
        sigil = SET_SIGIL if prefix.startswith(SET_SIGIL) else LOAD_SIGIL
        for name, sdef in state.index.symbols.items():
            kind = CompletionItemKind.Function if sdef.kind == "function" else CompletionItemKind.Variable
            items.append(CompletionItem(label=f"{sigil}{name}", kind=kind))
        return CompletionList(is_incomplete=False, items=items)

    for name, sig in BUILTIN_SIGNATURES.items():
        items.append(CompletionItem(label=name, kind=CompletionItemKind.Function, detail=sig))
    for name, sdef in state.index.symbols.items():
        if sdef.kind == "function":
            items.append(CompletionItem(label=name, kind=CompletionItemKind.Function))

    return CompletionList(is_incomplete=False, items=items)


# --- Document Symbols ---
@ls.feature(TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def on_document_symbols(params: DocumentSymbolParams) -> Optional[List[DocumentSymbol]]:
    uri = params.text_document.uri
    state = ls.documents.get(uri)
    if not state:
        return None
    symbols: List[DocumentSymbol] = []

    for name, sdef in state.index.symbols.items():
        rng = _mk_range(sdef.line, sdef.col, len(SET_SIGIL) + len(name))
        symbols.append(
            DocumentSymbol(
                name=name,
                kind=SymbolKind.Function if sdef.kind == "function" else SymbolKind.Variable,
                range=rng,
                selection_range=rng,
            )
        )
    return symbols


# --- Helpers ---

def _get_line_prefix(text: str, pos: Position) -> str:
    # Return the text from start of line up to pos
    lines = text.splitlines(True)
    if pos.line >= len(lines):
        return ""
    return lines[pos.line][: pos.character]


def _current_word_prefix(line_prefix: str) -> str:
    start = len(line_prefix)
    while start > 0 and not is_special_char(line_prefix[start - 1]):
        start -= 1
    return line_prefix[start:]


def _strip_sigil(word: str) -> str:
    if word.startswith(SET_SIGIL):
        return word[len(SET_SIGIL):]
    if word.startswith(LOAD_SIGIL):
        return word[len(LOAD_SIGIL):]
    return word


def _extract_word_at(text: str, pos: Position) -> Optional[str]:
    lines = text.splitlines(True)
    if pos.line >= len(lines):
        return None
    line = lines[pos.line]
    start = min(pos.character, len(line))
    while start > 0 and not is_special_char(line[start - 1]):
        start -= 1
    end = pos.character
    while end < len(line) and not is_special_char(line[end]):
        end += 1
    word = line[start:end]
    return word or None


def main() -> None:
    # Run the language server over stdio
    ls.start_io()


if __name__ == "__main__":
    main()
