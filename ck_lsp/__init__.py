"""Chicken Knife Language Server and REPL integration package.

This package provides:
- A pygls-based Language Server for Chicken Knife scripts.
- A lightweight indexer that scans documents for `$=name` definitions without running them.
- A simple TCP REPL server to evaluate code via the existing Interpreter.

Note: The LSP does not run user buffers; it builds a static index from text.
"""

__all__ = [
    "server",
    "indexer",
    "repl_server",
]
