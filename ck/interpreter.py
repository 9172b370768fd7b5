from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, TextIO

from ck import CkValue, config
from ck.errors import CkError, CkIncompleteInput
from ck.types.environment import Environment
from ck.types.values import render
from ck.builtin.env_builtin import register
from ck.reader.parser import Parser
from ck.compiler.function import Function
from ck.compiler.vm import VM
from ck.compiler.disasm import disassemble_chunk


PROMPT = "> "
CONTINUE_PROMPT = ". "
BUFFER_SYMBOL = "buffer"


class Interpreter:
    """
    Owns one Environment, Parser and VM, so that globals and the operand
    stack persist across calls. Code can be fed whole (`eval`, `run_file`)
    or line by line (`feed`, `repl`).
    """

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None):
        self.env = Environment()
        register(self.env)
        self.parser = Parser(self.env)
        self.vm = VM(self.env, stdin=stdin, stdout=stdout)

    @property
    def stack(self) -> list[CkValue]:
        return self.vm.stack

    def run(self, fn: Function) -> CkValue:
        if config.disasm_enabled():
            print("=== DISASM ===", file=sys.stderr)
            print(disassemble_chunk(fn.chunk, self.env), file=sys.stderr)
            print("=== END DISASM ===", file=sys.stderr)
        result = self.vm.run(fn)
        if config.trace_enabled():
            print("stack: [" + " ".join(render(v) for v in self.vm.stack) + "]", file=sys.stderr)
        return result

    def eval(self, code: str, final: bool = True) -> CkValue:
        """Compile and run `code`; returns the stack top (Nil if empty)."""
        if config.trace_enabled():
            print(f"code: {code!r}", file=sys.stderr)
        fn = self.parser.parse(code, final=final)
        return self.run(fn)

    def feed(self, line: str) -> bool:
        """Feed one line; True once a complete chunk has been run, False if
        more input is needed."""
        try:
            fn = self.parser.parse(line)
        except CkIncompleteInput:
            return False
        self.run(fn)
        return True

    def run_file(self, path: str | Path) -> CkValue:
        text = Path(path).read_text(encoding="utf-8")
        return self.eval(text, final=True)

    def load_buffer(self, path: str | Path) -> None:
        """Bind the text of `path` to the global `buffer`."""
        self.env.define(BUFFER_SYMBOL, Path(path).read_text(encoding="utf-8"))

    def repl(self, stdin: Optional[TextIO] = None, stderr: Optional[TextIO] = None) -> None:
        """Read-eval loop until end of input. Errors are reported and the
        loop carries on with a clean parser; the stack is kept."""
        stdin = stdin if stdin is not None else sys.stdin
        stderr = stderr if stderr is not None else sys.stderr
        while True:
            stderr.write(CONTINUE_PROMPT if self.parser.is_pending() else PROMPT)
            stderr.flush()
            line = stdin.readline()
            if not line:
                break
            try:
                if not self.feed(line):
                    stderr.write("Incomplete\n")
            except CkError as ex:
                self.parser.reset()
                stderr.write(f"{type(ex).__name__}: {ex}\n")
        # end of input inside an open block or string
        if self.parser.is_pending():
            stderr.write("Incomplete input discarded\n")
            self.parser.reset()
