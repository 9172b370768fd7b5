#!/usr/bin/env python3
"""
Command line for Chicken Knife, a small stack-based text processor.

Usage:
    python -m ck [options] [script files]

Examples:
    # Run a script
    python -m ck hello.ck

    # Inline code, then drop into the REPL
    python -m ck -c '2 3 + println' -i

    # Make a file's text available as the global `buffer`
    python -m ck -f notes.txt -c '$buffer println'
"""

import argparse
import sys

from ck import __version__, config
from ck.errors import CkError
from ck.interpreter import Interpreter


PROG = "ck"


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="A simple & light-weight stack-based text processor",
    )
    parser.add_argument("-i", dest="interactive", action="store_true",
                        help="interactive mode (after running any code given)")
    parser.add_argument("-c", metavar="CODE", dest="codes", action="append", default=[],
                        help="inline code (may be repeated); code and script files run "
                             "in command line order")
    parser.add_argument("-f", metavar="FILE", dest="buffer_file",
                        help="file for initial buffer content")
    parser.add_argument("-v", "--version", action="version",
                        version=f"{PROG} {__version__}")
    parser.add_argument("scripts", metavar="FILE", nargs="*",
                        help="script files")
    return parser


def _report(source: str, ex: CkError) -> None:
    print(f"{source}: {type(ex).__name__}: {ex}", file=sys.stderr)


def source_order(argv: list[str]) -> list[tuple[str, str]]:
    """Script files and -c snippets as ("file"|"code", text), in command line
    order. Expects argv that build_arg_parser() already accepted."""
    sources = []
    args = iter(argv)
    for arg in args:
        if arg == "--":
            sources.extend(("file", rest) for rest in args)
            break
        if arg.startswith("--"):
            continue
        if arg.startswith("-") and len(arg) > 1:
            # clustered short flags: -i, -ic CODE, -cCODE, -fFILE
            flags = arg[1:]
            for k, flag in enumerate(flags):
                if flag in "cf":
                    value = flags[k + 1:] or next(args, "")
                    if flag == "c":
                        sources.append(("code", value))
                    break
            continue
        sources.append(("file", arg))
    return sources


def run_sources(itp: Interpreter, sources: list[tuple[str, str]]) -> int:
    """Run script files and inline snippets in order; exit status of the
    first failure."""
    code_index = 0
    for kind, text in sources:
        try:
            if kind == "file":
                itp.run_file(config.resolve_script(text))
            else:
                code_index += 1
                itp.eval(text, final=True)
        except OSError as ex:
            print(f"Failed to open file: {text} ({ex.strerror})", file=sys.stderr)
            return 1
        except CkError as ex:
            _report(text if kind == "file" else f"<arg-{code_index}>", ex)
            return 1
    return 0


def main(argv=None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = build_arg_parser().parse_intermixed_args(argv)
    itp = Interpreter()
    try:
        if args.buffer_file:
            try:
                itp.load_buffer(args.buffer_file)
            except OSError:
                print(f"Failed to load buffer file: {args.buffer_file}", file=sys.stderr)
                return 1
        status = run_sources(itp, source_order(argv))
        if status:
            return status
        if not (args.scripts or args.codes) or args.interactive:
            itp.repl()
    except KeyboardInterrupt:
        print("Interrupted")
        return 0
    finally:
        sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
