import argparse
import sys
from pathlib import Path

from tinyscript.tinyscript_runtime import ScriptRunner
from tinyscript.tinyscript_lexer import tokenize
from tinyscript.tinyscript_parser import parse
from tinyscript.tinyscript_serialize import serialize
from tinyscript.tinyscript_datatypes import LexError, ParseError


def print_result(result) -> None:
    """Print the output trace of a run, then any error to stderr."""
    for line in result.output:
        print(line)
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)


def dump_script(source: str, what: str, fmt: str) -> int:
    """Dump the token list or syntax tree of a script instead of running it."""
    try:
        tokens = tokenize(source)
        obj = tokens if what == 'tokens' else parse(tokens)
    except (LexError, ParseError, RecursionError) as e:
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        return 1
    print(serialize(obj, fmt=fmt), end='' if fmt == 'yaml' else '\n')
    return 0


def run_script_file(file_path: str, lexical_closures: bool = False) -> int:
    """Run a TinyScript file non-interactively and return the exit status."""
    p = Path(file_path)
    try:
        source = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        return 1
    runner = ScriptRunner(lexical_closures=lexical_closures)
    result = runner.handle_script(source)
    print_result(result)
    return 1 if result.status == 'error' else 0


def repl(lexical_closures: bool = False) -> None:
    print("TinyScript REPL v0.1")
    print("Type 'exit' or press Ctrl+D to quit.")

    runner = ScriptRunner(lexical_closures=lexical_closures)
    while True:
        try:
            line = input(">> ").strip()
        except EOFError:
            print("\nExiting.")
            break
        if not line:
            continue
        if line == "exit":
            break
        # Definitions persist between lines
        print_result(runner.handle_script(line, fresh_scope=False))


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tinyscript", description="Run TinyScript programs.")
    parser.add_argument("file", nargs="?", help="script to run (if empty, starts the REPL)")
    dump = parser.add_mutually_exclusive_group()
    dump.add_argument("--tokens", action="store_true", help="print the token list instead of running")
    dump.add_argument("--ast", action="store_true", help="print the syntax tree instead of running")
    parser.add_argument("--format", choices=("json", "yaml"), default="yaml",
                        help="output format for --tokens/--ast (default: yaml)")
    parser.add_argument("--lexical-closures", action="store_true",
                        help="resolve free variables where a function is written, not where it is called")
    return parser


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)

    if args.file is None:
        if args.tokens or args.ast:
            print("Error: --tokens/--ast require a file", file=sys.stderr)
            return 2
        repl(args.lexical_closures)
        return 0

    if args.tokens or args.ast:
        try:
            source = Path(args.file).read_text(encoding="utf-8")
        except FileNotFoundError:
            print(f"Error: file not found: {args.file}", file=sys.stderr)
            return 1
        return dump_script(source, 'tokens' if args.tokens else 'ast', args.format)

    return run_script_file(args.file, args.lexical_closures)


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nExiting.")
