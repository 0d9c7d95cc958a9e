# tinyscript_runtime.py

from dataclasses import dataclass, field
from typing import Any, List, Optional, Literal, Dict

from tinyscript.tinyscript_lexer import tokenize
from tinyscript.tinyscript_parser import parse
from tinyscript.tinyscript_interpreter import Evaluator
from tinyscript.tinyscript_printer import Printer
from tinyscript.tinyscript_datatypes import (
    Scope, Program, FunctionValue, LexError, ParseError,
    DuplicateDefinition, UndefinedName, NotCallable, InvalidOperands, ControlFlowError,
)

# ===================================================================
# Script Execution
# ===================================================================

ErrorLocation = Dict[str, Any]


@dataclass
class ExecutionResult:
    """The structured result of a script execution."""
    status: Literal['success', 'error']
    error_message: Optional[str] = None
    error_token: Optional[ErrorLocation] = None
    side_effects: List[Dict] = field(default_factory=list)

    @property
    def output(self) -> List[str]:
        """The printed values, in execution order."""
        return [e.get('message', '') for e in self.side_effects if e.get('topics') == ['stdout']]

    def format_error(self) -> str:
        """Formats an error message with line and column if available."""
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "Unknown error")

        # Add a location prefix when we have a token; avoid duplicating the same prefix
        if self.error_token and 'line' in self.error_token:
            line = self.error_token.get('line')
            col = self.error_token.get('col')
            if not msg.startswith("Error on line "):
                col_info = f", col {col}" if col is not None else ""
                return f"Error on line {line}{col_info}: {msg}"
        return msg


class ScriptRunner:
    """Lexes, parses, and executes TinyScript code."""

    def __init__(self, lexical_closures: bool = False):
        self.lexical_closures = lexical_closures
        self.evaluator = Evaluator(lexical_closures=lexical_closures)
        self.root_scope = Scope.global_scope()

    def _format_syntax_error(self, e, source: str) -> tuple[str, Optional[dict]]:
        kind = "LexError" if isinstance(e, LexError) else "ParseError"
        msg = f"{kind}: {e}"
        if e.line is None:
            return msg, None
        token = {'line': e.line, 'col': e.col}
        msg = f"{msg} (line {e.line}, col {e.col})\n{self._source_context(source, e.line, e.col)}"
        return msg, token

    def _format_runtime_error(self, e, source: str, node) -> tuple[str, Optional[dict]]:
        match e:
            case DuplicateDefinition():
                msg = f"DuplicateDefinition: {e}"
            case UndefinedName():
                msg = f"UndefinedName: {e}"
            case NotCallable():
                msg = f"NotCallable: {e}\n{Printer().pformat(e.value)}"
            case InvalidOperands():
                msg = f"InvalidOperands: {e}"
            case ControlFlowError():
                msg = f"InternalError: {e}"
            case ZeroDivisionError():
                msg = f"ZeroDivisionError: {e}"
            case RecursionError():
                msg = "RecursionError: maximum call depth exceeded"
            case _:
                msg = f"InternalError: {type(e).__name__}: {e}"

        token = None
        loc = getattr(node, 'loc', None) if node is not None else None
        if loc and isinstance(loc, dict):
            line = loc.get('line'); col = loc.get('col')
            token = {'line': line, 'col': col}
            if line is not None and col is not None:
                msg = f"{msg}\n(line {line}, col {col})\n{self._source_context(source, line, col)}"

        # Append the TinyScript stacktrace if available
        st = self._format_stacktrace()
        if st:
            msg += "\n" + st

        return msg, token

    def _source_context(self, source: str, line: int, col: Optional[int], radius: int = 2) -> str:
        lines = source.splitlines()
        if not line or line < 1 or line > len(lines):
            return ""
        start = max(1, line - radius)
        end = min(len(lines), line + radius)
        width = len(str(end))
        out = []
        for i in range(start, end + 1):
            prefix = ">" if i == line else " "
            ln = str(i).rjust(width)
            content = lines[i - 1]
            out.append(f"{prefix} {ln} | {content}")
            if i == line and col is not None:
                caret = " " * max(col - 1, 0)
                out.append(f"  {' ' * width} | {caret}^")
        return "\n".join(out)

    def _format_stacktrace(self) -> str:
        stack = getattr(self.evaluator, 'call_stack', None) or []
        if not stack:
            return ""
        pf = Printer().pformat

        def fmt(arg):
            if isinstance(arg, FunctionValue):
                return "fn"
            return pf(arg)

        frames = []
        for frame in stack:
            name = frame.get('name') or 'fn'
            args_s = " ".join(fmt(a) for a in frame.get('args') or []).strip()
            frame_str = f"({name}"
            if args_s:
                frame_str += f" {args_s}"
            frame_str += ")"
            frames.append(frame_str)

        return "TinyScript stacktrace: " + " ".join(frames)

    def _error_result(self, msg: str, token: Optional[dict]) -> ExecutionResult:
        # Emit consolidated stderr side-effect
        self.evaluator.side_effects.append({'topics': ['stderr'], 'message': msg})
        return ExecutionResult(
            status='error',
            error_message=msg,
            error_token=token,
            side_effects=self.evaluator.side_effects
        )

    def parse(self, source_code: str) -> Program:
        """Lexes and parses source code; raises LexError or ParseError."""
        return parse(tokenize(source_code))

    def handle_script(self, source_code: str, *, fresh_scope: bool = True) -> ExecutionResult:
        """The main entry point to execute a script.

        Each run starts from an empty output trace. The global scope is
        recreated unless `fresh_scope` is False (the REPL keeps definitions
        alive between lines).
        """
        self.evaluator.side_effects = []
        self.evaluator.call_stack.clear()
        self.evaluator.current_node = None
        if fresh_scope:
            self.root_scope = Scope.global_scope()

        # 1. Lex and parse
        try:
            program = self.parse(source_code)
        except (LexError, ParseError) as e:
            msg, token = self._format_syntax_error(e, source_code)
            return self._error_result(msg, token)
        except RecursionError:
            return self._error_result("RecursionError: maximum nesting depth exceeded while parsing", None)

        # 2. Evaluate
        try:
            self.evaluator.eval(program, self.root_scope)
        except Exception as e:
            node = self.evaluator.current_node
            msg, token = self._format_runtime_error(e, source_code, node)
            return self._error_result(msg, token)

        return ExecutionResult(status='success', side_effects=self.evaluator.side_effects)
