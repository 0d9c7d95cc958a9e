"""
The core TinyScript interpreter: a tree-walking Evaluator.
"""
import operator
import os
import sys
from typing import Any, List, Optional

from tinyscript.tinyscript_datatypes import (
    Scope, Node, Program, DefStatement, LetStatement, PrintStatement, BlockStatement,
    IfStatement, WhileStatement, CallStatement, ReturnStatement,
    BinaryExpression, FuncCallExpression, NameExpression, IntLiteral, FnLiteral,
    FunctionValue, NO_VALUE, Returning, is_return, unwrap_return, kind_of,
    NotCallable, InvalidOperands, ControlFlowError,
)
from tinyscript.tinyscript_printer import Printer


def _is_number(v) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


_ARITHMETIC = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
}

_ORDERING = {
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
}


def apply_operator(op: str, left: Any, right: Any) -> Any:
    """Applies a binary operator to two already-evaluated operands."""
    if op in _ARITHMETIC or op in _ORDERING:
        if not (_is_number(left) and _is_number(right)):
            raise InvalidOperands(op, left, right)
        fn = _ARITHMETIC.get(op) or _ORDERING[op]
        return fn(left, right)
    if op in ("==", "<>"):
        # Values of different kinds are never equal.
        equal = kind_of(left) == kind_of(right) and left == right
        return equal if op == "==" else not equal
    raise ValueError(f"Unknown operator: {op!r}")


class Evaluator:
    """The TinyScript execution engine."""

    def __init__(self, lexical_closures: bool = False):
        self.printer = Printer()
        self.side_effects: List[Any] = []
        self.call_stack = []
        self.current_node = None
        # When True, function literals capture their defining scope and calls
        # are parented there instead of on the caller's scope.
        self.lexical_closures = lexical_closures

    def _push_frame(self, name, func, args, call_site_node):
        loc = getattr(call_site_node, 'loc', None)
        self.call_stack.append({
            'name': name,
            'func': func,
            'args': args,
            'call_site': loc,
        })

    def _pop_frame(self):
        if self.call_stack:
            self.call_stack.pop()

    def _dbg(self, *parts):
        if os.environ.get("TINYSCRIPT_DEBUG"):
            print("[DBG]", *parts, file=sys.stderr)

    def eval(self, node: Node, scope: Scope) -> Any:
        """Public entry point for evaluation. A return reaching this level is fatal."""
        self.current_node = node
        result = self._eval(node, scope)
        if is_return(result):
            raise ControlFlowError("'return' used outside of a function call")
        return result

    def _exec_statements(self, statements, scope: Scope) -> Optional[Returning]:
        for stmt in statements:
            result = self._eval(stmt, scope)
            # Only a return outcome interrupts the statement sequence.
            if is_return(result):
                return result
        return None

    def _eval(self, node: Node, scope: Scope) -> Any:
        """Recursive dispatcher for evaluating any AST node.

        Statements produce None or a Returning outcome; expressions produce values.
        """
        self.current_node = node
        match node:
            case Program():
                return self._exec_statements(node.body, scope)

            case BlockStatement():
                return self._exec_statements(node.body, scope.create())

            case DefStatement():
                value = self._eval(node.value, scope)
                self.current_node = node
                self._dbg("DEF", node.name, "=", value)
                scope.define(node.name, value)
                return None

            case LetStatement():
                value = self._eval(node.value, scope)
                self.current_node = node
                self._dbg("LET", node.name, "=", value)
                scope.set(node.name, value)
                return None

            case PrintStatement():
                value = self._eval(node.value, scope)
                text = self.printer.pformat(value)
                self.side_effects.append({'topics': ['stdout'], 'message': text, 'value': value})
                return None

            case IfStatement():
                if self._eval(node.condition, scope):
                    return self._eval(node.body, scope)
                if node.else_body is not None:
                    return self._eval(node.else_body, scope)
                return None

            case WhileStatement():
                while self._eval(node.condition, scope):
                    result = self._eval(node.body, scope)
                    if is_return(result):
                        return result
                return None

            case CallStatement():
                self._eval(node.expr, scope)
                return None

            case ReturnStatement():
                return Returning(self._eval(node.expr, scope))

            case BinaryExpression():
                left = self._eval(node.left, scope)
                right = self._eval(node.right, scope)
                self.current_node = node
                return apply_operator(node.operator, left, right)

            case FuncCallExpression():
                return self._eval_call(node, scope)

            case NameExpression():
                return scope.get(node.name)

            case IntLiteral():
                return node.value

            case FnLiteral():
                if self.lexical_closures:
                    return FunctionValue(node, closure=scope)
                return FunctionValue(node)

            case _:
                raise TypeError(f"Unknown node kind: {type(node).__name__}")

    def _eval_call(self, node: FuncCallExpression, scope: Scope) -> Any:
        func = self._eval(node.func, scope)
        args = [self._eval(arg, scope) for arg in node.args]
        self.current_node = node
        if not isinstance(func, FunctionValue):
            raise NotCallable(func)

        name = node.func.name if isinstance(node.func, NameExpression) else 'fn'
        self._dbg("CALL", name, "argc", len(args))
        self._push_frame(name, func, args, node)
        _ok = False
        try:
            result = self.call(func, args, scope)
            _ok = True
        finally:
            # Frames stay on the stack when an error unwinds, for stack traces.
            if _ok:
                self._pop_frame()
        return result

    def call(self, func: FunctionValue, args: List[Any], scope: Scope) -> Any:
        """Calls a function value with already-evaluated arguments.

        `scope` is the caller's scope; unless lexical closures are enabled it
        becomes the parent of the call's scope.
        """
        parent = func.closure if func.closure is not None else scope
        call_scope = parent.create()
        for i, param in enumerate(func.params):
            call_scope.define(param, args[i] if i < len(args) else NO_VALUE)

        # The body yields None unless a return unwound it.
        result = unwrap_return(self._eval(func.node.body, call_scope))
        return NO_VALUE if result is None else result
