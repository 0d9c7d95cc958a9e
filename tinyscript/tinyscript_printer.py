"""
A pretty-printer for TinyScript values and syntax trees.
"""
from tinyscript.tinyscript_datatypes import (
    Program, DefStatement, LetStatement, PrintStatement, BlockStatement,
    IfStatement, WhileStatement, CallStatement, ReturnStatement,
    BinaryExpression, FuncCallExpression, NameExpression, IntLiteral, FnLiteral,
    FunctionValue, NO_VALUE, Token, TOKEN_TEXT,
)

# Binding strength of each operator; a child binds tighter than its parent
# when its number is larger.
_PRECEDENCE = {
    "==": 1, "<>": 1, ">=": 1, "<=": 1, ">": 1, "<": 1,
    "+": 2, "-": 2,
    "*": 3, "/": 3,
}
_ATOM = 4


class Printer:
    """Formats TinyScript objects into readable, valid TinyScript source strings."""

    def __init__(self, indent_width=2):
        self._indent_char = " " * indent_width
        self._handlers = self._create_handlers()

    def pformat(self, obj, level=0):
        """Public entry point to format an object."""
        handler = self._get_handler(obj)
        return handler(obj, level)

    def _get_handler(self, obj):
        """Dispatcher to find the correct formatting method."""
        if obj is NO_VALUE: return self._pformat_none
        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        if isinstance(obj, list): return self._pformat_token_list
        # Default to Python's repr for unknown types
        return lambda o, l: repr(o)

    def _create_handlers(self):
        return {
            int: self._pformat_primitive,
            float: self._pformat_float,
            bool: self._pformat_bool,
            type(None): self._pformat_none,
            FunctionValue: self._pformat_function_value,
            Token: self._pformat_token,
            Program: self._pformat_program,
            DefStatement: self._pformat_def,
            LetStatement: self._pformat_let,
            PrintStatement: self._pformat_print,
            BlockStatement: self._pformat_block,
            IfStatement: self._pformat_if,
            WhileStatement: self._pformat_while,
            CallStatement: self._pformat_call,
            ReturnStatement: self._pformat_return,
            BinaryExpression: self._pformat_binary,
            FuncCallExpression: self._pformat_func_call,
            NameExpression: self._pformat_name,
            IntLiteral: self._pformat_int_literal,
            FnLiteral: self._pformat_fn_literal,
        }

    # --- Values ---

    def _pformat_primitive(self, obj, level):
        return str(obj)

    def _pformat_float(self, obj, level):
        # Division is real-valued; whole results print like integers.
        if obj.is_integer():
            return str(int(obj))
        return repr(obj)

    def _pformat_bool(self, obj, level):
        return 'true' if obj else 'false'

    def _pformat_none(self, obj, level):
        return 'none'

    def _pformat_function_value(self, obj, level):
        return self.pformat(obj.node, level)

    def _pformat_token(self, obj, level):
        if obj.lexeme is not None:
            return obj.lexeme
        return TOKEN_TEXT[obj.type]

    def _pformat_token_list(self, obj, level):
        return " ".join(self.pformat(t, level) for t in obj)

    # --- Statements ---

    def _indent(self, level):
        return self._indent_char * level

    def _pformat_program(self, obj, level):
        return "\n".join(self._indent(level) + self.pformat(stmt, level) for stmt in obj.body)

    def _pformat_def(self, obj, level):
        return f"def {obj.name} = {self.pformat(obj.value, level)};"

    def _pformat_let(self, obj, level):
        return f"let {obj.name} = {self.pformat(obj.value, level)};"

    def _pformat_print(self, obj, level):
        return f"print {self.pformat(obj.value, level)};"

    def _pformat_block(self, obj, level):
        if not obj.body:
            return "{}"
        inner_level = level + 1
        lines = [self._indent(inner_level) + self.pformat(stmt, inner_level) for stmt in obj.body]
        return "{\n" + "\n".join(lines) + f"\n{self._indent(level)}}}"

    def _pformat_nested(self, stmt, level):
        """Formats the body of if/while: blocks stay inline, single statements go on their own line."""
        if isinstance(stmt, BlockStatement):
            return " " + self.pformat(stmt, level)
        return "\n" + self._indent(level + 1) + self.pformat(stmt, level + 1)

    def _pformat_if(self, obj, level):
        out = f"if ({self.pformat(obj.condition, level)})" + self._pformat_nested(obj.body, level)
        if obj.else_body is not None:
            sep = " " if isinstance(obj.body, BlockStatement) else "\n" + self._indent(level)
            out += f"{sep}else" + self._pformat_nested(obj.else_body, level)
        return out

    def _pformat_while(self, obj, level):
        return f"while ({self.pformat(obj.condition, level)})" + self._pformat_nested(obj.body, level)

    def _pformat_call(self, obj, level):
        return f"call {self.pformat(obj.expr, level)};"

    def _pformat_return(self, obj, level):
        return f"return {self.pformat(obj.expr, level)};"

    # --- Expressions ---

    def _precedence(self, expr):
        if isinstance(expr, BinaryExpression):
            return _PRECEDENCE[expr.operator]
        return _ATOM

    def _pformat_operand(self, expr, level, min_prec):
        text = self.pformat(expr, level)
        if self._precedence(expr) < min_prec:
            return f"({text})"
        return text

    def _pformat_binary(self, obj, level):
        prec = _PRECEDENCE[obj.operator]
        # Left-associative: the right operand needs parentheses at equal precedence.
        left = self._pformat_operand(obj.left, level, prec)
        right = self._pformat_operand(obj.right, level, prec + 1)
        return f"{left} {obj.operator} {right}"

    def _pformat_func_call(self, obj, level):
        func = self.pformat(obj.func, level)
        if not isinstance(obj.func, (NameExpression, IntLiteral)):
            func = f"({func})"
        args = ", ".join(self.pformat(arg, level) for arg in obj.args)
        return f"{func}({args})"

    def _pformat_name(self, obj, level):
        return obj.name

    def _pformat_int_literal(self, obj, level):
        return str(obj.value)

    def _pformat_fn_literal(self, obj, level):
        params = ", ".join(obj.params)
        return f"fn ({params}) => {self.pformat(obj.body, level)}"
