"""
Defines the core data types for the TinyScript language runtime.

This module provides the token and syntax-tree classes produced by the
lexer and parser, the runtime values the interpreter works with, the
Scope chain used for variable storage, and the error taxonomy shared by
every stage of the pipeline.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Dict, Any, Optional


# =================================================================
# Errors
# =================================================================

class TinyScriptError(Exception):
    """Base class for every error a TinyScript run can report."""
    pass


class LexError(TinyScriptError):
    def __init__(self, char: str, line: Optional[int] = None, col: Optional[int] = None):
        super().__init__(f"Unknown char '{char}'")
        self.char = char
        self.line = line
        self.col = col


class ParseError(TinyScriptError):
    """An expected token did not match, or nothing could start at the current token."""
    def __init__(self, message: str, expected: Optional[str] = None, actual: Optional[str] = None,
                 line: Optional[int] = None, col: Optional[int] = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual
        self.line = line
        self.col = col


class ScriptRuntimeError(TinyScriptError):
    """Base class for errors raised while evaluating a program."""
    pass


class DuplicateDefinition(ScriptRuntimeError):
    def __init__(self, name: str):
        super().__init__(f"'{name}' already defined in current scope.")
        self.name = name


class UndefinedName(ScriptRuntimeError):
    def __init__(self, name: str):
        super().__init__(f"'{name}' undefined.")
        self.name = name


class NotCallable(ScriptRuntimeError):
    def __init__(self, value: Any):
        super().__init__(f"value of kind '{kind_of(value)}' is not callable")
        self.value = value


class InvalidOperands(ScriptRuntimeError):
    def __init__(self, operator: str, left: Any, right: Any):
        super().__init__(
            f"'{operator}' is not defined for {kind_of(left)} and {kind_of(right)}"
        )
        self.operator = operator
        self.left = left
        self.right = right


class ControlFlowError(TinyScriptError):
    """A return outcome reached the top level without an enclosing call."""
    pass


# =================================================================
# Tokens
# =================================================================

class TokenType(Enum):
    ID = auto()

    # keywords
    AND = auto()
    OR = auto()
    NOT = auto()
    DEF = auto()
    LET = auto()
    PRINT = auto()
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    FN = auto()
    RETURN = auto()
    CALL = auto()

    INT_LITERAL = auto()

    # punctuation
    LPAREN = auto()
    RPAREN = auto()
    LCURLY = auto()
    RCURLY = auto()
    SEMI = auto()
    ARROW = auto()
    COMMA = auto()

    # operators
    ASSIGN = auto()
    EQ = auto()
    NE = auto()
    LT = auto()
    GT = auto()
    LE = auto()
    GE = auto()
    PLUS = auto()
    MINUS = auto()
    MUL = auto()
    DIV = auto()


KEYWORDS: Dict[str, TokenType] = {
    "and": TokenType.AND,
    "or": TokenType.OR,
    "not": TokenType.NOT,
    "def": TokenType.DEF,
    "let": TokenType.LET,
    "print": TokenType.PRINT,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "while": TokenType.WHILE,
    "fn": TokenType.FN,
    "return": TokenType.RETURN,
    "call": TokenType.CALL,
}

# Source spelling of every fixed-text token, used in diagnostics and by the printer.
TOKEN_TEXT: Dict[TokenType, str] = {
    **{tt: kw for kw, tt in KEYWORDS.items()},
    TokenType.LPAREN: "(",
    TokenType.RPAREN: ")",
    TokenType.LCURLY: "{",
    TokenType.RCURLY: "}",
    TokenType.SEMI: ";",
    TokenType.ARROW: "=>",
    TokenType.COMMA: ",",
    TokenType.ASSIGN: "=",
    TokenType.EQ: "==",
    TokenType.NE: "<>",
    TokenType.LT: "<",
    TokenType.GT: ">",
    TokenType.LE: "<=",
    TokenType.GE: ">=",
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.MUL: "*",
    TokenType.DIV: "/",
}

# Binary operator tokens and the operator symbol stored on BinaryExpression.
OPERATORS: Dict[TokenType, str] = {
    tt: TOKEN_TEXT[tt]
    for tt in (TokenType.PLUS, TokenType.MINUS, TokenType.MUL, TokenType.DIV,
               TokenType.EQ, TokenType.NE, TokenType.GE, TokenType.LE,
               TokenType.GT, TokenType.LT)
}


@dataclass(frozen=True)
class Token:
    """An atomic lexical unit. Only identifiers and integer literals carry a lexeme."""
    type: TokenType
    lexeme: Optional[str] = None
    line: Optional[int] = field(default=None, compare=False)
    col: Optional[int] = field(default=None, compare=False)

    def describe(self) -> str:
        if self.lexeme is not None:
            return f"{self.type.name}({self.lexeme})"
        return f"'{TOKEN_TEXT.get(self.type, self.type.name)}'"

    def __repr__(self) -> str:
        if self.lexeme is not None:
            return f"{self.type.name}({self.lexeme})"
        return self.type.name


# =================================================================
# AST Nodes
# =================================================================

def _loc():
    return field(default=None, compare=False, repr=False)


class Node:
    """Base class for all syntax tree nodes."""
    pass


class Statement(Node):
    pass


class Expression(Node):
    pass


@dataclass(frozen=True)
class Program(Node):
    body: List[Statement]
    loc: Optional[dict] = _loc()


@dataclass(frozen=True)
class DefStatement(Statement):
    name: str
    value: Expression
    loc: Optional[dict] = _loc()


@dataclass(frozen=True)
class LetStatement(Statement):
    name: str
    value: Expression
    loc: Optional[dict] = _loc()


@dataclass(frozen=True)
class PrintStatement(Statement):
    value: Expression
    loc: Optional[dict] = _loc()


@dataclass(frozen=True)
class BlockStatement(Statement):
    body: List[Statement]
    loc: Optional[dict] = _loc()


@dataclass(frozen=True)
class IfStatement(Statement):
    condition: Expression
    body: Statement
    else_body: Optional[Statement] = None
    loc: Optional[dict] = _loc()


@dataclass(frozen=True)
class WhileStatement(Statement):
    condition: Expression
    body: Statement
    loc: Optional[dict] = _loc()


@dataclass(frozen=True)
class CallStatement(Statement):
    expr: Expression
    loc: Optional[dict] = _loc()


@dataclass(frozen=True)
class ReturnStatement(Statement):
    expr: Expression
    loc: Optional[dict] = _loc()


@dataclass(frozen=True)
class BinaryExpression(Expression):
    left: Expression
    operator: str
    right: Expression
    loc: Optional[dict] = _loc()


@dataclass(frozen=True)
class FuncCallExpression(Expression):
    func: Expression
    args: List[Expression]
    loc: Optional[dict] = _loc()


@dataclass(frozen=True)
class NameExpression(Expression):
    name: str
    loc: Optional[dict] = _loc()


@dataclass(frozen=True)
class IntLiteral(Expression):
    value: int
    loc: Optional[dict] = _loc()


@dataclass(frozen=True)
class FnLiteral(Expression):
    params: List[str]
    body: BlockStatement
    loc: Optional[dict] = _loc()


# =================================================================
# Runtime Values
# =================================================================

class _NoValueType:
    """The result of a call that finished without returning."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "NO_VALUE"


NO_VALUE = _NoValueType()


class FunctionValue:
    """A callable value referencing the FnLiteral node it was produced from.

    `closure` is only set when the evaluator runs with lexical closures;
    by default calls are parented on the caller's scope instead.
    """
    def __init__(self, node: FnLiteral, closure: Optional['Scope'] = None):
        self.node = node
        self.closure = closure

    @property
    def params(self) -> List[str]:
        return self.node.params

    def __eq__(self, other):
        if not isinstance(other, FunctionValue):
            return NotImplemented
        # Two function values are the same function when they come from the same literal.
        return self.node is other.node and self.closure is other.closure

    def __hash__(self):
        return hash((id(self.node), id(self.closure)))

    def __repr__(self) -> str:
        from tinyscript.tinyscript_printer import Printer
        return Printer().pformat(self)


def kind_of(value: Any) -> str:
    """Names the runtime kind of a value for diagnostics."""
    match value:
        case bool():
            return "boolean"
        case int() | float():
            return "integer"
        case FunctionValue():
            return "function"
        case _NoValueType():
            return "none"
        case _:
            return type(value).__name__


# =================================================================
# Control-flow outcome
# =================================================================

class Returning:
    """Statement outcome carrying a `return` value up to the nearest call boundary."""
    __slots__ = ("value",)

    def __init__(self, value: Any):
        self.value = value

    def __repr__(self) -> str:
        return f"Returning({self.value!r})"

    def __eq__(self, other):
        if not isinstance(other, Returning):
            return NotImplemented
        return self.value == other.value


def is_return(x) -> bool:
    return isinstance(x, Returning)


def unwrap_return(x):
    return x.value if is_return(x) else x


# =================================================================
# Scope
# =================================================================

class Scope:
    """A node in the scope tree: a name -> value mapping plus a parent link.

    The parent is fixed at creation. Lookups (`get`, `set`) walk from the
    receiving scope up to the global scope; `define` only ever looks at the
    receiver's own bindings, so a child may shadow a parent's name.
    """
    def __init__(self, parent: Optional['Scope'] = None):
        self.bindings: Dict[str, Any] = {}
        self._parent = parent

    @classmethod
    def global_scope(cls) -> 'Scope':
        return cls(None)

    @property
    def parent(self) -> Optional['Scope']:
        return self._parent

    def create(self) -> 'Scope':
        """Returns a new child scope whose parent is this scope."""
        return Scope(parent=self)

    def define(self, name: str, value: Any):
        if name in self.bindings:
            raise DuplicateDefinition(name)
        self.bindings[name] = value

    def set(self, name: str, value: Any):
        owner = self.find_owner(name)
        if owner is None:
            raise UndefinedName(name)
        owner.bindings[name] = value

    def get(self, name: str) -> Any:
        owner = self.find_owner(name)
        if owner is None:
            raise UndefinedName(name)
        return owner.bindings[name]

    def find_owner(self, name: str) -> Optional['Scope']:
        """Finds the nearest Scope in the chain (self -> parent -> ...) that binds name."""
        scope = self
        while scope is not None:
            if name in scope.bindings:
                return scope
            scope = scope._parent
        return None

    def __contains__(self, name: Any) -> bool:
        """Checks if a name is visible from this Scope."""
        return isinstance(name, str) and self.find_owner(name) is not None

    def keys(self):
        """Returns a view of names bound in this scope only."""
        return self.bindings.keys()

    def __repr__(self) -> str:
        keys = ', '.join(self.bindings.keys())
        parent_id = f", parent=#{id(self.parent)}" if self.parent else ""
        return f"<Scope bindings=[{keys}]{parent_id}>"
