"""
Recursive-descent parser producing the TinyScript syntax tree.

Each grammar rule has one method; there is no backtracking. Precedence,
low to high: relational, additive, multiplicative, postfix call, primary.
All binary levels are left-associative.

    Program        := Statement*
    Statement      := Def | Let | Print | Block | If | While | Call | Return
    Def            := 'def' Id '=' Expr ';'
    Let            := 'let' Id '=' Expr ';'
    Print          := 'print' Expr ';'
    Block          := '{' Statement* '}'
    If             := 'if' '(' Expr ')' Statement ('else' Statement)?
    While          := 'while' '(' Expr ')' Statement
    Call           := 'call' Expr ';'
    Return         := 'return' Expr ';'
    Expr           := Relational
    Relational     := Additive ( relOp Additive )*
    Additive       := Multiplicative ( ('+'|'-') Multiplicative )*
    Multiplicative := Postfix ( ('*'|'/') Postfix )*
    Postfix        := Primary ( '(' ArgList ')' )?
    ArgList        := ( Expr (',' Expr)* )?
    Primary        := IntLiteral | FnLiteral | Id | '(' Expr ')'
    FnLiteral      := 'fn' '(' ( Id (',' Id)* )? ')' '=>' Block
"""

from typing import List, Optional

from tinyscript.tinyscript_datatypes import (
    Token, TokenType, TOKEN_TEXT, OPERATORS, ParseError,
    Program, Statement, Expression,
    DefStatement, LetStatement, PrintStatement, BlockStatement, IfStatement,
    WhileStatement, CallStatement, ReturnStatement,
    BinaryExpression, FuncCallExpression, NameExpression, IntLiteral, FnLiteral,
)
from tinyscript.tinyscript_lexer import tokenize

END_OF_INPUT = "end of input"

_RELATIONAL = (TokenType.EQ, TokenType.NE, TokenType.GE, TokenType.LE, TokenType.GT, TokenType.LT)
_ADDITIVE = (TokenType.PLUS, TokenType.MINUS)
_MULTIPLICATIVE = (TokenType.MUL, TokenType.DIV)


def _expected_text(token_type: TokenType) -> str:
    if token_type is TokenType.ID:
        return "identifier"
    if token_type is TokenType.INT_LITERAL:
        return "integer literal"
    return f"'{TOKEN_TEXT[token_type]}'"


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = list(tokens)
        self.index = 0

    # --- Token cursor ---

    def peek(self) -> Optional[Token]:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def _peek_type(self) -> Optional[TokenType]:
        tok = self.peek()
        return tok.type if tok is not None else None

    def forward(self) -> Token:
        tok = self.tokens[self.index]
        self.index += 1
        return tok

    def match(self, token_type: TokenType) -> Token:
        tok = self.peek()
        if tok is not None and tok.type is token_type:
            return self.forward()
        expected = _expected_text(token_type)
        raise self._error(f"Expected token: {expected}", tok, expected=expected)

    def _error(self, message: str, tok: Optional[Token], expected: Optional[str] = None) -> ParseError:
        if tok is None:
            last = self.tokens[-1] if self.tokens else None
            line = last.line if last is not None else None
            col = last.col if last is not None else None
            return ParseError(f"{message}, actual: {END_OF_INPUT}", expected, END_OF_INPUT, line, col)
        actual = tok.describe()
        return ParseError(f"{message}, actual: {actual}", expected, actual, tok.line, tok.col)

    @staticmethod
    def _loc(tok: Optional[Token]) -> Optional[dict]:
        if tok is None or tok.line is None:
            return None
        return {'line': tok.line, 'col': tok.col}

    # --- Statements ---

    def parse_program(self) -> Program:
        first = self.peek()
        statements = []
        while self.index < len(self.tokens):
            statements.append(self.parse_statement())
        return Program(statements, loc=self._loc(first))

    def parse_statement(self) -> Statement:
        match self._peek_type():
            case TokenType.DEF:
                return self.parse_def_statement()
            case TokenType.LET:
                return self.parse_let_statement()
            case TokenType.PRINT:
                return self.parse_print_statement()
            case TokenType.LCURLY:
                return self.parse_block_statement()
            case TokenType.IF:
                return self.parse_if_statement()
            case TokenType.WHILE:
                return self.parse_while_statement()
            case TokenType.CALL:
                return self.parse_call_statement()
            case TokenType.RETURN:
                return self.parse_return_statement()
            case _:
                raise self._error("Unknown statement", self.peek())

    def parse_def_statement(self) -> DefStatement:
        start = self.match(TokenType.DEF)
        name = self.match(TokenType.ID)
        self.match(TokenType.ASSIGN)
        expr = self.parse_expression()
        self.match(TokenType.SEMI)
        return DefStatement(name.lexeme, expr, loc=self._loc(start))

    def parse_let_statement(self) -> LetStatement:
        start = self.match(TokenType.LET)
        name = self.match(TokenType.ID)
        self.match(TokenType.ASSIGN)
        expr = self.parse_expression()
        self.match(TokenType.SEMI)
        return LetStatement(name.lexeme, expr, loc=self._loc(start))

    def parse_print_statement(self) -> PrintStatement:
        start = self.match(TokenType.PRINT)
        expr = self.parse_expression()
        self.match(TokenType.SEMI)
        return PrintStatement(expr, loc=self._loc(start))

    def parse_block_statement(self) -> BlockStatement:
        start = self.match(TokenType.LCURLY)
        statements = []
        while True:
            token_type = self._peek_type()
            if token_type is TokenType.RCURLY:
                self.forward()
                break
            if token_type is None:
                raise self._error(f"Expected token: {_expected_text(TokenType.RCURLY)}", None,
                                  expected=_expected_text(TokenType.RCURLY))
            statements.append(self.parse_statement())
        return BlockStatement(statements, loc=self._loc(start))

    def parse_if_statement(self) -> IfStatement:
        start = self.match(TokenType.IF)
        self.match(TokenType.LPAREN)
        condition = self.parse_expression()
        self.match(TokenType.RPAREN)
        body = self.parse_statement()
        else_body = None
        if self._peek_type() is TokenType.ELSE:
            self.forward()
            else_body = self.parse_statement()
        return IfStatement(condition, body, else_body, loc=self._loc(start))

    def parse_while_statement(self) -> WhileStatement:
        start = self.match(TokenType.WHILE)
        self.match(TokenType.LPAREN)
        condition = self.parse_expression()
        self.match(TokenType.RPAREN)
        body = self.parse_statement()
        return WhileStatement(condition, body, loc=self._loc(start))

    def parse_call_statement(self) -> CallStatement:
        start = self.match(TokenType.CALL)
        expr = self.parse_expression()
        self.match(TokenType.SEMI)
        return CallStatement(expr, loc=self._loc(start))

    def parse_return_statement(self) -> ReturnStatement:
        start = self.match(TokenType.RETURN)
        expr = self.parse_expression()
        self.match(TokenType.SEMI)
        return ReturnStatement(expr, loc=self._loc(start))

    # --- Expressions ---

    def parse_expression(self) -> Expression:
        return self.parse_relational_expression()

    def _parse_binary_level(self, operand, operators) -> Expression:
        expr = operand()
        while self._peek_type() in operators:
            op_tok = self.forward()
            right = operand()
            expr = BinaryExpression(expr, OPERATORS[op_tok.type], right, loc=expr.loc)
        return expr

    def parse_relational_expression(self) -> Expression:
        return self._parse_binary_level(self.parse_additive_expression, _RELATIONAL)

    def parse_additive_expression(self) -> Expression:
        return self._parse_binary_level(self.parse_multiplicative_expression, _ADDITIVE)

    def parse_multiplicative_expression(self) -> Expression:
        return self._parse_binary_level(self.parse_postfix_expression, _MULTIPLICATIVE)

    def parse_postfix_expression(self) -> Expression:
        expr = self.parse_primary_expression()
        if self._peek_type() is TokenType.LPAREN:
            self.forward()
            args = self.parse_argument_list()
            self.match(TokenType.RPAREN)
            expr = FuncCallExpression(expr, args, loc=expr.loc)
        return expr

    def parse_argument_list(self) -> List[Expression]:
        args: List[Expression] = []
        if self._peek_type() is TokenType.RPAREN:
            return args
        args.append(self.parse_expression())
        while self._peek_type() is TokenType.COMMA:
            self.forward()
            args.append(self.parse_expression())
        return args

    def parse_primary_expression(self) -> Expression:
        tok = self.peek()
        match self._peek_type():
            case TokenType.INT_LITERAL:
                self.forward()
                return IntLiteral(int(tok.lexeme), loc=self._loc(tok))
            case TokenType.FN:
                return self.parse_fn_literal()
            case TokenType.ID:
                self.forward()
                return NameExpression(tok.lexeme, loc=self._loc(tok))
            case TokenType.LPAREN:
                self.forward()
                expr = self.parse_expression()
                self.match(TokenType.RPAREN)
                return expr
            case _:
                raise self._error("Unknown token", tok, expected="expression")

    def parse_fn_literal(self) -> FnLiteral:
        start = self.match(TokenType.FN)
        self.match(TokenType.LPAREN)
        params: List[str] = []
        if self._peek_type() is not TokenType.RPAREN:
            params.append(self.match(TokenType.ID).lexeme)
            while self._peek_type() is TokenType.COMMA:
                self.forward()
                params.append(self.match(TokenType.ID).lexeme)
        self.match(TokenType.RPAREN)
        self.match(TokenType.ARROW)
        body = self.parse_block_statement()
        return FnLiteral(params, body, loc=self._loc(start))


def parse(tokens: List[Token]) -> Program:
    """Parses a token list into a Program node."""
    return Parser(tokens).parse_program()


def parse_source(source: str) -> Program:
    """Lexes and parses source text in one step."""
    return parse(tokenize(source))
