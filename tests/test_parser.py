import pytest
from tinyscript.tinyscript_lexer import tokenize
from tinyscript.tinyscript_parser import parse, parse_source, Parser
from tinyscript.tinyscript_datatypes import (
    ParseError,
    Program, DefStatement, LetStatement, PrintStatement, BlockStatement,
    IfStatement, WhileStatement, CallStatement, ReturnStatement,
    BinaryExpression, FuncCallExpression, NameExpression, IntLiteral, FnLiteral,
)


def Int(v):
    return IntLiteral(v)


def Name(n):
    return NameExpression(n)


def Bin(left, op, right):
    return BinaryExpression(left, op, right)


def single_expr(src: str):
    """Parses `print <src>;` and returns the printed expression."""
    program = parse_source(f"print {src};")
    assert len(program.body) == 1
    return program.body[0].value


# Each entry is a tuple: (test_id, source_code, expected_program_body)
TEST_CASES = [
    ("empty_program", "", []),
    ("def", "def x = 1;", [DefStatement("x", Int(1))]),
    ("let", "let x = y;", [LetStatement("x", Name("y"))]),
    ("print", "print 42;", [PrintStatement(Int(42))]),
    ("empty_block", "{}", [BlockStatement([])]),
    ("nested_blocks", "{ { print 1; } }", [BlockStatement([BlockStatement([PrintStatement(Int(1))])])]),
    ("if_without_else", "if (x) print 1;", [IfStatement(Name("x"), PrintStatement(Int(1)), None)]),
    ("if_with_else", "if (x) print 1; else print 2;", [
        IfStatement(Name("x"), PrintStatement(Int(1)), PrintStatement(Int(2)))
    ]),
    ("while", "while (i < 3) { let i = i + 1; }", [
        WhileStatement(
            Bin(Name("i"), "<", Int(3)),
            BlockStatement([LetStatement("i", Bin(Name("i"), "+", Int(1)))]),
        )
    ]),
    ("call", "call f(1, 2);", [CallStatement(FuncCallExpression(Name("f"), [Int(1), Int(2)]))]),
    ("return", "return n;", [ReturnStatement(Name("n"))]),
    ("fn_literal_no_params", "def f = fn () => {};", [DefStatement("f", FnLiteral([], BlockStatement([])))]),
    ("fn_literal_params", "def f = fn (a, b) => { return a; };", [
        DefStatement("f", FnLiteral(["a", "b"], BlockStatement([ReturnStatement(Name("a"))])))
    ]),
]


@pytest.mark.parametrize("test_id, source_code, expected_body", TEST_CASES, ids=[c[0] for c in TEST_CASES])
def test_parsing(test_id, source_code, expected_body):
    assert parse_source(source_code) == Program(expected_body)


def test_multiplication_binds_tighter_than_addition():
    assert single_expr("1 + 2 * 3") == Bin(Int(1), "+", Bin(Int(2), "*", Int(3)))


def test_parentheses_override_precedence():
    assert single_expr("(1 + 2) * 3") == Bin(Bin(Int(1), "+", Int(2)), "*", Int(3))


def test_subtraction_is_left_associative():
    assert single_expr("2 - 3 - 4") == Bin(Bin(Int(2), "-", Int(3)), "-", Int(4))


def test_division_is_left_associative():
    assert single_expr("8 / 4 / 2") == Bin(Bin(Int(8), "/", Int(4)), "/", Int(2))


def test_relational_operators_chain_left():
    assert single_expr("a == b == c") == Bin(Bin(Name("a"), "==", Name("b")), "==", Name("c"))


@pytest.mark.parametrize("op", ["==", "<>", ">=", "<=", ">", "<"])
def test_relational_operators_are_lowest_precedence(op):
    assert single_expr(f"1 + 2 {op} 3 * 4") == Bin(
        Bin(Int(1), "+", Int(2)), op, Bin(Int(3), "*", Int(4))
    )


def test_call_binds_tighter_than_multiplication():
    assert single_expr("2 * f(3)") == Bin(Int(2), "*", FuncCallExpression(Name("f"), [Int(3)]))


def test_call_arguments_are_full_expressions():
    assert single_expr("f(a + 1, g(b))") == FuncCallExpression(
        Name("f"), [Bin(Name("a"), "+", Int(1)), FuncCallExpression(Name("g"), [Name("b")])]
    )


def test_immediately_invoked_fn_literal():
    expr = single_expr("(fn (x) => { return x; })(5)")
    assert isinstance(expr, FuncCallExpression)
    assert isinstance(expr.func, FnLiteral)
    assert expr.args == [Int(5)]


def test_dangling_else_binds_to_nearest_if():
    program = parse_source("if (a) if (b) print 1; else print 2;")
    outer = program.body[0]
    assert outer.else_body is None
    assert outer.body.else_body == PrintStatement(Int(2))


def test_nodes_record_location_of_first_token():
    program = parse_source("def x = 1;\n  print x + 2;")
    assert program.body[0].loc == {'line': 1, 'col': 1}
    assert program.body[1].loc == {'line': 2, 'col': 3}
    assert program.body[1].value.loc == {'line': 2, 'col': 9}


def test_parsing_is_deterministic():
    src = "def f = fn (n) => { if (n < 2) return n; return f(n - 1) + f(n - 2); }; print f(15);"
    tokens_a, tokens_b = tokenize(src), tokenize(src)
    assert tokens_a == tokens_b
    assert parse(tokens_a) == parse(tokens_b)


def test_parse_does_not_consume_callers_token_list():
    tokens = tokenize("print 1;")
    Parser(tokens).parse_program()
    assert len(tokens) == 3


@pytest.mark.parametrize("source,expected,actual", [
    ("def = 1;", "identifier", "'='"),
    ("def x 1;", "'='", "INT_LITERAL(1)"),
    ("print 1", "';'", "end of input"),
    ("if x print 1;", "'('", "ID(x)"),
    ("{ print 1;", "'}'", "end of input"),
    ("def f = fn (a b) => {};", "')'", "ID(b)"),
    ("def f = fn (a) {};", "'=>'", "'{'"),
    ("def f = fn (a) => print a;", "'{'", "'print'"),
    ("call f()();", "';'", "'('"),
])
def test_mismatched_token_reports_expected_and_actual(source, expected, actual):
    with pytest.raises(ParseError) as exc:
        parse_source(source)
    assert exc.value.expected == expected
    assert exc.value.actual == actual
    assert f"Expected token: {expected}, actual: {actual}" == str(exc.value)


@pytest.mark.parametrize("source", ["else print 1;", "x = 1;", "1;", "; print 1;"])
def test_statement_cannot_start_with_token(source):
    with pytest.raises(ParseError) as exc:
        parse_source(source)
    assert str(exc.value).startswith("Unknown statement")


@pytest.mark.parametrize("source", ["print not 1;", "print 1 and 2;", "print 1 or 2;"])
def test_logical_keywords_are_reserved_but_unusable(source):
    with pytest.raises(ParseError):
        parse_source(source)


def test_expression_cannot_start_with_operator():
    with pytest.raises(ParseError) as exc:
        parse_source("print -1;")
    assert str(exc.value) == "Unknown token, actual: '-'"


def test_parse_error_carries_position():
    with pytest.raises(ParseError) as exc:
        parse_source("print 1;\nprint 2 3;")
    assert (exc.value.line, exc.value.col) == (2, 9)
