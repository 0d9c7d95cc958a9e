"""
Turns TinyScript source text into a flat list of Tokens.

Scanning is strictly left to right with at most one character of
lookahead and no backtracking. Whitespace is skipped; anything that
cannot start a token raises LexError.
"""

from typing import List, Optional

from tinyscript.tinyscript_datatypes import Token, TokenType, KEYWORDS, LexError

_DIGITS = "0123456789"

_SINGLE_CHAR = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LCURLY,
    "}": TokenType.RCURLY,
    ";": TokenType.SEMI,
    ",": TokenType.COMMA,
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.MUL,
    "/": TokenType.DIV,
}

# First char -> [(second char, token)], with the single-char fallback.
_LOOKAHEAD = {
    ">": ([("=", TokenType.GE)], TokenType.GT),
    "<": ([(">", TokenType.NE), ("=", TokenType.LE)], TokenType.LT),
    "=": ([("=", TokenType.EQ), (">", TokenType.ARROW)], TokenType.ASSIGN),
}


def _is_letter(c: str) -> bool:
    return c.isascii() and c.isalpha()


class Lexer:
    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.col = 1

    def _peek(self, offset: int = 0) -> Optional[str]:
        i = self.pos + offset
        return self.source[i] if i < len(self.source) else None

    def _advance(self) -> str:
        c = self.source[self.pos]
        self.pos += 1
        if c == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return c

    def _take_while(self, pred) -> str:
        start = self.pos
        while self.pos < len(self.source) and pred(self.source[self.pos]):
            self._advance()
        return self.source[start:self.pos]

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        while self.pos < len(self.source):
            c = self.source[self.pos]
            line, col = self.line, self.col

            if c.isspace():
                self._advance()
                continue

            if c in _DIGITS:
                text = self._take_while(lambda ch: ch in _DIGITS)
                tokens.append(Token(TokenType.INT_LITERAL, text, line, col))
                continue

            if _is_letter(c):
                text = self._take_while(_is_letter)
                kw = KEYWORDS.get(text)
                if kw is not None:
                    tokens.append(Token(kw, None, line, col))
                else:
                    tokens.append(Token(TokenType.ID, text, line, col))
                continue

            if c in _SINGLE_CHAR:
                self._advance()
                tokens.append(Token(_SINGLE_CHAR[c], None, line, col))
                continue

            if c in _LOOKAHEAD:
                self._advance()
                pairs, fallback = _LOOKAHEAD[c]
                nxt = self._peek()
                token_type = fallback
                for second, tt in pairs:
                    if nxt == second:
                        self._advance()
                        token_type = tt
                        break
                tokens.append(Token(token_type, None, line, col))
                continue

            raise LexError(c, line, col)

        return tokens


def tokenize(source: str) -> List[Token]:
    """Lexes the full input text into an ordered list of tokens."""
    return Lexer(source).tokenize()
