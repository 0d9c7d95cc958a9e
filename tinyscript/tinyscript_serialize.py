from __future__ import annotations

import dataclasses
import json
from typing import Any, Optional

import yaml

from tinyscript.tinyscript_datatypes import (
    Node, Token, TokenType,
    Program, DefStatement, LetStatement, PrintStatement, BlockStatement,
    IfStatement, WhileStatement, CallStatement, ReturnStatement,
    BinaryExpression, FuncCallExpression, NameExpression, IntLiteral, FnLiteral,
)

_NODE_CLASSES = {
    cls.__name__: cls
    for cls in (
        Program, DefStatement, LetStatement, PrintStatement, BlockStatement,
        IfStatement, WhileStatement, CallStatement, ReturnStatement,
        BinaryExpression, FuncCallExpression, NameExpression, IntLiteral, FnLiteral,
    )
}


# --------------------------
# Helpers
# --------------------------

def to_builtin(obj: Any, *, with_loc: bool = False) -> Any:
    """Convert tokens and syntax trees into plain dict/list/scalar structures."""
    if isinstance(obj, list):
        return [to_builtin(x, with_loc=with_loc) for x in obj]
    if isinstance(obj, Token):
        out: dict = {'type': obj.type.name}
        if obj.lexeme is not None:
            out['lexeme'] = obj.lexeme
        if with_loc and obj.line is not None:
            out['line'] = obj.line
            out['col'] = obj.col
        return out
    if isinstance(obj, Node):
        out = {'tag': type(obj).__name__}
        for f in dataclasses.fields(obj):
            if f.name == 'loc':
                if with_loc and obj.loc:
                    out['loc'] = dict(obj.loc)
                continue
            out[f.name] = to_builtin(getattr(obj, f.name), with_loc=with_loc)
        return out
    return obj


def from_builtin(data: Any) -> Any:
    """Rebuild tokens and syntax trees from the output of to_builtin."""
    if isinstance(data, list):
        return [from_builtin(x) for x in data]
    if not isinstance(data, dict):
        return data
    if 'tag' in data:
        try:
            cls = _NODE_CLASSES[data['tag']]
        except KeyError:
            raise ValueError(f"Unknown node tag: {data['tag']!r}") from None
        kwargs = {k: from_builtin(v) for k, v in data.items() if k != 'tag'}
        return cls(**kwargs)
    if 'type' in data:
        return Token(TokenType[data['type']], data.get('lexeme'), data.get('line'), data.get('col'))
    return {k: from_builtin(v) for k, v in data.items()}


def detect_format(data_hint: Optional[str] = None) -> Optional[str]:
    """
    Returns 'json' or 'yaml' by sniffing the text; JSON documents start with
    '{' or '['. Anything else is treated as YAML.
    """
    if data_hint is None:
        return None
    s = data_hint.lstrip()
    if s.startswith('{') or s.startswith('['):
        return 'json'
    return 'yaml'


# --------------------------
# Public API
# --------------------------

def serialize(value: Any, *, fmt: str, pretty: bool = True, with_loc: bool = False) -> str:
    """
    Convert tokens or a syntax tree into a textual representation.
    - fmt: 'json' | 'yaml'
    """
    f = (fmt or '').lower()
    built = to_builtin(value, with_loc=with_loc)
    if f == 'json':
        return json.dumps(built, ensure_ascii=False, indent=2 if pretty else None)
    if f == 'yaml':
        return yaml.safe_dump(built, sort_keys=False)
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


def deserialize(data: bytes | bytearray | str, *, fmt: Optional[str] = None) -> Any:
    """
    Load tokens or a syntax tree from JSON or YAML text.
    If fmt is None, the format is sniffed from the data.
    """
    text = data.decode('utf-8') if isinstance(data, (bytes, bytearray)) else data
    f = (fmt or detect_format(text) or '').lower()
    if f == 'json':
        built = json.loads(text)
    elif f == 'yaml':
        built = yaml.safe_load(text)
    else:
        raise ValueError(f"Unsupported serialization format: {fmt!r}")
    return from_builtin(built)


__all__ = [
    "to_builtin",
    "from_builtin",
    "detect_format",
    "serialize",
    "deserialize",
]
