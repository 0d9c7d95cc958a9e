import json

import pytest
import yaml

from tinyscript.tinyscript_serialize import (
    to_builtin, from_builtin, detect_format, serialize, deserialize,
)
from tinyscript.tinyscript_parser import parse_source
from tinyscript.tinyscript_lexer import tokenize


def test_tokens_to_builtin():
    assert to_builtin(tokenize("print x;")) == [
        {'type': 'PRINT'},
        {'type': 'ID', 'lexeme': 'x'},
        {'type': 'SEMI'},
    ]


def test_tokens_with_location():
    assert to_builtin(tokenize("print\n x;"), with_loc=True)[1] == {
        'type': 'ID', 'lexeme': 'x', 'line': 2, 'col': 2,
    }


def test_tree_to_builtin():
    assert to_builtin(parse_source("print 1 + x;")) == {
        'tag': 'Program',
        'body': [{
            'tag': 'PrintStatement',
            'value': {
                'tag': 'BinaryExpression',
                'left': {'tag': 'IntLiteral', 'value': 1},
                'operator': '+',
                'right': {'tag': 'NameExpression', 'name': 'x'},
            },
        }],
    }


def test_tree_with_location():
    built = to_builtin(parse_source("print x;"), with_loc=True)
    assert built['body'][0]['loc'] == {'line': 1, 'col': 1}
    assert built['body'][0]['value']['loc'] == {'line': 1, 'col': 7}


def test_from_builtin_rebuilds_tree():
    tree = parse_source("def f = fn (a) => { if (a) return 1; else return 2; };")
    assert from_builtin(to_builtin(tree)) == tree


def test_from_builtin_rejects_unknown_tag():
    with pytest.raises(ValueError):
        from_builtin({'tag': 'GotoStatement'})


@pytest.mark.parametrize("text,expected", [
    ('{"tag": "Program"}', 'json'),
    ('  [1, 2]', 'json'),
    ('tag: Program', 'yaml'),
    (None, None),
])
def test_detect_format(text, expected):
    assert detect_format(text) == expected


def test_serialize_json_is_plain_json():
    out = serialize(parse_source("print 1;"), fmt='json')
    assert json.loads(out)['body'][0]['tag'] == 'PrintStatement'


def test_serialize_yaml_keeps_field_order():
    out = serialize(parse_source("print 1;"), fmt='yaml')
    assert out.startswith("tag: Program\n")
    assert yaml.safe_load(out)['body'][0]['value'] == {'tag': 'IntLiteral', 'value': 1}


@pytest.mark.parametrize("fmt", ['json', 'yaml'])
def test_deserialize_restores_tree(fmt):
    tree = parse_source("def x = 1; while (x < 10) let x = x * 2; print x;")
    assert deserialize(serialize(tree, fmt=fmt)) == tree


def test_deserialize_accepts_bytes():
    tokens = tokenize("call f(1);")
    assert deserialize(serialize(tokens, fmt='json').encode('utf-8')) == tokens


def test_unsupported_format():
    with pytest.raises(ValueError):
        serialize([], fmt='toml')
    with pytest.raises(ValueError):
        deserialize("x = 1", fmt='toml')
