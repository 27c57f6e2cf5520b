"""Lexer and parser for the declarative build script subset."""

from .lexer import Token, TokenKind, quote, tokenize, unquote
from .nodes import (
    Assignment,
    Block,
    Call,
    CallExpr,
    Import,
    Lambda,
    Literal,
    Operation,
    Reference,
    Script,
    Template,
)
from .parser import ScriptParser, parse_script

__all__ = [
    "Token",
    "TokenKind",
    "quote",
    "tokenize",
    "unquote",
    "Assignment",
    "Block",
    "Call",
    "CallExpr",
    "Import",
    "Lambda",
    "Literal",
    "Operation",
    "Reference",
    "Script",
    "Template",
    "ScriptParser",
    "parse_script",
]
