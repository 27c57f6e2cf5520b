"""
Tokenizer for the declarative build script subset.

Comments and horizontal whitespace are dropped. Newlines are kept as tokens
because they terminate statements. String literals are decoded: escape
sequences are resolved, and strings holding ``$name`` or ``${expr}``
placeholders become TEMPLATE tokens.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from ..core.exceptions import DescriptorParseError


class TokenKind(str, Enum):
    """Token kinds."""

    STRING = "string"
    TEMPLATE = "template"
    NUMBER = "number"
    IDENT = "ident"
    OP = "op"
    NEWLINE = "newline"
    EOF = "eof"


@dataclass(frozen=True)
class Token:
    """A lexical token with its 1-based position.

    For TEMPLATE tokens ``parts`` alternates text and placeholder sources,
    starting and ending with text.
    """

    kind: TokenKind
    text: str
    line: int
    column: int
    parts: tuple[str, ...] = ()

    def is_op(self, text: str) -> bool:
        return self.kind == TokenKind.OP and self.text == text


_TOKEN_PATTERN = re.compile(
    r"""
    (?P<block_comment>/\*[\s\S]*?\*/)
    |(?P<line_comment>//[^\n]*)
    |(?P<newline>\n)
    |(?P<space>[ \t\r\f]+)
    |(?P<string>"(?:\\.|[^"\\\n])*")
    |(?P<number>\d+(?:\.\d+)?)
    |(?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    |(?P<op>\+=|\?\.|\?:|!!|->|==|!=|<=|>=|&&|\|\||[{}()\[\]=,.;*?:+\-/%<>!])
    """,
    re.VERBOSE,
)

_PLACEHOLDER = re.compile(r"\$(?:\{([^}]*)\}|([A-Za-z_][A-Za-z0-9_]*))")

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", '"': '"', "'": "'", "\\": "\\", "$": "$"}

_QUOTED = {"\\": "\\\\", '"': '\\"', "$": "\\$", "\n": "\\n", "\r": "\\r", "\t": "\\t", "\b": "\\b"}


def quote(value: str) -> str:
    """Write a string literal that tokenizes back to ``value``."""
    return '"' + "".join(_QUOTED.get(char, char) for char in value) + '"'


def unquote(body: str) -> tuple[str, ...]:
    """Decode the body of a string literal.

    Returns:
        One part for a plain string. Strings with placeholders alternate text
        and placeholder source: ``"v$major.${minor}"`` gives
        ``("v", "major", ".", "minor", "")``.

    Raises:
        ValueError: On an unknown escape sequence.
    """
    parts: list[str] = []
    text: list[str] = []
    pos = 0
    while pos < len(body):
        char = body[pos]
        if char == "\\":
            escape = body[pos + 1]
            if escape == "u" and re.fullmatch(r"[0-9A-Fa-f]{4}", body[pos + 2:pos + 6]):
                text.append(chr(int(body[pos + 2:pos + 6], 16)))
                pos += 6
                continue
            if escape not in _ESCAPES:
                raise ValueError(f"Unsupported escape sequence '\\{escape}'")
            text.append(_ESCAPES[escape])
            pos += 2
            continue
        placeholder = _PLACEHOLDER.match(body, pos) if char == "$" else None
        if placeholder is not None:
            parts.append("".join(text))
            parts.append((placeholder.group(1) or placeholder.group(2) or "").strip())
            text = []
            pos = placeholder.end()
            continue
        text.append(char)
        pos += 1
    parts.append("".join(text))
    return tuple(parts)


def tokenize(text: str, source: str = "<script>") -> list[Token]:
    """Split script text into tokens.

    Args:
        text: Script text.
        source: Name used in error messages.

    Returns:
        Tokens, always terminated by an EOF token.

    Raises:
        DescriptorParseError: On characters outside the supported subset,
            bad escapes or an unterminated string or comment.
    """
    tokens: list[Token] = []
    line = 1
    line_start = 0
    pos = 0

    while pos < len(text):
        match = _TOKEN_PATTERN.match(text, pos)
        column = pos - line_start + 1
        if match is None:
            char = text[pos]
            if char == '"':
                message = "Unterminated string literal"
            elif text.startswith("/*", pos):
                message = "Unterminated block comment"
            else:
                message = f"Unexpected character {char!r}"
            raise DescriptorParseError(message=message, source=source, line=line, column=column)

        kind = match.lastgroup
        value = match.group()
        if kind == "string":
            try:
                parts = unquote(value[1:-1])
            except ValueError as e:
                raise DescriptorParseError(
                    message=str(e), source=source, line=line, column=column, cause=e
                ) from e
            if len(parts) == 1:
                tokens.append(Token(TokenKind.STRING, parts[0], line, column))
            else:
                tokens.append(Token(TokenKind.TEMPLATE, value[1:-1], line, column, parts))
        elif kind == "number":
            tokens.append(Token(TokenKind.NUMBER, value, line, column))
        elif kind == "ident":
            tokens.append(Token(TokenKind.IDENT, value, line, column))
        elif kind == "op":
            tokens.append(Token(TokenKind.OP, value, line, column))
        elif kind == "newline":
            tokens.append(Token(TokenKind.NEWLINE, value, line, column))
        elif kind == "block_comment" and "\n" in value:
            # A multi-line comment still separates statements
            tokens.append(Token(TokenKind.NEWLINE, "\n", line, column))

        newlines = value.count("\n")
        if newlines:
            line += newlines
            line_start = pos + value.rindex("\n") + 1
        pos = match.end()

    tokens.append(Token(TokenKind.EOF, "", line, pos - line_start + 1))
    return tokens
