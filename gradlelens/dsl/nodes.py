"""
Syntax tree for the declarative build script subset.

Statements are imports, assignments, calls and blocks; expressions are
literals, string templates, dotted references, calls, lambdas and operator
applications. Every node records the line it starts on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class Literal:
    """A string, integer, boolean or null literal."""

    value: str | int | float | bool | None
    line: int = 0


@dataclass(frozen=True)
class Reference:
    """A dotted name such as JavaVersion.VERSION_17 or flutter.minSdkVersion."""

    name: str
    line: int = 0


@dataclass(frozen=True)
class CallExpr:
    """A call used as a value, e.g. getDefaultProguardFile("x")."""

    callee: str
    args: tuple[Expr, ...] = ()
    receiver: Expr | None = None
    line: int = 0

    @property
    def qualified_name(self) -> str:
        """Callee including a reference or call receiver, e.g. signingConfigs.getByName."""
        if isinstance(self.receiver, Reference):
            return f"{self.receiver.name}.{self.callee}"
        if isinstance(self.receiver, CallExpr):
            return f"{self.receiver.qualified_name}.{self.callee}"
        return self.callee


@dataclass(frozen=True)
class Template:
    """A string with $name or ${expr} placeholders; odd parts are placeholder sources."""

    parts: tuple[str, ...]
    line: int = 0

    @property
    def placeholders(self) -> tuple[str, ...]:
        return self.parts[1::2]


@dataclass(frozen=True)
class Lambda:
    """A lambda literal: { it -> ... }."""

    params: tuple[str, ...] = ()
    body: tuple[Statement, ...] = ()
    line: int = 0


@dataclass(frozen=True)
class Operation:
    """A unary or binary operator application: a ?: b, x + 1, !flag."""

    operator: str
    operands: tuple[Expr, ...]
    line: int = 0


Expr = Union[Literal, Template, Reference, CallExpr, Lambda, Operation]


@dataclass(frozen=True)
class Import:
    """import java.util.Properties, optionally with an alias."""

    name: str
    alias: str | None = None
    line: int = 0


@dataclass(frozen=True)
class Assignment:
    """target = value, or target += value."""

    target: str
    value: Expr
    operator: str = "="
    line: int = 0


@dataclass(frozen=True)
class Call:
    """A call statement with optional infix pairs: id("x") version "1" apply false."""

    name: str
    args: tuple[Expr, ...] = ()
    infix: tuple[tuple[str, Expr], ...] = ()
    line: int = 0


@dataclass(frozen=True)
class Block:
    """name { ... } or name(args) { ... }."""

    name: str
    args: tuple[Expr, ...] = ()
    body: tuple[Statement, ...] = field(default_factory=tuple)
    line: int = 0

    @property
    def label(self) -> str:
        """Block name, or the first string argument for create("x") / getByName("x")."""
        if self.args and isinstance(self.args[0], Literal) and isinstance(self.args[0].value, str):
            return self.args[0].value
        return self.name


Statement = Union[Import, Assignment, Call, Block]


@dataclass(frozen=True)
class Script:
    """A parsed build script."""

    statements: tuple[Statement, ...]
    source: str = "<script>"
