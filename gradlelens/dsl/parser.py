"""
Recursive-descent parser for the declarative build script subset.

Grammar (newline or ';' terminates a statement):

    statement  := 'import' IDENT ('.' IDENT)* ('.' '*')? ('as' IDENT)?
                | ('val' | 'var') IDENT (':' type)? '=' expr
                | name ('=' | '+=') expr
                | 'if' args '{' statement* '}' ('else' ('if' ... | '{' statement* '}'))*
                | name args? '{' statement* '}'
                | name args (IDENT expr)*
    name       := IDENT ('.' IDENT)*
    type       := name ('<' ... '>')? '?'?
    args       := '(' (expr (',' expr)* ','?)? ')'
    expr       := unary (BINARY_OP unary)*
    unary      := ('-' | '!') unary | postfix
    postfix    := primary (('.' | '?.') IDENT (args | lambda)? | args | lambda
                           | '[' expr ']' | '!!' | 'as' '?'? type)*
    primary    := STRING | TEMPLATE | NUMBER | 'true' | 'false' | 'null'
                | IDENT | '(' expr ')' | lambda
    lambda     := '{' (IDENT (',' IDENT)* '->')? ... '}'

Lambda bodies are skipped by brace matching: they only run inside Gradle.
"""

from __future__ import annotations

from dataclasses import replace

from ..core.exceptions import DescriptorParseError
from .lexer import Token, TokenKind, tokenize
from .nodes import (
    Assignment,
    Block,
    Call,
    CallExpr,
    Expr,
    Import,
    Lambda,
    Literal,
    Operation,
    Reference,
    Script,
    Statement,
    Template,
)

_KEYWORDS: dict[str, bool | None] = {"true": True, "false": False, "null": None}
_DECLARATIONS = ("val", "var")
_BINARY_OPS = {"?:", "==", "!=", "<", ">", "<=", ">=", "&&", "||", "+", "-", "*", "/", "%"}
_UNARY_OPS = {"-", "!"}


class ScriptParser:
    """Parser over a token list produced by tokenize()."""

    def __init__(self, tokens: list[Token], source: str = "<script>") -> None:
        self._tokens = tokens
        self._pos = 0
        self.source = source

    def parse(self) -> Script:
        """Parse the whole token stream.

        Returns:
            Script: The parsed statements.

        Raises:
            DescriptorParseError: On any syntax error.
        """
        statements = self._statements(opening=None)
        return Script(statements=tuple(statements), source=self.source)

    # Token helpers

    def _peek(self) -> Token:
        return self._tokens[self._pos]

    def _peek_keyword(self, text: str) -> bool:
        token = self._peek()
        return token.kind == TokenKind.IDENT and token.text == text

    def _advance(self) -> Token:
        token = self._tokens[self._pos]
        if token.kind != TokenKind.EOF:
            self._pos += 1
        return token

    def _error(self, token: Token, message: str) -> DescriptorParseError:
        return DescriptorParseError(
            message=message, source=self.source, line=token.line, column=token.column
        )

    def _describe(self, token: Token) -> str:
        if token.kind == TokenKind.EOF:
            return "end of file"
        if token.kind == TokenKind.NEWLINE:
            return "end of line"
        return repr(token.text)

    def _expect_op(self, text: str) -> Token:
        token = self._advance()
        if not token.is_op(text):
            raise self._error(token, f"Expected '{text}', found {self._describe(token)}")
        return token

    def _expect_ident(self) -> Token:
        token = self._advance()
        if token.kind != TokenKind.IDENT:
            raise self._error(token, f"Expected a name, found {self._describe(token)}")
        return token

    def _skip_newlines(self) -> None:
        while self._peek().kind == TokenKind.NEWLINE:
            self._advance()

    def _skip_separators(self) -> None:
        while self._peek().kind == TokenKind.NEWLINE or self._peek().is_op(";"):
            self._advance()

    # Statements

    def _statements(self, opening: Token | None) -> list[Statement]:
        statements: list[Statement] = []
        while True:
            self._skip_separators()
            token = self._peek()
            if token.kind == TokenKind.EOF:
                if opening is not None:
                    raise self._error(
                        token, f"Unclosed block opened at line {opening.line}, column {opening.column}"
                    )
                return statements
            if token.is_op("}"):
                if opening is None:
                    raise self._error(token, "Unexpected '}'")
                return statements

            statements.append(self._statement())

            following = self._peek()
            if not (
                following.kind in (TokenKind.NEWLINE, TokenKind.EOF)
                or following.is_op(";")
                or following.is_op("}")
            ):
                raise self._error(
                    following, f"Expected end of statement, found {self._describe(following)}"
                )

    def _dotted_name(self) -> tuple[str, Token]:
        first = self._expect_ident()
        parts = [first.text]
        while self._peek().is_op("."):
            self._advance()
            parts.append(self._expect_ident().text)
        return ".".join(parts), first

    def _type(self) -> None:
        """Skip a type such as String, Map<String, Int> or File?."""
        self._dotted_name()
        if self._peek().is_op("<"):
            depth = 0
            while True:
                token = self._advance()
                if token.kind in (TokenKind.EOF, TokenKind.NEWLINE):
                    raise self._error(token, "Unclosed type arguments")
                if token.is_op("<"):
                    depth += 1
                elif token.is_op(">"):
                    depth -= 1
                    if depth == 0:
                        break
        if self._peek().is_op("?"):
            self._advance()

    def _statement(self) -> Statement:
        if self._peek_keyword("import") and self._tokens[self._pos + 1].kind == TokenKind.IDENT:
            return self._import()

        name, first = self._dotted_name()

        if name in _DECLARATIONS and self._peek().kind == TokenKind.IDENT:
            target = self._advance().text
            if self._peek().is_op(":"):
                self._advance()
                self._type()
            self._expect_op("=")
            self._skip_newlines()
            return Assignment(target=target, value=self._expression(), operator=name, line=first.line)

        token = self._peek()
        if token.is_op("=") or token.is_op("+="):
            self._advance()
            self._skip_newlines()
            return Assignment(target=name, value=self._expression(), operator=token.text, line=first.line)

        args: tuple[Expr, ...] = ()
        has_args = token.is_op("(")
        if has_args:
            args = self._arguments()

        if self._peek().is_op("{"):
            body = self._block_body()
            if name == "if":
                body += self._else_branches()
            return Block(name=name, args=args, body=tuple(body), line=first.line)

        if not has_args:
            raise self._error(
                self._peek(), f"Expected '=', '(' or '{{' after '{name}', found {self._describe(self._peek())}"
            )

        infix: list[tuple[str, Expr]] = []
        while self._peek().kind == TokenKind.IDENT:
            keyword = self._advance().text
            infix.append((keyword, self._expression()))
        return Call(name=name, args=args, infix=tuple(infix), line=first.line)

    def _import(self) -> Import:
        first = self._advance()
        parts = [self._expect_ident().text]
        while self._peek().is_op("."):
            self._advance()
            if self._peek().is_op("*"):
                self._advance()
                parts.append("*")
                break
            parts.append(self._expect_ident().text)
        alias = None
        if self._peek_keyword("as"):
            self._advance()
            alias = self._expect_ident().text
        return Import(name=".".join(parts), alias=alias, line=first.line)

    def _block_body(self) -> list[Statement]:
        opening = self._expect_op("{")
        body = self._statements(opening)
        self._expect_op("}")
        return body

    def _else_branches(self) -> list[Statement]:
        """Collect the statements of else branches following an if block."""
        statements: list[Statement] = []
        while True:
            mark = self._pos
            self._skip_newlines()
            if not self._peek_keyword("else"):
                self._pos = mark
                return statements
            self._advance()
            if self._peek_keyword("if"):
                self._advance()
                self._arguments()
            statements.extend(self._block_body())

    # Expressions

    def _arguments(self) -> tuple[Expr, ...]:
        self._expect_op("(")
        args: list[Expr] = []
        self._skip_newlines()
        while not self._peek().is_op(")"):
            args.append(self._expression())
            self._skip_newlines()
            token = self._peek()
            if token.is_op(","):
                self._advance()
                self._skip_newlines()
            elif not token.is_op(")"):
                raise self._error(token, f"Expected ',' or ')', found {self._describe(token)}")
        self._expect_op(")")
        return tuple(args)

    def _lambda(self) -> Lambda:
        opening = self._expect_op("{")
        params: list[str] = []
        if self._lambda_has_params():
            params.append(self._expect_ident().text)
            while self._peek().is_op(","):
                self._advance()
                params.append(self._expect_ident().text)
            self._expect_op("->")

        depth = 1
        while depth:
            token = self._advance()
            if token.kind == TokenKind.EOF:
                raise self._error(
                    token, f"Unclosed lambda opened at line {opening.line}, column {opening.column}"
                )
            if token.is_op("{"):
                depth += 1
            elif token.is_op("}"):
                depth -= 1
        return Lambda(params=tuple(params), line=opening.line)

    def _lambda_has_params(self) -> bool:
        pos = self._pos
        while self._tokens[pos].kind == TokenKind.IDENT:
            following = self._tokens[pos + 1]
            if following.is_op("->"):
                return True
            if not following.is_op(","):
                return False
            pos += 2
        return False

    def _expression(self) -> Expr:
        expr = self._unary()
        while self._peek().kind == TokenKind.OP and self._peek().text in _BINARY_OPS:
            operator = self._advance()
            self._skip_newlines()
            expr = Operation(operator=operator.text, operands=(expr, self._unary()), line=operator.line)
        return expr

    def _unary(self) -> Expr:
        token = self._peek()
        if token.kind == TokenKind.OP and token.text in _UNARY_OPS:
            self._advance()
            operand = self._unary()
            if (
                token.text == "-"
                and isinstance(operand, Literal)
                and isinstance(operand.value, (int, float))
                and not isinstance(operand.value, bool)
            ):
                return Literal(value=-operand.value, line=token.line)
            return Operation(operator=token.text, operands=(operand,), line=token.line)
        return self._postfix(self._primary())

    def _primary(self) -> Expr:
        token = self._peek()
        if token.is_op("{"):
            return self._lambda()
        if token.is_op("("):
            self._advance()
            self._skip_newlines()
            expr = self._expression()
            self._skip_newlines()
            self._expect_op(")")
            return expr

        self._advance()
        if token.kind == TokenKind.STRING:
            return Literal(value=token.text, line=token.line)
        if token.kind == TokenKind.TEMPLATE:
            return Template(parts=token.parts, line=token.line)
        if token.kind == TokenKind.NUMBER:
            number: int | float = float(token.text) if "." in token.text else int(token.text)
            return Literal(value=number, line=token.line)
        if token.kind != TokenKind.IDENT:
            raise self._error(token, f"Expected a value, found {self._describe(token)}")
        if token.text in _KEYWORDS:
            return Literal(value=_KEYWORDS[token.text], line=token.line)
        return Reference(name=token.text, line=token.line)

    def _postfix(self, expr: Expr) -> Expr:
        while True:
            nxt = self._peek()
            if (nxt.is_op("(") or nxt.is_op("{")) and isinstance(expr, Reference):
                receiver, _, callee = expr.name.rpartition(".")
                args = self._arguments() if nxt.is_op("(") else (self._lambda(),)
                expr = CallExpr(
                    callee=callee,
                    args=args,
                    receiver=Reference(name=receiver, line=expr.line) if receiver else None,
                    line=expr.line,
                )
            elif nxt.is_op("{") and isinstance(expr, CallExpr):
                # Trailing lambda: foo(x) { ... }
                expr = replace(expr, args=expr.args + (self._lambda(),))
            elif nxt.is_op(".") or nxt.is_op("?."):
                self._advance()
                member = self._expect_ident()
                if isinstance(expr, Reference):
                    expr = Reference(name=f"{expr.name}.{member.text}", line=expr.line)
                elif self._peek().is_op("("):
                    expr = CallExpr(
                        callee=member.text, args=self._arguments(), receiver=expr, line=expr.line
                    )
                elif self._peek().is_op("{"):
                    expr = CallExpr(
                        callee=member.text, args=(self._lambda(),), receiver=expr, line=expr.line
                    )
                else:
                    raise self._error(member, "Property access on a computed value is not supported")
            elif nxt.is_op("["):
                # props["key"] reads as props.get("key")
                self._advance()
                self._skip_newlines()
                index = self._expression()
                self._skip_newlines()
                self._expect_op("]")
                expr = CallExpr(callee="get", args=(index,), receiver=expr, line=expr.line)
            elif nxt.is_op("!!"):
                self._advance()
            elif nxt.kind == TokenKind.IDENT and nxt.text == "as":
                # Casts do not change the declared value
                self._advance()
                if self._peek().is_op("?"):
                    self._advance()
                self._type()
            else:
                return expr


def parse_script(text: str, source: str = "<script>") -> Script:
    """Tokenize and parse a build script.

    Args:
        text: Script text.
        source: Name used in error messages (usually the file path).

    Returns:
        Script: The syntax tree.
    """
    return ScriptParser(tokenize(text, source), source).parse()
