"""Recursive-descent parser for ``${...}`` expressions.

Precedence, lowest first:

    arrow / conditional     x => e      a ? b : c
    nullish / logical or    a ?? b      a || b
    logical and             a && b
    equality                ==  !=  ===  !==
    relational              <  >  <=  >=
    additive                +  -
    multiplicative          *  /  %
    exponent                **          (right associative)
    unary                   !  -  +  typeof
    postfix                 .name  ?.name  [key]  ?.[key]  (args)
    primary                 literals, names, (expr), [..], {..}, `..`, new

There is no assignment, no statements and no comma operator: a template
expression can read and compute, never mutate.

"""

from __future__ import annotations

from collections.abc import Callable

from litpage.environment.exceptions import TemplateSyntaxError
from litpage.expr.lexer import (
    ExpressionSegment,
    Lexer,
    Token,
    TokenType,
    position,
    split_template_literal,
    syntax_error,
)
from litpage.expr.nodes import (
    Array,
    Arrow,
    BinOp,
    Call,
    Conditional,
    Const,
    Expr,
    Index,
    Logical,
    Member,
    Name,
    New,
    Object,
    TemplateLiteral,
    UnaryOp,
)
from litpage.expr.runtime import UNDEFINED

_LITERALS: dict[str, object] = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": UNDEFINED,
    "NaN": float("nan"),
    "Infinity": float("inf"),
}

_RESERVED = frozenset({"true", "false", "null", "undefined", "new", "typeof"})

_EQUALITY_OPS = frozenset({"==", "!=", "===", "!=="})
_RELATIONAL_OPS = frozenset({"<", ">", "<=", ">="})
_ADDITIVE_OPS = frozenset({"+", "-"})
_MULTIPLICATIVE_OPS = frozenset({"*", "/", "%"})


class Parser:
    """Parse one expression span of ``source`` into an ``Expr`` tree."""

    __slots__ = ("_index", "_name", "_source", "_tokens")

    def __init__(self, source: str, start: int, end: int, name: str | None = None):
        self._source = source
        self._name = name
        self._tokens = Lexer(source, start, end, name).tokenize()
        self._index = 0

    # -- token helpers ------------------------------------------------------

    @property
    def _current(self) -> Token:
        return self._tokens[self._index]

    def _peek(self, offset: int = 1) -> Token:
        index = min(self._index + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        if token.type is not TokenType.EOF:
            self._index += 1
        return token

    def _is_op(self, *ops: str) -> bool:
        token = self._current
        return token.type is TokenType.OP and token.value in ops

    def _expect_op(self, op: str) -> Token:
        if not self._is_op(op):
            raise self._error(f"Expected '{op}'")
        return self._advance()

    def _error(self, message: str, token: Token | None = None) -> TemplateSyntaxError:
        token = token or self._current
        if token.type is TokenType.EOF:
            message = f"{message}, got end of expression"
        else:
            message = f"{message}, got {self._describe(token)}"
        return syntax_error(message, self._source, token.pos, self._name)

    @staticmethod
    def _describe(token: Token) -> str:
        if token.type is TokenType.STRING:
            return "string literal"
        if token.type is TokenType.TEMPLATE:
            return "template literal"
        return f"'{token.value}'"

    def _loc(self, token: Token) -> tuple[int, int]:
        return position(self._source, token.pos)

    # -- entry point --------------------------------------------------------

    def parse(self) -> Expr:
        if self._current.type is TokenType.EOF:
            raise syntax_error("Empty expression", self._source, self._current.pos, self._name)
        try:
            expr = self._parse_assignment()
        except RecursionError:
            raise syntax_error(
                "Expression is nested too deeply", self._source, self._current.pos, self._name
            ) from None
        if self._current.type is not TokenType.EOF:
            raise self._error("Unexpected token")
        return expr

    # -- grammar ------------------------------------------------------------

    def _parse_assignment(self) -> Expr:
        """Arrow functions and the conditional operator."""
        arrow = self._try_arrow()
        if arrow is not None:
            return arrow

        start = self._current
        test = self._parse_nullish()
        if not self._is_op("?"):
            return test
        self._advance()
        body = self._parse_assignment()
        self._expect_op(":")
        orelse = self._parse_assignment()
        return Conditional(*self._loc(start), test=test, body=body, orelse=orelse)

    def _try_arrow(self) -> Arrow | None:
        start = self._current
        params: list[str] | None = None

        if start.type is TokenType.NAME and self._peek().type is TokenType.OP and self._peek().value == "=>":
            self._check_param(start)
            params = [str(start.value)]
            self._index += 1
        elif start.type is TokenType.OP and start.value == "(":
            params = self._scan_arrow_params()

        if params is None:
            return None
        self._expect_op("=>")
        body = self._parse_assignment()
        return Arrow(*self._loc(start), params=tuple(params), body=body)

    def _scan_arrow_params(self) -> list[str] | None:
        """Look ahead for ``(a, b) =>``; consume it only on a match."""
        i = self._index + 1
        params: list[str] = []
        tokens = self._tokens
        if tokens[i].type is TokenType.OP and tokens[i].value == ")":
            i += 1
        else:
            while True:
                token = tokens[i]
                if token.type is not TokenType.NAME:
                    return None
                params.append(str(token.value))
                i += 1
                sep = tokens[i]
                if sep.type is TokenType.OP and sep.value == ",":
                    i += 1
                    continue
                if sep.type is TokenType.OP and sep.value == ")":
                    i += 1
                    break
                return None
        following = tokens[i]
        if following.type is not TokenType.OP or following.value != "=>":
            return None
        for offset in range(self._index + 1, i):
            if tokens[offset].type is TokenType.NAME:
                self._check_param(tokens[offset])
        if len(set(params)) != len(params):
            raise syntax_error(
                "Duplicate parameter name", self._source, tokens[self._index].pos, self._name
            )
        self._index = i
        return params

    def _check_param(self, token: Token) -> None:
        if token.value in _RESERVED:
            raise syntax_error(
                f"Unexpected reserved word '{token.value}' as parameter",
                self._source,
                token.pos,
                self._name,
            )

    def _parse_nullish(self) -> Expr:
        left = self._parse_and()
        while self._is_op("||", "??"):
            token = self._advance()
            right = self._parse_and()
            left = Logical(*self._loc(token), op=str(token.value), left=left, right=right)
        return left

    def _parse_and(self) -> Expr:
        left = self._parse_binary(_EQUALITY_OPS, self._parse_equality_operand)
        while self._is_op("&&"):
            token = self._advance()
            right = self._parse_binary(_EQUALITY_OPS, self._parse_equality_operand)
            left = Logical(*self._loc(token), op="&&", left=left, right=right)
        return left

    def _parse_equality_operand(self) -> Expr:
        return self._parse_binary(_RELATIONAL_OPS, self._parse_relational_operand)

    def _parse_relational_operand(self) -> Expr:
        return self._parse_binary(_ADDITIVE_OPS, self._parse_additive_operand)

    def _parse_additive_operand(self) -> Expr:
        return self._parse_binary(_MULTIPLICATIVE_OPS, self._parse_exponent)

    def _parse_binary(self, ops: frozenset[str], operand: Callable[[], Expr]) -> Expr:
        left = operand()
        while self._current.type is TokenType.OP and self._current.value in ops:
            token = self._advance()
            right = operand()
            left = BinOp(*self._loc(token), op=str(token.value), left=left, right=right)
        return left

    def _parse_exponent(self) -> Expr:
        start = self._current
        base = self._parse_unary()
        if not self._is_op("**"):
            return base
        if self._is_unary_start(start):
            raise syntax_error(
                "Unary operator used immediately before exponentiation expression; "
                "wrap it in parentheses",
                self._source,
                start.pos,
                self._name,
            )
        token = self._advance()
        exponent = self._parse_exponent()
        return BinOp(*self._loc(token), op="**", left=base, right=exponent)

    @staticmethod
    def _is_unary_start(token: Token) -> bool:
        if token.type is TokenType.OP:
            return token.value in ("!", "-", "+")
        return token.type is TokenType.NAME and token.value == "typeof"

    def _parse_unary(self) -> Expr:
        token = self._current
        if self._is_op("!", "-", "+"):
            self._advance()
            return UnaryOp(*self._loc(token), op=str(token.value), operand=self._parse_unary())
        if token.type is TokenType.NAME and token.value == "typeof":
            self._advance()
            return UnaryOp(*self._loc(token), op="typeof", operand=self._parse_unary())
        return self._parse_postfix(self._parse_primary())

    def _parse_postfix(self, expr: Expr) -> Expr:
        while True:
            token = self._current
            if self._is_op("."):
                self._advance()
                expr = Member(*self._loc(token), obj=expr, attr=self._member_name())
            elif self._is_op("?."):
                self._advance()
                if self._is_op("["):
                    self._advance()
                    key = self._parse_assignment()
                    self._expect_op("]")
                    expr = Index(*self._loc(token), obj=expr, key=key, optional=True)
                elif self._is_op("("):
                    raise self._error("Optional call '?.(' is not supported")
                else:
                    expr = Member(*self._loc(token), obj=expr, attr=self._member_name(), optional=True)
            elif self._is_op("["):
                self._advance()
                key = self._parse_assignment()
                self._expect_op("]")
                expr = Index(*self._loc(token), obj=expr, key=key)
            elif self._is_op("("):
                self._advance()
                expr = Call(*self._loc(token), func=expr, args=self._parse_arguments())
            elif token.type is TokenType.TEMPLATE:
                raise self._error("Tagged templates are not supported")
            else:
                return expr

    def _member_name(self) -> str:
        token = self._current
        if token.type is not TokenType.NAME:
            raise self._error("Expected property name")
        self._advance()
        return str(token.value)

    def _parse_arguments(self) -> tuple[Expr, ...]:
        """Parse call arguments after '(' up to and including ')'."""
        args: list[Expr] = []
        while not self._is_op(")"):
            args.append(self._parse_assignment())
            if self._is_op(","):
                self._advance()
                continue
            if not self._is_op(")"):
                raise self._error("Expected ',' or ')' in argument list")
        self._advance()
        return tuple(args)

    def _parse_primary(self) -> Expr:
        token = self._current
        lineno, col = self._loc(token)

        if token.type is TokenType.NUMBER or token.type is TokenType.STRING:
            self._advance()
            return Const(lineno, col, value=token.value)

        if token.type is TokenType.TEMPLATE:
            self._advance()
            return self._template_literal(token)

        if token.type is TokenType.NAME:
            name = str(token.value)
            if name in _LITERALS:
                self._advance()
                return Const(lineno, col, value=_LITERALS[name])
            if name == "new":
                return self._parse_new()
            if name == "typeof":
                raise self._error("Unexpected token")
            self._advance()
            return Name(lineno, col, name=name)

        if self._is_op("("):
            self._advance()
            expr = self._parse_assignment()
            self._expect_op(")")
            return expr

        if self._is_op("["):
            self._advance()
            items: list[Expr] = []
            while not self._is_op("]"):
                items.append(self._parse_assignment())
                if self._is_op(","):
                    self._advance()
                    continue
                if not self._is_op("]"):
                    raise self._error("Expected ',' or ']' in array literal")
            self._advance()
            return Array(lineno, col, items=tuple(items))

        if self._is_op("{"):
            return self._parse_object()

        raise self._error("Unexpected token")

    def _parse_new(self) -> Expr:
        token = self._advance()
        lineno, col = self._loc(token)
        callee: Expr = self._parse_primary_for_new()
        while self._is_op("."):
            dot = self._advance()
            callee = Member(*self._loc(dot), obj=callee, attr=self._member_name())
        args: tuple[Expr, ...] = ()
        if self._is_op("("):
            self._advance()
            args = self._parse_arguments()
        return self._parse_postfix(New(lineno, col, callee=callee, args=args))

    def _parse_primary_for_new(self) -> Expr:
        token = self._current
        if token.type is not TokenType.NAME or token.value in _RESERVED:
            raise self._error("Expected constructor name after 'new'")
        self._advance()
        return Name(*self._loc(token), name=str(token.value))

    def _parse_object(self) -> Expr:
        token = self._expect_op("{")
        lineno, col = self._loc(token)
        keys: list[str] = []
        values: list[Expr] = []
        while not self._is_op("}"):
            key_token = self._current
            if key_token.type in (TokenType.NAME, TokenType.STRING):
                key = str(key_token.value)
            elif key_token.type is TokenType.NUMBER:
                key = _number_key(key_token.value)
            else:
                raise self._error("Expected property name in object literal")
            self._advance()

            if self._is_op(":"):
                self._advance()
                values.append(self._parse_assignment())
            elif key_token.type is TokenType.NAME and key not in _RESERVED:
                # Shorthand {name}
                values.append(Name(*self._loc(key_token), name=key))
            else:
                raise self._error("Expected ':' after property name")
            keys.append(key)

            if self._is_op(","):
                self._advance()
                continue
            if not self._is_op("}"):
                raise self._error("Expected ',' or '}' in object literal")
        self._advance()
        return Object(lineno, col, keys=tuple(keys), values=tuple(values))

    def _template_literal(self, token: Token) -> TemplateLiteral:
        start, end = token.value  # type: ignore[misc]
        parts: list[str | Expr] = []
        for part in split_template_literal(self._source, start, end, self._name):
            if isinstance(part, ExpressionSegment):
                parts.append(parse_expression(self._source, part.start, part.end, self._name))
            else:
                parts.append(part)
        return TemplateLiteral(*self._loc(token), parts=tuple(parts))


def _number_key(value: object) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_expression(source: str, start: int, end: int, name: str | None = None) -> Expr:
    """Parse the expression spanning ``source[start:end]``."""
    return Parser(source, start, end, name).parse()
