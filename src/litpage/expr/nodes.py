"""Expression nodes for the litpage expression language.

The parser turns each ``${...}`` segment into a tree of these nodes and
the interpreter walks it. Nodes are immutable so a parsed template can be
rendered concurrently.

"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Node:
    """Base class for all expression nodes.

    All nodes track their source location for error reporting.

    """

    lineno: int
    col_offset: int


@dataclass(frozen=True, slots=True)
class Expr(Node):
    """Base class for expressions."""


@dataclass(frozen=True, slots=True)
class Const(Expr):
    """Literal value: string, number, boolean, null or undefined."""

    value: object


@dataclass(frozen=True, slots=True)
class Name(Expr):
    """Variable reference: ${user}"""

    name: str


@dataclass(frozen=True, slots=True)
class TemplateLiteral(Expr):
    """Backtick string: `<li>${item}</li>`

    ``parts`` alternates cooked text (str) and expressions.
    """

    parts: Sequence[str | Expr]


@dataclass(frozen=True, slots=True)
class Array(Expr):
    """Array literal: [a, b, c]"""

    items: Sequence[Expr]


@dataclass(frozen=True, slots=True)
class Object(Expr):
    """Object literal: {a: 1, 'b': 2, c}"""

    keys: Sequence[str]
    values: Sequence[Expr]


@dataclass(frozen=True, slots=True)
class Member(Expr):
    """Member access: obj.attr, or obj?.attr when optional."""

    obj: Expr
    attr: str
    optional: bool = False


@dataclass(frozen=True, slots=True)
class Index(Expr):
    """Computed member access: obj[key], or obj?.[key] when optional."""

    obj: Expr
    key: Expr
    optional: bool = False


@dataclass(frozen=True, slots=True)
class Call(Expr):
    """Function call: func(a, b)"""

    func: Expr
    args: Sequence[Expr] = ()


@dataclass(frozen=True, slots=True)
class New(Expr):
    """Constructor call: new Date()"""

    callee: Expr
    args: Sequence[Expr] = ()


@dataclass(frozen=True, slots=True)
class UnaryOp(Expr):
    """Unary operation: !x, -x, +x, typeof x"""

    op: str
    operand: Expr


@dataclass(frozen=True, slots=True)
class BinOp(Expr):
    """Binary operation: left op right"""

    op: str
    left: Expr
    right: Expr


@dataclass(frozen=True, slots=True)
class Logical(Expr):
    """Short-circuit operation: &&, ||, ??"""

    op: str
    left: Expr
    right: Expr


@dataclass(frozen=True, slots=True)
class Conditional(Expr):
    """Ternary: test ? body : orelse"""

    test: Expr
    body: Expr
    orelse: Expr


@dataclass(frozen=True, slots=True)
class Arrow(Expr):
    """Arrow function with an expression body: (a, b) => a + b"""

    params: Sequence[str]
    body: Expr
