"""Lexer for litpage templates and ``${...}`` expressions.

Two layers:

1. **Template splitting**: ``split_template()`` cuts markup into literal
   text and expression segments. It balances braces and skips over string
   and backtick literals, so ``${items.map(i => `<b>${i}</b>`).join('')}``
   is a single segment.
2. **Tokenizing**: ``Lexer`` turns one expression segment into tokens.

All positions are absolute offsets into the template source so errors can
point at the right line and column however deeply an expression is nested.

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from litpage.environment.exceptions import ErrorCode, TemplateSyntaxError
from litpage.expr.runtime import integer_literal


class TokenType(Enum):
    NUMBER = auto()
    STRING = auto()
    TEMPLATE = auto()
    NAME = auto()
    OP = auto()
    EOF = auto()


@dataclass(frozen=True, slots=True)
class Token:
    """A lexical token.

    For TEMPLATE tokens ``value`` is the ``(start, end)`` span of the body
    between the backticks; the parser splits it further.
    """

    type: TokenType
    value: object
    pos: int


@dataclass(frozen=True, slots=True)
class ExpressionSegment:
    """Span of one ``${...}`` body within the template source."""

    start: int
    end: int


# Longest operators first so "===" wins over "==" and "=".
_OPERATORS: tuple[str, ...] = (
    "===",
    "!==",
    "**",
    "=>",
    "==",
    "!=",
    "<=",
    ">=",
    "&&",
    "||",
    "??",
    "?.",
    "+",
    "-",
    "*",
    "/",
    "%",
    "<",
    ">",
    "!",
    "?",
    ":",
    ".",
    ",",
    "(",
    ")",
    "[",
    "]",
    "{",
    "}",
)

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


def position(source: str, pos: int) -> tuple[int, int]:
    """Return the 1-based line and 0-based column of offset ``pos``."""
    lineno = source.count("\n", 0, pos) + 1
    col = pos - (source.rfind("\n", 0, pos) + 1)
    return lineno, col


def syntax_error(
    message: str,
    source: str,
    pos: int,
    name: str | None = None,
    code: ErrorCode | None = None,
) -> TemplateSyntaxError:
    lineno, col = position(source, pos)
    return TemplateSyntaxError(
        message,
        lineno=lineno,
        name=name,
        source=source,
        col_offset=col,
        code=code,
    )


# ---------------------------------------------------------------------------
# Span scanning
# ---------------------------------------------------------------------------


def scan_string(source: str, pos: int, name: str | None = None) -> int:
    """Skip a quoted string starting at ``pos``; return the offset after it."""
    quote = source[pos]
    i = pos + 1
    n = len(source)
    while i < n:
        c = source[i]
        if c == "\\":
            i += 2
            continue
        if c == quote:
            return i + 1
        if c == "\n":
            break
        i += 1
    raise syntax_error("Unterminated string literal", source, pos, name)


def scan_template_literal(source: str, pos: int, name: str | None = None) -> int:
    """Skip a backtick literal starting at ``pos``; return the offset after it."""
    i = pos + 1
    n = len(source)
    while i < n:
        c = source[i]
        if c == "\\":
            i += 2
            continue
        if c == "`":
            return i + 1
        if c == "$" and source.startswith("{", i + 1):
            i = scan_expression(source, i + 2, name) + 1
            continue
        i += 1
    raise syntax_error("Unterminated template literal", source, pos, name)


def scan_expression(source: str, pos: int, name: str | None = None) -> int:
    """Find the ``}`` closing an expression whose body starts at ``pos``."""
    depth = 0
    i = pos
    n = len(source)
    while i < n:
        c = source[i]
        if c in "'\"":
            i = scan_string(source, i, name)
            continue
        if c == "`":
            i = scan_template_literal(source, i, name)
            continue
        if c == "{":
            depth += 1
        elif c == "}":
            if depth == 0:
                return i
            depth -= 1
        i += 1
    raise syntax_error(
        "Unclosed '${' expression",
        source,
        pos - 2,
        name,
        code=ErrorCode.UNCLOSED_EXPRESSION,
    )


def split_template(source: str, name: str | None = None) -> list[str | ExpressionSegment]:
    """Split markup into literal text and expression segments.

    ``\\${`` in markup renders a literal ``${``. No other escapes are
    processed at this level, so a backslash pair is not an escape of its
    own: ``\\\\${x}`` renders ``\\${x}`` with the expression left as text.

    Example:
        >>> split_template("<h1>${title}</h1>")
        ['<h1>', ExpressionSegment(start=6, end=11), '</h1>']
    """
    segments: list[str | ExpressionSegment] = []
    buf: list[str] = []
    i = 0
    n = len(source)
    while i < n:
        j = source.find("${", i)
        if j == -1:
            buf.append(source[i:])
            break
        if j > 0 and source[j - 1] == "\\":
            buf.append(source[i : j - 1])
            buf.append("${")
            i = j + 2
            continue
        buf.append(source[i:j])
        end = scan_expression(source, j + 2, name)
        if buf:
            text = "".join(buf)
            if text:
                segments.append(text)
            buf = []
        segments.append(ExpressionSegment(j + 2, end))
        i = end + 1
    text = "".join(buf)
    if text:
        segments.append(text)
    return segments


def split_template_literal(
    source: str, start: int, end: int, name: str | None = None
) -> list[str | ExpressionSegment]:
    """Split a backtick literal body into cooked text and expression spans."""
    parts: list[str | ExpressionSegment] = []
    buf: list[str] = []
    i = start
    while i < end:
        c = source[i]
        if c == "\\":
            text, i = _cook_escape(source, i, name)
            buf.append(text)
            continue
        if c == "$" and source.startswith("{", i + 1):
            close = scan_expression(source, i + 2, name)
            if buf:
                parts.append("".join(buf))
                buf = []
            parts.append(ExpressionSegment(i + 2, close))
            i = close + 1
            continue
        buf.append(c)
        i += 1
    if buf:
        parts.append("".join(buf))
    return parts


def _cook_escape(source: str, pos: int, name: str | None) -> tuple[str, int]:
    """Decode the escape sequence at ``pos`` (a backslash)."""
    if pos + 1 >= len(source):
        raise syntax_error("Invalid escape sequence", source, pos, name)
    c = source[pos + 1]
    if c in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[c], pos + 2
    if c == "\n":
        return "", pos + 2
    if c == "x":
        digits = source[pos + 2 : pos + 4]
        if len(digits) == 2 and _is_hex(digits):
            return chr(int(digits, 16)), pos + 4
        raise syntax_error("Invalid hexadecimal escape sequence", source, pos, name)
    if c == "u":
        if source.startswith("{", pos + 2):
            close = source.find("}", pos + 3)
            digits = source[pos + 3 : close] if close != -1 else ""
            if digits and _is_hex(digits) and int(digits, 16) <= 0x10FFFF:
                return chr(int(digits, 16)), close + 1
        else:
            digits = source[pos + 2 : pos + 6]
            if len(digits) == 4 and _is_hex(digits):
                return chr(int(digits, 16)), pos + 6
        raise syntax_error("Invalid Unicode escape sequence", source, pos, name)
    return c, pos + 2


def _is_hex(text: str) -> bool:
    return all(ch in "0123456789abcdefABCDEF" for ch in text)


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


class Lexer:
    """Tokenize the expression between ``start`` and ``end`` of ``source``.

    Example:
        >>> src = "${a ? 'x' : b}"
        >>> [t.value for t in Lexer(src, 2, len(src) - 1).tokenize()]
        ['a', '?', 'x', ':', 'b', None]
    """

    __slots__ = ("_end", "_name", "_pos", "_source")

    def __init__(self, source: str, start: int, end: int, name: str | None = None):
        self._source = source
        self._pos = start
        self._end = end
        self._name = name

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        source = self._source
        end = self._end
        while True:
            while self._pos < end and source[self._pos].isspace():
                self._pos += 1
            if self._pos >= end:
                tokens.append(Token(TokenType.EOF, None, end))
                return tokens

            start = self._pos
            c = source[start]

            if c.isdigit() or (c == "." and start + 1 < end and source[start + 1].isdigit()):
                tokens.append(self._number())
            elif c.isalpha() or c in "_$":
                self._pos += 1
                while self._pos < end and (source[self._pos].isalnum() or source[self._pos] in "_$"):
                    self._pos += 1
                tokens.append(Token(TokenType.NAME, source[start : self._pos], start))
            elif c in "'\"":
                tokens.append(self._string())
            elif c == "`":
                self._pos = scan_template_literal(source, start, self._name)
                tokens.append(Token(TokenType.TEMPLATE, (start + 1, self._pos - 1), start))
            else:
                tokens.append(self._operator())

    def _number(self) -> Token:
        source = self._source
        start = self._pos
        end = self._end
        if source.startswith(("0x", "0X"), start):
            i = start + 2
            while i < end and source[i] in "0123456789abcdefABCDEF":
                i += 1
            if i == start + 2:
                raise syntax_error("Invalid hexadecimal number", source, start, self._name)
            self._pos = i
            return Token(TokenType.NUMBER, integer_literal(source[start + 2 : i], 16), start)

        i = start
        while i < end and source[i].isdigit():
            i += 1
        is_float = False
        if i < end and source[i] == ".":
            is_float = True
            i += 1
            while i < end and source[i].isdigit():
                i += 1
        if i < end and source[i] in "eE":
            j = i + 1
            if j < end and source[j] in "+-":
                j += 1
            if j < end and source[j].isdigit():
                is_float = True
                i = j
                while i < end and source[i].isdigit():
                    i += 1
        if i < end and (source[i].isalpha() or source[i] in "_$"):
            raise syntax_error("Invalid or unexpected token", source, i, self._name)
        text = source[start:i]
        self._pos = i
        value = float(text) if is_float else integer_literal(text)
        return Token(TokenType.NUMBER, value, start)

    def _string(self) -> Token:
        source = self._source
        start = self._pos
        close = scan_string(source, start, self._name)
        if close > self._end:
            raise syntax_error("Unterminated string literal", source, start, self._name)
        buf: list[str] = []
        i = start + 1
        while i < close - 1:
            c = source[i]
            if c == "\\":
                text, i = _cook_escape(source, i, self._name)
                buf.append(text)
                continue
            buf.append(c)
            i += 1
        self._pos = close
        return Token(TokenType.STRING, "".join(buf), start)

    def _operator(self) -> Token:
        source = self._source
        start = self._pos
        for op in _OPERATORS:
            if source.startswith(op, start) and start + len(op) <= self._end:
                # "a?.5:b" is a ternary with .5, not optional chaining
                if op == "?." and start + 2 < self._end and source[start + 2].isdigit():
                    continue
                self._pos = start + len(op)
                return Token(TokenType.OP, op, start)
        raise syntax_error(
            f"Unexpected character {source[start]!r}", source, start, self._name
        )
