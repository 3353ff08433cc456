"""litpage expression language.

A JavaScript template-literal subset evaluated by a tree-walking
interpreter. Templates never reach Python's ``eval`` or ``exec``.

Pipeline:
    template source → split_template() → Parser → Expr nodes → Interpreter

"""

from litpage.expr.interpreter import ArrowFunction, Interpreter
from litpage.expr.lexer import ExpressionSegment, Lexer, split_template
from litpage.expr.nodes import Expr
from litpage.expr.parser import Parser, parse_expression
from litpage.expr.runtime import UNDEFINED, NativeFunction, build_globals, to_str

__all__ = [
    "UNDEFINED",
    "ArrowFunction",
    "Expr",
    "ExpressionSegment",
    "Interpreter",
    "Lexer",
    "NativeFunction",
    "Parser",
    "build_globals",
    "parse_expression",
    "split_template",
    "to_str",
]
