"""Tree-walking evaluator for parsed expressions.

Walks ``Expr`` nodes against a scope mapping. Nothing here compiles or
executes Python source: the only operations available to a template are
the node types below and the callables placed in its scope.

Error Handling:
    ``JsError`` from the runtime is re-raised as ``TemplateRuntimeError``
    at the innermost node that failed, so the message carries that node's
    line. A name missing from the scope raises ``UndefinedError``.

"""

from __future__ import annotations

from collections import ChainMap
from collections.abc import Callable, Mapping
from typing import Any

from litpage.environment.exceptions import (
    TemplateRuntimeError,
    UndefinedError,
    build_source_snippet,
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
from litpage.expr.runtime import (
    UNDEFINED,
    DateConstructor,
    JsCallable,
    JsError,
    JsTypeError,
    binary_op,
    call,
    get_index,
    get_member,
    to_number,
    to_str,
    truthy,
    typeof,
)


class ArrowFunction(JsCallable):
    """A closure created by an arrow expression.

    Missing arguments are ``undefined``; extra arguments are ignored.
    """

    __slots__ = ("_interpreter", "_node", "_scope")

    def __init__(self, node: Arrow, scope: Mapping[str, Any], interpreter: Interpreter):
        super().__init__("anonymous")
        self._node = node
        self._scope = scope
        self._interpreter = interpreter

    def __call__(self, *args: Any) -> Any:
        params = self._node.params
        frame = {param: args[i] if i < len(args) else UNDEFINED for i, param in enumerate(params)}
        return self._interpreter.eval(self._node.body, ChainMap(frame, self._scope))


class Interpreter:
    """Evaluate expressions from one template.

    Args:
        source: Full template source, used for error snippets.
        name: Template name for error messages.
    """

    __slots__ = ("_dispatch", "name", "source")

    def __init__(self, source: str, name: str | None = None):
        self.source = source
        self.name = name
        self._dispatch: dict[type, Callable[[Any, Mapping[str, Any]], Any]] = {
            Const: self._eval_const,
            Name: self._eval_name,
            TemplateLiteral: self._eval_template_literal,
            Array: self._eval_array,
            Object: self._eval_object,
            Member: self._eval_member,
            Index: self._eval_index,
            Call: self._eval_call,
            New: self._eval_new,
            UnaryOp: self._eval_unary,
            BinOp: self._eval_binop,
            Logical: self._eval_logical,
            Conditional: self._eval_conditional,
            Arrow: self._eval_arrow,
        }

    def evaluate(self, node: Expr, scope: Mapping[str, Any], expression: str | None = None) -> Any:
        """Evaluate ``node`` as one top-level ``${...}`` expression."""
        try:
            return self.eval(node, scope)
        except TemplateRuntimeError as e:
            if expression and e.expression is None:
                e.expression = expression
                e.args = (e._format_message(),)
            raise
        except RecursionError:
            raise self._runtime_error(node, "Maximum call stack size exceeded", expression) from None

    def eval(self, node: Expr, scope: Mapping[str, Any]) -> Any:
        return self._dispatch[type(node)](node, scope)

    # -- errors -------------------------------------------------------------

    def _runtime_error(
        self, node: Expr, message: str, expression: str | None = None
    ) -> TemplateRuntimeError:
        return TemplateRuntimeError(
            message,
            expression=expression,
            template_name=self.name,
            lineno=node.lineno,
            source=self.source,
            source_snippet=build_source_snippet(
                self.source, node.lineno, column=node.col_offset
            ),
        )

    def _wrap(self, node: Expr, error: JsError) -> TemplateRuntimeError:
        return self._runtime_error(node, f"{error.kind}: {error}")

    # -- handlers -----------------------------------------------------------

    def _eval_const(self, node: Const, scope: Mapping[str, Any]) -> Any:
        return node.value

    def _eval_name(self, node: Name, scope: Mapping[str, Any]) -> Any:
        try:
            return scope[node.name]
        except KeyError:
            raise UndefinedError(
                node.name,
                template=self.name,
                lineno=node.lineno,
                available_names=frozenset(scope),
                source_snippet=build_source_snippet(
                    self.source, node.lineno, column=node.col_offset
                ),
                source=self.source,
            ) from None

    def _eval_template_literal(self, node: TemplateLiteral, scope: Mapping[str, Any]) -> str:
        return "".join(
            part if isinstance(part, str) else to_str(self.eval(part, scope)) for part in node.parts
        )

    def _eval_array(self, node: Array, scope: Mapping[str, Any]) -> list[Any]:
        return [self.eval(item, scope) for item in node.items]

    def _eval_object(self, node: Object, scope: Mapping[str, Any]) -> dict[str, Any]:
        return {key: self.eval(value, scope) for key, value in zip(node.keys, node.values)}

    def _eval_member(self, node: Member, scope: Mapping[str, Any]) -> Any:
        obj = self.eval(node.obj, scope)
        if node.optional and (obj is None or obj is UNDEFINED):
            return UNDEFINED
        try:
            return get_member(obj, node.attr)
        except JsError as e:
            raise self._wrap(node, e) from None

    def _eval_index(self, node: Index, scope: Mapping[str, Any]) -> Any:
        obj = self.eval(node.obj, scope)
        if node.optional and (obj is None or obj is UNDEFINED):
            return UNDEFINED
        key = self.eval(node.key, scope)
        try:
            return get_index(obj, key)
        except JsError as e:
            raise self._wrap(node, e) from None

    def _eval_call(self, node: Call, scope: Mapping[str, Any]) -> Any:
        func = self.eval(node.func, scope)
        args = [self.eval(arg, scope) for arg in node.args]
        try:
            if not isinstance(func, JsCallable):
                raise JsTypeError(f"{_describe_callee(node.func)} is not a function")
            return call(func, *args)
        except JsError as e:
            raise self._wrap(node, e) from None

    def _eval_new(self, node: New, scope: Mapping[str, Any]) -> Any:
        callee = self.eval(node.callee, scope)
        args = [self.eval(arg, scope) for arg in node.args]
        if not isinstance(callee, DateConstructor):
            raise self._runtime_error(
                node, f"TypeError: {_describe_callee(node.callee)} is not a constructor"
            )
        try:
            return callee.construct(*args)
        except JsError as e:
            raise self._wrap(node, e) from None

    def _eval_unary(self, node: UnaryOp, scope: Mapping[str, Any]) -> Any:
        if node.op == "typeof":
            # typeof on an unbound name is "undefined", not an error
            if isinstance(node.operand, Name) and node.operand.name not in scope:
                return "undefined"
            return typeof(self.eval(node.operand, scope))
        value = self.eval(node.operand, scope)
        if node.op == "!":
            return not truthy(value)
        number = to_number(value)
        return -number if node.op == "-" else number

    def _eval_binop(self, node: BinOp, scope: Mapping[str, Any]) -> Any:
        left = self.eval(node.left, scope)
        right = self.eval(node.right, scope)
        try:
            return binary_op(node.op, left, right)
        except JsError as e:
            raise self._wrap(node, e) from None

    def _eval_logical(self, node: Logical, scope: Mapping[str, Any]) -> Any:
        left = self.eval(node.left, scope)
        if node.op == "&&":
            return self.eval(node.right, scope) if truthy(left) else left
        if node.op == "||":
            return left if truthy(left) else self.eval(node.right, scope)
        if left is None or left is UNDEFINED:
            return self.eval(node.right, scope)
        return left

    def _eval_conditional(self, node: Conditional, scope: Mapping[str, Any]) -> Any:
        if truthy(self.eval(node.test, scope)):
            return self.eval(node.body, scope)
        return self.eval(node.orelse, scope)

    def _eval_arrow(self, node: Arrow, scope: Mapping[str, Any]) -> ArrowFunction:
        return ArrowFunction(node, scope, self)


def _describe_callee(node: Expr) -> str:
    if isinstance(node, Name):
        return node.name
    if isinstance(node, Member):
        return f"{_describe_callee(node.obj)}.{node.attr}"
    return "expression"
