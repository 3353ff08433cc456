"""litpage Template: parsed markup ready for evaluation.

A Template splits its source into literal text and ``${...}`` segments
once, at construction, and parses every segment into expression nodes.
``render()`` then only walks nodes against a fresh safe context.

Architecture:
    ```
    Template
    ├── _parts: list[str | _Segment]   # literal text and parsed expressions
    ├── _interpreter: Interpreter       # tree walker bound to this source
    └── _name, _source                  # for error messages
    ```

Thread-Safety:
- Parsed nodes are immutable
- ``render()`` builds its context and output buffer locally
- Multiple threads or tasks can render the same Template at once

"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from litpage.environment.exceptions import (
    TemplateError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    build_source_snippet,
)
from litpage.expr import (
    Expr,
    ExpressionSegment,
    Interpreter,
    parse_expression,
    split_template,
    to_str,
)
from litpage.template.context import build_safe_context


@dataclass(frozen=True, slots=True)
class _Segment:
    node: Expr
    text: str


class Template:
    """Markup with embedded expressions, parsed and ready to render.

    Every ``${...}`` is evaluated against the safe context and replaced by
    its JavaScript string form. There are no control-flow tags:
    conditionals and loops are expressions.

    Args:
        name: Template identity used in error messages
        source: Markup to evaluate
        display_source: Original markup to show in errors when ``source``
            has been rewritten (custom elements swapped for placeholders)

    Raises:
        TemplateSyntaxError: If an expression is malformed

    Example:
            >>> t = Template("greeting.html", "<p>${show ? 'A' : 'B'}</p>")
            >>> t.render({"show": True})
            '<p>A</p>'
            >>> t.render({"items": [1, 2]}, show=False)
            '<p>B</p>'

    """

    __slots__ = ("_display_source", "_interpreter", "_name", "_parts", "_source")

    def __init__(self, name: str | None, source: str, display_source: str | None = None):
        self._name = name
        self._source = source
        self._display_source = display_source if display_source is not None else source
        try:
            self._parts = self._parse()
        except TemplateSyntaxError as e:
            if self._display_source is source:
                raise
            raise TemplateSyntaxError(
                e.message,
                lineno=e.lineno,
                name=e.name,
                source=self._display_source,
                col_offset=e.col_offset,
                code=e.code,
            ) from None
        self._interpreter = Interpreter(self._display_source, name)

    def _parse(self) -> list[str | _Segment]:
        parts: list[str | _Segment] = []
        for segment in split_template(self._source, self._name):
            if isinstance(segment, ExpressionSegment):
                node = parse_expression(self._source, segment.start, segment.end, self._name)
                text = self._source[segment.start : segment.end].strip()
                parts.append(_Segment(node, text))
            else:
                parts.append(segment)
        return parts

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def source(self) -> str:
        return self._display_source

    @property
    def expression_count(self) -> int:
        return sum(1 for part in self._parts if isinstance(part, _Segment))

    def render(self, *args: Any, **kwargs: Any) -> str:
        """Evaluate every expression and return the resulting markup.

        Args:
            *args: Single dict of context variables
            **kwargs: Context variables as keyword arguments

        Raises:
            UndefinedError: If an expression references a missing name
            TemplateRuntimeError: If an expression fails during evaluation
        """
        context: dict[Any, Any] = {}
        if args:
            if len(args) == 1 and isinstance(args[0], dict):
                context.update(args[0])
            else:
                raise TypeError(
                    f"render() takes at most 1 positional argument (a dict), got {len(args)}"
                )
        context.update(kwargs)

        scope = build_safe_context(context)
        interpreter = self._interpreter
        buf: list[str] = []
        append = buf.append
        for part in self._parts:
            if isinstance(part, str):
                append(part)
                continue
            try:
                append(to_str(interpreter.evaluate(part.node, scope, part.text)))
            except TemplateError:
                raise
            except Exception as e:
                raise self._enhance_error(e, part) from e
        return "".join(buf)

    def _enhance_error(self, error: Exception, segment: _Segment) -> TemplateRuntimeError:
        """Wrap an unexpected Python error with the failing expression's location."""
        error_str = str(error).strip() or f"{type(error).__name__} (no details available)"
        lineno = segment.node.lineno
        return TemplateRuntimeError(
            error_str,
            expression=segment.text,
            template_name=self._name,
            lineno=lineno,
            source=self._display_source,
            source_snippet=build_source_snippet(self._display_source, lineno),
        )

    def __repr__(self) -> str:
        return f"<Template {self._name or '(inline)'}>"
