"""Exceptions for the litpage template engine.

Exception Hierarchy:
TemplateError (base)
├── TemplateNotFoundError     # Template not found by loader
├── PathEscapeError           # Template name escapes the template root
├── TemplateSyntaxError       # Malformed ${...} expression
│   └── TemplateDecodeError   # Template file is not valid text
└── TemplateRuntimeError      # Evaluation-time error with context
    ├── UndefinedError        # Reference to a name missing from the context
    └── CycleDetectedError    # Custom element recursion loop or depth limit

Error Messages:
All exceptions provide plain-text messages with:
- Source location (template name, line number)
- Expression where the error occurred
- Source snippets showing the offending template line
- Actionable suggestions for fixing

Messages never carry ANSI color codes: in development mode they are
embedded verbatim into the rendered page.

Example:
    ```
    LP-RUN-001: Undefined variable 'titl' in article.html:5
       |
    >  5 | <h1>${titl}</h1>
       |
    Hint: Did you mean 'title'? Pass it in the context or use ${titl ?? ''}
    ```

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------


class ErrorCode(Enum):
    """Searchable error codes for litpage errors.

    Format: LP-{CATEGORY}-{NUMBER}
    Categories: SYN (expression syntax), RUN (evaluation), TPL (template loading)
    """

    # Syntax errors (LP-SYN-xxx)
    UNCLOSED_EXPRESSION = "LP-SYN-001"
    INVALID_EXPRESSION = "LP-SYN-002"

    # Runtime errors (LP-RUN-xxx)
    UNDEFINED_VARIABLE = "LP-RUN-001"
    RUNTIME_ERROR = "LP-RUN-002"
    CYCLE_DETECTED = "LP-RUN-003"

    # Template loading errors (LP-TPL-xxx)
    TEMPLATE_NOT_FOUND = "LP-TPL-001"
    TEMPLATE_DECODE = "LP-TPL-002"
    PATH_ESCAPE = "LP-TPL-003"


# ---------------------------------------------------------------------------
# Source snippets
# ---------------------------------------------------------------------------


def format_template_stack(stack: tuple[str, ...] | list[str] | None) -> str:
    """Format the chain of templates being resolved when an error occurred.

    Example:
        >>> print(format_template_stack(["index.html", "components/nav-bar.html"]))
        Template stack:
          • index.html
          • components/nav-bar.html
    """
    if not stack:
        return ""

    lines = ["Template stack:"]
    for template_name in stack:
        lines.append(f"  • {template_name}")
    return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """Template source context around an error line.

    Attributes:
        lines: Tuple of (line_number, line_content) pairs around the error.
        error_line: The 1-based line number where the error occurred.
        column: Optional column offset for caret pointer.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int
    column: int | None = None

    def format(self) -> str:
        """Format snippet in Rust-inspired diagnostic style."""
        parts: list[str] = ["   |"]
        for lineno, content in self.lines:
            marker = ">" if lineno == self.error_line else " "
            parts.append(f"{marker}{lineno:>3} | {content}")
            if lineno == self.error_line and self.column is not None:
                parts.append(f"   | {' ' * (self.column + 1)}^")
        parts.append("   |")
        return "\n".join(parts)


def build_source_snippet(
    source: str,
    error_line: int,
    *,
    context_lines: int = 2,
    column: int | None = None,
) -> SourceSnippet:
    """Build a SourceSnippet from template source.

    Args:
        source: Full template source text.
        error_line: 1-based line number of the error.
        context_lines: Number of lines to show before/after the error line.
        column: Optional column offset for caret pointer.
    """
    all_lines = source.splitlines()
    start = max(0, error_line - 1 - context_lines)
    end = min(len(all_lines), error_line + context_lines)
    lines = tuple((i + 1, all_lines[i]) for i in range(start, end))
    return SourceSnippet(lines=lines, error_line=error_line, column=column)


class TemplateError(Exception):
    """Base exception for all litpage template errors.

    Attributes:
        code: Optional ErrorCode for searchable error identification.
    """

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """Format error as a structured, human-readable summary."""
        header = str(self)
        if self.code and self.code.value not in header:
            header = f"{self.code.value}: {header}"
        return header


class TemplateNotFoundError(TemplateError):
    """Template not found by the configured loader.

    Always propagated: a request cannot proceed without its template.
    """

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_FOUND


class PathEscapeError(TemplateError):
    """Template name resolves outside the template root.

    Raised for absolute names and ``..`` segments that leave the root,
    before any file is touched.
    """

    code: ErrorCode | None = ErrorCode.PATH_ESCAPE

    def __init__(self, name: str, root: str | None = None):
        self.name = name
        self.root = root
        msg = f"Template name '{name}' escapes the template root"
        if root:
            msg += f" ({root})"
        super().__init__(msg)


class TemplateSyntaxError(TemplateError):
    """Malformed ``${...}`` expression in template source.

    When ``source`` and ``lineno`` are provided, the error message includes
    a source snippet with the offending line.  If ``col_offset`` is also
    given, a caret (``^``) points at the exact column.
    """

    code: ErrorCode | None = ErrorCode.INVALID_EXPRESSION

    def __init__(
        self,
        message: str,
        lineno: int | None = None,
        name: str | None = None,
        source: str | None = None,
        col_offset: int | None = None,
        code: ErrorCode | None = None,
    ):
        self.message = message
        self.lineno = lineno
        self.name = name
        self.source = source
        self.col_offset = col_offset
        if code is not None:
            self.code = code
        super().__init__(self._format_message())

    @property
    def template_name(self) -> str | None:
        return self.name

    def _format_message(self) -> str:
        location = self.name or "<template>"
        if self.lineno:
            location += f":{self.lineno}"
            if self.col_offset is not None:
                location += f":{self.col_offset}"

        header = f"Syntax Error: {self.message}\n  --> {location}"

        if self.source and self.lineno:
            lines = self.source.splitlines()
            if 0 < self.lineno <= len(lines):
                error_line = lines[self.lineno - 1]
                snippet = f"\n   |\n{self.lineno:>3} | {error_line}"
                if self.col_offset is not None:
                    snippet += f"\n   | {' ' * self.col_offset}^"
                return header + snippet

        return header


class TemplateRuntimeError(TemplateError):
    """Evaluation-time error with debugging context.

    Output Format:
            ```
            Runtime Error: Cannot read properties of undefined (reading 'title')
              Location: article.html:15
              Expression: post.title
              Suggestion: Check that 'post' is passed in the context
            ```

    Attributes:
        message: Error description
        expression: Expression source that failed
        template_name: Name of the template
        lineno: Line number in template source
        source: Raw template text, used by development diagnostics
        suggestion: Actionable fix suggestion
        template_stack: Templates being resolved when the error occurred

    """

    code: ErrorCode | None = ErrorCode.RUNTIME_ERROR

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        template_name: str | None = None,
        lineno: int | None = None,
        source: str | None = None,
        suggestion: str | None = None,
        source_snippet: SourceSnippet | None = None,
        template_stack: tuple[str, ...] | list[str] | None = None,
    ):
        self.message = message
        self.expression = expression
        self.template_name = template_name
        self.lineno = lineno
        self.source = source
        self.suggestion = suggestion
        self.source_snippet = source_snippet
        self.template_stack = tuple(template_stack or ())
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [f"Runtime Error: {self.message}"]

        if self.template_name or self.lineno:
            loc = self.template_name or "<template>"
            if self.lineno:
                loc += f":{self.lineno}"
            parts.append(f"  Location: {loc}")

        if self.source_snippet:
            parts.append(self.source_snippet.format())

        if self.template_stack:
            parts.append("")
            parts.append(format_template_stack(self.template_stack))

        if self.expression:
            parts.append(f"  Expression: {self.expression}")

        if self.suggestion:
            parts.append(f"\n  Suggestion: {self.suggestion}")

        return "\n".join(parts)


class UndefinedError(TemplateRuntimeError):
    """Raised when an expression references a name missing from the context.

    Evaluation is strict: a missing name is a failure, never an empty
    substitution. If ``available_names`` is provided, a "Did you mean?"
    suggestion is included when a close match is found.

    Example:
            >>> env.from_string("${undefined_var}").render()
        UndefinedError: Undefined variable 'undefined_var' in <template>:1

    """

    code: ErrorCode | None = ErrorCode.UNDEFINED_VARIABLE

    def __init__(
        self,
        name: str,
        template: str | None = None,
        lineno: int | None = None,
        available_names: frozenset[str] | None = None,
        source_snippet: SourceSnippet | None = None,
        source: str | None = None,
    ):
        self.name = name
        self._available_names = available_names
        location = template or "<template>"
        if lineno:
            location += f":{lineno}"
        message = f"Undefined variable '{name}' in {location}"

        if available_names:
            from difflib import get_close_matches

            matches = get_close_matches(name, available_names, n=1, cutoff=0.6)
            if matches:
                message += f". Did you mean '{matches[0]}'?"

        super().__init__(
            message,
            expression=name,
            template_name=template,
            lineno=lineno,
            source=source,
            source_snippet=source_snippet,
            suggestion=f"Pass '{name}' in the context, or use ${{{name} ?? ''}}",
        )

    def _format_message(self) -> str:
        msg = self.message
        if self.source_snippet:
            msg += "\n" + self.source_snippet.format()
        msg += f"\n  Hint: {self.suggestion}"
        return msg


class CycleDetectedError(TemplateRuntimeError):
    """Custom element resolution looped back on itself or went too deep.

    Example:
            >>> # components/tree-node.html contains <tree-node></tree-node>
        CycleDetectedError: Custom element cycle: index.html → components/tree-node.html
        → components/tree-node.html

    """

    code: ErrorCode | None = ErrorCode.CYCLE_DETECTED

    def __init__(
        self,
        template_name: str,
        stack: tuple[str, ...],
        max_depth: int | None = None,
    ):
        chain = " → ".join((*stack, template_name))
        if max_depth is not None:
            message = f"Maximum custom element depth exceeded ({max_depth}): {chain}"
        else:
            message = f"Custom element cycle: {chain}"
        super().__init__(
            message,
            template_name=template_name,
            template_stack=stack,
            suggestion="Check for components that include themselves: A → B → A",
        )


class TemplateDecodeError(TemplateSyntaxError):
    """Template file is not valid text in the loader's encoding.

    A syntax error for policy purposes: development mode renders it in
    place of the element instead of failing the whole page.
    """

    code: ErrorCode | None = ErrorCode.TEMPLATE_DECODE
