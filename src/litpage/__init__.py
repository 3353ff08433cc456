"""litpage: server-side evaluation for zero-build HTML test pages.

Static ``.html`` files carry ``${...}`` expressions written in a
JavaScript template-literal subset. litpage evaluates them against a
filtered context, swaps custom elements for fragment files from
``components/`` and memoizes output in production.

Quickstart:
    >>> from litpage import Environment, FileSystemLoader
    >>> env = Environment(loader=FileSystemLoader("templates/"), mode="production")
    >>> html = await env.load_template("index.html", {"title": "Home"})

Inline templates:
    >>> env.from_string("<h1>${escape(title)}</h1>").render(title="<Home>")
    '<h1>&lt;Home&gt;</h1>'

Architecture:
    Template Source → split_template → Parser → Expr nodes → Interpreter

Custom elements resolve before evaluation: each ``<foo-bar>`` with a
``components/foo-bar.html`` fragment is replaced by that fragment's
evaluated markup, recursively, with cycle and depth limits.

Sandbox:
Expressions never reach Python's ``eval`` or ``exec``. The interpreter
sees only the names the safe context admits, reads members only through
fixed tables and can call only litpage functions.

Strict Mode:
Undefined names raise `UndefinedError` instead of rendering empty
strings. Use ``${title ?? ''}`` for optional values.

"""

from litpage.discovery import discover_test_files, discover_test_files_async
from litpage.environment import (
    CycleDetectedError,
    DictLoader,
    Environment,
    ErrorCode,
    FileSystemLoader,
    Mode,
    PathEscapeError,
    Settings,
    SourceSnippet,
    TemplateDecodeError,
    TemplateError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    UndefinedError,
    build_source_snippet,
)
from litpage.expr import UNDEFINED
from litpage.resolution import ResolutionContext, get_resolution_context
from litpage.template import (
    CacheStats,
    CustomElement,
    Template,
    build_safe_context,
    find_custom_elements,
    render_diagnostic,
)
from litpage.utils.html import html_escape

__version__ = "0.1.0"

__all__ = [
    "UNDEFINED",
    "CacheStats",
    "CustomElement",
    "CycleDetectedError",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "Mode",
    "PathEscapeError",
    "ResolutionContext",
    "Settings",
    "SourceSnippet",
    "Template",
    "TemplateDecodeError",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "UndefinedError",
    "__version__",
    "build_safe_context",
    "build_source_snippet",
    "discover_test_files",
    "discover_test_files_async",
    "find_custom_elements",
    "get_resolution_context",
    "html_escape",
    "render_diagnostic",
]
