"""Inline error markup for development mode.

In development a failed evaluation renders a visibly broken box in place
of the template output, so the rest of the page still renders. Every
interpolated value is HTML-escaped.

"""

from __future__ import annotations

from litpage.environment.exceptions import TemplateError
from litpage.utils.html import html_escape

DIAGNOSTIC_MARKER = "data-litpage-error"

_STYLE = (
    "border: 2px solid #d32f2f; padding: 16px; margin: 16px; "
    "background: #ffe6e6; font-family: monospace;"
)


def render_diagnostic(name: str | None, error: Exception, source: str | None = None) -> str:
    """Render ``error`` for template ``name`` as an HTML fragment.

    Example:
        >>> html = render_diagnostic("index.html", UndefinedError("titl"))
        >>> "data-litpage-error" in html and "index.html" in html
        True
    """
    code = ""
    if isinstance(error, TemplateError) and error.code is not None:
        code = f' data-error-code="{error.code.value}"'
    parts = [
        f'<div class="litpage-error" {DIAGNOSTIC_MARKER}{code} style="{_STYLE}">',
        "<h3>Template Evaluation Error</h3>",
        f"<p><strong>Template:</strong> <code>{html_escape(name or '<string>')}</code></p>",
        f"<pre>{html_escape(str(error))}</pre>",
    ]
    if source is not None:
        parts.append(
            "<details><summary>Original Template</summary>"
            f"<pre>{html_escape(source)}</pre></details>"
        )
    parts.append("</div>")
    return "\n".join(parts)
