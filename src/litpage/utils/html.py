"""HTML escaping helpers."""

from __future__ import annotations

from typing import Any

# Single-pass translation table: & must not be re-escaped by later entries,
# which str.translate() guarantees.
_ESCAPE_TABLE = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#x27;",
    }
)


def html_escape(value: Any) -> str:
    """Entity-encode ``& < > " '`` in the string form of ``value``.

    Example:
        >>> html_escape('<script>alert("x")</script>')
        '&lt;script&gt;alert(&quot;x&quot;)&lt;/script&gt;'
    """
    return str(value).translate(_ESCAPE_TABLE)
