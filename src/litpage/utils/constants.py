"""Shared constants for litpage.

Kept apart from the modules that use them so the scanner and the context
builder stay focused on their algorithms.
"""

from __future__ import annotations

# Tag names treated as standard HTML (or inline SVG) and never resolved
# against components/. Anything with a hyphen, or missing from this set,
# is a custom element candidate.
STANDARD_ELEMENTS: frozenset[str] = frozenset(
    {
        # Document
        "html",
        "head",
        "title",
        "base",
        "meta",
        "link",
        "style",
        "script",
        "noscript",
        "body",
        # Sectioning
        "header",
        "nav",
        "main",
        "section",
        "article",
        "aside",
        "footer",
        "address",
        "hgroup",
        "search",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        # Grouping
        "p",
        "div",
        "span",
        "br",
        "hr",
        "wbr",
        "pre",
        "blockquote",
        "ul",
        "ol",
        "li",
        "dl",
        "dt",
        "dd",
        "menu",
        "figure",
        "figcaption",
        # Text-level
        "a",
        "b",
        "i",
        "u",
        "s",
        "q",
        "strong",
        "em",
        "small",
        "mark",
        "del",
        "ins",
        "sup",
        "sub",
        "cite",
        "abbr",
        "time",
        "code",
        "kbd",
        "samp",
        "var",
        "dfn",
        "bdi",
        "bdo",
        "ruby",
        "rt",
        "rp",
        "data",
        # Embedded
        "img",
        "picture",
        "iframe",
        "embed",
        "object",
        "param",
        "audio",
        "video",
        "source",
        "track",
        "canvas",
        "map",
        "area",
        # Inline SVG
        "svg",
        "g",
        "path",
        "circle",
        "rect",
        "line",
        "polyline",
        "polygon",
        "ellipse",
        "text",
        "use",
        "defs",
        # Tables
        "table",
        "thead",
        "tbody",
        "tfoot",
        "tr",
        "th",
        "td",
        "caption",
        "colgroup",
        "col",
        # Forms
        "form",
        "input",
        "textarea",
        "button",
        "select",
        "option",
        "optgroup",
        "label",
        "fieldset",
        "legend",
        "datalist",
        "output",
        "progress",
        "meter",
        # Interactive and scripting
        "details",
        "summary",
        "dialog",
        "template",
        "slot",
    }
)

# Caller keys admitted verbatim, whatever their value.
ALLOWED_CONTEXT_KEYS: frozenset[str] = frozenset(
    {
        "env",
        "testFiles",
        "config",
        "testFile",
        "requestPath",
        "requestMethod",
    }
)

# Caller keys never admitted. Dunder keys are rejected separately.
DENIED_CONTEXT_KEYS: frozenset[str] = frozenset(
    {
        "eval",
        "Function",
        "constructor",
        "__proto__",
        "prototype",
        "exec",
        "compile",
        "globals",
        "locals",
        "getattr",
        "setattr",
        "delattr",
        "__import__",
        "__builtins__",
    }
)
