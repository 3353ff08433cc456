"""litpage Template package: evaluation, custom elements and caching.

Re-exports the public symbols so ``from litpage.template import Template``
works without knowing the module layout.

"""

from litpage.template.cache import CacheStats, TemplateCache
from litpage.template.context import build_safe_context
from litpage.template.core import Template
from litpage.template.diagnostics import render_diagnostic
from litpage.template.resolver import CustomElementResolver, ResolvedMarkup
from litpage.template.scanner import CustomElement, find_custom_elements

__all__ = [
    "CacheStats",
    "CustomElement",
    "CustomElementResolver",
    "ResolvedMarkup",
    "Template",
    "TemplateCache",
    "build_safe_context",
    "find_custom_elements",
    "render_diagnostic",
]
