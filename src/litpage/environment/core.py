"""litpage Environment: the long-lived template service.

One Environment owns a loader, a cache and the evaluation policy. Create
one per process and hand it to request handlers; tests create their own
so no state leaks between them.

Pipeline for ``load_template(name, context)``:

1. Resolve ``name`` under the loader root (PathEscapeError on traversal)
2. Return cached output when caching is active
3. Read the raw markup (TemplateNotFoundError when absent)
4. Resolve custom elements, recursing into this pipeline for fragments
5. Evaluate expressions against the safe context
6. Store the output when caching is active

Error Policy:
    Syntax and runtime errors (including UndefinedError and
    CycleDetectedError) render an inline diagnostic in development mode
    and propagate otherwise. Missing templates and path escapes always
    propagate. Because each fragment goes through the same pipeline, a
    broken fragment in development renders its own diagnostic in place
    while the rest of the page renders normally.

"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from litpage.environment.config import Mode, Settings
from litpage.environment.exceptions import TemplateRuntimeError, TemplateSyntaxError
from litpage.environment.loaders import DictLoader, FileSystemLoader, normalize_name
from litpage.resolution import entering, get_resolution_context
from litpage.template import (
    CacheStats,
    CustomElement,
    CustomElementResolver,
    Template,
    TemplateCache,
    render_diagnostic,
)
from litpage.template.cache import make_key

logger = logging.getLogger(__name__)


class Environment:
    """Central configuration and entry point for loading templates.

    Args:
        loader: Template source provider. Defaults to a FileSystemLoader
            over ``settings.template_root``.
        mode: Evaluation mode (``Mode`` or a name such as ``"production"``).
            Defaults to ``settings.mode``.
        max_depth: Custom element nesting limit. Defaults to
            ``settings.max_depth``.
        settings: Base configuration. Defaults to ``Settings.from_environ()``.

    Example:
            >>> env = Environment(loader=DictLoader({
            ...     "index.html": "<main><site-nav></site-nav>${body}</main>",
            ...     "components/site-nav.html": "<nav>${title}</nav>",
            ... }), mode="production")
            >>> await env.load_template("index.html", {"title": "Home", "body": "Hi"})
            '<main><nav>Home</nav>Hi</main>'
            >>> env.get_template_cache_stats().as_dict()
            {'templates': 2, 'customElements': 1}

    """

    __slots__ = ("_cache", "_resolver", "loader", "max_depth", "mode", "settings")

    def __init__(
        self,
        loader: FileSystemLoader | DictLoader | None = None,
        *,
        mode: Mode | str | None = None,
        max_depth: int | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings if settings is not None else Settings.from_environ()
        self.mode = Mode.parse(mode) if mode is not None else self.settings.mode
        self.max_depth = max_depth if max_depth is not None else self.settings.max_depth
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {self.max_depth}")
        self.loader = loader if loader is not None else FileSystemLoader(self.settings.template_root)
        self._cache = TemplateCache()
        self._resolver = CustomElementResolver(self)

    # -- public API ---------------------------------------------------------

    async def load_template(
        self,
        name: str,
        context: Mapping[str, Any] | None = None,
        *,
        use_cache: bool = True,
        vary_on: Iterable[str] = (),
    ) -> str:
        """Load, resolve and evaluate template ``name``.

        Args:
            name: Template identity relative to the loader root
            context: Caller values; filtered by the safe context builder
            use_cache: Set False to bypass the cache for this call
            vary_on: Context names whose values join the cache key

        Raises:
            TemplateNotFoundError: If the template does not exist
            PathEscapeError: If ``name`` leaves the template root
            TemplateSyntaxError: Malformed expression (outside development)
            TemplateRuntimeError: Evaluation failure (outside development)
        """
        return await self._load(name, dict(context or {}), use_cache, tuple(vary_on))

    def from_string(self, source: str, name: str | None = None) -> Template:
        """Parse ``source`` into a Template without touching the loader or cache.

        Custom elements are not resolved: the Template only evaluates
        expressions.
        """
        return Template(name, source)

    def clear_template_cache(self) -> None:
        self._cache.clear()

    def get_template_cache_stats(self) -> CacheStats:
        return self._cache.stats()

    # -- pipeline -----------------------------------------------------------

    async def _load(
        self,
        name: str,
        context: dict[str, Any],
        use_cache: bool,
        vary_on: tuple[str, ...],
    ) -> str:
        identity = normalize_name(name)
        path = self.loader.resolve(name)

        caching = use_cache and self.mode.caches
        key = make_key(str(path), context, vary_on) if caching else None
        if key is not None:
            cached = self._cache.get(key)
            if cached is not None:
                logger.debug("Template cache hit: %s", identity)
                return cached

        source: str | None = None
        try:
            source, _filename = await self.loader.get_source_async(name)
            with entering(identity, self.max_depth):
                resolved = await self._resolver.resolve(
                    source, context, use_cache=use_cache, vary_on=vary_on
                )
                template = Template(identity, resolved.markup, display_source=source)
                html = resolved.restore(template.render(context))
        except (TemplateSyntaxError, TemplateRuntimeError) as e:
            if self.mode.renders_diagnostics:
                logger.error("Template evaluation failed for %s: %s", identity, e.format_compact())
                return render_diagnostic(identity, e, source)
            if get_resolution_context() is None:
                logger.error("Template evaluation failed for %s: %s", identity, e.format_compact())
            raise

        if key is not None:
            self._cache.set(key, html)
        return html

    async def find_fragment(self, element: CustomElement) -> str | None:
        """Return the fragment template name for ``element``, or None.

        In production the answer is remembered per tag, so repeated pages
        skip the existence check.
        """
        if self.mode.caches and self._cache.has_fragment_entry(element.tag_name):
            return self._cache.get_fragment(element.tag_name)
        fragment_name = element.fragment_name
        found = fragment_name if await self.loader.exists_async(fragment_name) else None
        if self.mode.caches:
            self._cache.set_fragment(element.tag_name, found)
        return found

    async def render_fragment(
        self,
        name: str,
        context: dict[str, Any],
        *,
        use_cache: bool = True,
        vary_on: tuple[str, ...] = (),
    ) -> str:
        """Evaluate fragment ``name`` one level below the current template."""
        return await self._load(name, context, use_cache, vary_on)

    def __repr__(self) -> str:
        return f"<Environment mode={self.mode.value} loader={type(self.loader).__name__}>"
