"""Custom element resolution.

Every custom element with a fragment file under ``components/`` is
replaced by that fragment's fully evaluated markup. Elements without a
fragment are left alone so runtime-defined web components pass through.

Substitution happens in two steps:

1. ``resolve()`` swaps each element occurrence for an opaque placeholder
   token and evaluates the fragment through the environment.
2. After the page itself is evaluated, ``ResolvedMarkup.restore()`` swaps
   the tokens for the fragment markup in a single pass.

Fragment output therefore never goes through expression evaluation a
second time, so a fragment that renders user data containing ``${`` is
safe to embed.

Substitution is lexical, so an element written inside a ``${...}`` string
literal is swapped too. That is what makes ``${show ? '<my-widget></my-widget>'
: ''}`` include a fragment conditionally. The expression only ever holds
the placeholder token, never the fragment markup: ``.length`` measures the
token, and ``escape()`` leaves it intact so the fragment is emitted as
markup. Expressions that need the element as text must build the tag name
from pieces, e.g. ``'<my-' + 'widget>'``.

"""

from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from litpage.template.scanner import find_custom_elements

if TYPE_CHECKING:
    from litpage.environment.core import Environment

logger = logging.getLogger(__name__)


def element_pattern(tag_name: str) -> re.Pattern[str]:
    """Match every self-closing or open/close occurrence of ``tag_name``.

    The lookahead anchors the name so ``<my-widget>`` never matches
    ``<my-widget-two>``. An open tag with no closing tag is not matched.
    """
    tag = re.escape(tag_name)
    return re.compile(
        rf"<{tag}(?=[\s/>])[^>]*?/>|<{tag}(?=[\s/>])[^>]*>.*?</{tag}\s*>",
        re.IGNORECASE | re.DOTALL,
    )


@dataclass(slots=True)
class ResolvedMarkup:
    """Markup with custom elements swapped for placeholder tokens.

    A token carries as many newlines as the element it replaced, so line
    numbers in evaluation errors still match the original source.

    Attributes:
        markup: Source to evaluate, with placeholders in place of elements
        fragments: Evaluated fragment markup, indexed by placeholder number
    """

    markup: str
    fragments: list[str] = field(default_factory=list)
    nonce: str = field(default_factory=lambda: secrets.token_hex(6))

    def add(self, html: str) -> int:
        self.fragments.append(html)
        return len(self.fragments) - 1

    def placeholder(self, index: int, replaced: str = "") -> str:
        return f"\x00litpage-{self.nonce}-{index}" + "\n" * replaced.count("\n") + "\x00"

    def restore(self, text: str) -> str:
        """Replace placeholder tokens in evaluated ``text`` with fragment markup."""
        if not self.fragments:
            return text
        pattern = re.compile(rf"\x00litpage-{self.nonce}-(\d+)\n*\x00")
        return pattern.sub(lambda m: self.fragments[int(m.group(1))], text)


class CustomElementResolver:
    """Replace custom elements with their evaluated fragments.

    Fragments load through the owning environment's full pipeline, so
    their own custom elements resolve first and the environment's cycle
    and depth limits apply.

    Example:
        >>> resolver = CustomElementResolver(env)
        >>> resolved = await resolver.resolve("<site-nav></site-nav>", {"title": "Home"})
        >>> resolved.restore(resolved.markup)
        '<nav>Home</nav>'
    """

    __slots__ = ("_env",)

    def __init__(self, env: Environment):
        self._env = env

    async def resolve(
        self,
        markup: str,
        context: dict[str, Any] | None = None,
        *,
        use_cache: bool = True,
        vary_on: tuple[str, ...] = (),
    ) -> ResolvedMarkup:
        """Swap every custom element that has a fragment for a placeholder."""
        resolved = ResolvedMarkup(markup)
        for element in find_custom_elements(markup):
            fragment_name = await self._env.find_fragment(element)
            if fragment_name is None:
                logger.info(
                    "No fragment for custom element <%s>; leaving it for the browser",
                    element.tag_name,
                )
                continue

            pattern = element_pattern(element.tag_name)
            if not pattern.search(resolved.markup):
                continue

            html = await self._env.render_fragment(
                fragment_name, dict(context or {}), use_cache=use_cache, vary_on=vary_on
            )
            index = resolved.add(html)
            resolved.markup = pattern.sub(
                lambda m, index=index: resolved.placeholder(index, m.group(0)), resolved.markup
            )
        return resolved
