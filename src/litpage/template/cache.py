"""Evaluated-output cache owned by one Environment.

Two slots:

- ``templates``: evaluated page markup keyed by resolved path, the set of
  context keys and an optional value-sensitive ``vary`` component.
- ``custom_elements``: which tags have a fragment file (tag → template
  name, or None when there is none).

Writes are idempotent: two concurrent misses compute the same output and
the second store overwrites the first with an equal value, so no locking
is needed.

"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

CacheKey = tuple[str, frozenset[str], tuple[tuple[str, str], ...]]


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Entry counts for both cache slots."""

    templates: int = 0
    custom_elements: int = 0

    def as_dict(self) -> dict[str, int]:
        return {"templates": self.templates, "customElements": self.custom_elements}


def make_key(
    path: str,
    context: Mapping[str, Any] | None,
    vary_on: Iterable[str] = (),
) -> CacheKey:
    """Build a templates-slot key.

    By default only the context's key set takes part, so two calls with
    the same keys and different values share an entry. Names in
    ``vary_on`` add the JSON form of their values to the key.

    Example:
        >>> make_key("/srv/t/index.html", {"user": {"id": 1}}, vary_on=["user"])
        ('/srv/t/index.html', frozenset({'user'}), (('user', '{"id":1}'),))
    """
    context = context or {}
    keys = frozenset(str(k) for k in context)
    vary = tuple(
        (name, json.dumps(context.get(name), sort_keys=True, separators=(",", ":"), default=str))
        for name in sorted(set(vary_on))
    )
    return path, keys, vary


class TemplateCache:
    """In-memory cache with no expiry; cleared explicitly."""

    __slots__ = ("_custom_elements", "_templates")

    def __init__(self) -> None:
        self._templates: dict[CacheKey, str] = {}
        self._custom_elements: dict[str, str | None] = {}

    def get(self, key: CacheKey) -> str | None:
        return self._templates.get(key)

    def set(self, key: CacheKey, markup: str) -> None:
        self._templates[key] = markup

    def has_fragment_entry(self, tag_name: str) -> bool:
        return tag_name in self._custom_elements

    def get_fragment(self, tag_name: str) -> str | None:
        """Fragment template name recorded for ``tag_name`` (None if absent)."""
        return self._custom_elements.get(tag_name)

    def set_fragment(self, tag_name: str, fragment_name: str | None) -> None:
        self._custom_elements[tag_name] = fragment_name

    def clear(self) -> None:
        logger.info(
            "Clearing template cache (%d templates, %d custom elements)",
            len(self._templates),
            len(self._custom_elements),
        )
        self._templates.clear()
        self._custom_elements.clear()

    def stats(self) -> CacheStats:
        return CacheStats(
            templates=len(self._templates),
            custom_elements=len(self._custom_elements),
        )

    def __len__(self) -> int:
        return len(self._templates)
