"""Custom element discovery.

A lexical scan over start tags, not an HTML parse: tags inside comments,
``<script>`` and ``<style>`` are reported like any other. Malformed
markup never raises.

"""

from __future__ import annotations

import re
from dataclasses import dataclass

from litpage.utils.constants import STANDARD_ELEMENTS

_START_TAG_RE = re.compile(r"<([a-zA-Z][a-zA-Z0-9-]*)[^>]*>")


@dataclass(frozen=True, slots=True)
class CustomElement:
    """A non-standard tag found in markup.

    Attributes:
        tag_name: Lowercased tag name, e.g. ``"site-nav"``
        raw: The first matching start tag exactly as written
    """

    tag_name: str
    raw: str

    @property
    def fragment_name(self) -> str:
        """Template name of the fragment that implements this element."""
        return f"components/{self.tag_name}.html"


def is_custom_tag(tag_name: str) -> bool:
    """A tag is custom if it has a hyphen or is not a standard element."""
    tag_name = tag_name.lower()
    return "-" in tag_name or tag_name not in STANDARD_ELEMENTS


def find_custom_elements(markup: str) -> list[CustomElement]:
    """Return each distinct custom element in ``markup``, in first-seen order.

    Example:
        >>> find_custom_elements('<site-nav></site-nav><p><Site-Nav/></p>')
        [CustomElement(tag_name='site-nav', raw='<site-nav>')]
    """
    seen: set[str] = set()
    found: list[CustomElement] = []
    for match in _START_TAG_RE.finditer(markup):
        tag_name = match.group(1).lower()
        if tag_name in seen or not is_custom_tag(tag_name):
            continue
        seen.add(tag_name)
        found.append(CustomElement(tag_name=tag_name, raw=match.group(0)))
    return found
