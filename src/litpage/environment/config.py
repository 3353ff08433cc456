"""Process-wide settings for litpage.

Settings come from environment variables so that one deployment switch
flips every Environment between development and production behavior:

    LITPAGE_ENV             development | production | test (default: test)
    LITPAGE_TEMPLATE_ROOT   template root directory (default: templates)
    LITPAGE_MAX_DEPTH       custom element nesting limit (default: 20)
    LITPAGE_TEST_DIRECTORY  where HTML test files live (default: tests/html)
    LITPAGE_TEST_PATTERNS   comma separated globs (default: *.test.html,*.spec.html)

Keyword arguments passed to ``Environment`` always win over settings.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

DEFAULT_MAX_DEPTH = 20
DEFAULT_TEST_PATTERNS: tuple[str, ...] = ("*.test.html", "*.spec.html")


class Mode(Enum):
    """Evaluation mode.

    DEVELOPMENT renders inline diagnostics and never caches.
    PRODUCTION propagates failures and caches evaluated output.
    TEST propagates failures and never caches.
    """

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TEST = "test"

    @classmethod
    def parse(cls, value: str | Mode | None) -> Mode:
        """Parse a mode name; unknown or empty values fall back to TEST."""
        if isinstance(value, Mode):
            return value
        if not value:
            return cls.TEST
        normalized = value.strip().lower()
        aliases = {"dev": "development", "prod": "production"}
        normalized = aliases.get(normalized, normalized)
        for mode in cls:
            if mode.value == normalized:
                return mode
        return cls.TEST

    @property
    def renders_diagnostics(self) -> bool:
        return self is Mode.DEVELOPMENT

    @property
    def caches(self) -> bool:
        return self is Mode.PRODUCTION


@dataclass(frozen=True, slots=True)
class Settings:
    """Immutable snapshot of litpage configuration."""

    mode: Mode = Mode.TEST
    template_root: str = "templates"
    max_depth: int = DEFAULT_MAX_DEPTH
    test_directory: str = "tests/html"
    test_patterns: tuple[str, ...] = DEFAULT_TEST_PATTERNS

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``environ`` (defaults to ``os.environ``)."""
        if environ is None:
            environ = os.environ

        max_depth = DEFAULT_MAX_DEPTH
        raw_depth = environ.get("LITPAGE_MAX_DEPTH")
        if raw_depth:
            try:
                max_depth = int(raw_depth)
            except ValueError:
                raise ValueError(
                    f"LITPAGE_MAX_DEPTH must be an integer, got {raw_depth!r}"
                ) from None
            if max_depth < 1:
                raise ValueError(f"LITPAGE_MAX_DEPTH must be >= 1, got {max_depth}")

        raw_patterns = environ.get("LITPAGE_TEST_PATTERNS", "")
        patterns = tuple(p.strip() for p in raw_patterns.split(",") if p.strip())

        return cls(
            mode=Mode.parse(environ.get("LITPAGE_ENV")),
            template_root=environ.get("LITPAGE_TEMPLATE_ROOT") or "templates",
            max_depth=max_depth,
            test_directory=environ.get("LITPAGE_TEST_DIRECTORY") or "tests/html",
            test_patterns=patterns or DEFAULT_TEST_PATTERNS,
        )
