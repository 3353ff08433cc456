"""Tests for the evaluated-output cache."""

from __future__ import annotations

import logging

from litpage import CacheStats
from litpage.template.cache import TemplateCache, make_key


class TestMakeKey:
    def test_only_key_set_by_default(self) -> None:
        a = make_key("/t/index.html", {"title": "A", "user": 1})
        b = make_key("/t/index.html", {"user": 2, "title": "B"})
        assert a == b

    def test_different_key_sets_differ(self) -> None:
        assert make_key("/t/index.html", {"title": "A"}) != make_key("/t/index.html", {})

    def test_path_is_part_of_key(self) -> None:
        assert make_key("/t/a.html", {}) != make_key("/t/b.html", {})

    def test_vary_on_includes_values(self) -> None:
        a = make_key("/t/index.html", {"user": {"id": 1}}, vary_on=["user"])
        b = make_key("/t/index.html", {"user": {"id": 2}}, vary_on=["user"])
        assert a != b
        assert a == make_key("/t/index.html", {"user": {"id": 1}}, vary_on=("user", "user"))

    def test_vary_on_missing_name(self) -> None:
        key = make_key("/t/index.html", {}, vary_on=["absent"])
        assert key[2] == (("absent", "null"),)

    def test_none_context(self) -> None:
        assert make_key("/t/index.html", None) == ("/t/index.html", frozenset(), ())


class TestTemplateCache:
    def test_get_set(self) -> None:
        cache = TemplateCache()
        key = make_key("/t/index.html", {})
        assert cache.get(key) is None
        cache.set(key, "<p>hi</p>")
        assert cache.get(key) == "<p>hi</p>"
        assert len(cache) == 1

    def test_fragment_slot_remembers_absence(self) -> None:
        cache = TemplateCache()
        assert not cache.has_fragment_entry("live-clock")
        cache.set_fragment("live-clock", None)
        assert cache.has_fragment_entry("live-clock")
        assert cache.get_fragment("live-clock") is None
        cache.set_fragment("site-nav", "components/site-nav.html")
        assert cache.get_fragment("site-nav") == "components/site-nav.html"

    def test_stats_and_clear(self, caplog) -> None:
        cache = TemplateCache()
        cache.set(make_key("/t/a.html", {}), "a")
        cache.set(make_key("/t/b.html", {}), "b")
        cache.set_fragment("site-nav", "components/site-nav.html")
        assert cache.stats() == CacheStats(templates=2, custom_elements=1)
        with caplog.at_level(logging.INFO, logger="litpage.template.cache"):
            cache.clear()
        assert cache.stats().as_dict() == {"templates": 0, "customElements": 0}
        assert "Clearing template cache" in caplog.text
