"""Tests for custom element substitution."""

from __future__ import annotations

import pytest

from litpage import DictLoader, Environment, Settings
from litpage.template.resolver import CustomElementResolver, ResolvedMarkup, element_pattern


class TestElementPattern:
    def test_pair_form(self) -> None:
        assert element_pattern("my-widget").fullmatch("<my-widget a='1'>body</my-widget>")

    def test_self_closing_form(self) -> None:
        assert element_pattern("my-widget").fullmatch("<my-widget />")
        assert element_pattern("my-widget").fullmatch("<my-widget/>")

    def test_case_insensitive_and_multiline(self) -> None:
        assert element_pattern("my-widget").fullmatch("<My-Widget>\n</MY-WIDGET >")

    def test_longer_tag_with_same_prefix_not_matched(self) -> None:
        pattern = element_pattern("my-widget")
        assert pattern.search("<my-widget-two></my-widget-two>") is None

    def test_orphan_open_tag_not_matched(self) -> None:
        assert element_pattern("my-widget").search("<main><my-widget></main>") is None

    def test_non_greedy_between_occurrences(self) -> None:
        markup = "<x-a>1</x-a><p>keep</p><x-a>2</x-a>"
        assert [m.group(0) for m in element_pattern("x-a").finditer(markup)] == [
            "<x-a>1</x-a>",
            "<x-a>2</x-a>",
        ]


class TestResolvedMarkup:
    def test_restore_without_fragments_is_identity(self) -> None:
        resolved = ResolvedMarkup("<p>${a}</p>")
        assert resolved.restore("<p>x</p>") == "<p>x</p>"

    def test_placeholder_keeps_line_count(self) -> None:
        resolved = ResolvedMarkup("")
        index = resolved.add("<nav></nav>")
        token = resolved.placeholder(index, "<site-nav>\n\n</site-nav>")
        assert token.count("\n") == 2
        assert resolved.restore(f"a{token}b") == "a<nav></nav>b"

    def test_tokens_from_another_nonce_untouched(self) -> None:
        first = ResolvedMarkup("", nonce="aaaa")
        second = ResolvedMarkup("", nonce="bbbb")
        first.add("one")
        second.add("two")
        text = first.placeholder(0) + second.placeholder(0)
        assert second.restore(text) == first.placeholder(0) + "two"


def _env(templates: dict[str, str]) -> Environment:
    return Environment(loader=DictLoader(templates), settings=Settings())


class TestCustomElementResolver:
    @pytest.mark.asyncio
    async def test_replaces_every_occurrence(self) -> None:
        env = _env({"components/x-item.html": "<li>${label}</li>"})
        resolved = await CustomElementResolver(env).resolve(
            "<ul><x-item></x-item><x-item/></ul>", {"label": "a"}
        )
        assert "x-item" not in resolved.markup
        assert resolved.restore(resolved.markup) == "<ul><li>a</li><li>a</li></ul>"

    @pytest.mark.asyncio
    async def test_element_without_fragment_passes_through(self, caplog) -> None:
        env = _env({})
        markup = "<main><live-clock></live-clock></main>"
        with caplog.at_level("INFO", logger="litpage.template.resolver"):
            resolved = await CustomElementResolver(env).resolve(markup)
        assert resolved.markup == markup
        assert resolved.fragments == []
        assert any("live-clock" in record.getMessage() for record in caplog.records)

    @pytest.mark.asyncio
    async def test_prefix_tag_does_not_swallow_longer_tag(self) -> None:
        env = _env(
            {
                "components/my-widget.html": "<b>one</b>",
                "components/my-widget-two.html": "<i>two</i>",
            }
        )
        resolver = CustomElementResolver(env)
        resolved = await resolver.resolve("<my-widget></my-widget><my-widget-two></my-widget-two>")
        assert resolved.restore(resolved.markup) == "<b>one</b><i>two</i>"

    @pytest.mark.asyncio
    async def test_fragment_output_is_not_evaluated_again(self) -> None:
        env = _env({"components/user-name.html": "<span>${name}</span>"})
        resolved = await CustomElementResolver(env).resolve(
            "<user-name></user-name>", {"name": "${secret}"}
        )
        assert "${" not in resolved.markup
        assert resolved.restore(resolved.markup) == "<span>${secret}</span>"

    @pytest.mark.asyncio
    async def test_orphan_open_tag_left_in_place(self) -> None:
        env = _env({"components/my-widget.html": "<p>hi</p>"})
        resolved = await CustomElementResolver(env).resolve("<main><my-widget></main>")
        assert resolved.markup == "<main><my-widget></main>"
        assert resolved.fragments == []
