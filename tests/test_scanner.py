"""Tests for custom element discovery."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from litpage.template.scanner import CustomElement, find_custom_elements, is_custom_tag

from .strategies import custom_tag_name


def _names(markup: str) -> list[str]:
    return [element.tag_name for element in find_custom_elements(markup)]


class TestIsCustomTag:
    @pytest.mark.parametrize("tag", ["div", "P", "svg", "template", "slot", "h1"])
    def test_standard_tags(self, tag: str) -> None:
        assert not is_custom_tag(tag)

    @pytest.mark.parametrize("tag", ["site-nav", "x-button", "widget", "Fancybox"])
    def test_custom_tags(self, tag: str) -> None:
        assert is_custom_tag(tag)


class TestFindCustomElements:
    def test_no_custom_elements(self) -> None:
        assert find_custom_elements("<main><p>Hello</p></main>") == []

    def test_first_seen_order_and_dedup(self) -> None:
        markup = "<b-two></b-two><a-one/><b-two x='1'></b-two><c-three>"
        assert _names(markup) == ["b-two", "a-one", "c-three"]

    def test_names_are_lowercased(self) -> None:
        assert _names("<Site-Nav></Site-Nav>") == ["site-nav"]

    def test_raw_is_first_start_tag(self) -> None:
        element = find_custom_elements('<user-card id="u1" data-x="y"></user-card>')[0]
        assert element == CustomElement(tag_name="user-card", raw='<user-card id="u1" data-x="y">')

    def test_closing_tags_are_not_start_tags(self) -> None:
        assert _names("</orphan-end>") == []

    def test_non_hyphenated_unknown_tag_is_custom(self) -> None:
        assert _names("<widget></widget>") == ["widget"]

    def test_tags_inside_comments_are_reported(self) -> None:
        assert _names("<!-- <old-nav></old-nav> -->") == ["old-nav"]

    def test_fragment_name(self) -> None:
        assert CustomElement("site-nav", "<site-nav>").fragment_name == "components/site-nav.html"

    def test_malformed_markup_never_raises(self) -> None:
        assert _names("<site-nav <<< >> <") == ["site-nav"]

    @given(tags=st.lists(custom_tag_name, min_size=1, max_size=6))
    def test_every_distinct_tag_found_once(self, tags: list[str]) -> None:
        markup = "".join(f"<div><{tag} a='1'></{tag}></div>" for tag in tags)
        assert _names(markup) == list(dict.fromkeys(tags))
