"""Tests for HTML test file discovery."""

from __future__ import annotations

from pathlib import Path

import pytest

from litpage import Environment, discover_test_files, discover_test_files_async


@pytest.fixture
def test_tree(tmp_path: Path) -> Path:
    root = tmp_path / "html"
    (root / "forms").mkdir(parents=True)
    (root / "home.test.html").write_text("<p>home</p>")
    (root / "forms" / "login.spec.html").write_text("<form></form>")
    (root / "forms" / "helper.html").write_text("")
    (root / "notes.txt").write_text("")
    return root


class TestDiscoverTestFiles:
    def test_matches_default_patterns(self, test_tree: Path) -> None:
        names = [entry["name"] for entry in discover_test_files(test_tree)]
        assert names == ["forms/login.spec.html", "home.test.html"]

    def test_entry_shape(self, test_tree: Path) -> None:
        entry = discover_test_files(test_tree)[0]
        assert entry["relativePath"] == "forms/login.spec.html"
        assert entry["url"] == "/html-test/file/forms%2Flogin.spec.html"
        assert entry["size"] == len("<form></form>")
        assert entry["path"].endswith("forms/login.spec.html")
        assert entry["modified"].endswith("Z")

    def test_custom_patterns_and_prefix(self, test_tree: Path) -> None:
        entries = discover_test_files(test_tree, ["*.html"], url_prefix="/t/")
        assert [entry["url"] for entry in entries] == [
            "/t/forms%2Fhelper.html",
            "/t/forms%2Flogin.spec.html",
            "/t/home.test.html",
        ]

    def test_missing_directory_is_empty(self, tmp_path: Path) -> None:
        assert discover_test_files(tmp_path / "absent") == []

    @pytest.mark.asyncio
    async def test_async(self, test_tree: Path) -> None:
        assert await discover_test_files_async(test_tree) == discover_test_files(test_tree)

    def test_entries_render_in_templates(self, env: Environment, test_tree: Path) -> None:
        template = env.from_string(
            "${testFiles.map(f => `<a href=\"${f.url}\">${escape(f.name)}</a>`).join('')}"
        )
        html = template.render(testFiles=discover_test_files(test_tree))
        assert html == (
            '<a href="/html-test/file/forms%2Flogin.spec.html">forms/login.spec.html</a>'
            '<a href="/html-test/file/home.test.html">home.test.html</a>'
        )
