"""Pytest configuration and fixtures for litpage tests."""

from pathlib import Path

import pytest

from litpage import DictLoader, Environment, FileSystemLoader, Mode, Settings

# Explicit settings so LITPAGE_* variables in the outer environment never
# change test behavior.
TEST_SETTINGS = Settings()


@pytest.fixture
def env():
    """Create a litpage Environment in test mode with no templates."""
    return Environment(loader=DictLoader({}), settings=TEST_SETTINGS)


@pytest.fixture
def site_templates() -> dict[str, str]:
    """A small site: a page, a nested fragment and a broken fragment."""
    return {
        "index.html": (
            "<html><body>"
            "<site-nav></site-nav>"
            "<h1>${escape(title)}</h1>"
            "<my-widget/>"
            "</body></html>"
        ),
        "components/site-nav.html": "<nav><nav-link></nav-link></nav>",
        "components/nav-link.html": "<a href=\"/\">${title}</a>",
        "components/my-widget.html": "<p>hi</p>",
        "components/broken-widget.html": "<p>${missing_name}</p>",
        "broken.html": "<main><broken-widget></broken-widget><footer>ok</footer></main>",
    }


@pytest.fixture
def make_env(site_templates):
    """Factory for environments over ``site_templates`` in a given mode."""

    def factory(mode: Mode | str = Mode.TEST, templates: dict[str, str] | None = None, **kwargs):
        loader = DictLoader(templates if templates is not None else site_templates)
        return Environment(loader=loader, mode=mode, settings=TEST_SETTINGS, **kwargs)

    return factory


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """Create an on-disk template root with a components/ directory."""
    root = tmp_path / "templates"
    (root / "components").mkdir(parents=True)
    (root / "index.html").write_text("<main><my-widget></my-widget></main>")
    (root / "components" / "my-widget.html").write_text("<p>hi</p>")
    return root


@pytest.fixture
def fs_env(template_dir: Path):
    """Environment over ``template_dir`` in test mode."""
    return Environment(loader=FileSystemLoader(template_dir), settings=TEST_SETTINGS)


def assert_contains(template_result: str, *expected_parts: str) -> None:
    """Assert template result contains all expected parts.

    Args:
        template_result: The actual template rendering result.
        expected_parts: Strings that should all be present in the result.
    """
    for part in expected_parts:
        assert part in template_result, (
            f"Template output missing expected content:\n"
            f"  Missing: {part!r}\n"
            f"  Actual: {template_result!r}"
        )


def assert_not_contains(template_result: str, *unexpected_parts: str) -> None:
    """Assert template result contains none of the given parts."""
    for part in unexpected_parts:
        assert part not in template_result, (
            f"Template output has unexpected content:\n"
            f"  Unexpected: {part!r}\n"
            f"  Actual: {template_result!r}"
        )
