"""Tests for modes and environment-variable settings."""

from __future__ import annotations

import pytest

from litpage import DictLoader, Environment, Mode, Settings
from litpage.environment.config import DEFAULT_MAX_DEPTH, DEFAULT_TEST_PATTERNS


class TestMode:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("development", Mode.DEVELOPMENT),
            ("DEV", Mode.DEVELOPMENT),
            (" production ", Mode.PRODUCTION),
            ("prod", Mode.PRODUCTION),
            ("test", Mode.TEST),
            ("staging", Mode.TEST),
            ("", Mode.TEST),
            (None, Mode.TEST),
            (Mode.PRODUCTION, Mode.PRODUCTION),
        ],
    )
    def test_parse(self, value, expected: Mode) -> None:
        assert Mode.parse(value) is expected

    def test_policies(self) -> None:
        assert Mode.DEVELOPMENT.renders_diagnostics and not Mode.DEVELOPMENT.caches
        assert Mode.PRODUCTION.caches and not Mode.PRODUCTION.renders_diagnostics
        assert not Mode.TEST.caches and not Mode.TEST.renders_diagnostics


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings.from_environ({})
        assert settings == Settings()
        assert settings.mode is Mode.TEST
        assert settings.max_depth == DEFAULT_MAX_DEPTH == 20
        assert settings.test_patterns == DEFAULT_TEST_PATTERNS

    def test_reads_variables(self) -> None:
        settings = Settings.from_environ(
            {
                "LITPAGE_ENV": "production",
                "LITPAGE_TEMPLATE_ROOT": "site",
                "LITPAGE_MAX_DEPTH": "7",
                "LITPAGE_TEST_DIRECTORY": "qa",
                "LITPAGE_TEST_PATTERNS": "*.qa.html, ,*.e2e.html",
            }
        )
        assert settings == Settings(
            mode=Mode.PRODUCTION,
            template_root="site",
            max_depth=7,
            test_directory="qa",
            test_patterns=("*.qa.html", "*.e2e.html"),
        )

    @pytest.mark.parametrize("raw", ["abc", "0", "-3"])
    def test_bad_max_depth(self, raw: str) -> None:
        with pytest.raises(ValueError, match="LITPAGE_MAX_DEPTH"):
            Settings.from_environ({"LITPAGE_MAX_DEPTH": raw})

    def test_uses_process_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("LITPAGE_ENV", "development")
        assert Settings.from_environ().mode is Mode.DEVELOPMENT

    def test_environment_picks_up_mode(self, monkeypatch) -> None:
        monkeypatch.setenv("LITPAGE_ENV", "production")
        env = Environment(loader=DictLoader({}))
        assert env.mode is Mode.PRODUCTION

    def test_default_loader_uses_template_root(self, tmp_path) -> None:
        env = Environment(settings=Settings(template_root=str(tmp_path)))
        assert env.loader.root == tmp_path.resolve()
