"""Shared pytest configuration for litpage examples.

Each example directory holds an ``app.py`` that renders at import time
and a sibling ``test_*.py`` that inspects the module's attributes. The
``example_app`` fixture imports that ``app.py`` afresh for every test, so
each test sees a new Environment with an empty cache.
"""

import importlib.util
from pathlib import Path

import pytest


@pytest.fixture
def example_app(request: pytest.FixtureRequest):
    """Execute the app.py beside the requesting test and return the module."""
    app_path = Path(request.path).parent / "app.py"
    spec = importlib.util.spec_from_file_location(f"litpage_example_{app_path.parent.name}", app_path)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module
