"""HTML test file discovery.

Walks the test directory for files matching glob patterns and describes
each as a plain dict. Plain dicts pass the safe context filter, so a test
runner page can render the listing directly:

    ${testFiles.map(f => `<li><a href="${f.url}">${escape(f.name)}</a></li>`).join('')}

"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from fnmatch import fnmatch
from pathlib import Path
from typing import Any
from urllib.parse import quote

from litpage.environment.config import DEFAULT_TEST_PATTERNS

logger = logging.getLogger(__name__)

DEFAULT_URL_PREFIX = "/html-test/file/"


def matches_any(filename: str, patterns: Sequence[str]) -> bool:
    return any(fnmatch(filename, pattern) for pattern in patterns)


def describe_test_file(path: Path, directory: Path, url_prefix: str = DEFAULT_URL_PREFIX) -> dict[str, Any]:
    """Listing entry for one test file.

    Keys are camelCase because templates read them as JavaScript objects.
    """
    stat = path.stat()
    relative = path.relative_to(directory).as_posix()
    modified = datetime.fromtimestamp(stat.st_mtime, tz=UTC)
    return {
        "name": relative,
        "path": path.as_posix(),
        "relativePath": relative,
        "url": url_prefix + quote(relative, safe=""),
        "size": stat.st_size,
        "modified": modified.strftime("%Y-%m-%dT%H:%M:%S.") + f"{modified.microsecond // 1000:03d}Z",
    }


def discover_test_files(
    directory: str | Path,
    patterns: Sequence[str] = DEFAULT_TEST_PATTERNS,
    *,
    url_prefix: str = DEFAULT_URL_PREFIX,
) -> list[dict[str, Any]]:
    """Find test files under ``directory`` whose file name matches a pattern.

    Returns entries sorted by name. A missing directory is not an error:
    it yields an empty list.

    Example:
        >>> discover_test_files("tests/html")
        [{'name': 'forms/login.test.html', 'relativePath': 'forms/login.test.html',
          'url': '/html-test/file/forms%2Flogin.test.html', ...}]
    """
    root = Path(directory)
    if not root.is_dir():
        logger.info("Test directory %s not found", root)
        return []

    entries = [
        describe_test_file(path, root, url_prefix)
        for path in root.rglob("*")
        if path.is_file() and matches_any(path.name, patterns)
    ]
    entries.sort(key=lambda entry: entry["name"])
    return entries


async def discover_test_files_async(
    directory: str | Path,
    patterns: Sequence[str] = DEFAULT_TEST_PATTERNS,
    *,
    url_prefix: str = DEFAULT_URL_PREFIX,
) -> list[dict[str, Any]]:
    """``discover_test_files`` without blocking the event loop."""
    return await asyncio.to_thread(discover_test_files, directory, patterns, url_prefix=url_prefix)
