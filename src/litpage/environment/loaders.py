"""Template loaders for the litpage environment.

Loaders provide template source to the Environment. They implement
``get_source(name)`` returning ``(source, filename)``, ``exists(name)``
and an awaitable ``get_source_async(name)``.

Built-in Loaders:
- `FileSystemLoader`: Load from one root directory on disk
- `DictLoader`: Load from an in-memory dictionary (testing/embedded)

Template names are path-like strings relative to the loader root. Both
loaders normalize names and refuse absolute paths or ``..`` segments that
would leave the root, raising `PathEscapeError` before any read happens.

Thread-Safety:
Loaders are safe for concurrent ``get_source()`` calls. FileSystemLoader
reads files atomically, DictLoader does plain dict lookups.

"""

from __future__ import annotations

import asyncio
from pathlib import Path, PurePosixPath

from litpage.environment.exceptions import (
    PathEscapeError,
    TemplateDecodeError,
    TemplateNotFoundError,
)


def normalize_name(name: str) -> str:
    """Normalize a template name to a root-relative POSIX path.

    Collapses ``.`` and inner ``..`` segments; rejects anything that would
    climb above the root.

    Example:
        >>> normalize_name("pages/../index.html")
        'index.html'
        >>> normalize_name("../secrets.txt")
        Traceback (most recent call last):
        ...
        PathEscapeError: Template name '../secrets.txt' escapes the template root
    """
    if not name or "\x00" in name:
        raise PathEscapeError(name)
    candidate = name.replace("\\", "/")
    if candidate.startswith("/") or PurePosixPath(candidate).is_absolute():
        raise PathEscapeError(name)
    # Windows drive letters ("C:/...")
    if len(candidate) > 1 and candidate[1] == ":":
        raise PathEscapeError(name)

    parts: list[str] = []
    for part in candidate.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if not parts:
                raise PathEscapeError(name)
            parts.pop()
            continue
        parts.append(part)
    if not parts:
        raise PathEscapeError(name)
    return "/".join(parts)


class FileSystemLoader:
    """Load templates from a single root directory.

    Names are resolved against the root and canonicalized (symlinks
    followed) before the containment check, so a symlink pointing out of
    the root is rejected just like ``../``.

    Example:
            >>> loader = FileSystemLoader("templates/")
            >>> source, filename = loader.get_source("pages/about.html")
            >>> print(filename)
            '/srv/app/templates/pages/about.html'

    Raises:
        TemplateNotFoundError: If template is not a file under the root
        PathEscapeError: If the name leaves the root

    """

    __slots__ = ("_encoding", "_root")

    def __init__(self, root: str | Path, encoding: str = "utf-8"):
        self._root = Path(root).resolve()
        self._encoding = encoding

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, name: str) -> Path:
        """Return the canonical path for ``name``, enforcing root containment."""
        relative = normalize_name(name)
        path = (self._root / relative).resolve()
        if not path.is_relative_to(self._root):
            raise PathEscapeError(name, str(self._root))
        return path

    def exists(self, name: str) -> bool:
        return self.resolve(name).is_file()

    async def exists_async(self, name: str) -> bool:
        return await asyncio.to_thread(self.exists, name)

    def get_source(self, name: str) -> tuple[str, str]:
        """Load template source from the filesystem."""
        path = self.resolve(name)
        if not path.is_file():
            raise TemplateNotFoundError(f"Template '{name}' not found in: {self._root}")
        try:
            return path.read_text(self._encoding), str(path)
        except UnicodeDecodeError as e:
            raise TemplateDecodeError(
                f"Template is not valid {self._encoding} text ({e.reason})", name=name
            ) from e

    async def get_source_async(self, name: str) -> tuple[str, str]:
        """Load template source without blocking the event loop."""
        return await asyncio.to_thread(self.get_source, name)

    def list_templates(self) -> list[str]:
        """List all ``.html`` templates under the root."""
        if not self._root.is_dir():
            return []
        return sorted(
            path.relative_to(self._root).as_posix() for path in self._root.rglob("*.html")
        )


class DictLoader:
    """Load templates from an in-memory dictionary.

    Maps template names to source strings. Useful for testing and embedded
    templates. Names go through the same normalization as on disk, so
    ``"./index.html"`` finds ``"index.html"`` and ``"../x"`` is rejected.

    Note:
        Returns `None` as filename since templates are not file-backed.

    Example:
            >>> loader = DictLoader({
            ...     "index.html": "<main><site-nav></site-nav></main>",
            ...     "components/site-nav.html": "<nav>${title}</nav>",
            ... })
            >>> env = Environment(loader=loader)
            >>> await env.load_template("index.html", {"title": "Home"})
            '<main><nav>Home</nav></main>'

    Raises:
        TemplateNotFoundError: If template name not in mapping

    """

    __slots__ = ("_mapping",)

    def __init__(self, mapping: dict[str, str]):
        self._mapping = {normalize_name(name): source for name, source in mapping.items()}

    def resolve(self, name: str) -> str:
        return normalize_name(name)

    def exists(self, name: str) -> bool:
        return self.resolve(name) in self._mapping

    async def exists_async(self, name: str) -> bool:
        return self.exists(name)

    def get_source(self, name: str) -> tuple[str, None]:
        key = self.resolve(name)
        if key not in self._mapping:
            from difflib import get_close_matches

            available = sorted(self._mapping.keys())
            msg = f"Template '{name}' not found"
            matches = get_close_matches(key, available, n=1, cutoff=0.6)
            if matches:
                msg += f". Did you mean '{matches[0]}'?"
            elif available:
                msg += f". Available: {', '.join(available[:10])}"
                if len(available) > 10:
                    msg += f" ... ({len(available)} total)"
            raise TemplateNotFoundError(msg)
        return self._mapping[key], None

    async def get_source_async(self, name: str) -> tuple[str, None]:
        return self.get_source(name)

    def list_templates(self) -> list[str]:
        return sorted(self._mapping.keys())
