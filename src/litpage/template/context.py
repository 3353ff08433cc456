"""Safe evaluation context.

The context builder is the only gate between caller data and template
expressions. It is conservative: a value it cannot classify is dropped
with a warning rather than passed through.

Admitted caller values:
- any value under an allow-listed key (``testFiles``, ``config``, ...)
- ``str``, ``int``, ``float``, ``bool``, ``None`` and ``undefined``
- exact ``dict``, ``list`` and ``tuple`` instances (subclasses are not
  plain data and are dropped)
- ``datetime`` and ``date``

Dropped (logged at WARNING): deny-listed keys, dunder keys, non-string
keys, callables and every other object type.

"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from datetime import date, datetime
from types import MappingProxyType
from typing import Any

from litpage.expr.runtime import UNDEFINED, build_globals
from litpage.utils.constants import ALLOWED_CONTEXT_KEYS, DENIED_CONTEXT_KEYS

logger = logging.getLogger(__name__)

_PLAIN_TYPES: tuple[type, ...] = (str, int, float, bool, type(None), dict, list, tuple)


def environment_snapshot() -> MappingProxyType[str, str]:
    """Read-only copy of the process environment."""
    return MappingProxyType(dict(os.environ))


def is_safe_value(value: Any) -> bool:
    """Whether ``value`` may enter an evaluation context under any key."""
    if type(value) in _PLAIN_TYPES:
        return True
    if value is UNDEFINED:
        return True
    return isinstance(value, (datetime, date))


def exclusion_reason(key: Any, value: Any) -> str | None:
    """Why ``key``/``value`` would be excluded, or None if admitted."""
    if not isinstance(key, str):
        return "non-string key"
    if key in DENIED_CONTEXT_KEYS:
        return "denied key"
    if key.startswith("__") and key.endswith("__"):
        return "dunder key"
    if key in ALLOWED_CONTEXT_KEYS:
        return None
    if callable(value):
        return "function value"
    if not is_safe_value(value):
        return f"unsupported type {type(value).__name__}"
    return None


def build_safe_context(context: Mapping[Any, Any] | None = None) -> dict[str, Any]:
    """Build a fresh evaluation context from caller data.

    Builtins come first so a caller value with the same name replaces the
    builtin for this evaluation only.

    Example:
        >>> ctx = build_safe_context({"title": "Home", "eval": eval})
        >>> ctx["title"]
        'Home'
        >>> "eval" in ctx
        False
    """
    safe: dict[str, Any] = build_globals()
    safe["env"] = environment_snapshot()
    if not context:
        return safe

    for key, value in context.items():
        reason = exclusion_reason(key, value)
        if reason is not None:
            logger.warning("Excluding context key %r from template evaluation: %s", key, reason)
            continue
        safe[key] = value
    return safe
