"""Value semantics for the litpage expression language.

Template expressions are written in JavaScript syntax, so values follow
JavaScript rules for stringification, truthiness, equality and arithmetic.
Python values flow through unchanged: ``dict`` is an object, ``list`` and
``tuple`` are arrays, ``None`` is ``null`` and `UNDEFINED` is
``undefined``.

Sandbox boundary:
    Member access never calls ``getattr`` on Python objects. Strings,
    arrays, numbers and dates expose fixed member tables below; mappings
    expose their keys; everything else reads as ``undefined``. Only
    `JsCallable` instances can be invoked, so a Python function hidden in
    context data cannot be called from a template.

Errors raised here (`JsError` subclasses) carry no location; the
interpreter re-raises them as ``TemplateRuntimeError`` with line info.

"""

from __future__ import annotations

import inspect
import json
import math
import random
import re
from collections.abc import Callable, Iterable
from datetime import date, datetime, timedelta, timezone
from types import MappingProxyType
from typing import Any
from urllib.parse import quote, unquote

from litpage.utils.html import html_escape

# Longest string a template may build with repeat()/padStart()/padEnd().
MAX_STRING_LENGTH = 1 << 24

# Integers past this magnitude are carried as doubles.
MAX_SAFE_INTEGER = (1 << 53) - 1


class _Undefined:
    """The ``undefined`` value. Falsy, distinct from ``None`` (``null``)."""

    __slots__ = ()
    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "UNDEFINED"


UNDEFINED = _Undefined()


class JsError(Exception):
    """Base for errors raised while evaluating an expression."""

    kind = "Error"


class JsTypeError(JsError):
    kind = "TypeError"


class JsRangeError(JsError):
    kind = "RangeError"


class JsSyntaxError(JsError):
    kind = "SyntaxError"


class JsURIError(JsError):
    kind = "URIError"


# ---------------------------------------------------------------------------
# Callables and host objects
# ---------------------------------------------------------------------------


class JsCallable:
    """Marker base for values an expression is allowed to call."""

    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def __call__(self, *args: Any) -> Any:  # pragma: no cover - abstract
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"function {self.name}() {{ [native code] }}"


def positional_arity(func: Callable[..., Any]) -> int | None:
    """Number of positional parameters ``func`` takes, or None for ``*args``."""
    count = 0
    for param in inspect.signature(func).parameters.values():
        if param.kind is param.VAR_POSITIONAL:
            return None
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            count += 1
    return count


class NativeFunction(JsCallable):
    """A Python function exposed to templates.

    Extra arguments are dropped the way JavaScript ignores surplus
    arguments, so ``items.map(escape)`` passes only the element.
    """

    __slots__ = ("arity", "func")

    def __init__(self, name: str, func: Callable[..., Any], arity: int | None = -1):
        super().__init__(name)
        self.func = func
        self.arity = positional_arity(func) if arity == -1 else arity

    def __call__(self, *args: Any) -> Any:
        if self.arity is not None:
            args = args[: self.arity]
        return self.func(*args)


class JsObject:
    """A host object with a fixed member table (Math, JSON, Date, ...)."""

    __slots__ = ("members", "tag")

    def __init__(self, tag: str, members: dict[str, Any]):
        self.tag = tag
        self.members = members

    def get_member(self, name: str) -> Any:
        return self.members.get(name, UNDEFINED)

    def __repr__(self) -> str:
        return f"[object {self.tag}]"


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------


def typeof(value: Any) -> str:
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (JsCallable, DateConstructor)):
        return "function"
    return "object"


def format_number(value: int | float) -> str:
    """JavaScript Number#toString for the common cases."""
    if isinstance(value, bool):
        return "true" if value else "false"
    value = to_double(value)
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return ("-" if value < 0 else "") + _integral_digits(value)
    text = repr(value)
    if "e" in text:
        mantissa, exponent = text.split("e")
        sign = exponent[0] if exponent[0] in "+-" else "+"
        digits = exponent.lstrip("+-").lstrip("0") or "0"
        text = f"{mantissa}e{sign}{digits}"
    return text


def _integral_digits(value: float) -> str:
    # Shortest round-trip digits, zero padded: 2**64 prints as 18446744073709552000.
    text = repr(abs(value))
    if "e" not in text:
        return text.removesuffix(".0")
    mantissa, exponent = text.split("e")
    digits = mantissa.replace(".", "")
    return digits + "0" * (int(exponent) + 1 - len(digits))


def to_double(value: int | float) -> int | float:
    """Round an integer outside the safe range to the nearest double."""
    if isinstance(value, int) and not isinstance(value, bool) and abs(value) > MAX_SAFE_INTEGER:
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    return value


def integer_literal(digits: str, base: int = 10) -> int | float:
    """Convert an unsigned digit string to the number it denotes."""
    digits = digits.lstrip("0") or "0"
    if len(digits) > 1100:
        # At least 2**1100 in any base.
        return math.inf
    if base == 10 and len(digits) > 15:
        return float(digits)
    return to_double(int(digits, base))


def to_str(value: Any) -> str:
    """Stringify a value the way a JavaScript template literal does."""
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, (bool, int, float)):
        return format_number(value)
    if isinstance(value, (list, tuple)):
        return ",".join("" if item is None or item is UNDEFINED else to_str(item) for item in value)
    if isinstance(value, (dict, MappingProxyType)):
        return "[object Object]"
    if isinstance(value, (datetime, date)):
        return JsDate.from_python(value).to_string()
    if isinstance(value, (JsDate, JsObject, JsCallable, DateConstructor)):
        return value.to_string() if isinstance(value, JsDate) else repr(value)
    return "[object Object]"


def to_number(value: Any) -> int | float:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return to_double(value)
    if value is None:
        return 0
    if value is UNDEFINED:
        return math.nan
    if isinstance(value, str):
        return _string_to_number(value)
    if isinstance(value, (datetime, date)):
        return JsDate.from_python(value).time_value()
    if isinstance(value, JsDate):
        return value.time_value()
    if isinstance(value, (list, tuple)):
        return _string_to_number(to_str(value))
    return math.nan


_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?)")


def _string_to_number(text: str) -> int | float:
    text = text.strip()
    if not text:
        return 0
    if text in ("Infinity", "+Infinity"):
        return math.inf
    if text == "-Infinity":
        return -math.inf
    if text[:2].lower() == "0x":
        try:
            return integer_literal(text[2:], 16)
        except ValueError:
            return math.nan
    if _NUMBER_RE.fullmatch(text):
        if any(ch in text for ch in ".eE"):
            return float(text)
        number = integer_literal(text.lstrip("+-"))
        return -number if text.startswith("-") else number
    return math.nan


def to_integer(value: Any) -> int:
    """ToIntegerOrInfinity clamped into a Python int (NaN becomes 0)."""
    number = to_number(value)
    if isinstance(number, int):
        return number
    if math.isnan(number):
        return 0
    if math.isinf(number):
        return MAX_STRING_LENGTH * 2 if number > 0 else -MAX_STRING_LENGTH * 2
    return int(number)


def truthy(value: Any) -> bool:
    if value is None or value is UNDEFINED:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return not (value == 0 or (isinstance(value, float) and math.isnan(value)))
    if isinstance(value, str):
        return value != ""
    return True


def to_primitive(value: Any, hint: str = "string") -> Any:
    if value is None or value is UNDEFINED or isinstance(value, (bool, int, float, str)):
        return value
    if hint == "number" and isinstance(value, (datetime, date, JsDate)):
        return to_number(value)
    return to_str(value)


def _is_object(value: Any) -> bool:
    return not (value is None or value is UNDEFINED or isinstance(value, (bool, int, float, str)))


def strict_equals(left: Any, right: Any) -> bool:
    if _is_object(left) or _is_object(right):
        return left is right
    if typeof(left) != typeof(right):
        return False
    if left is None or left is UNDEFINED:
        return left is right
    return left == right


def loose_equals(left: Any, right: Any) -> bool:
    left_null = left is None or left is UNDEFINED
    right_null = right is None or right is UNDEFINED
    if left_null or right_null:
        return left_null and right_null
    if _is_object(left) and _is_object(right):
        return left is right
    if _is_object(left):
        left = to_primitive(left)
    if _is_object(right):
        right = to_primitive(right)
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    return to_number(left) == to_number(right)


def compare(op: str, left: Any, right: Any) -> bool:
    left = to_primitive(left, "number")
    right = to_primitive(right, "number")
    if not (isinstance(left, str) and isinstance(right, str)):
        left = to_number(left)
        right = to_number(right)
    if op == "<":
        return left < right
    if op == ">":
        return left > right
    if op == "<=":
        return left <= right
    return left >= right


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------


def add(left: Any, right: Any) -> Any:
    left = to_primitive(left)
    right = to_primitive(right)
    if isinstance(left, str) or isinstance(right, str):
        return to_str(left) + to_str(right)
    return to_double(to_number(left) + to_number(right))


def divide(left: Any, right: Any) -> float:
    a = to_number(left)
    b = to_number(right)
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    try:
        return a / b
    except OverflowError:
        return math.copysign(math.inf, a) * math.copysign(1.0, b)


def modulo(left: Any, right: Any) -> int | float:
    a = to_number(left)
    b = to_number(right)
    if isinstance(a, int) and isinstance(b, int):
        if b == 0:
            return math.nan
        remainder = abs(a) % abs(b)
        return -remainder if a < 0 else remainder
    try:
        return math.fmod(a, b)
    except ValueError:
        return math.nan


def power(left: Any, right: Any) -> int | float:
    a = to_number(left)
    b = to_number(right)
    if isinstance(a, int) and isinstance(b, int) and 0 <= b <= 1024:
        return to_double(a**b)
    if a == 0 and b < 0:
        return math.inf
    try:
        return math.pow(a, b)
    except OverflowError:
        odd = isinstance(b, int) or (math.isfinite(b) and b.is_integer())
        return -math.inf if a < 0 and odd and int(b) % 2 else math.inf
    except ValueError:
        return math.nan


def binary_op(op: str, left: Any, right: Any) -> Any:
    if op == "+":
        return add(left, right)
    if op == "-":
        return to_double(to_number(left) - to_number(right))
    if op == "*":
        return to_double(to_number(left) * to_number(right))
    if op == "/":
        return divide(left, right)
    if op == "%":
        return modulo(left, right)
    if op == "**":
        return power(left, right)
    if op == "===":
        return strict_equals(left, right)
    if op == "!==":
        return not strict_equals(left, right)
    if op == "==":
        return loose_equals(left, right)
    if op == "!=":
        return not loose_equals(left, right)
    return compare(op, left, right)


# ---------------------------------------------------------------------------
# Calling
# ---------------------------------------------------------------------------


def call(func: Any, *args: Any) -> Any:
    if not isinstance(func, JsCallable):
        raise JsTypeError(f"{typeof(func) if func is not UNDEFINED else 'undefined'} is not a function")
    return func(*args)


# ---------------------------------------------------------------------------
# Member tables
# ---------------------------------------------------------------------------


def _relative_index(index: Any, length: int, default: int) -> int:
    if index is UNDEFINED:
        return default
    position = to_integer(index)
    if position < 0:
        return max(length + position, 0)
    return min(position, length)


def _slice(value: Any, start: Any = UNDEFINED, end: Any = UNDEFINED) -> Any:
    length = len(value)
    lo = _relative_index(start, length, 0)
    hi = _relative_index(end, length, length)
    result = value[lo:hi] if lo < hi else value[0:0]
    return list(result) if isinstance(value, tuple) else result


def _at(value: Any, index: Any = UNDEFINED) -> Any:
    position = to_integer(index)
    if position < 0:
        position += len(value)
    if 0 <= position < len(value):
        return value[position]
    return UNDEFINED


def _check_length(length: int) -> None:
    if length > MAX_STRING_LENGTH:
        raise JsRangeError("Invalid string length")


def _str_includes(s: str, search: Any = UNDEFINED, start: Any = UNDEFINED) -> bool:
    return to_str(search) in s[_relative_index(start, len(s), 0) :]


def _str_starts_with(s: str, search: Any = UNDEFINED, start: Any = UNDEFINED) -> bool:
    return s.startswith(to_str(search), max(to_integer(start), 0) if start is not UNDEFINED else 0)


def _str_ends_with(s: str, search: Any = UNDEFINED, end: Any = UNDEFINED) -> bool:
    stop = len(s) if end is UNDEFINED else min(max(to_integer(end), 0), len(s))
    return s[:stop].endswith(to_str(search))


def _str_index_of(s: str, search: Any = UNDEFINED, start: Any = UNDEFINED) -> int:
    return s.find(to_str(search), max(to_integer(start), 0) if start is not UNDEFINED else 0)


def _str_last_index_of(s: str, search: Any = UNDEFINED) -> int:
    return s.rfind(to_str(search))


def _str_substring(s: str, start: Any = UNDEFINED, end: Any = UNDEFINED) -> str:
    length = len(s)
    lo = min(max(to_integer(start), 0), length)
    hi = length if end is UNDEFINED else min(max(to_integer(end), 0), length)
    if lo > hi:
        lo, hi = hi, lo
    return s[lo:hi]


def _str_split(s: str, separator: Any = UNDEFINED, limit: Any = UNDEFINED) -> list[str]:
    if separator is UNDEFINED:
        parts = [s]
    else:
        sep = to_str(separator)
        parts = list(s) if sep == "" else s.split(sep)
    if limit is not UNDEFINED:
        parts = parts[: max(to_integer(limit), 0)]
    return parts


def _str_replace(s: str, pattern: Any = UNDEFINED, replacement: Any = UNDEFINED, *, count: int = 1) -> str:
    needle = to_str(pattern)
    if isinstance(replacement, JsCallable):
        out: list[str] = []
        start = 0
        replaced = 0
        while count < 0 or replaced < count:
            index = s.find(needle, start)
            if index == -1:
                break
            out.append(s[start:index])
            out.append(to_str(call(replacement, needle, index, s)))
            start = index + len(needle)
            replaced += 1
            if not needle:
                if start < len(s):
                    out.append(s[start])
                start += 1
                if start > len(s):
                    break
        out.append(s[start:])
        return "".join(out)
    return s.replace(needle, to_str(replacement), count)


def _str_replace_all(s: str, pattern: Any = UNDEFINED, replacement: Any = UNDEFINED) -> str:
    return _str_replace(s, pattern, replacement, count=-1)


def _str_repeat(s: str, count: Any = UNDEFINED) -> str:
    times = to_integer(count)
    if times < 0:
        raise JsRangeError(f"Invalid count value: {format_number(to_number(count))}")
    _check_length(len(s) * times)
    return s * times


def _pad(s: str, target: Any, fill: Any, *, start: bool) -> str:
    length = to_integer(target)
    _check_length(length)
    filler = " " if fill is UNDEFINED else to_str(fill)
    if length <= len(s) or not filler:
        return s
    needed = length - len(s)
    padding = (filler * (needed // len(filler) + 1))[:needed]
    return padding + s if start else s + padding


def _str_pad_start(s: str, target: Any = UNDEFINED, fill: Any = UNDEFINED) -> str:
    return _pad(s, target, fill, start=True)


def _str_pad_end(s: str, target: Any = UNDEFINED, fill: Any = UNDEFINED) -> str:
    return _pad(s, target, fill, start=False)


def _str_char_at(s: str, index: Any = UNDEFINED) -> str:
    position = to_integer(index)
    return s[position] if 0 <= position < len(s) else ""


def _str_concat(s: str, *others: Any) -> str:
    result = s + "".join(to_str(other) for other in others)
    _check_length(len(result))
    return result


STRING_MEMBERS: dict[str, Callable[..., Any]] = {
    "toUpperCase": lambda s: s.upper(),
    "toLowerCase": lambda s: s.lower(),
    "trim": lambda s: s.strip(),
    "trimStart": lambda s: s.lstrip(),
    "trimEnd": lambda s: s.rstrip(),
    "includes": _str_includes,
    "startsWith": _str_starts_with,
    "endsWith": _str_ends_with,
    "indexOf": _str_index_of,
    "lastIndexOf": _str_last_index_of,
    "slice": _slice,
    "substring": _str_substring,
    "split": _str_split,
    "replace": _str_replace,
    "replaceAll": _str_replace_all,
    "repeat": _str_repeat,
    "padStart": _str_pad_start,
    "padEnd": _str_pad_end,
    "charAt": _str_char_at,
    "at": _at,
    "concat": _str_concat,
    "toString": lambda s: s,
}


def _arr_map(items: Any, fn: Any = UNDEFINED) -> list[Any]:
    return [call(fn, item, i, items) for i, item in enumerate(items)]


def _arr_filter(items: Any, fn: Any = UNDEFINED) -> list[Any]:
    return [item for i, item in enumerate(items) if truthy(call(fn, item, i, items))]


def _arr_join(items: Any, separator: Any = UNDEFINED) -> str:
    sep = "," if separator is UNDEFINED else to_str(separator)
    return sep.join("" if item is None or item is UNDEFINED else to_str(item) for item in items)


def _arr_includes(items: Any, search: Any = UNDEFINED) -> bool:
    for item in items:
        if strict_equals(item, search):
            return True
        if isinstance(item, float) and isinstance(search, float) and math.isnan(item) and math.isnan(search):
            return True
    return False


def _arr_index_of(items: Any, search: Any = UNDEFINED) -> int:
    for i, item in enumerate(items):
        if strict_equals(item, search):
            return i
    return -1


def _arr_last_index_of(items: Any, search: Any = UNDEFINED) -> int:
    for i in range(len(items) - 1, -1, -1):
        if strict_equals(items[i], search):
            return i
    return -1


def _arr_some(items: Any, fn: Any = UNDEFINED) -> bool:
    return any(truthy(call(fn, item, i, items)) for i, item in enumerate(items))


def _arr_every(items: Any, fn: Any = UNDEFINED) -> bool:
    return all(truthy(call(fn, item, i, items)) for i, item in enumerate(items))


def _arr_find(items: Any, fn: Any = UNDEFINED) -> Any:
    for i, item in enumerate(items):
        if truthy(call(fn, item, i, items)):
            return item
    return UNDEFINED


def _arr_find_index(items: Any, fn: Any = UNDEFINED) -> int:
    for i, item in enumerate(items):
        if truthy(call(fn, item, i, items)):
            return i
    return -1


def _arr_concat(items: Any, *others: Any) -> list[Any]:
    result = list(items)
    for other in others:
        if isinstance(other, (list, tuple)):
            result.extend(other)
        else:
            result.append(other)
    return result


def _arr_reduce(items: Any, *args: Any) -> Any:
    if not args:
        raise JsTypeError("undefined is not a function")
    fn = args[0]
    values = list(items)
    if len(args) > 1:
        accumulator = args[1]
        start = 0
    elif values:
        accumulator = values[0]
        start = 1
    else:
        raise JsTypeError("Reduce of empty array with no initial value")
    for i in range(start, len(values)):
        accumulator = call(fn, accumulator, values[i], i, items)
    return accumulator


def _arr_flat(items: Any, depth: Any = UNDEFINED) -> list[Any]:
    levels = 1 if depth is UNDEFINED else to_integer(depth)
    result: list[Any] = []
    for item in items:
        if isinstance(item, (list, tuple)) and levels > 0:
            result.extend(_arr_flat(item, levels - 1))
        else:
            result.append(item)
    return result


def _arr_for_each(items: Any, fn: Any = UNDEFINED) -> Any:
    for i, item in enumerate(items):
        call(fn, item, i, items)
    return UNDEFINED


ARRAY_MEMBERS: dict[str, Callable[..., Any]] = {
    "map": _arr_map,
    "filter": _arr_filter,
    "join": _arr_join,
    "includes": _arr_includes,
    "indexOf": _arr_index_of,
    "lastIndexOf": _arr_last_index_of,
    "slice": _slice,
    "some": _arr_some,
    "every": _arr_every,
    "find": _arr_find,
    "findIndex": _arr_find_index,
    "concat": _arr_concat,
    "reduce": _arr_reduce,
    "flat": _arr_flat,
    "forEach": _arr_for_each,
    "at": _at,
    # Non-mutating: the caller's data is never modified.
    "reverse": lambda items: list(reversed(items)),
    "toString": lambda items: to_str(items),
}


def _num_to_fixed(value: Any, digits: Any = UNDEFINED) -> str:
    places = 0 if digits is UNDEFINED else to_integer(digits)
    if not 0 <= places <= 100:
        raise JsRangeError("toFixed() digits argument must be between 0 and 100")
    number = to_number(value)
    if isinstance(number, float) and (math.isnan(number) or math.isinf(number)):
        return format_number(number)
    return f"{number:.{places}f}"


def _num_to_string(value: Any, radix: Any = UNDEFINED) -> str:
    base = 10 if radix is UNDEFINED else to_integer(radix)
    if base == 10:
        return format_number(value)
    if not 2 <= base <= 36:
        raise JsRangeError("toString() radix must be between 2 and 36")
    number = to_number(value)
    if isinstance(number, float) and not number.is_integer():
        return format_number(number)
    integer = int(number)
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if integer == 0:
        return "0"
    out: list[str] = []
    magnitude = abs(integer)
    while magnitude:
        magnitude, rem = divmod(magnitude, base)
        out.append(digits[rem])
    return ("-" if integer < 0 else "") + "".join(reversed(out))


NUMBER_MEMBERS: dict[str, Callable[..., Any]] = {
    "toFixed": _num_to_fixed,
    "toString": _num_to_string,
}


def _bind(name: str, func: Callable[..., Any], receiver: Any) -> NativeFunction:
    arity = positional_arity(func)
    return NativeFunction(name, lambda *args: func(receiver, *args), None if arity is None else arity - 1)


def get_member(obj: Any, name: str) -> Any:
    """Read ``obj.name`` with sandboxed, JavaScript-like semantics."""
    if obj is None or obj is UNDEFINED:
        raise JsTypeError(f"Cannot read properties of {to_str(obj)} (reading '{name}')")
    if isinstance(obj, (dict, MappingProxyType)):
        return obj.get(name, UNDEFINED)
    if isinstance(obj, str):
        if name == "length":
            return len(obj)
        method = STRING_MEMBERS.get(name)
        return _bind(name, method, obj) if method else UNDEFINED
    if isinstance(obj, (list, tuple)):
        if name == "length":
            return len(obj)
        method = ARRAY_MEMBERS.get(name)
        return _bind(name, method, obj) if method else UNDEFINED
    if isinstance(obj, bool):
        if name == "toString":
            return NativeFunction(name, lambda: format_number(obj), 0)
        return UNDEFINED
    if isinstance(obj, (int, float)):
        method = NUMBER_MEMBERS.get(name)
        return _bind(name, method, obj) if method else UNDEFINED
    if isinstance(obj, (datetime, date)):
        obj = JsDate.from_python(obj)
    if isinstance(obj, (JsObject, JsDate, DateConstructor)):
        return obj.get_member(name)
    if isinstance(obj, JsCallable) and name == "name":
        return obj.name
    return UNDEFINED


def get_index(obj: Any, key: Any) -> Any:
    """Read ``obj[key]``."""
    if obj is None or obj is UNDEFINED:
        raise JsTypeError(f"Cannot read properties of {to_str(obj)} (reading '{to_str(key)}')")
    if isinstance(obj, (list, tuple, str)) and isinstance(key, (int, float)) and not isinstance(key, bool):
        if isinstance(key, float):
            if not key.is_integer():
                return UNDEFINED
            key = int(key)
        if 0 <= key < len(obj):
            return obj[key]
        return UNDEFINED
    return get_member(obj, to_str(key))


# ---------------------------------------------------------------------------
# Date
# ---------------------------------------------------------------------------


def _local_tz() -> Any:
    return datetime.now().astimezone().tzinfo


class JsDate:
    """A Date value: an aware datetime, or None for Invalid Date."""

    __slots__ = ("_dt",)

    def __init__(self, dt: datetime | None):
        self._dt = dt

    @classmethod
    def from_python(cls, value: date | datetime) -> JsDate:
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.astimezone()
            return cls(value)
        return cls(datetime(value.year, value.month, value.day, tzinfo=timezone.utc))

    @classmethod
    def from_timestamp(cls, ms: Any) -> JsDate:
        number = to_number(ms)
        if isinstance(number, float) and (math.isnan(number) or math.isinf(number)):
            return cls(None)
        try:
            return cls(datetime.fromtimestamp(number / 1000, tz=timezone.utc).astimezone(_local_tz()))
        except (OverflowError, OSError, ValueError):
            return cls(None)

    @classmethod
    def parse(cls, text: str) -> JsDate:
        text = text.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            if len(text) == 10:
                # Date-only ISO strings are UTC midnight
                parsed = datetime.fromisoformat(text).replace(tzinfo=timezone.utc)
            else:
                parsed = datetime.fromisoformat(text)
        except ValueError:
            return cls(None)
        if parsed.tzinfo is None:
            parsed = parsed.astimezone()
        return cls(parsed)

    @property
    def valid(self) -> bool:
        return self._dt is not None

    def time_value(self) -> int | float:
        if self._dt is None:
            return math.nan
        return int(self._dt.timestamp() * 1000)

    def to_string(self) -> str:
        if self._dt is None:
            return "Invalid Date"
        offset = self._dt.strftime("%z") or "+0000"
        return self._dt.strftime(f"%a %b %d %Y %H:%M:%S GMT{offset}")

    def to_iso_string(self) -> str:
        if self._dt is None:
            raise JsRangeError("Invalid time value")
        utc = self._dt.astimezone(timezone.utc)
        return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"

    def _field(self, getter: Callable[[datetime], int]) -> Callable[[], int | float]:
        def read() -> int | float:
            return math.nan if self._dt is None else getter(self._dt)

        return read

    def get_member(self, name: str) -> Any:
        fields: dict[str, Callable[[datetime], int]] = {
            "getFullYear": lambda dt: dt.year,
            "getMonth": lambda dt: dt.month - 1,
            "getDate": lambda dt: dt.day,
            "getDay": lambda dt: (dt.weekday() + 1) % 7,
            "getHours": lambda dt: dt.hour,
            "getMinutes": lambda dt: dt.minute,
            "getSeconds": lambda dt: dt.second,
            "getMilliseconds": lambda dt: dt.microsecond // 1000,
        }
        if name in fields:
            return NativeFunction(name, self._field(fields[name]), 0)
        if name in ("getTime", "valueOf"):
            return NativeFunction(name, self.time_value, 0)
        if name in ("toISOString", "toJSON"):
            return NativeFunction(name, self.to_iso_string, 0)
        if name == "toString":
            return NativeFunction(name, self.to_string, 0)
        if name == "toDateString":
            return NativeFunction(name, lambda: self.to_string()[:15] if self._dt else "Invalid Date", 0)
        if name == "toLocaleDateString":
            return NativeFunction(name, lambda: self._strftime("%m/%d/%Y"), 0)
        if name == "toLocaleTimeString":
            return NativeFunction(name, lambda: self._strftime("%I:%M:%S %p"), 0)
        if name == "toLocaleString":
            return NativeFunction(name, lambda: self._strftime("%m/%d/%Y, %I:%M:%S %p"), 0)
        return UNDEFINED

    def _strftime(self, fmt: str) -> str:
        if self._dt is None:
            return "Invalid Date"
        return self._dt.strftime(fmt)

    def __repr__(self) -> str:
        return self.to_string()


class DateConstructor:
    """The ``Date`` global: callable with ``new``, plus ``Date.now()``."""

    __slots__ = ()

    name = "Date"

    def construct(self, *args: Any) -> JsDate:
        if not args:
            return JsDate(datetime.now().astimezone())
        if len(args) == 1:
            value = args[0]
            if isinstance(value, JsDate):
                return JsDate(value._dt)
            if isinstance(value, (datetime, date)):
                return JsDate.from_python(value)
            if isinstance(value, str):
                return JsDate.parse(value)
            return JsDate.from_timestamp(value)
        parts = [to_integer(arg) for arg in args[:7]]
        year, month = parts[0], parts[1]
        day = parts[2] if len(parts) > 2 else 1
        hour, minute, second, ms = (parts[3:] + [0, 0, 0, 0])[:4]
        try:
            base = datetime(year + month // 12, month % 12 + 1, 1)
            moment = base + timedelta(
                days=day - 1, hours=hour, minutes=minute, seconds=second, milliseconds=ms
            )
        except (OverflowError, ValueError):
            return JsDate(None)
        return JsDate(moment.astimezone())

    def get_member(self, name: str) -> Any:
        if name == "now":
            return NativeFunction("now", lambda: int(datetime.now().timestamp() * 1000), 0)
        if name == "parse":
            return NativeFunction("parse", lambda text=UNDEFINED: JsDate.parse(to_str(text)).time_value(), 1)
        return UNDEFINED

    def __repr__(self) -> str:
        return "function Date() { [native code] }"


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


def _to_json_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, str, int)):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value) if value.is_integer() else value
    if isinstance(value, (datetime, date)):
        value = JsDate.from_python(value)
    if isinstance(value, JsDate):
        return value.to_iso_string() if value.valid else None
    if isinstance(value, (list, tuple)):
        return [None if _omitted(item) else _to_json_value(item) for item in value]
    if isinstance(value, (dict, MappingProxyType)):
        return {str(k): _to_json_value(v) for k, v in value.items() if not _omitted(v)}
    return {}


def _omitted(value: Any) -> bool:
    return value is UNDEFINED or isinstance(value, (JsCallable, DateConstructor))


def json_stringify(value: Any = UNDEFINED, replacer: Any = UNDEFINED, space: Any = UNDEFINED) -> Any:
    if _omitted(value):
        return UNDEFINED
    indent: int | str | None = None
    if isinstance(space, (int, float)) and not isinstance(space, bool):
        indent = min(max(to_integer(space), 0), 10) or None
    elif isinstance(space, str) and space:
        indent = space[:10]
    try:
        if indent is None:
            return json.dumps(_to_json_value(value), ensure_ascii=False, separators=(",", ":"))
        return json.dumps(_to_json_value(value), ensure_ascii=False, indent=indent)
    except RecursionError:
        raise JsTypeError("Converting circular structure to JSON") from None
    except ValueError as e:
        raise JsTypeError(str(e)) from None


def json_parse(text: Any = UNDEFINED) -> Any:
    try:
        return json.loads(to_str(text))
    except json.JSONDecodeError as e:
        raise JsSyntaxError(f"JSON.parse: {e.msg} at position {e.pos}") from None


# ---------------------------------------------------------------------------
# Global functions
# ---------------------------------------------------------------------------


def escape(value: Any = UNDEFINED) -> str:
    """HTML-entity-encode the string form of ``value``."""
    return html_escape(to_str(value))


def encode_uri_component(value: Any = UNDEFINED) -> str:
    return quote(to_str(value), safe="-_.!~*'()")


def decode_uri_component(value: Any = UNDEFINED) -> str:
    text = to_str(value)
    decoded = unquote(text, errors="strict") if "%" in text else text
    if re.search(r"%(?![0-9A-Fa-f]{2})", text):
        raise JsURIError("URI malformed")
    return decoded


def _decode_uri_component(value: Any = UNDEFINED) -> str:
    try:
        return decode_uri_component(value)
    except UnicodeDecodeError:
        raise JsURIError("URI malformed") from None


_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def parse_int(value: Any = UNDEFINED, radix: Any = UNDEFINED) -> int | float:
    text = to_str(value).strip()
    sign = 1
    if text[:1] in "+-" and text:
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    base = 0 if radix is UNDEFINED else to_integer(radix)
    if base == 0:
        base = 10
        if text[:2].lower() == "0x":
            base = 16
            text = text[2:]
    elif base == 16 and text[:2].lower() == "0x":
        text = text[2:]
    if not 2 <= base <= 36:
        return math.nan
    valid = _DIGITS[:base]
    end = 0
    while end < len(text) and text[end].lower() in valid:
        end += 1
    if end == 0:
        return math.nan
    return sign * integer_literal(text[:end], base)


_FLOAT_PREFIX_RE = re.compile(r"[+-]?(?:Infinity|\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?)")


def parse_float(value: Any = UNDEFINED) -> float:
    match = _FLOAT_PREFIX_RE.match(to_str(value).strip())
    if not match:
        return math.nan
    return float(match.group(0).replace("Infinity", "inf"))


def is_nan(value: Any = UNDEFINED) -> bool:
    number = to_number(value)
    return isinstance(number, float) and math.isnan(number)


def _math_extreme(pick: Callable[[Iterable[Any]], Any], empty: float) -> Callable[..., Any]:
    def extreme(*args: Any) -> Any:
        numbers = [to_number(arg) for arg in args]
        if not numbers:
            return empty
        if any(isinstance(n, float) and math.isnan(n) for n in numbers):
            return math.nan
        return pick(numbers)

    return extreme


def _finite_or(func: Callable[[float], Any]) -> Callable[..., Any]:
    def apply(value: Any = UNDEFINED) -> Any:
        number = to_number(value)
        if isinstance(number, float) and (math.isnan(number) or math.isinf(number)):
            return number
        return func(number)

    return apply


def _math_sqrt(value: Any = UNDEFINED) -> float:
    number = to_number(value)
    if isinstance(number, float) and math.isnan(number):
        return math.nan
    if number < 0:
        return math.nan
    return math.sqrt(number) if not math.isinf(number) else math.inf


def _math_log(value: Any = UNDEFINED) -> float:
    number = to_number(value)
    if isinstance(number, float) and math.isnan(number) or number < 0:
        return math.nan
    if number == 0:
        return -math.inf
    return math.log(number)


def _math_sign(value: Any = UNDEFINED) -> int | float:
    number = to_number(value)
    if isinstance(number, float) and math.isnan(number):
        return math.nan
    return (number > 0) - (number < 0)


def _object_keys(value: Any = UNDEFINED) -> list[str]:
    if isinstance(value, (dict, MappingProxyType)):
        return [str(key) for key in value]
    if isinstance(value, (list, tuple, str)):
        return [str(i) for i in range(len(value))]
    return []


def _object_values(value: Any = UNDEFINED) -> list[Any]:
    if isinstance(value, (dict, MappingProxyType)):
        return list(value.values())
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str):
        return list(value)
    return []


def _object_entries(value: Any = UNDEFINED) -> list[list[Any]]:
    return [[key, item] for key, item in zip(_object_keys(value), _object_values(value))]


def _harness_map(items: Any = UNDEFINED, fn: Any = UNDEFINED) -> list[Any]:
    return _arr_map(items, fn) if isinstance(items, (list, tuple)) else []


def _harness_filter(items: Any = UNDEFINED, fn: Any = UNDEFINED) -> list[Any]:
    return _arr_filter(items, fn) if isinstance(items, (list, tuple)) else []


def _harness_join(items: Any = UNDEFINED, separator: Any = UNDEFINED) -> str:
    return _arr_join(items, separator) if isinstance(items, (list, tuple)) else ""


def _round(number: float) -> int:
    return math.floor(number + 0.5)


def _string(*args: Any) -> str:
    return to_str(args[0]) if args else ""


def _number(*args: Any) -> int | float:
    return to_number(args[0]) if args else 0


def _boolean(value: Any = UNDEFINED) -> bool:
    return truthy(value)


def build_globals() -> dict[str, Any]:
    """Fresh builtin bindings for one evaluation context."""
    math_members: dict[str, Any] = {
        "max": NativeFunction("max", _math_extreme(max, -math.inf)),
        "min": NativeFunction("min", _math_extreme(min, math.inf)),
        "floor": NativeFunction("floor", _finite_or(math.floor)),
        "ceil": NativeFunction("ceil", _finite_or(math.ceil)),
        "round": NativeFunction("round", _finite_or(_round)),
        "trunc": NativeFunction("trunc", _finite_or(math.trunc)),
        "abs": NativeFunction("abs", lambda value=UNDEFINED: abs(to_number(value))),
        "sqrt": NativeFunction("sqrt", _math_sqrt),
        "pow": NativeFunction("pow", lambda base=UNDEFINED, exp=UNDEFINED: power(base, exp)),
        "log": NativeFunction("log", _math_log),
        "sign": NativeFunction("sign", _math_sign),
        "random": NativeFunction("random", random.random, 0),
        "PI": math.pi,
        "E": math.e,
    }
    return {
        "escape": NativeFunction("escape", escape),
        "encodeURIComponent": NativeFunction("encodeURIComponent", encode_uri_component),
        "decodeURIComponent": NativeFunction("decodeURIComponent", _decode_uri_component),
        "parseInt": NativeFunction("parseInt", parse_int),
        "parseFloat": NativeFunction("parseFloat", parse_float),
        "isNaN": NativeFunction("isNaN", is_nan),
        "String": NativeFunction("String", _string, 1),
        "Number": NativeFunction("Number", _number, 1),
        "Boolean": NativeFunction("Boolean", _boolean),
        "Math": JsObject("Math", math_members),
        "JSON": JsObject(
            "JSON",
            {
                "stringify": NativeFunction("stringify", json_stringify),
                "parse": NativeFunction("parse", json_parse),
            },
        ),
        "Object": JsObject(
            "Object",
            {
                "keys": NativeFunction("keys", _object_keys),
                "values": NativeFunction("values", _object_values),
                "entries": NativeFunction("entries", _object_entries),
            },
        ),
        "Array": JsObject(
            "Array",
            {"isArray": NativeFunction("isArray", lambda value=UNDEFINED: isinstance(value, (list, tuple)))},
        ),
        "Date": DateConstructor(),
        "map": NativeFunction("map", _harness_map),
        "filter": NativeFunction("filter", _harness_filter),
        "join": NativeFunction("join", _harness_join),
    }
