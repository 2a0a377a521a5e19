"""Bounded, non-throwing string rendering for log lines.

Everything here is used on the logging path, so nothing in this module is
allowed to raise: odd values degrade to placeholders instead.
"""

from __future__ import annotations

import dataclasses
import json
import math
import re
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel


MAX_ARRAY_LENGTH = 5
MAX_DEPTH = 2
UNSERIALIZABLE = "[Unserializable]"


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()

_SEQUENCE_BRACKETS: dict[type, tuple[str, str]] = {
    list: ("[", "]"),
    tuple: ("(", ")"),
    deque: ("deque([", "])"),
    set: ("{", "}"),
    frozenset: ("frozenset({", "})"),
}
_EMPTY_SEQUENCES: dict[type, str] = {
    list: "[]",
    tuple: "()",
    deque: "deque([])",
    set: "set()",
    frozenset: "frozenset()",
}

_PLACEHOLDER = re.compile(r"%[sdifjoO%]")
_LEADING_INT = re.compile(r"\s*[+-]?\d+")
_LEADING_FLOAT = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _fallback(value: Any) -> str:
    try:
        return f"<{type(value).__name__} object>"
    except Exception:  # noqa: BLE001
        return "<object>"


def _sequence_kind(value: Any) -> type | None:
    for kind in _SEQUENCE_BRACKETS:
        if isinstance(value, kind):
            return kind
    return None


def _render_key(key: Any, depth: int, seen: set[int]) -> str:
    if isinstance(key, str) and key.isidentifier():
        return key
    return _render(key, depth, seen)


def _render_fields(name: str, fields: Mapping[str, Any], depth: int, seen: set[int]) -> str:
    body = _render_mapping(fields, depth, seen)
    return f"{name} {body}"


def _render_mapping(value: Mapping[Any, Any], depth: int, seen: set[int]) -> str:
    if not value:
        return "{}"
    parts = [f"{_render_key(k, depth + 1, seen)}: {_render(v, depth + 1, seen)}" for k, v in value.items()]
    return "{ " + ", ".join(parts) + " }"


def _render_sequence(value: Any, kind: type, depth: int, seen: set[int]) -> str:
    items = list(value)
    if not items:
        return _EMPTY_SEQUENCES[kind]

    parts = [_render(item, depth + 1, seen) for item in items[:MAX_ARRAY_LENGTH]]
    remaining = len(items) - MAX_ARRAY_LENGTH
    if remaining > 0:
        parts.append(f"... {remaining} more item{'s' if remaining > 1 else ''}")

    opening, closing = _SEQUENCE_BRACKETS[kind]
    return f"{opening} " + ", ".join(parts) + f" {closing}"


def _render(value: Any, depth: int, seen: set[int]) -> str:
    if value is None or isinstance(value, (str, bytes, bool, int, float, complex)):
        return repr(value)

    container = isinstance(value, (Mapping, BaseModel)) or _sequence_kind(value) is not None
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        container = True
    if not container:
        return repr(value)

    marker = id(value)
    if marker in seen:
        return "[Circular]"
    if depth > MAX_DEPTH:
        return f"[{type(value).__name__}]"

    seen.add(marker)
    try:
        if isinstance(value, Mapping):
            return _render_mapping(value, depth, seen)
        if isinstance(value, BaseModel):
            fields = {name: getattr(value, name) for name in type(value).model_fields}
            return _render_fields(type(value).__name__, fields, depth, seen)
        if dataclasses.is_dataclass(value):
            fields = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
            return _render_fields(type(value).__name__, fields, depth, seen)
        return _render_sequence(value, _sequence_kind(value), depth, seen)
    finally:
        seen.discard(marker)


def safe_string(value: Any) -> str:
    """Render any value for logging, showing at most 5 items per sequence.

    Cycles render as ``[Circular]`` and containers nested deeper than
    ``MAX_DEPTH`` collapse to ``[<type>]``.
    """

    try:
        return _render(value, 0, set())
    except Exception:  # noqa: BLE001
        return _fallback(value)


def to_json(value: Any) -> str:
    """Compact JSON for log lines; ``MISSING`` renders as ``undefined``."""

    if value is MISSING:
        return "undefined"
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        return UNSERIALIZABLE


def _number_text(number: float) -> str:
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "Infinity" if number > 0 else "-Infinity"
    if number.is_integer():
        return str(int(number))
    return repr(number)


def _to_number(value: Any) -> str:
    """``%d``: the whole number, fractions kept (``3.9`` stays ``3.9``)."""

    if isinstance(value, int):
        return str(int(value))
    try:
        return _number_text(float(value))
    except (TypeError, ValueError, OverflowError):
        return "NaN"


def _to_int(value: Any) -> str:
    """``%i``: leading integer part only (``"42px"`` gives ``42``)."""

    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if math.isfinite(value) else "NaN"
    match = _LEADING_INT.match(value) if isinstance(value, str) else None
    return str(int(match.group(0))) if match else "NaN"


def _to_float(value: Any) -> str:
    """``%f``: leading float (``2`` gives ``2``, ``"2.5kg"`` gives ``2.5``)."""

    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, float):
        return _number_text(value)
    match = _LEADING_FLOAT.match(value) if isinstance(value, str) else None
    return _number_text(float(match.group(0))) if match else "NaN"


def _to_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    return safe_string(value)


_CONVERTERS = {
    "s": _to_str,
    "d": _to_number,
    "i": _to_int,
    "f": _to_float,
    "j": to_json,
    "o": safe_string,
    "O": safe_string,
}


def format_message(*args: Any) -> str:
    """printf-style interpolation that tolerates missing and extra arguments.

    ``format_message("%s has %d items", "cart", 3)`` gives ``"cart has 3 items"``.
    Unfilled placeholders stay in the output; surplus arguments are appended
    separated by spaces.
    """

    if not args:
        return ""

    template, rest = args[0], list(args[1:])
    if not isinstance(template, str):
        return " ".join(_to_str(arg) for arg in args)

    def _replace(match: re.Match[str]) -> str:
        token = match.group(0)
        if token == "%%":
            return "%"
        if not rest:
            return token
        return _CONVERTERS[token[1]](rest.pop(0))

    message = _PLACEHOLDER.sub(_replace, template)
    if rest:
        message = " ".join([message, *(_to_str(arg) for arg in rest)])
    return message


@dataclass(frozen=True)
class RequestInfo:
    method: str
    path: str
    body: Any = MISSING
    request_id: str | None = None


def req_to_string(request: RequestInfo) -> str:
    return format_message("%s url: %s body=%s", request.method, request.path, to_json(request.body))


def format_response(request: RequestInfo, status: int, payload: Any) -> str:
    return format_message(
        "Responding to request %s with %d: %s",
        req_to_string(request),
        status,
        safe_string(payload),
    )
