from __future__ import annotations

import json
import math
import re
from typing import Any, List, Mapping, Pattern, Tuple

# Applied in order; later rules rely on earlier ones having run.
HTML_TEXT_RULES: List[Tuple[Pattern[str], str]] = [
    (re.compile(r"<\s*br\s*/?>", re.IGNORECASE), "\n"),
    (re.compile(r"<\s*/p\s*>", re.IGNORECASE), "\n"),
    (re.compile(r"<\s*li[^>]*>", re.IGNORECASE), "- "),
    (re.compile(r"<\s*/li\s*>", re.IGNORECASE), "\n"),
    (re.compile(r"<[^>]+>"), ""),
    (re.compile(r"&nbsp;", re.IGNORECASE), " "),
    (re.compile(r"\n{3,}"), "\n\n"),
]

_TAG_PATTERN = re.compile(r"<[^>]+>")
_WHITESPACE_PATTERN = re.compile(r"\s+")

# Nesting beyond this is dropped from leaf values.
MAX_VALUE_DEPTH = 32


def strip_html(value: Any = "") -> str:
    text = "" if value is None else str(value)
    for pattern, replacement in HTML_TEXT_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()


def has_markup(value: str) -> bool:
    return bool(_TAG_PATTERN.search(value))


def stringify_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def to_comparable_string(value: Any, depth: int = 0) -> str:
    if value is None or depth > MAX_VALUE_DEPTH:
        return ""
    if isinstance(value, str):
        cleaned = strip_html(value) if has_markup(value) else value
        return _WHITESPACE_PATTERN.sub(" ", cleaned).strip()
    if isinstance(value, (bool, int, float)):
        return stringify_scalar(value)
    if isinstance(value, (list, tuple)):
        parts = [to_comparable_string(entry, depth + 1) for entry in value]
        return " | ".join(part for part in parts if part).strip()
    if isinstance(value, Mapping):
        return json.dumps(
            _json_ready(value, depth), separators=(",", ":"), ensure_ascii=False
        )
    return str(value).strip()


def _json_ready(value: Any, depth: int) -> Any:
    """Mirror JSON.stringify numbers: integral floats lose ``.0``, NaN and Infinity become null."""
    if depth > MAX_VALUE_DEPTH:
        return None
    if isinstance(value, Mapping):
        return {
            key if isinstance(key, str) else stringify_scalar(key): _json_ready(nested, depth + 1)
            for key, nested in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_json_ready(entry, depth + 1) for entry in value]
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        if value.is_integer():
            return int(value)
        return value
    if value is None or isinstance(value, (str, bool, int)):
        return value
    return str(value)
