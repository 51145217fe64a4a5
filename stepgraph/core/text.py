"""Defensive accessors for loosely-structured step records.

Decoded vendor XML represents scalars either as plain values or as text nodes
(``{"#text": ...}``), and repeated elements as either a single mapping or a
list. Every field read in the engine goes through these helpers.
"""

import json
import re
from typing import Any, List, Optional

TEXT_NODE_KEY = "#text"
PREVIEW_CHARS = 200

_INACTIVE_FLAGS = {"false", "0"}


def get_list_safe(holder: Any, key: str) -> List[Any]:
    """Return ``holder[key]`` as a list, whether it is absent, single or repeated."""
    if not isinstance(holder, dict):
        return []
    value = holder.get(key)
    if value is None or value == "":
        return []
    return value if isinstance(value, list) else [value]


def get_text_safe(value: Any) -> str:
    """Return the text content of a scalar or text node, ``""`` when absent."""
    if value is None or value == "" or value is False:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, dict) and value.get(TEXT_NODE_KEY) not in (None, ""):
        return get_text_safe(value[TEXT_NODE_KEY])
    return json.dumps(value, separators=(",", ":"), default=str)


def get_path(holder: Any, *keys: str) -> Any:
    """Walk nested mappings, returning None as soon as a key is missing."""
    current = holder
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def first_text(*values: Any) -> str:
    """Return the first non-empty text among the candidates."""
    for value in values:
        text = get_text_safe(value)
        if text:
            return text
    return ""


def parse_int(value: Any) -> Optional[int]:
    """Parse a leading integer the way the vendor export writes numbers."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = re.match(r"\s*([+-]?\d+)", get_text_safe(value))
    if match:
        return int(match.group(1))
    return None


def is_truthy_flag(value: Any) -> bool:
    """Interpret an activity flag; only explicit false values are inactive."""
    if value is None:
        return True
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return get_text_safe(value).strip().lower() not in _INACTIVE_FLAGS


def basename(path: str) -> str:
    """Return the last path component for both Windows and POSIX separators."""
    return re.split(r"[\\/]", path)[-1] if path else ""


def truncate(text: str, limit: int = PREVIEW_CHARS) -> str:
    """Shorten ``text`` to ``limit`` characters, marking the cut with ``...``."""
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."
