"""Prometheus naming rules applied to metric and label names.

Names coming from other instrumentation libraries may contain dots,
dashes or a leading digit. They are rewritten to the exposition character
sets before rendering, so two different keys can end up with one name.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Optional

_INVALID_METRIC_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_:]")
_INVALID_LABEL_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_]")


def sanitize_metric_name(name: str) -> str:
    """Make a name valid for Prometheus: [a-zA-Z_:][a-zA-Z0-9_:]*"""
    sanitized = _INVALID_METRIC_NAME_CHARS.sub("_", name)
    if sanitized[:1].isdigit():
        sanitized = "_" + sanitized
    return sanitized


def sanitize_label_name(name: str) -> str:
    """Make a label name valid for Prometheus: [a-zA-Z_][a-zA-Z0-9_]*"""
    sanitized = _INVALID_LABEL_NAME_CHARS.sub("_", name)
    if not sanitized or sanitized[0].isdigit():
        sanitized = "_" + sanitized
    return sanitized


def find_label_collision(keys: Iterable[str]) -> Optional[tuple[str, str, str]]:
    """Find two label keys that sanitize to the same name.

    Returns:
        (first key, second key, sanitized name) for the first collision,
        or None when every key maps to its own name.
    """
    seen: dict[str, str] = {}
    for key in keys:
        sanitized = sanitize_label_name(key)
        if sanitized in seen:
            return seen[sanitized], key, sanitized
        seen[sanitized] = key
    return None
