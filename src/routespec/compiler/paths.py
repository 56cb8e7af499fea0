from __future__ import annotations

import re
from typing import Optional

_PLACEHOLDER = re.compile(r"\{([^{}:]+)\}")


def join_path(class_path: Optional[str], method_path: Optional[str], parent_path: str = "") -> Optional[str]:
    """
    prefix + class-level fragment + method-level fragment.
    Returns None when neither the class nor the method declares a path.
    """
    if class_path is None and method_path is None:
        return None

    out = ""
    if parent_path and parent_path != "/":
        if not parent_path.startswith("/"):
            parent_path = "/" + parent_path
        out += parent_path.rstrip("/")

    if class_path is not None:
        out += class_path

    if method_path is not None and method_path != "/":
        if not method_path.startswith("/") and not out.endswith("/"):
            out += "/"
        out += method_path.rstrip("/")

    if not out.startswith("/"):
        out = "/" + out
    if out != "/" and out.endswith("/"):
        out = out[:-1]
    return out


def _segments(path: str) -> list[str]:
    # split on "/" outside of braces so regexes like {p:[0-9]{2}/x} stay whole
    segments: list[str] = []
    depth = 0
    current = ""
    for ch in path:
        if ch == "{":
            depth += 1
        elif ch == "}" and depth:
            depth -= 1
        if ch == "/" and depth == 0:
            segments.append(current)
            current = ""
        else:
            current += ch
    segments.append(current)
    return segments


def normalize_path(path: str) -> tuple[str, dict[str, str]]:
    """
    Collapse slashes, drop the trailing slash and rewrite ``{name:regex}``
    segments to ``{name}``.

    Returns (visible template, {name: regex}). Idempotent on its own output.
    """
    patterns: dict[str, str] = {}
    parts: list[str] = []
    for seg in _segments((path or "").strip()):
        if not seg:
            continue
        if seg.startswith("{") and seg.endswith("}"):
            pos = seg.find(":")
            if pos > 0:
                name = seg[1:pos].strip()
                patterns[name] = seg[pos + 1:-1].strip()
                seg = "{" + name + "}"
        parts.append(seg)
    return "/" + "/".join(parts), patterns


def placeholders(template: str) -> list[str]:
    return _PLACEHOLDER.findall(template)
