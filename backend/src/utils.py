"""Utility helpers for the bar crawl planner."""

from __future__ import annotations

import re
from typing import Optional


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    if not value:
        return "unset"
    if len(value) <= visible * 2:
        return "*" * len(value)
    return f"{value[:visible]}...{value[-visible:]}"


def strip_thinking_tokens(text: str) -> str:
    """Remove <think>...</think> blocks if present."""
    if not text:
        return text
    while True:
        start = text.find("<think>")
        if start == -1:
            break
        end = text.find("</think>", start)
        if end == -1:
            break
        text = text[:start] + text[end + len("</think>") :]
    return text


_FENCE_OPEN = re.compile(r"^```[\w-]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?```\s*$")


def strip_code_fence(text: str) -> str:
    """Remove a leading ```json / ``` marker and a trailing ``` marker.

    Only the outermost markers are touched; anything else is returned as-is
    apart from surrounding whitespace.
    """
    if not text:
        return text
    cleaned = text.strip()
    cleaned = _FENCE_OPEN.sub("", cleaned, count=1)
    cleaned = _FENCE_CLOSE.sub("", cleaned, count=1)
    return cleaned.strip()
