"""Plain-text helpers for rendering guides inside Discord's limits."""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import urlparse

FIELD_LIMIT = 1024


def is_url(value: object) -> bool:
    if not isinstance(value, str) or not value:
        return False
    parsed = urlparse(value.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def bullets(items: Iterable[str], empty: str = "None listed") -> str:
    lines = [f"• {item}" for item in items]
    return "\n".join(lines) if lines else empty


def chunk_text(value: str, limit: int = FIELD_LIMIT) -> list[str]:
    """Split ``value`` into pieces of at most ``limit`` characters.

    Breaks at a newline, or failing that a space, when one falls within the
    last 30% of the window; otherwise cuts at ``limit``.
    """
    chunks: list[str] = []
    remaining = value.strip()
    while remaining:
        if len(remaining) <= limit:
            chunks.append(remaining)
            break
        split_at = limit
        floor = int(limit * 0.7)
        newline = remaining.rfind("\n", 0, limit)
        space = remaining.rfind(" ", 0, limit)
        if newline > floor:
            split_at = newline + 1
        elif space > floor:
            split_at = space + 1
        chunks.append(remaining[:split_at].strip())
        remaining = remaining[split_at:].strip()
    return chunks


def clip(value: str, limit: int) -> str:
    if len(value) <= limit:
        return value
    return value[: limit - 1] + "…"
