"""LLM response cleanup for code commands.

Replacement code returned by the assistant often arrives wrapped in
markdown fences; these helpers strip them before the code is applied over
the editor selection.

All functions are pure string processors.
"""

from __future__ import annotations

import re

# Match outermost fenced code block: ``` optionally followed by a lang tag
_FENCE_OPEN_RE = re.compile(r"^```[a-zA-Z0-9_+-]*\s*$")
_FENCE_CLOSE_RE = re.compile(r"^```\s*$")

# Inline leftovers: ```lang\n at the very start, ``` at the very end
_LEADING_FENCE_RE = re.compile(r"^```(?:[\w+-]+\n)?")
_TRAILING_FENCE_RE = re.compile(r"```$")


def strip_fences(text: str) -> str:
    """Remove the outermost markdown code fences from *text*.

    Handles fences with or without a language tag (e.g. ````` ```python `````).
    Only the first opening fence and its matching closing fence are removed.
    Inner fences (nested) are preserved.

    Returns *text* unchanged if no fences are found.
    """
    if not text:
        return text

    lines = text.split("\n")

    open_idx: int | None = None
    for i, line in enumerate(lines):
        if _FENCE_OPEN_RE.match(line.strip()):
            open_idx = i
            break

    if open_idx is None:
        return text

    close_idx: int | None = None
    for i in range(len(lines) - 1, open_idx, -1):
        if _FENCE_CLOSE_RE.match(lines[i].strip()):
            close_idx = i
            break

    if close_idx is None:
        return text

    return "\n".join(lines[:open_idx] + lines[open_idx + 1 : close_idx] + lines[close_idx + 1 :])


def clean_code_reply(text: str) -> str:
    """Trim a code reply and strip any fence wrapping, block or inline."""
    cleaned = strip_fences(text.strip()).strip()
    cleaned = _LEADING_FENCE_RE.sub("", cleaned)
    cleaned = _TRAILING_FENCE_RE.sub("", cleaned)
    return cleaned.strip()


__all__ = [
    "clean_code_reply",
    "strip_fences",
]
