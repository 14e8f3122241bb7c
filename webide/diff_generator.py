"""Diff generator — positional line diffs for the staging view.

The comparison walks both line sequences with two cursors and never
realigns after an insertion or deletion: a line added in the middle shows
up as a run of removal/addition pairs rather than a minimal diff.  Commit
message generation is the only consumer and tolerates that.

All operations work on strings and never touch the file system.
"""

from __future__ import annotations

from collections.abc import Iterable


def generate_diff(original: str, modified: str) -> str:
    """Return the positional diff of *original* against *modified*.

    Context lines are prefixed with a space, removals with ``-`` and
    additions with ``+``.  Every emitted line ends with ``\\n``.
    """
    original_lines = original.split("\n")
    modified_lines = modified.split("\n")
    out: list[str] = []
    i = j = 0
    while i < len(original_lines) or j < len(modified_lines):
        if (
            i < len(original_lines)
            and j < len(modified_lines)
            and original_lines[i] == modified_lines[j]
        ):
            out.append(f" {original_lines[i]}\n")
            i += 1
            j += 1
            continue
        if i < len(original_lines):
            out.append(f"-{original_lines[i]}\n")
            i += 1
        if j < len(modified_lines):
            out.append(f"+{modified_lines[j]}\n")
            j += 1
    return "".join(out)


def file_diff(path: str, original: str, modified: str) -> str:
    """Diff one file under ``--- a/<path>`` / ``+++ b/<path>`` headers."""
    return f"--- a/{path}\n+++ b/{path}\n{generate_diff(original, modified)}\n"


def multi_file_diff(changes: Iterable[tuple[str, str, str]]) -> str:
    """Concatenate ``file_diff`` for each ``(path, original, modified)``."""
    return "".join(file_diff(path, old, new) for path, old, new in changes)


def count_changes(diff: str) -> tuple[int, int]:
    """Return ``(insertions, deletions)`` counted from a diff body."""
    insertions = 0
    deletions = 0
    for line in diff.split("\n"):
        if line.startswith("+") and not line.startswith("+++"):
            insertions += 1
        elif line.startswith("-") and not line.startswith("---"):
            deletions += 1
    return insertions, deletions
