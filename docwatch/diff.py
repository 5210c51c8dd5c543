"""Positional line statistics between two text snapshots."""

from __future__ import annotations

from typing import List

from .models import LineDiff


def split_lines(text: str) -> List[str]:
    """Split ``text`` on newlines; a trailing newline does not open a new line."""
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def count_lines(text: str) -> int:
    """Return the number of lines in ``text``."""
    return len(split_lines(text))


def compute_line_diff(old: str, new: str) -> LineDiff:
    """Compare two snapshots line by line at matching positions.

    Lines are paired by index only: growth counts as added lines, shrinkage as
    deleted lines, and every overlapping index whose text differs counts as one
    modified line. A line that merely shifted position is reported as changed.
    """
    old_lines = split_lines(old)
    new_lines = split_lines(new)
    old_len = len(old_lines)
    new_len = len(new_lines)

    added = max(0, new_len - old_len)
    deleted = max(0, old_len - new_len)
    modified = sum(
        1 for index in range(min(old_len, new_len)) if old_lines[index] != new_lines[index]
    )
    return LineDiff(total=modified + added + deleted, added=added, deleted=deleted)


__all__ = ["compute_line_diff", "count_lines", "split_lines"]
