"""Tests for docwatch.diff."""

from __future__ import annotations

import pytest

from docwatch.diff import compute_line_diff, count_lines, split_lines
from docwatch.models import LineDiff


def test_identical_content_has_no_changes() -> None:
    text = "import os\n\nprint(os.getcwd())\n"
    assert compute_line_diff(text, text) == LineDiff(total=0, added=0, deleted=0)


@pytest.mark.parametrize(
    "old, new",
    [
        ("a\nb\n", "a\nb\nc\nd\ne\n"),
        ("a\nb", "a\nb\nc\nd\ne"),
        ("", "c\nd\ne\n"),
    ],
)
def test_appending_lines_counts_only_additions(old: str, new: str) -> None:
    assert compute_line_diff(old, new) == LineDiff(total=3, added=3, deleted=0)


def test_truncation_counts_deletions() -> None:
    old = "one\ntwo\nthree\nfour\n"
    new = "one\ntwo\n"
    assert compute_line_diff(old, new) == LineDiff(total=2, added=0, deleted=2)


def test_in_place_edits_count_as_modified() -> None:
    old = "one\ntwo\nthree\n"
    new = "one\nTWO\nthree\nfour\n"
    diff = compute_line_diff(old, new)
    assert diff == LineDiff(total=2, added=1, deleted=0)


def test_shifted_lines_are_not_matched() -> None:
    old = "a\nb\nc\n"
    new = "x\na\nb\nc\n"
    # Positional comparison: every overlapping line now differs.
    assert compute_line_diff(old, new) == LineDiff(total=4, added=1, deleted=0)


def test_split_lines_handles_trailing_newline_and_empty_text() -> None:
    assert split_lines("") == []
    assert split_lines("a") == ["a"]
    assert split_lines("a\n") == ["a"]
    assert split_lines("a\n\n") == ["a", ""]
    assert count_lines("x\ny\nz\n") == 3
