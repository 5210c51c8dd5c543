"""Baseline directory walk used before live watching starts."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Optional, Set

from .logging import get_logger

SKIPPED_DIRS = frozenset({"node_modules", "__pycache__"})


def is_skipped_name(name: str) -> bool:
    """Return True for hidden entries and denylisted directory names."""
    return name.startswith(".") or name in SKIPPED_DIRS


def is_skipped_path(root: Path, path: Path) -> bool:
    """Return True when any component of ``path`` below ``root`` is skipped."""
    try:
        relative = path.relative_to(root)
    except ValueError:
        return True
    return any(is_skipped_name(part) for part in relative.parts)


def read_text(path: Path) -> Optional[str]:
    """Return the UTF-8 content of ``path``, or None when it cannot be read."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


@dataclass
class Baseline:
    """Known files, known directories and content snapshots at startup."""

    root: Path
    files: Set[str] = field(default_factory=set)
    directories: Set[str] = field(default_factory=set)
    snapshots: Dict[str, str] = field(default_factory=dict)


class DirectoryScanner:
    """Walks a tree once, recording every readable file's content."""

    def __init__(self) -> None:
        self.logger = get_logger("scanner")

    def scan(self, root: Path) -> Baseline:
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Watch root not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Watch root is not a directory: {root}")

        baseline = Baseline(root=root_path)
        for dirpath, dirnames, filenames in os.walk(root_path, onerror=self._log_walk_error):
            current_dir = Path(dirpath)
            dirnames[:] = sorted(name for name in dirnames if not is_skipped_name(name))
            for name in dirnames:
                baseline.directories.add(str(current_dir / name))
            for filename in self._visible(filenames):
                path = current_dir / filename
                key = str(path)
                baseline.files.add(key)
                content = read_text(path)
                if content is not None:
                    baseline.snapshots[key] = content

        self.logger.debug(
            "Baseline for %s: %d files (%d snapshots), %d directories",
            root_path,
            len(baseline.files),
            len(baseline.snapshots),
            len(baseline.directories),
        )
        return baseline

    @staticmethod
    def _visible(filenames: Iterable[str]) -> Iterable[str]:
        return (name for name in filenames if not is_skipped_name(name))

    def _log_walk_error(self, error: OSError) -> None:
        self.logger.debug("Skipping unreadable directory %s: %s", error.filename, error)


__all__ = ["Baseline", "DirectoryScanner", "SKIPPED_DIRS", "is_skipped_name", "is_skipped_path", "read_text"]
