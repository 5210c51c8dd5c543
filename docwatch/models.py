"""Core data models shared across docwatch components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ChangeKind(str, Enum):
    """Kind of filesystem change reported by the watcher."""

    CREATED = "file_created"
    MODIFIED = "file_modified"
    DIRECTORY_CREATED = "directory_created"


class DetailLevel(str, Enum):
    """Verbosity of generated documentation."""

    BRIEF = "brief"
    STANDARD = "standard"
    COMPREHENSIVE = "comprehensive"

    @classmethod
    def parse(cls, value: object, default: "DetailLevel | None" = None) -> "DetailLevel":
        """Return the matching level, or ``default`` (standard) for unknown values."""
        if isinstance(value, DetailLevel):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            for level in cls:
                if level.value == lowered:
                    return level
        return default or cls.STANDARD


@dataclass(frozen=True)
class LineDiff:
    """Positional line statistics between two snapshots."""

    total: int
    added: int
    deleted: int


@dataclass(frozen=True)
class ChangeEvent:
    """Normalized notification emitted once per observed change."""

    kind: ChangeKind
    name: str
    path: str
    lines_changed: Optional[int] = None
    lines_added: Optional[int] = None
    lines_deleted: Optional[int] = None


@dataclass(frozen=True)
class GenerationOutcome:
    """What a documentation generator reports back for one file."""

    success: bool
    output_location: Optional[str] = None
    error_message: Optional[str] = None


@dataclass(frozen=True)
class GenerationResult:
    """Result delivered to the result sink after each dispatch attempt."""

    file_path: str
    success: bool
    output_location: Optional[str] = None
    error_message: Optional[str] = None
