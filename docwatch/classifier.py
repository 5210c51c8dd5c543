"""Eligibility and detail-level decisions for watched paths."""

from __future__ import annotations

from pathlib import PurePath
from typing import Mapping, Optional, Sequence

from .models import DetailLevel

_DOC_SUFFIXES = (".md",)


def file_extension(path: str) -> Optional[str]:
    """Return the lower-cased final suffix of ``path`` (``".py"``), or None."""
    suffix = PurePath(path).suffix
    return suffix.lower() if suffix else None


class DetailLevelResolver:
    """Maps file extensions to the configured documentation detail level."""

    def __init__(
        self,
        extension_detail_map: Mapping[str, DetailLevel],
        default: DetailLevel = DetailLevel.STANDARD,
    ) -> None:
        self._levels = dict(extension_detail_map)
        self._default = default

    def is_configured(self, extension: Optional[str]) -> bool:
        return extension is not None and extension in self._levels

    def resolve(self, path: str) -> DetailLevel:
        extension = file_extension(path)
        if extension is None:
            return self._default
        return self._levels.get(extension, self._default)


class PathClassifier:
    """Decides whether a path may trigger documentation at all.

    A path is excluded when it sits under one of the excluded directories,
    when it is itself a documentation output file, or when its extension has
    no configured detail level.
    """

    def __init__(
        self,
        excluded_directories: Sequence[str],
        resolver: DetailLevelResolver,
    ) -> None:
        self._excluded = tuple(name.strip("/\\") for name in excluded_directories if name.strip("/\\"))
        self._resolver = resolver

    def is_excluded(self, path: str) -> bool:
        return self.exclusion_reason(path) is not None

    def exclusion_reason(self, path: str) -> Optional[str]:
        """Return a short reason string when ``path`` is ineligible."""
        for name in self._excluded:
            if f"/{name}/" in path or f"\\{name}\\" in path:
                return f"under excluded directory '{name}'"

        if path.lower().endswith(_DOC_SUFFIXES):
            return "documentation output"

        extension = file_extension(path)
        if extension is None:
            return "no file extension"
        if not self._resolver.is_configured(extension):
            return f"extension '{extension}' not configured"
        return None


__all__ = ["DetailLevelResolver", "PathClassifier", "file_extension"]
