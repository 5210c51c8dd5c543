"""Tests for docwatch.classifier."""

from __future__ import annotations

from docwatch.classifier import DetailLevelResolver, PathClassifier, file_extension
from docwatch.config import DEFAULT_EXCLUDE_DIRS
from docwatch.models import DetailLevel


def _classifier(levels=None, excluded=DEFAULT_EXCLUDE_DIRS) -> PathClassifier:
    resolver = DetailLevelResolver(levels or {".py": DetailLevel.BRIEF, ".ts": DetailLevel.STANDARD})
    return PathClassifier(excluded, resolver)


def test_file_extension_uses_final_suffix() -> None:
    assert file_extension("/repo/src/app.test.TS") == ".ts"
    assert file_extension("/repo/Makefile") is None
    assert file_extension("/repo/v1.2/Makefile") is None


def test_excluded_directories_match_whole_segments() -> None:
    classifier = _classifier()
    assert classifier.is_excluded("/repo/node_modules/lib/index.ts")
    assert classifier.is_excluded("/repo/src/docs/app.py")
    assert classifier.is_excluded("C:\\repo\\dist\\bundle.ts")
    assert not classifier.is_excluded("/repo/src/distribution/app.py")
    assert not classifier.is_excluded("/repo/src/mydocs/app.py")


def test_markdown_outputs_are_excluded() -> None:
    classifier = _classifier(levels={".md": DetailLevel.BRIEF})
    assert classifier.exclusion_reason("/repo/src/app-guide.md") == "documentation output"


def test_unconfigured_extensions_are_excluded() -> None:
    classifier = _classifier()
    assert classifier.exclusion_reason("/repo/src/app.rb") == "extension '.rb' not configured"
    assert classifier.exclusion_reason("/repo/src/Dockerfile") == "no file extension"
    assert classifier.exclusion_reason("/repo/src/app.py") is None


def test_custom_exclusions_replace_defaults() -> None:
    classifier = _classifier(excluded=["vendor/"])
    assert classifier.is_excluded("/repo/vendor/x.py")
    assert not classifier.is_excluded("/repo/node_modules/x.py")


def test_resolver_defaults_to_standard() -> None:
    resolver = DetailLevelResolver({".py": DetailLevel.COMPREHENSIVE})
    assert resolver.resolve("/repo/app.py") is DetailLevel.COMPREHENSIVE
    assert resolver.resolve("/repo/app.go") is DetailLevel.STANDARD
    assert resolver.resolve("/repo/Makefile") is DetailLevel.STANDARD


def test_extension_matching_ignores_case() -> None:
    classifier = _classifier()
    assert classifier.exclusion_reason("/repo/src/Legacy.PY") is None
    assert DetailLevelResolver({".py": DetailLevel.BRIEF}).resolve("/repo/src/Legacy.PY") is DetailLevel.BRIEF
