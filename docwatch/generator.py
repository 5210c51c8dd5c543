"""Documentation generators invoked by the dispatcher."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Protocol

from .llm.runner import LLMRunner
from .logging import get_logger
from .models import DetailLevel, GenerationOutcome

DOCS_DIRNAME = "docs"
GUIDE_SUFFIX = "-guide.md"


class DocumentationGenerator(Protocol):
    """Anything that can (re)write documentation for one source file."""

    def generate(
        self,
        path: str,
        detail_level: DetailLevel,
        guidance: Optional[str] = None,
    ) -> GenerationOutcome: ...


_DETAIL_INSTRUCTIONS: Dict[DetailLevel, str] = {
    DetailLevel.BRIEF: (
        "Keep it short: a one-paragraph purpose statement and a bullet list of the "
        "public functions, classes or components."
    ),
    DetailLevel.STANDARD: (
        "Include purpose, structure, key functions/components, usage examples, and any "
        "important details."
    ),
    DetailLevel.COMPREHENSIVE: (
        "Be thorough: cover purpose, architecture, every exported symbol with parameters "
        "and return values, usage examples, edge cases, error handling and gotchas."
    ),
}

_CREATE_SYSTEM = (
    "You are an expert software documentation generator that only outputs markdown. "
    "Document the file you are given."
)

_UPDATE_SYSTEM = (
    "You are an expert at updating software documentation. Update the existing markdown "
    "so it matches what the current code actually does. Document new code as implemented, "
    "remove notes about problems the code has fixed, and keep the existing structure and tone."
)


def guide_path_for(source: Path) -> Path:
    """Return ``<dir>/docs/<stem>-guide.md`` for ``source``."""
    return source.parent / DOCS_DIRNAME / f"{source.stem}{GUIDE_SUFFIX}"


class MarkdownGenerator:
    """Writes a markdown guide next to each source file using an LLM."""

    def __init__(self, runner: LLMRunner | None = None) -> None:
        self.runner = runner or LLMRunner()
        self.logger = get_logger("generator")

    def generate(
        self,
        path: str,
        detail_level: DetailLevel,
        guidance: Optional[str] = None,
    ) -> GenerationOutcome:
        source = Path(path)
        try:
            code = source.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            return GenerationOutcome(success=False, error_message=f"Unable to read {source.name}: {exc}")

        output_path = guide_path_for(source)
        existing = output_path.read_text(encoding="utf-8") if output_path.is_file() else None
        system = _UPDATE_SYSTEM if existing is not None else _CREATE_SYSTEM
        system = f"{system}\n\n{_DETAIL_INSTRUCTIONS[detail_level]}"
        prompt = _build_prompt(source.name, code, existing, guidance)

        try:
            markdown = self.runner.run(prompt, system=system)
        except RuntimeError as exc:
            return GenerationOutcome(success=False, error_message=str(exc))

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(markdown.rstrip() + "\n", encoding="utf-8")
        except OSError as exc:
            return GenerationOutcome(success=False, error_message=f"Unable to write {output_path}: {exc}")

        self.logger.debug(
            "%s %s", "Updated" if existing is not None else "Created", output_path
        )
        return GenerationOutcome(success=True, output_location=str(output_path))


def _build_prompt(
    filename: str,
    code: str,
    existing: Optional[str],
    guidance: Optional[str],
) -> str:
    parts = []
    if existing is not None:
        parts.append("Update this documentation based on the current code.")
        parts.append(f"## Existing Documentation:\n```markdown\n{existing}\n```")
        parts.append(f"## Current Code:\n\nFilename: {filename}\n\n```\n{code}\n```")
    else:
        parts.append("Generate markdown documentation for this file.")
        parts.append(f"Filename: {filename}\n\n```\n{code}\n```")
    if guidance and guidance.strip():
        parts.append(f"## Additional guidance from the author:\n{guidance.strip()}")
    parts.append("Provide the complete markdown documentation.")
    return "\n\n".join(parts)


__all__ = ["DOCS_DIRNAME", "DocumentationGenerator", "MarkdownGenerator", "guide_path_for"]
