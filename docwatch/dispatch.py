"""Hands files to the documentation generator and relays the results."""

from __future__ import annotations

from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Mapping, Optional

from .classifier import DetailLevelResolver
from .generator import DocumentationGenerator
from .logging import get_logger
from .models import GenerationOutcome, GenerationResult

ResultSink = Callable[[GenerationResult], None]

_DEFAULT_WORKERS = 4


class GenerationDispatcher:
    """Invokes the generator and always delivers exactly one result per attempt.

    Generator failures, raised or reported, become failed
    :class:`GenerationResult` objects; nothing escapes :meth:`dispatch`.
    """

    def __init__(
        self,
        generator: DocumentationGenerator,
        sink: ResultSink,
        *,
        resolver: DetailLevelResolver,
        executor: Executor | None = None,
    ) -> None:
        self._generator = generator
        self._sink = sink
        self._resolver = resolver
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=_DEFAULT_WORKERS, thread_name_prefix="docwatch-dispatch"
        )
        self.logger = get_logger("dispatch")

    def submit(
        self,
        path: str,
        *,
        lines_changed: int = 0,
        guidance: Optional[str] = None,
    ) -> "Future[GenerationResult]":
        """Run :meth:`dispatch` in the background."""
        return self._executor.submit(
            self.dispatch, path, lines_changed=lines_changed, guidance=guidance
        )

    def dispatch(
        self,
        path: str,
        *,
        lines_changed: int = 0,
        guidance: Optional[str] = None,
    ) -> GenerationResult:
        """Generate documentation for ``path`` and deliver the result."""
        detail_level = self._resolver.resolve(path)
        self.logger.info(
            "Generating %s documentation for %s (%d lines changed)",
            detail_level.value,
            path,
            lines_changed,
        )
        try:
            outcome = self._generator.generate(path, detail_level, guidance)
        except Exception as exc:
            self.logger.debug("Generator raised for %s", path, exc_info=True)
            result = GenerationResult(
                file_path=path,
                success=False,
                error_message=str(exc) or exc.__class__.__name__,
            )
        else:
            result = _normalise_outcome(path, outcome)

        if result.success:
            self.logger.info("Documented %s -> %s", path, result.output_location)
        else:
            self.logger.warning("Documentation failed for %s: %s", path, result.error_message)
        self.deliver(result)
        return result

    def deliver(self, result: GenerationResult) -> None:
        try:
            self._sink(result)
        except Exception:
            self.logger.exception("Result sink failed for %s", result.file_path)

    def shutdown(self, *, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)


def _normalise_outcome(path: str, outcome: Any) -> GenerationResult:
    if isinstance(outcome, GenerationOutcome):
        success = outcome.success
        location = outcome.output_location
        error = outcome.error_message
    elif isinstance(outcome, Mapping):
        success = bool(outcome.get("success"))
        location = outcome.get("output_location")
        error = outcome.get("error_message")
    else:
        return GenerationResult(
            file_path=path,
            success=False,
            error_message=f"Generator returned unsupported result {type(outcome).__name__}",
        )

    if success:
        return GenerationResult(
            file_path=path,
            success=True,
            output_location=str(location) if location is not None else None,
        )
    return GenerationResult(
        file_path=path,
        success=False,
        error_message=str(error) if error else "Unknown error",
    )


__all__ = ["GenerationDispatcher", "ResultSink"]
