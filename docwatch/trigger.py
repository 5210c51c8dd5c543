"""Decides when a changed file gets its documentation regenerated."""

from __future__ import annotations

import os
import threading
import time
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, List, Optional, Protocol, Set

from .classifier import DetailLevelResolver, PathClassifier
from .config import TriggerConfig
from .dispatch import GenerationDispatcher, ResultSink
from .generator import DocumentationGenerator
from .logging import get_logger
from .models import ChangeEvent, ChangeKind, GenerationResult

EXCLUDED_MESSAGE = "File is excluded from auto-documentation"


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Runs a callback once after ``delay`` seconds unless cancelled."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadingScheduler:
    """Scheduler backed by daemon :class:`threading.Timer` threads."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.name = "docwatch-debounce"
        timer.start()
        return timer


@dataclass
class PerPathState:
    """Mutable trigger bookkeeping for one file."""

    accumulated_lines: int = 0
    last_generation_started_at: Optional[float] = None
    pending_timer: Optional[TimerHandle] = None
    timer_token: Optional[object] = None
    has_ever_generated: bool = False

    def cancel_timer(self) -> None:
        if self.pending_timer is not None:
            self.pending_timer.cancel()
        self.pending_timer = None
        self.timer_token = None


def normalise_path(path: str) -> str:
    return os.path.normpath(os.path.abspath(os.fspath(path)))


class TriggerController:
    """Per-file state machine gating documentation generation.

    Modifications accumulate changed-line counts. Once a file's total reaches
    the threshold, a debounce timer is (re)started on every further change.
    When the timer finally fires the cooldown is armed immediately, the
    accumulated count is taken and zeroed, and the dispatch is handed to a
    worker. While cooling down, changes keep accumulating but no timer is
    started.
    """

    def __init__(
        self,
        config: TriggerConfig,
        generator: DocumentationGenerator,
        sink: ResultSink,
        *,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
        executor: Executor | None = None,
    ) -> None:
        self.config = config
        self.resolver = DetailLevelResolver(config.extension_detail_map)
        self.classifier = PathClassifier(config.excluded_directories, self.resolver)
        self._sink = sink
        self._scheduler = scheduler or ThreadingScheduler()
        self._clock = clock
        self._lock = threading.RLock()
        self._states: Dict[str, PerPathState] = {}
        self._dispatcher = GenerationDispatcher(
            generator,
            self._record_result,
            resolver=self.resolver,
            executor=executor,
        )
        self.logger = get_logger("trigger")

    # ------------------------------------------------------------------
    # Watcher integration

    def create_watcher_callback(self) -> Callable[[ChangeEvent], None]:
        """Return the callable to hand to :class:`~docwatch.watcher.ChangeWatcher`."""
        return self.handle_event

    def handle_event(self, event: ChangeEvent) -> None:
        if event.kind is ChangeKind.DIRECTORY_CREATED:
            return
        path = normalise_path(event.path)
        reason = self.classifier.exclusion_reason(path)
        if reason is not None:
            self.logger.debug("Ignoring %s: %s", path, reason)
            return

        if event.kind is ChangeKind.CREATED:
            self._on_created(path, event)
        elif event.kind is ChangeKind.MODIFIED:
            self._on_modified(path, event)

    def _on_created(self, path: str, event: ChangeEvent) -> None:
        if self.config.generate_on_create:
            self._dispatcher.submit(path, lines_changed=event.lines_changed or 0)
            return
        if event.lines_changed:
            with self._lock:
                self._state_for(path).accumulated_lines = event.lines_changed

    def _on_modified(self, path: str, event: ChangeEvent) -> None:
        with self._lock:
            state = self._state_for(path)
            state.accumulated_lines += event.lines_changed or 0
            total = state.accumulated_lines
            if total < self.config.change_threshold:
                return
            if self._in_cooldown(state):
                self.logger.debug("%s in cooldown; holding %d changed lines", path, total)
                return

            state.cancel_timer()
            token = object()
            state.timer_token = token
            state.pending_timer = self._scheduler.schedule(
                self.config.debounce_seconds,
                partial(self._on_debounce_elapsed, path, token),
            )
        self.logger.debug(
            "%s reached %d changed lines; generating in %.1fs unless changed again",
            path,
            total,
            self.config.debounce_seconds,
        )

    def _on_debounce_elapsed(self, path: str, token: object) -> Optional["Future[GenerationResult]"]:
        with self._lock:
            state = self._states.get(path)
            if state is None or state.timer_token is not token:
                # Superseded by a newer timer or cleared by a reset.
                return None
            state.pending_timer = None
            state.timer_token = None
            if self._in_cooldown(state):
                return None
            # Arm the cooldown before anything else so a racing timer backs off.
            state.last_generation_started_at = self._clock()
            lines = state.accumulated_lines
            state.accumulated_lines = 0
        return self._dispatcher.submit(path, lines_changed=lines)

    def _in_cooldown(self, state: PerPathState) -> bool:
        started = state.last_generation_started_at
        if started is None:
            return False
        return self._clock() - started < self.config.cooldown_seconds

    def _state_for(self, path: str) -> PerPathState:
        state = self._states.get(path)
        if state is None:
            state = PerPathState()
            self._states[path] = state
        return state

    def _record_result(self, result: GenerationResult) -> None:
        if result.success:
            with self._lock:
                self._state_for(result.file_path).has_ever_generated = True
        self._sink(result)

    # ------------------------------------------------------------------
    # Public API

    def document_file(self, path: str, guidance: Optional[str] = None) -> GenerationResult:
        """Generate documentation now, skipping threshold and debounce."""
        key = normalise_path(path)
        if self.classifier.is_excluded(key):
            result = GenerationResult(file_path=key, success=False, error_message=EXCLUDED_MESSAGE)
            self._dispatcher.deliver(result)
            return result
        with self._lock:
            state = self._states.get(key)
            lines = state.accumulated_lines if state else 0
        return self._dispatcher.dispatch(key, lines_changed=lines, guidance=guidance)

    def reset_file_tracking(self, path: str) -> None:
        """Forget accumulated changes and cooldown for one file."""
        with self._lock:
            state = self._states.get(normalise_path(path))
            if state is None:
                return
            state.cancel_timer()
            state.accumulated_lines = 0
            state.last_generation_started_at = None

    def get_file_changes(self, path: str) -> int:
        with self._lock:
            state = self._states.get(normalise_path(path))
            return state.accumulated_lines if state else 0

    def is_file_documented(self, path: str) -> bool:
        with self._lock:
            state = self._states.get(normalise_path(path))
            return bool(state and state.has_ever_generated)

    def is_in_cooldown(self, path: str) -> bool:
        with self._lock:
            state = self._states.get(normalise_path(path))
            return bool(state and self._in_cooldown(state))

    def pending_paths(self) -> List[str]:
        with self._lock:
            return sorted(path for path, state in self._states.items() if state.pending_timer is not None)

    def documented_files(self) -> Set[str]:
        with self._lock:
            return {path for path, state in self._states.items() if state.has_ever_generated}

    def reset(self) -> None:
        """Cancel every pending timer and drop all per-file state."""
        with self._lock:
            for state in self._states.values():
                state.cancel_timer()
            self._states.clear()

    def close(self, *, wait: bool = True) -> None:
        self.reset()
        self._dispatcher.shutdown(wait=wait)


__all__ = [
    "EXCLUDED_MESSAGE",
    "PerPathState",
    "Scheduler",
    "ThreadingScheduler",
    "TimerHandle",
    "TriggerController",
    "normalise_path",
]
