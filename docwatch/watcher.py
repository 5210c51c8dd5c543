"""Filesystem watcher that turns native notifications into change events."""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Callable, Dict, Optional, Set

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .diff import compute_line_diff, count_lines
from .logging import get_logger
from .models import ChangeEvent, ChangeKind
from .scanner import DirectoryScanner, is_skipped_path, read_text

ChangeCallback = Callable[[ChangeEvent], None]


class _NotificationHandler(FileSystemEventHandler):
    """Forwards created/modified/moved notifications to the watcher."""

    def __init__(self, watcher: "ChangeWatcher") -> None:
        super().__init__()
        self._watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        self._watcher.process(os.fsdecode(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        self._watcher.process(os.fsdecode(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors often save through a temp file renamed over the target.
        dest = getattr(event, "dest_path", None)
        if dest:
            self._watcher.process(os.fsdecode(dest))


class ChangeWatcher:
    """Watches a directory tree and reports created and modified entries.

    ``start`` records a baseline (known files, known directories and the text
    of every readable file) and then subscribes to recursive notifications.
    Each notification is classified against that baseline and reported to the
    callback as a :class:`ChangeEvent`; modifications carry positional line
    statistics against the previous snapshot.
    """

    def __init__(
        self,
        root: Path,
        callback: ChangeCallback,
        *,
        scanner: DirectoryScanner | None = None,
        observer_factory: Callable[[], Observer] = Observer,
    ) -> None:
        self.root = Path(root).expanduser().resolve()
        self._callback = callback
        self._scanner = scanner or DirectoryScanner()
        self._observer_factory = observer_factory
        self._observer: Optional[Observer] = None
        self._handler: Optional[_NotificationHandler] = None
        self._per_directory = False
        self._lock = threading.RLock()
        self._known_files: Set[str] = set()
        self._known_dirs: Set[str] = set()
        self._snapshots: Dict[str, str] = {}
        self.logger = get_logger("watcher")

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """Build the baseline and begin watching."""
        if self._observer is not None:
            return
        baseline = self._scanner.scan(self.root)
        with self._lock:
            self._known_files = set(baseline.files)
            self._known_dirs = set(baseline.directories)
            self._snapshots = dict(baseline.snapshots)

        observer = self._observer_factory()
        handler = _NotificationHandler(self)
        # A watch is set up when its emitter starts. With the observer already
        # running that happens inside schedule(), so each call raises its own failure.
        observer.start()
        self._handler = handler
        self._observer = observer
        try:
            self._per_directory = self._schedule(observer, handler)
        except BaseException:
            self._observer = None
            self._handler = None
            observer.stop()
            observer.join(timeout=5)
            raise
        self.logger.info("Watching %s (%d files known)", self.root, len(baseline.files))

    def stop(self) -> None:
        """Stop watching and forget all tracked state."""
        observer = self._observer
        self._observer = None
        self._handler = None
        self._per_directory = False
        if observer is not None:
            observer.stop()
            observer.join(timeout=5)
            self.logger.info("Stopped watching %s", self.root)
        with self._lock:
            self._known_files.clear()
            self._known_dirs.clear()
            self._snapshots.clear()

    def is_known(self, path: str) -> bool:
        key = str(Path(path))
        with self._lock:
            return key in self._known_files or key in self._known_dirs

    def snapshot(self, path: str) -> Optional[str]:
        with self._lock:
            return self._snapshots.get(str(Path(path)))

    def process(self, path: str) -> Optional[ChangeEvent]:
        """Classify one notification for ``path`` and report it.

        Returns the emitted event, or None when the notification was ignored
        (skipped location, already-known directory, vanished file).
        """
        event = self._classify(path)
        if event is None:
            return None
        try:
            self._callback(event)
        except Exception:  # pragma: no cover - keep the observer thread alive
            self.logger.exception("Change callback failed for %s", event.path)
        return event

    # ------------------------------------------------------------------
    # Internals

    def _classify(self, raw_path: str) -> Optional[ChangeEvent]:
        path = Path(raw_path)
        if not path.is_absolute():
            path = self.root / path
        if is_skipped_path(self.root, path):
            return None
        key = str(path)
        name = path.relative_to(self.root).as_posix()

        try:
            stat_is_dir = path.is_dir()
            exists = stat_is_dir or path.exists()
        except OSError:
            exists = False
        if not exists:
            self.logger.debug("Ignoring notification for vanished path %s", key)
            return None

        if stat_is_dir:
            with self._lock:
                if key in self._known_dirs:
                    return None
                self._known_dirs.add(key)
            if self._per_directory:
                self._watch_directory(key)
            return ChangeEvent(kind=ChangeKind.DIRECTORY_CREATED, name=name, path=key)

        with self._lock:
            is_new = key not in self._known_files
            if is_new:
                self._known_files.add(key)

        if is_new:
            content = read_text(path)
            if content is None:
                return ChangeEvent(kind=ChangeKind.CREATED, name=name, path=key)
            with self._lock:
                self._snapshots[key] = content
            return ChangeEvent(
                kind=ChangeKind.CREATED,
                name=name,
                path=key,
                lines_changed=count_lines(content),
            )

        content = read_text(path)
        if content is None:
            if not path.exists():
                self.logger.debug("File %s vanished before it could be read", key)
                return None
            return ChangeEvent(kind=ChangeKind.MODIFIED, name=name, path=key)

        with self._lock:
            previous = self._snapshots.get(key, "")
            self._snapshots[key] = content
        diff = compute_line_diff(previous, content)
        return ChangeEvent(
            kind=ChangeKind.MODIFIED,
            name=name,
            path=key,
            lines_changed=diff.total,
            lines_added=diff.added,
            lines_deleted=diff.deleted,
        )

    def _schedule(self, observer: Observer, handler: FileSystemEventHandler) -> bool:
        """Watch the tree recursively, or per directory when that fails.

        Returns True when the watcher fell back to per-directory watches.
        """
        try:
            observer.schedule(handler, str(self.root), recursive=True)
            return False
        except OSError as exc:
            self.logger.warning(
                "Recursive watch on %s failed (%s); watching directories individually",
                self.root,
                exc,
            )
            # Drop whatever the failed attempt registered before falling back.
            observer.unschedule_all()

        with self._lock:
            directories = [str(self.root), *sorted(self._known_dirs)]
        for directory in directories:
            _schedule_directory(observer, handler, directory, self.logger)
        return True

    def _watch_directory(self, directory: str) -> None:
        observer = self._observer
        handler = self._handler
        if observer is None or handler is None:
            return
        _schedule_directory(observer, handler, directory, self.logger)


def _schedule_directory(
    observer: Observer,
    handler: FileSystemEventHandler,
    directory: str,
    logger: logging.Logger,
) -> None:
    try:
        observer.schedule(handler, directory, recursive=False)
    except OSError as exc:
        logger.warning("Skipping unwatchable directory %s: %s", directory, exc)


__all__ = ["ChangeCallback", "ChangeWatcher"]
