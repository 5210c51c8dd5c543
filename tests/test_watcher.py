"""Tests for docwatch.watcher."""

from __future__ import annotations

from pathlib import Path
from typing import List, Set, Tuple

import pytest
from watchdog.events import FileCreatedEvent, FileModifiedEvent, FileMovedEvent
from watchdog.observers.api import BaseObserver
from watchdog.observers.polling import PollingEmitter

from docwatch.models import ChangeEvent, ChangeKind
from docwatch.watcher import ChangeWatcher, _NotificationHandler


class FakeObserver:
    """Stands in for watchdog's Observer.

    Like watchdog, a watch is only set up when its emitter starts: schedules
    made before ``start`` fail inside ``start``, later ones fail inside
    ``schedule``.
    """

    def __init__(self, refuse_recursive: bool = False, refuse: Tuple[str, ...] = ()) -> None:
        self.refuse_recursive = refuse_recursive
        self.refuse = refuse
        self.pending: List[Tuple[str, bool]] = []
        self.scheduled: List[Tuple[str, bool]] = []
        self.started = False
        self.stopped = False

    def _start_emitter(self, path: str, recursive: bool) -> None:
        if recursive and self.refuse_recursive:
            raise OSError(28, "inotify watch limit reached")
        if path in self.refuse:
            raise PermissionError(f"cannot watch {path}")
        self.scheduled.append((path, recursive))

    def schedule(self, handler, path: str, recursive: bool = False) -> None:
        if self.started:
            self._start_emitter(path, recursive)
        else:
            self.pending.append((path, recursive))

    def unschedule_all(self) -> None:
        self.pending.clear()
        self.scheduled.clear()

    def start(self) -> None:
        for path, recursive in self.pending:
            self._start_emitter(path, recursive)
        self.pending.clear()
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def join(self, timeout: float | None = None) -> None:
        return None


def _refusing_observer(refused: Set[str]) -> BaseObserver:
    """A real watchdog observer whose emitters refuse recursive or listed watches."""

    class _RefusingEmitter(PollingEmitter):
        def on_thread_start(self) -> None:
            if self.watch.is_recursive or self.watch.path in refused:
                raise OSError(28, "inotify watch limit reached")
            super().on_thread_start()

    return BaseObserver(_RefusingEmitter, timeout=1.0)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "src" / "app.py").write_text("a\nb\nc\n", encoding="utf-8")
    return root


def _start(root: Path, observer: FakeObserver | None = None) -> Tuple[ChangeWatcher, List[ChangeEvent], FakeObserver]:
    events: List[ChangeEvent] = []
    observer = observer or FakeObserver()
    watcher = ChangeWatcher(root, events.append, observer_factory=lambda: observer)
    watcher.start()
    return watcher, events, observer


def test_start_builds_baseline_and_schedules_recursive_watch(project: Path) -> None:
    watcher, events, observer = _start(project)

    assert watcher.is_running
    assert observer.started
    assert observer.scheduled == [(str(project.resolve()), True)]
    assert watcher.is_known(str(project / "src" / "app.py"))
    assert watcher.is_known(str(project / "src"))
    assert watcher.snapshot(str(project / "src" / "app.py")) == "a\nb\nc\n"
    assert events == []


def test_new_file_emits_created_with_line_count(project: Path) -> None:
    watcher, events, _ = _start(project)
    new_file = project / "src" / "util.py"
    new_file.write_text("x = 1\ny = 2\n", encoding="utf-8")

    watcher.process(str(new_file))

    assert events == [
        ChangeEvent(kind=ChangeKind.CREATED, name="src/util.py", path=str(new_file), lines_changed=2)
    ]
    assert watcher.snapshot(str(new_file)) == "x = 1\ny = 2\n"


def test_modified_file_emits_line_statistics(project: Path) -> None:
    watcher, events, _ = _start(project)
    target = project / "src" / "app.py"
    target.write_text("a\nB\nc\nd\ne\n", encoding="utf-8")

    watcher.process(str(target))

    assert events == [
        ChangeEvent(
            kind=ChangeKind.MODIFIED,
            name="src/app.py",
            path=str(target),
            lines_changed=3,
            lines_added=2,
            lines_deleted=0,
        )
    ]
    assert watcher.snapshot(str(target)) == "a\nB\nc\nd\ne\n"


def test_repeated_saves_diff_against_latest_snapshot(project: Path) -> None:
    watcher, events, _ = _start(project)
    target = project / "src" / "app.py"

    target.write_text("a\nb\nc\nd\n", encoding="utf-8")
    watcher.process(str(target))
    watcher.process(str(target))

    assert [event.lines_changed for event in events] == [1, 0]


def test_new_directory_reported_once(project: Path) -> None:
    watcher, events, _ = _start(project)
    new_dir = project / "lib"
    new_dir.mkdir()

    watcher.process(str(new_dir))
    watcher.process(str(new_dir))

    assert events == [ChangeEvent(kind=ChangeKind.DIRECTORY_CREATED, name="lib", path=str(new_dir))]


def test_vanished_file_is_suppressed(project: Path) -> None:
    watcher, events, _ = _start(project)
    target = project / "src" / "app.py"
    target.unlink()

    assert watcher.process(str(target)) is None
    assert watcher.process(str(project / "src" / "never.py")) is None
    assert events == []


def test_unreadable_new_file_is_reported_without_counts(project: Path) -> None:
    watcher, events, _ = _start(project)
    binary = project / "src" / "blob.py"
    binary.write_bytes(b"\xff\xfe\x00\x01")

    watcher.process(str(binary))

    assert events == [ChangeEvent(kind=ChangeKind.CREATED, name="src/blob.py", path=str(binary))]


def test_unreadable_modification_is_reported_without_counts(project: Path) -> None:
    watcher, events, _ = _start(project)
    target = project / "src" / "app.py"
    target.write_bytes(b"\xff\xfe\x00\x01")

    watcher.process(str(target))

    assert events == [ChangeEvent(kind=ChangeKind.MODIFIED, name="src/app.py", path=str(target))]
    assert watcher.snapshot(str(target)) == "a\nb\nc\n"


def test_file_without_baseline_snapshot_diffs_against_empty(project: Path) -> None:
    binary = project / "src" / "data.py"
    binary.write_bytes(b"\xff\xfe")
    watcher, events, _ = _start(project)

    binary.write_text("one\ntwo\n", encoding="utf-8")
    watcher.process(str(binary))

    assert events[0].kind is ChangeKind.MODIFIED
    assert (events[0].lines_changed, events[0].lines_added) == (2, 2)


def test_hidden_and_node_modules_paths_are_ignored(project: Path) -> None:
    watcher, events, _ = _start(project)
    hidden = project / ".cache" / "state.py"
    hidden.parent.mkdir()
    hidden.write_text("x\n", encoding="utf-8")
    vendored = project / "node_modules" / "lib.js"
    vendored.parent.mkdir()
    vendored.write_text("x\n", encoding="utf-8")

    assert watcher.process(str(hidden)) is None
    assert watcher.process(str(vendored)) is None
    assert events == []


def test_relative_notification_paths_resolve_against_root(project: Path) -> None:
    watcher, events, _ = _start(project)
    (project / "src" / "rel.py").write_text("x\n", encoding="utf-8")

    watcher.process("src/rel.py")

    assert events[0].path == str(project.resolve() / "src" / "rel.py")


def test_recursive_watch_failure_falls_back_per_directory(project: Path) -> None:
    (project / "locked").mkdir()
    root = project.resolve()
    observer = FakeObserver(refuse_recursive=True, refuse=(str(root / "locked"),))

    watcher, _, _ = _start(project, observer)

    assert watcher.is_running
    assert observer.scheduled == [(str(root), False), (str(root / "src"), False)]


def test_recursive_setup_failure_in_real_observer_falls_back(project: Path) -> None:
    (project / "locked").mkdir()
    root = project.resolve()
    observer = _refusing_observer({str(root / "locked")})
    watcher = ChangeWatcher(project, lambda event: None, observer_factory=lambda: observer)

    watcher.start()
    try:
        assert watcher.is_running
        watched = {(emitter.watch.path, emitter.watch.is_recursive) for emitter in observer.emitters}
        assert watched == {(str(root), False), (str(root / "src"), False)}

        (project / "lib").mkdir()
        watcher.process(str(project / "lib"))
        watched = {(emitter.watch.path, emitter.watch.is_recursive) for emitter in observer.emitters}
        assert (str(root / "lib"), False) in watched
    finally:
        watcher.stop()


def test_new_directory_is_watched_in_per_directory_mode(project: Path) -> None:
    root = project.resolve()
    observer = FakeObserver(refuse_recursive=True, refuse=(str(root / "blocked"),))
    watcher, events, _ = _start(project, observer)
    (project / "lib").mkdir()
    (project / "blocked").mkdir()

    watcher.process(str(project / "lib"))
    watcher.process(str(project / "blocked"))

    assert observer.scheduled == [(str(root), False), (str(root / "src"), False), (str(root / "lib"), False)]
    assert [event.name for event in events] == ["lib", "blocked"]


def test_new_directory_needs_no_extra_watch_when_recursive(project: Path) -> None:
    watcher, _, observer = _start(project)
    (project / "lib").mkdir()

    watcher.process(str(project / "lib"))

    assert observer.scheduled == [(str(project.resolve()), True)]


def test_stop_clears_state(project: Path) -> None:
    watcher, _, observer = _start(project)

    watcher.stop()

    assert observer.stopped
    assert not watcher.is_running
    assert not watcher.is_known(str(project / "src" / "app.py"))
    assert watcher.snapshot(str(project / "src" / "app.py")) is None


def test_notification_handler_forwards_paths(project: Path) -> None:
    watcher, events, _ = _start(project)
    handler = _NotificationHandler(watcher)
    created = project / "src" / "new.py"
    created.write_text("x\n", encoding="utf-8")
    renamed = project / "src" / "app.py"
    renamed.write_text("a\nb\nc\nd\n", encoding="utf-8")

    handler.on_created(FileCreatedEvent(str(created)))
    handler.on_moved(FileMovedEvent(str(project / "src" / ".app.py.swp"), str(renamed)))
    handler.on_modified(FileModifiedEvent(str(renamed)))

    assert [event.kind for event in events] == [
        ChangeKind.CREATED,
        ChangeKind.MODIFIED,
        ChangeKind.MODIFIED,
    ]
    assert events[1].lines_added == 1
    assert events[2].lines_changed == 0
