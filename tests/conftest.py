from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from docwatch.config import TriggerConfig
from docwatch.models import GenerationResult
from docwatch.trigger import TriggerController
from tests._fixtures.doubles import (
    ControllerHarness,
    FakeClock,
    FakeScheduler,
    InlineExecutor,
    RecordingGenerator,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler(clock: FakeClock) -> FakeScheduler:
    return FakeScheduler(clock)


@pytest.fixture
def make_controller(tmp_path: Path, clock: FakeClock, scheduler: FakeScheduler):
    """Build a controller wired to fake time and an inline executor."""

    def _make(
        generator: RecordingGenerator | None = None, **overrides: object
    ) -> ControllerHarness:
        settings = {
            "change_threshold": 40,
            "debounce_ms": 20_000,
            "cooldown_ms": 30_000,
        }
        settings.update(overrides)
        config = TriggerConfig.from_settings(**settings)
        generator = generator or RecordingGenerator()
        results: List[GenerationResult] = []
        controller = TriggerController(
            config,
            generator,
            results.append,
            scheduler=scheduler,
            clock=clock,
            executor=InlineExecutor(),
        )
        return ControllerHarness(
            controller=controller,
            generator=generator,
            scheduler=scheduler,
            clock=clock,
            results=results,
            root=tmp_path / "project",
        )

    return _make
