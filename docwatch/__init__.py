"""Watch a source tree and regenerate per-file documentation as it changes."""

from .config import TriggerConfig, load_config
from .models import ChangeEvent, ChangeKind, DetailLevel, GenerationOutcome, GenerationResult
from .trigger import TriggerController
from .watcher import ChangeWatcher

__all__ = [
    "ChangeEvent",
    "ChangeKind",
    "ChangeWatcher",
    "DetailLevel",
    "GenerationOutcome",
    "GenerationResult",
    "TriggerConfig",
    "TriggerController",
    "load_config",
]
