"""Configuration loading for docwatch (.docwatch.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import yaml

from .models import DetailLevel

CONFIG_FILENAME = ".docwatch.yml"

THRESHOLD_PRESETS: Mapping[str, int] = MappingProxyType(
    {
        "tiny": 10,
        "small": 20,
        "medium": 40,
        "big": 200,
    }
)

DEFAULT_THRESHOLD = THRESHOLD_PRESETS["medium"]
DEFAULT_COOLDOWN_MS = 30_000
DEFAULT_DEBOUNCE_MS = 20_000
DEFAULT_EXCLUDE_DIRS: Tuple[str, ...] = ("node_modules", "dist", ".docwatch", ".git", "docs")
DEFAULT_EXTENSIONS: Tuple[str, ...] = (".py", ".ts", ".tsx", ".js", ".jsx", ".java", ".go")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass(frozen=True)
class ExtensionConfig:
    """Documentation detail level for one file extension."""

    extension: str
    detail_level: DetailLevel = DetailLevel.STANDARD


def _legacy_extension_map(
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    level: DetailLevel = DetailLevel.STANDARD,
) -> Mapping[str, DetailLevel]:
    return MappingProxyType({_normalise_extension(ext): level for ext in extensions if ext})


@dataclass(frozen=True)
class TriggerConfig:
    """Immutable thresholds and filters for automatic documentation."""

    change_threshold: int = DEFAULT_THRESHOLD
    generate_on_create: bool = False
    extension_detail_map: Mapping[str, DetailLevel] = field(default_factory=_legacy_extension_map)
    excluded_directories: Tuple[str, ...] = DEFAULT_EXCLUDE_DIRS
    cooldown_ms: int = DEFAULT_COOLDOWN_MS
    debounce_ms: int = DEFAULT_DEBOUNCE_MS

    @classmethod
    def from_settings(
        cls,
        *,
        change_threshold: Any = None,
        generate_on_create: bool = False,
        extension_configs: Optional[Sequence[ExtensionConfig]] = None,
        file_extensions: Optional[Sequence[str]] = None,
        doc_detail_level: Any = None,
        exclude_dirs: Optional[Sequence[str]] = None,
        cooldown_ms: Any = None,
        debounce_ms: Any = None,
    ) -> "TriggerConfig":
        """Build a config, folding legacy extension settings into one lookup table.

        ``extension_configs`` wins when present; otherwise every legacy
        extension is mapped to ``doc_detail_level`` (standard by default).
        """
        if extension_configs:
            detail_map: Mapping[str, DetailLevel] = MappingProxyType(
                {
                    _normalise_extension(cfg.extension): DetailLevel.parse(cfg.detail_level)
                    for cfg in extension_configs
                    if cfg.extension
                }
            )
        else:
            detail_map = _legacy_extension_map(
                file_extensions or DEFAULT_EXTENSIONS,
                DetailLevel.parse(doc_detail_level),
            )

        return cls(
            change_threshold=resolve_threshold(change_threshold) or DEFAULT_THRESHOLD,
            generate_on_create=bool(generate_on_create),
            extension_detail_map=detail_map,
            excluded_directories=(
                tuple(exclude_dirs) if exclude_dirs is not None else DEFAULT_EXCLUDE_DIRS
            ),
            cooldown_ms=_positive_int(cooldown_ms) or DEFAULT_COOLDOWN_MS,
            debounce_ms=_positive_int(debounce_ms) or DEFAULT_DEBOUNCE_MS,
        )

    @property
    def cooldown_seconds(self) -> float:
        return self.cooldown_ms / 1000.0

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0


@dataclass
class LLMConfig:
    """LLM runtime settings from .docwatch.yml."""

    model: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    request_timeout: Optional[float] = None


@dataclass
class WatchConfig:
    """Everything the watch command needs for one project root."""

    root: Path
    trigger: TriggerConfig = field(default_factory=TriggerConfig)
    llm: Optional[LLMConfig] = None


def resolve_threshold(value: Any) -> Optional[int]:
    """Accept a preset name (tiny/small/medium/big) or a positive line count."""
    if isinstance(value, str):
        preset = THRESHOLD_PRESETS.get(value.strip().lower())
        if preset is not None:
            return preset
    return _positive_int(value)


def load_config(config_path: Path) -> WatchConfig:
    """Load configuration from disk, returning defaults when the file is missing."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return WatchConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    extension_configs = _parse_extension_configs(data.get("extensions"))
    exclude_dirs = data.get("exclude_dirs")

    trigger = TriggerConfig.from_settings(
        change_threshold=data.get("threshold"),
        generate_on_create=_as_bool(data.get("generate_on_create")) or False,
        extension_configs=extension_configs or None,
        file_extensions=_as_str_list(data.get("file_extensions")) or None,
        doc_detail_level=data.get("doc_detail_level"),
        exclude_dirs=_as_str_list(exclude_dirs) if exclude_dirs is not None else None,
        cooldown_ms=data.get("cooldown_ms"),
        debounce_ms=data.get("debounce_ms"),
    )

    llm_data = _as_dict(data.get("llm"))
    llm = None
    if llm_data:
        llm = LLMConfig(
            model=_as_str(llm_data.get("model")),
            base_url=_as_str(llm_data.get("base_url")),
            api_key=_as_str(llm_data.get("api_key")),
            temperature=_as_float(llm_data.get("temperature")),
            max_tokens=_positive_int(llm_data.get("max_tokens")),
            request_timeout=_as_float(llm_data.get("request_timeout")),
        )

    return WatchConfig(root=root, trigger=trigger, llm=llm)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _parse_extension_configs(value: Any) -> List[ExtensionConfig]:
    configs: List[ExtensionConfig] = []
    if isinstance(value, dict):
        # Shorthand form: {".py": comprehensive, ".ts": brief}
        items: Iterable[Any] = (
            {"extension": key, "detail_level": level} for key, level in value.items()
        )
    elif isinstance(value, list):
        items = value
    else:
        return configs

    for item in items:
        if isinstance(item, str):
            configs.append(ExtensionConfig(extension=_normalise_extension(item)))
            continue
        entry = _as_dict(item)
        extension = _as_str(entry.get("extension"))
        if not extension:
            continue
        configs.append(
            ExtensionConfig(
                extension=_normalise_extension(extension),
                detail_level=DetailLevel.parse(entry.get("detail_level")),
            )
        )
    return configs


def _normalise_extension(extension: str) -> str:
    cleaned = extension.strip().lower()
    if cleaned and not cleaned.startswith("."):
        cleaned = f".{cleaned}"
    return cleaned


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            return None
    if isinstance(value, int) and value > 0:
        return value
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DEFAULT_COOLDOWN_MS",
    "DEFAULT_DEBOUNCE_MS",
    "DEFAULT_EXCLUDE_DIRS",
    "DEFAULT_EXTENSIONS",
    "DEFAULT_THRESHOLD",
    "ExtensionConfig",
    "LLMConfig",
    "THRESHOLD_PRESETS",
    "TriggerConfig",
    "WatchConfig",
    "load_config",
    "resolve_threshold",
]
