"""Configuration loading for docforge (.docforge.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".docforge.yml"

GENERATION_MODES = ("group", "file")
SIDEBAR_FORMATS = ("json", "js")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class LLMConfig:
    """Generative service settings; unset fields fall back to the environment."""

    model: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    request_timeout: Optional[float] = None


@dataclass
class GenerationConfig:
    """Rate limiting, retry, truncation and validation knobs."""

    mode: str = "group"
    cooldown_seconds: float = 1.0
    max_attempts: int = 5
    base_delay: float = 1.0
    max_delay: float = 30.0
    truncate_chars: int = 30_000
    fallback_truncate_chars: int = 45_000
    min_length: int = 100
    summary_min_length: int = 50
    cache_prefix_chars: int = 2_000


@dataclass
class OutputConfig:
    """Where and how documentation is materialized."""

    docs_dir: str = "docs"
    sidebar_format: str = "json"


@dataclass
class DocForgeConfig:
    """Represents the high-level settings defined in .docforge.yml."""

    root: Path
    llm: LLMConfig = field(default_factory=LLMConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    exclude_paths: List[str] = field(default_factory=list)


def load_config(config_path: Path) -> DocForgeConfig:
    """Load configuration from disk; a missing file yields the defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return DocForgeConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    llm_data = _as_dict(data.get("llm"))
    llm = LLMConfig(
        model=_as_str(llm_data.get("model")),
        base_url=_as_str(llm_data.get("base_url")),
        api_key=_as_str(llm_data.get("api_key")),
        temperature=_as_float(llm_data.get("temperature")),
        max_tokens=_as_int(llm_data.get("max_tokens")),
        request_timeout=_as_float(llm_data.get("request_timeout")),
    )

    defaults = GenerationConfig()
    gen_data = _as_dict(data.get("generation"))
    generation = GenerationConfig(
        mode=_as_str(gen_data.get("mode")) or defaults.mode,
        cooldown_seconds=_pick(_as_float(gen_data.get("cooldown_seconds")), defaults.cooldown_seconds),
        max_attempts=_pick(_as_int(gen_data.get("max_attempts")), defaults.max_attempts),
        base_delay=_pick(_as_float(gen_data.get("base_delay")), defaults.base_delay),
        max_delay=_pick(_as_float(gen_data.get("max_delay")), defaults.max_delay),
        truncate_chars=_pick(_as_int(gen_data.get("truncate_chars")), defaults.truncate_chars),
        fallback_truncate_chars=_pick(
            _as_int(gen_data.get("fallback_truncate_chars")), defaults.fallback_truncate_chars
        ),
        min_length=_pick(_as_int(gen_data.get("min_length")), defaults.min_length),
        summary_min_length=_pick(
            _as_int(gen_data.get("summary_min_length")), defaults.summary_min_length
        ),
        cache_prefix_chars=_pick(
            _as_int(gen_data.get("cache_prefix_chars")), defaults.cache_prefix_chars
        ),
    )
    if generation.mode not in GENERATION_MODES:
        raise ConfigError(
            f"generation.mode must be one of {', '.join(GENERATION_MODES)}; got {generation.mode!r}"
        )
    if generation.max_attempts < 1:
        raise ConfigError("generation.max_attempts must be at least 1")

    output_data = _as_dict(data.get("output"))
    output = OutputConfig(
        docs_dir=_as_str(output_data.get("docs_dir")) or OutputConfig.docs_dir,
        sidebar_format=_as_str(output_data.get("sidebar_format")) or OutputConfig.sidebar_format,
    )
    if output.sidebar_format not in SIDEBAR_FORMATS:
        raise ConfigError(
            f"output.sidebar_format must be one of {', '.join(SIDEBAR_FORMATS)}; "
            f"got {output.sidebar_format!r}"
        )

    return DocForgeConfig(
        root=root,
        llm=llm,
        generation=generation,
        output=output,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
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
    return {} if loaded is None else loaded


def _pick(value: Any, default: Any) -> Any:
    return default if value is None else value


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


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


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DocForgeConfig",
    "GenerationConfig",
    "LLMConfig",
    "OutputConfig",
    "load_config",
]
