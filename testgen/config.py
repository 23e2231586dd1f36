"""Configuration loading for testgen (testgen.toml / testgen.yaml)."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .errors import ConfigError

CONFIG_FILENAMES = ("testgen.toml", "testgen.yaml", "testgen.yml", ".testgen.yml")
STRATEGIES = ("integration", "unit")

DEFAULT_TYPE_MAPPINGS: Dict[str, str] = {
    "PathBuf": 'std::path::PathBuf::from(".")',
    "Uuid": "uuid::Uuid::new_v4()",
}
DEFAULT_SKIP_PATTERNS = ("**/target/**", "**/.git/**", "**/node_modules/**")

_LEGACY_KEYS = (
    "output_dir",
    "skip_functions",
    "type_mappings",
    "parallel",
    "respect_gitignore",
    "skip_patterns",
    "timeout_seconds",
)


@dataclass
class ProjectConfig:
    """Crate identity overrides."""

    name: Optional[str] = None


@dataclass
class GenerationConfig:
    """How test text is produced and where it lands."""

    strategy: str = "integration"
    output_dir: str = "tests"
    skip_functions: List[str] = field(default_factory=list)
    custom_assertions: Dict[str, str] = field(default_factory=dict)
    timeout_seconds: Optional[float] = 300.0
    templates_dir: Optional[Path] = None


@dataclass
class TypeConfig:
    """Literal overrides keyed by type name."""

    mappings: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TYPE_MAPPINGS))


@dataclass
class PerformanceConfig:
    """Concurrency and caching knobs for the analysis pass."""

    parallel: bool = True
    max_workers: Optional[int] = None
    caching_enabled: bool = False


@dataclass
class FilesystemConfig:
    """Source discovery exclusions."""

    respect_gitignore: bool = True
    skip_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_SKIP_PATTERNS))


@dataclass
class TestGenConfig:
    """Resolved settings for one run."""

    __test__ = False

    root: Path
    source: Optional[Path] = None
    project: ProjectConfig = field(default_factory=ProjectConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    types: TypeConfig = field(default_factory=TypeConfig)
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)
    filesystem: FilesystemConfig = field(default_factory=FilesystemConfig)

    def should_skip_function(self, name: str) -> bool:
        """Return True when the function name starts with a configured skip prefix."""
        return any(prefix and name.startswith(prefix) for prefix in self.generation.skip_functions)

    def to_dict(self) -> Dict[str, Any]:
        """Return the hierarchical form written by ``save_config``."""
        generation: Dict[str, Any] = {
            "strategy": self.generation.strategy,
            "output_dir": self.generation.output_dir,
            "skip_functions": list(self.generation.skip_functions),
            "custom_assertions": dict(self.generation.custom_assertions),
            "timeout_seconds": self.generation.timeout_seconds,
        }
        if self.generation.templates_dir is not None:
            generation["templates_dir"] = _relative_to(self.generation.templates_dir, self.root)
        project: Dict[str, Any] = {}
        if self.project.name:
            project["name"] = self.project.name
        return {
            "project": project,
            "generation": generation,
            "types": {"mappings": dict(self.types.mappings)},
            "performance": {
                "parallel": self.performance.parallel,
                "max_workers": self.performance.max_workers,
                "caching_enabled": self.performance.caching_enabled,
            },
            "filesystem": {
                "respect_gitignore": self.filesystem.respect_gitignore,
                "skip_patterns": list(self.filesystem.skip_patterns),
            },
        }


def load_config(
    config_path: Path, *, environ: Optional[Mapping[str, str]] = None
) -> TestGenConfig:
    """Load configuration from a crate directory or an explicit config file."""
    config_path = Path(config_path).expanduser()
    if config_path.is_file():
        config_file: Optional[Path] = config_path.resolve()
        root = config_file.parent
    else:
        root = config_path.resolve()
        config_file = find_config_file(root)

    config = TestGenConfig(root=root)
    if config_file is not None:
        data = _read_config(config_file)
        if not isinstance(data, dict):
            raise ConfigError(f"{config_file.name} must contain a mapping at the root")
        _apply_legacy(config, data)
        _apply_hierarchy(config, data)
        config.source = config_file

    _apply_environment(config, os.environ if environ is None else environ)
    _validate(config)
    return config


def find_config_file(root: Path) -> Optional[Path]:
    """Return the first recognised configuration file in ``root``."""
    for name in CONFIG_FILENAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def save_config(config: TestGenConfig, path: Path) -> Path:
    """Write the configuration as YAML; TOML targets are refused."""
    path = Path(path)
    if path.suffix == ".toml":
        raise ConfigError("Writing TOML configuration is not supported; use testgen.yaml")
    text = yaml.safe_dump(config.to_dict(), sort_keys=False, default_flow_style=False)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def apply_overrides(
    config: TestGenConfig,
    *,
    output_dir: Optional[str] = None,
    strategy: Optional[str] = None,
    parallel: Optional[bool] = None,
) -> TestGenConfig:
    """Apply per-run overrides (CLI flags, request fields) and re-validate."""
    if output_dir:
        config.generation.output_dir = output_dir
    if strategy:
        config.generation.strategy = strategy
    if parallel is not None:
        config.performance.parallel = parallel
    _validate(config)
    return config


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}

    if path.suffix == ".toml":
        try:
            return tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc

    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _apply_legacy(config: TestGenConfig, data: Dict[str, Any]) -> None:
    if not any(key in data for key in _LEGACY_KEYS):
        return
    if "output_dir" in data:
        config.generation.output_dir = _as_str(data["output_dir"]) or config.generation.output_dir
    if "skip_functions" in data:
        config.generation.skip_functions = _as_str_list(data["skip_functions"])
    if "timeout_seconds" in data:
        config.generation.timeout_seconds = _as_timeout(data["timeout_seconds"])
    if "type_mappings" in data:
        config.types.mappings.update(_as_str_dict(data["type_mappings"]))
    if "parallel" in data:
        config.performance.parallel = _as_bool(data["parallel"], config.performance.parallel)
    if "respect_gitignore" in data:
        config.filesystem.respect_gitignore = _as_bool(
            data["respect_gitignore"], config.filesystem.respect_gitignore
        )
    if "skip_patterns" in data:
        config.filesystem.skip_patterns = _as_str_list(data["skip_patterns"])


def _apply_hierarchy(config: TestGenConfig, data: Dict[str, Any]) -> None:
    project_data = _as_dict(data.get("project"))
    if project_data:
        config.project.name = _as_str(project_data.get("name"))

    generation_data = _as_dict(data.get("generation"))
    if generation_data:
        generation = config.generation
        generation.strategy = _as_str(generation_data.get("strategy")) or generation.strategy
        generation.output_dir = _as_str(generation_data.get("output_dir")) or generation.output_dir
        if "skip_functions" in generation_data:
            generation.skip_functions = _as_str_list(generation_data.get("skip_functions"))
        if "custom_assertions" in generation_data:
            generation.custom_assertions = _as_str_dict(generation_data.get("custom_assertions"))
        if "timeout_seconds" in generation_data:
            generation.timeout_seconds = _as_timeout(generation_data.get("timeout_seconds"))
        templates_dir = _as_str(generation_data.get("templates_dir"))
        if templates_dir:
            generation.templates_dir = config.root / templates_dir

    types_data = _as_dict(data.get("types"))
    if types_data:
        config.types.mappings.update(_as_str_dict(types_data.get("mappings")))

    performance_data = _as_dict(data.get("performance"))
    if performance_data:
        performance = config.performance
        performance.parallel = _as_bool(performance_data.get("parallel"), performance.parallel)
        max_workers = _as_int(performance_data.get("max_workers"))
        performance.max_workers = max_workers if max_workers and max_workers > 0 else None
        performance.caching_enabled = _as_bool(
            performance_data.get("caching_enabled"), performance.caching_enabled
        )

    filesystem_data = _as_dict(data.get("filesystem"))
    if filesystem_data:
        filesystem = config.filesystem
        filesystem.respect_gitignore = _as_bool(
            filesystem_data.get("respect_gitignore"), filesystem.respect_gitignore
        )
        if "skip_patterns" in filesystem_data:
            filesystem.skip_patterns = _as_str_list(filesystem_data.get("skip_patterns"))


def _apply_environment(config: TestGenConfig, environ: Mapping[str, str]) -> None:
    output_dir = environ.get("TESTGEN_OUTPUT_DIR")
    if output_dir:
        config.generation.output_dir = output_dir
    strategy = environ.get("TESTGEN_STRATEGY")
    if strategy:
        config.generation.strategy = strategy
    timeout = environ.get("TESTGEN_TIMEOUT")
    if timeout:
        config.generation.timeout_seconds = _as_timeout(timeout)


def _validate(config: TestGenConfig) -> None:
    strategy = config.generation.strategy.strip().lower()
    if strategy not in STRATEGIES:
        allowed = ", ".join(STRATEGIES)
        raise ConfigError(f"Unknown generation strategy '{config.generation.strategy}' (expected {allowed})")
    config.generation.strategy = strategy
    output_dir = Path(config.generation.output_dir)
    if output_dir.is_absolute() or ".." in output_dir.parts:
        raise ConfigError("generation.output_dir must be a relative path inside the project")


def _relative_to(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


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


def _as_timeout(value: Any) -> Optional[float]:
    seconds = _as_float(value)
    if seconds is None or seconds <= 0:
        return None
    return seconds


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return default


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


def _as_str_dict(value: Any) -> Dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {
        str(key): str(item)
        for key, item in value.items()
        if isinstance(key, str) and isinstance(item, (str, int, float, bool))
    }


__all__ = [
    "CONFIG_FILENAMES",
    "DEFAULT_TYPE_MAPPINGS",
    "ConfigError",
    "FilesystemConfig",
    "GenerationConfig",
    "PerformanceConfig",
    "ProjectConfig",
    "STRATEGIES",
    "TestGenConfig",
    "TypeConfig",
    "apply_overrides",
    "find_config_file",
    "load_config",
    "save_config",
]
