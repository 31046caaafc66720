"""Configuration loading for docagg (.docagg.yml and environment overrides)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml

from .models import (
    DEFAULT_BRANCH,
    DedicatedSubdir,
    DocsConvention,
    RepoSpec,
    RootFiles,
)
from .paths import DEFAULT_EDIT_HOST

CONFIG_FILENAME = ".docagg.yml"
OUTPUT_ROOT_ENV = "OUT_ROOT"
DEFAULT_OUTPUT_ROOT = Path("projects")
DEFAULT_DOCS_DIR = "docs"

_ROOT_LAYOUTS = {"root", "root-files", "root_files"}
_SUBDIR_LAYOUTS = {"subdir", "dedicated", "dedicated-subdir", "dedicated_subdir"}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


DEFAULT_REPOS: Tuple[RepoSpec, ...] = (
    RepoSpec("peers-app/peers-sdk", Path("_sources/peers-sdk"), DedicatedSubdir("docs")),
    RepoSpec("peers-app/peers-ui", Path("_sources/peers-ui"), RootFiles()),
    RepoSpec("peers-app/peers-host", Path("_sources/peers-host"), RootFiles()),
    RepoSpec("peers-app/peers-electron", Path("_sources/peers-electron"), RootFiles()),
    RepoSpec("peers-app/peers-react-native", Path("_sources/peers-react-native"), RootFiles()),
)


@dataclass(frozen=True)
class AggregatorConfig:
    """Settings for one aggregation run."""

    repos: Tuple[RepoSpec, ...] = DEFAULT_REPOS
    output_root: Path = DEFAULT_OUTPUT_ROOT
    edit_host: str = DEFAULT_EDIT_HOST
    fix_mdx: bool = False
    source: Optional[Path] = field(default=None, compare=False)


def load_config(
    config_path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> AggregatorConfig:
    """Load configuration from disk, falling back to the built-in repository table.

    ``OUT_ROOT`` in ``environ`` (``os.environ`` by default) overrides the
    output root from the file.
    """
    config = AggregatorConfig()
    if config_path is not None:
        config_file = _resolve_config_path(config_path)
        if config_file.exists():
            config = _parse_config(config_file)

    env = os.environ if environ is None else environ
    override = env.get(OUTPUT_ROOT_ENV, "").strip()
    if override:
        config = replace(config, output_root=Path(override))
    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = Path(config_path).expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _parse_config(config_file: Path) -> AggregatorConfig:
    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    repos: Tuple[RepoSpec, ...] = DEFAULT_REPOS
    if "repos" in data:
        raw_repos = data.get("repos")
        if not isinstance(raw_repos, list) or not raw_repos:
            raise ConfigError(f"{config_file.name}: 'repos' must be a non-empty list")
        repos = tuple(_parse_repo(entry, index, config_file) for index, entry in enumerate(raw_repos))
        _check_unique_names(repos, config_file)

    output_root = _as_str(data.get("output_root"))
    edit_host = _as_str(data.get("edit_host"))
    fix_mdx = _as_bool(data.get("fix_mdx"))

    return AggregatorConfig(
        repos=repos,
        output_root=Path(output_root) if output_root else DEFAULT_OUTPUT_ROOT,
        edit_host=edit_host or DEFAULT_EDIT_HOST,
        fix_mdx=bool(fix_mdx),
        source=config_file,
    )


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ConfigError(f"{path.name} is not UTF-8 text: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _parse_repo(entry: Any, index: int, config_file: Path) -> RepoSpec:
    label = f"{config_file.name}: repos[{index}]"
    if not isinstance(entry, dict):
        raise ConfigError(f"{label} must be a mapping")

    identifier = _as_str(entry.get("repo"))
    local = _as_str(entry.get("local"))
    if not identifier:
        raise ConfigError(f"{label} is missing 'repo'")
    if not local:
        raise ConfigError(f"{label} ({identifier}) is missing 'local'")

    branch = _as_str(entry.get("branch")) or DEFAULT_BRANCH
    try:
        return RepoSpec(
            repo_identifier=identifier,
            source_root=Path(local).expanduser(),
            docs_convention=_parse_convention(entry, label),
            branch_name=branch,
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{label}: {exc}") from exc


def _parse_convention(entry: Mapping[str, Any], label: str) -> DocsConvention:
    layout = (_as_str(entry.get("layout")) or "").strip().lower()
    docs_dir = _as_str(entry.get("docs_dir"))

    if layout in _ROOT_LAYOUTS:
        nested = entry.get("nested_doc_dirs")
        if nested is None:
            return RootFiles()
        return RootFiles(nested_doc_dirs=tuple(_as_str_list(nested)))
    if layout and layout not in _SUBDIR_LAYOUTS:
        raise ConfigError(f"{label}: unknown layout {layout!r} (expected 'root' or 'subdir')")

    if docs_dir is not None and docs_dir.strip() in {"", ".", "./"}:
        raise ConfigError(f"{label}: use 'layout: root' for documentation at the repository root")
    return DedicatedSubdir(docs_dir.strip().strip("/") if docs_dir else DEFAULT_DOCS_DIR)


def _check_unique_names(repos: Sequence[RepoSpec], config_file: Path) -> None:
    seen: Dict[str, str] = {}
    for spec in repos:
        previous = seen.get(spec.short_name)
        if previous is not None:
            raise ConfigError(
                f"{config_file.name}: {previous} and {spec.repo_identifier} "
                f"would both write to '{spec.short_name}'"
            )
        seen[spec.short_name] = spec.repo_identifier


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


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
    "AggregatorConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "DEFAULT_OUTPUT_ROOT",
    "DEFAULT_REPOS",
    "OUTPUT_ROOT_ENV",
    "load_config",
]
