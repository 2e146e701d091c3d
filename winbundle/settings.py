"""Tool settings loading for winbundle (.winbundle.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .config import ConfigError, ConfigParseError
from .models import DEFAULT_ARCHITECTURES, DEFAULT_MIN_WINDOWS_VERSION, DEFAULT_RUNNER

SETTINGS_FILENAME = ".winbundle.yml"


@dataclass
class BuildSettings:
    """Defaults for ``winbundle build`` that CLI flags may override."""

    architectures: List[str] = field(default_factory=lambda: list(DEFAULT_ARCHITECTURES))
    release: bool = True
    min_windows: str = DEFAULT_MIN_WINDOWS_VERSION
    runner: str = DEFAULT_RUNNER


@dataclass
class WinBundleSettings:
    """Represents the settings defined in .winbundle.yml."""

    root: Path
    build: BuildSettings = field(default_factory=BuildSettings)
    log_file: Optional[Path] = None


def load_settings(project_root: Path) -> WinBundleSettings:
    """Load settings from the project root, returning defaults when absent."""
    root = project_root.expanduser().resolve()
    settings_file = root / SETTINGS_FILENAME
    if not settings_file.is_file():
        return WinBundleSettings(root=root)

    data = _read_settings(settings_file)
    build_data = _as_dict(data.get("build"))
    build = BuildSettings()
    if build_data:
        architectures = parse_architectures(build_data.get("arch"))
        if architectures:
            build.architectures = architectures
        release = build_data.get("release")
        if release is not None:
            if not isinstance(release, bool):
                raise ConfigError(f"{SETTINGS_FILENAME}: build.release must be true or false")
            build.release = release
        build.min_windows = _as_str(build_data.get("min_windows")) or build.min_windows
        build.runner = _as_str(build_data.get("runner")) or build.runner

    log_file_str = _as_str(data.get("log_file"))
    log_file = root / log_file_str if log_file_str else None

    return WinBundleSettings(root=root, build=build, log_file=log_file)


def parse_architectures(value: Any) -> List[str]:
    """Accept ``"x64,arm64"`` or ``["x64", "arm64"]``."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, list):
        items = [str(item) for item in value]
    else:
        raise ConfigError(f"{SETTINGS_FILENAME}: build.arch must be a string or list")
    return [item.strip() for item in items if item.strip()]


def _read_settings(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigParseError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{SETTINGS_FILENAME} must contain a mapping at the root")
    return loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


__all__ = ["BuildSettings", "WinBundleSettings", "load_settings", "parse_architectures"]
