"""Project discovery and project configuration reading (tauri.conf.json)."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import ConfigError, ConfigParseError, MissingInputError, read_json
from .models import ProjectConfig, ResourceDeclaration, ResourceMapping

PROJECT_DIRNAME = "src-tauri"
PROJECT_CONFIG_FILENAME = "tauri.conf.json"
WINDOWS_OVERLAY_FILENAME = "tauri.windows.conf.json"

_LEADING_DIGITS = re.compile(r"\d*")


def find_project_root(start_dir: Path | str | None = None) -> Path:
    """Walk upwards from ``start_dir`` until a Tauri project root is found."""
    current = Path(start_dir).expanduser().resolve() if start_dir else Path.cwd().resolve()
    for candidate in (current, *current.parents):
        if (candidate / PROJECT_DIRNAME / PROJECT_CONFIG_FILENAME).is_file():
            return candidate
        if (candidate / "package.json").is_file() and (candidate / PROJECT_DIRNAME).is_dir():
            return candidate
    raise MissingInputError(
        "Could not find Tauri project root. Make sure you are in a Tauri project directory."
    )


def get_project_dir(project_root: Path) -> Path:
    return project_root / PROJECT_DIRNAME


def get_windows_dir(project_root: Path) -> Path:
    """Return the packaging metadata directory (``src-tauri/gen/windows``)."""
    return project_root / PROJECT_DIRNAME / "gen" / "windows"


def read_project_config(project_root: Path) -> ProjectConfig:
    """Read tauri.conf.json, overlaid with tauri.windows.conf.json when present."""
    project_dir = get_project_dir(project_root)
    config_path = project_dir / PROJECT_CONFIG_FILENAME
    if not config_path.is_file():
        raise MissingInputError(f"{PROJECT_CONFIG_FILENAME} not found at {config_path}")

    data = _read_object(config_path)
    overlay_path = project_dir / WINDOWS_OVERLAY_FILENAME
    if overlay_path.is_file():
        data = merge_overlay(data, _read_object(overlay_path))
    return project_config_from_dict(data, config_dir=project_dir)


def merge_overlay(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Top-level keys replace; the ``bundle`` object is merged key by key."""
    merged = dict(base)
    for key, value in overlay.items():
        if key == "bundle" and isinstance(value, dict) and isinstance(merged.get("bundle"), dict):
            merged["bundle"] = {**merged["bundle"], **value}
        else:
            merged[key] = value
    return merged


def project_config_from_dict(
    data: Dict[str, Any], *, config_dir: Optional[Path] = None
) -> ProjectConfig:
    bundle = data.get("bundle") if isinstance(data.get("bundle"), dict) else {}
    windows = bundle.get("windows") if isinstance(bundle.get("windows"), dict) else {}
    description = _optional_str(bundle.get("shortDescription")) or _optional_str(
        bundle.get("longDescription")
    )
    return ProjectConfig(
        product_name=_optional_str(data.get("productName")),
        version=_optional_str(data.get("version")),
        identifier=_optional_str(data.get("identifier")),
        description=description,
        resources=_parse_resources(bundle.get("resources")),
        certificate_thumbprint=_optional_str(windows.get("certificateThumbprint")),
        config_dir=config_dir,
    )


def resolve_version(version: str, config_dir: Path) -> str:
    """Return ``version`` or, when it names a JSON file, that file's ``version`` field."""
    candidate = (config_dir / version).resolve()
    if not candidate.is_file():
        return version
    try:
        payload = json.loads(candidate.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigParseError(f"Failed to parse {version} as JSON: {exc}") from exc
    resolved = payload.get("version") if isinstance(payload, dict) else None
    if not isinstance(resolved, str) or not resolved:
        raise ConfigError(f'File {version} does not contain a valid "version" field')
    return resolved


def to_four_part_version(version: str) -> str:
    """Pad or truncate a dotted version to exactly four numeric components.

    SemVer pre-release and build suffixes are dropped: ``1.0.0-beta.1`` becomes
    ``1.0.0.0``.
    """
    core = re.split(r"[-+]", version.strip(), maxsplit=1)[0]
    parts = [_LEADING_DIGITS.match(part).group() or "0" for part in core.split(".")]
    while len(parts) < 4:
        parts.append("0")
    return ".".join(parts[:4])


def _read_object(path: Path) -> Dict[str, Any]:
    data = read_json(path)
    if not isinstance(data, dict):
        raise ConfigError(f"{path.name} must contain an object at the root")
    return data


def _parse_resources(value: Any) -> List[ResourceDeclaration]:
    if isinstance(value, dict):
        # Tauri also accepts a {source: target} map.
        return [ResourceMapping(src=str(src), target=str(target)) for src, target in value.items()]
    if not isinstance(value, list):
        return []
    resources: List[ResourceDeclaration] = []
    for item in value:
        if isinstance(item, str):
            resources.append(item)
        elif isinstance(item, dict) and item.get("src") and item.get("target"):
            resources.append(ResourceMapping(src=str(item["src"]), target=str(item["target"])))
    return resources


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


__all__ = [
    "find_project_root",
    "get_project_dir",
    "get_windows_dir",
    "merge_overlay",
    "project_config_from_dict",
    "read_project_config",
    "resolve_version",
    "to_four_part_version",
]
