"""Packaging configuration loading and persistence (bundle.config.json)."""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .models import (
    DEFAULT_CAPABILITIES,
    EXTENSION_SPECS,
    CapabilitySet,
    Extensions,
    ExtensionKind,
    PackagingConfig,
    SigningConfig,
)

BUNDLE_CONFIG_FILENAME = "bundle.config.json"

_KNOWN_KEYS = {"publisher", "publisherDisplayName", "capabilities", "signing", "extensions"}


class WinBundleError(RuntimeError):
    """Base class for errors surfaced by winbundle."""


class ConfigError(WinBundleError):
    """Raised when a configuration document has invalid or missing content."""


class ConfigParseError(ConfigError):
    """Raised when a configuration document is not valid JSON or YAML."""


class MissingInputError(WinBundleError, FileNotFoundError):
    """Raised when a required input file does not exist."""


def default_packaging_config() -> PackagingConfig:
    """Return the configuration written by ``winbundle init``."""
    return PackagingConfig(
        publisher="CN=YourCompany",
        publisher_display_name="Your Company",
        capabilities=CapabilitySet(general=list(DEFAULT_CAPABILITIES)),
    )


def load_packaging_config(windows_dir: Path) -> PackagingConfig:
    """Load bundle.config.json from the packaging metadata directory."""
    config_path = windows_dir / BUNDLE_CONFIG_FILENAME
    if not config_path.is_file():
        raise MissingInputError(
            f"{BUNDLE_CONFIG_FILENAME} not found. Run 'winbundle init' first."
        )
    data = read_json(config_path)
    if not isinstance(data, dict):
        raise ConfigError(f"{BUNDLE_CONFIG_FILENAME} must contain an object at the root")
    return packaging_config_from_dict(data)


def save_packaging_config(windows_dir: Path, config: PackagingConfig) -> Path:
    """Write the whole configuration document atomically."""
    config_path = windows_dir / BUNDLE_CONFIG_FILENAME
    payload = json.dumps(packaging_config_to_dict(config), indent=2, ensure_ascii=False) + "\n"
    write_text_atomic(config_path, payload)
    return config_path


def read_json(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise MissingInputError(f"{path.name} not found at {path}") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigParseError(f"Failed to parse {path.name}: {exc}") from exc


def write_text_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


# ----------------------------------------------------------------------
# Document <-> dataclass conversion


def packaging_config_from_dict(data: Dict[str, Any]) -> PackagingConfig:
    publisher = _as_str(data.get("publisher"))
    if not publisher:
        raise ConfigError(f"{BUNDLE_CONFIG_FILENAME} is missing required field 'publisher'")
    publisher_display_name = _as_str(data.get("publisherDisplayName")) or ""

    signing_data = _as_dict(data.get("signing"))
    signing = SigningConfig(
        pfx=_as_str(signing_data.get("pfx")),
        pfx_password=_as_str(signing_data.get("pfxPassword")),
    )

    return PackagingConfig(
        publisher=publisher,
        publisher_display_name=publisher_display_name,
        capabilities=_capabilities_from_value(data.get("capabilities")),
        signing=signing,
        extensions=extensions_from_dict(_as_dict(data.get("extensions"))),
        extra={key: value for key, value in data.items() if key not in _KNOWN_KEYS},
    )


def packaging_config_to_dict(config: PackagingConfig) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "publisher": config.publisher,
        "publisherDisplayName": config.publisher_display_name,
        "capabilities": _capabilities_to_value(config.capabilities),
        "signing": {
            "pfx": config.signing.pfx,
            "pfxPassword": config.signing.pfx_password,
        },
    }
    extensions = extensions_to_dict(config.extensions)
    if extensions:
        payload["extensions"] = extensions
    payload.update(config.extra)
    return payload


def extensions_from_dict(data: Dict[str, Any]) -> Extensions:
    extensions = Extensions()
    for kind, spec in EXTENSION_SPECS.items():
        raw = data.get(kind.value)
        if raw is None:
            continue
        if kind is ExtensionKind.SHARE_TARGET:
            extensions.share_target = bool(_as_bool(raw))
        elif kind.is_list:
            if not isinstance(raw, list):
                raise ConfigError(f"extensions.{kind.value} must be a list")
            entries = [entry_from_dict(spec.entry_type, item, kind) for item in raw]
            setattr(extensions, spec.attr, entries)
        else:
            if not isinstance(raw, dict):
                raise ConfigError(f"extensions.{kind.value} must be an object")
            setattr(extensions, spec.attr, entry_from_dict(spec.entry_type, raw, kind))
    return extensions


def extensions_to_dict(extensions: Extensions) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    for kind, spec in EXTENSION_SPECS.items():
        value = getattr(extensions, spec.attr)
        if kind is ExtensionKind.SHARE_TARGET:
            if value:
                payload[kind.value] = True
        elif kind.is_list:
            if value:
                payload[kind.value] = [entry_to_dict(entry) for entry in value]
        elif value is not None:
            payload[kind.value] = entry_to_dict(value)
    return payload


def entry_from_dict(entry_type: Any, payload: Any, kind: ExtensionKind) -> Any:
    if not isinstance(payload, dict):
        raise ConfigError(f"extensions.{kind.value} entries must be objects")
    values: Dict[str, Any] = {}
    for entry_field in fields(entry_type):
        key = entry_field.metadata["key"]
        if key not in payload:
            continue
        raw = payload[key]
        annotation = str(entry_field.type)
        if annotation.startswith("List"):
            values[entry_field.name] = _as_str_list(raw)
        elif annotation == "bool":
            values[entry_field.name] = bool(_as_bool(raw))
        else:
            values[entry_field.name] = _as_str(raw)
    key_attr = kind.spec.key_attr
    if key_attr is not None and not values.get(key_attr):
        key_name = next(f.metadata["key"] for f in fields(entry_type) if f.name == key_attr)
        raise ConfigError(f"extensions.{kind.value} entry is missing required field '{key_name}'")
    return entry_type(**values)


def entry_to_dict(entry: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    for entry_field in fields(entry):
        value = getattr(entry, entry_field.name)
        if value is None:
            continue
        payload[entry_field.metadata["key"]] = list(value) if isinstance(value, list) else value
    return payload


def _capabilities_from_value(value: Any) -> CapabilitySet:
    if value is None:
        return CapabilitySet()
    if isinstance(value, dict):
        return CapabilitySet(
            general=_as_str_list(value.get("general")),
            device=_as_str_list(value.get("device")),
            restricted=_as_str_list(value.get("restricted")),
        )
    return CapabilitySet(general=_as_str_list(value))


def _capabilities_to_value(capabilities: CapabilitySet) -> Any:
    if capabilities.is_flat():
        return list(capabilities.general)
    payload: Dict[str, List[str]] = {"general": list(capabilities.general)}
    if capabilities.device:
        payload["device"] = list(capabilities.device)
    if capabilities.restricted:
        payload["restricted"] = list(capabilities.restricted)
    return payload


# ----------------------------------------------------------------------
# Scalar coercion helpers


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return str(value).lower()
    return str(value) if isinstance(value, (str, int, float)) else None


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
    "BUNDLE_CONFIG_FILENAME",
    "ConfigError",
    "ConfigParseError",
    "MissingInputError",
    "WinBundleError",
    "default_packaging_config",
    "load_packaging_config",
    "packaging_config_from_dict",
    "packaging_config_to_dict",
    "read_json",
    "save_packaging_config",
    "write_text_atomic",
]
