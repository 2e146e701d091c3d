"""Operations over the extensions block of a packaging configuration.

Every operation takes a :class:`PackagingConfig` and returns a new one; the
input is never mutated. Persisting the result is the caller's job.
"""

from __future__ import annotations

import copy
from dataclasses import fields, replace
from typing import Any, List, Optional, Tuple

from .config import WinBundleError
from .models import (
    BACKGROUND_TASK_TYPES,
    TOAST_ACTIVATION_TYPES,
    AutoplayHandler,
    BackgroundTask,
    ExtensionKind,
    Extensions,
    FileAssociation,
    PackagingConfig,
    PrintTaskSettings,
    StartupTask,
    ToastActivation,
)

TOGGLE_KINDS = (
    ExtensionKind.SHARE_TARGET,
    ExtensionKind.STARTUP_TASK,
    ExtensionKind.TOAST_ACTIVATION,
    ExtensionKind.PRINT_TASK_SETTINGS,
)


class ExtensionError(WinBundleError, ValueError):
    """Raised when an extension declaration is invalid."""


def normalise_file_extension(value: str) -> str:
    value = value.strip()
    return value if value.startswith(".") else f".{value}"


def add_entry(
    config: PackagingConfig, kind: ExtensionKind, entry: Any
) -> Tuple[PackagingConfig, bool]:
    """Add ``entry`` to a list-valued kind.

    An existing entry with the same identifying key is updated in place: fields
    left as None on ``entry`` keep their stored values.
    Returns the new configuration and whether an existing entry was replaced.
    """
    spec = kind.spec
    if not kind.is_list:
        raise ExtensionError(f"{kind.value} is not a list extension; use enable instead")
    if not isinstance(entry, spec.entry_type):
        raise ExtensionError(
            f"{kind.value} expects {spec.entry_type.__name__}, got {type(entry).__name__}"
        )
    entry = _validated(entry)

    updated = copy.deepcopy(config)
    entries: List[Any] = getattr(updated.extensions, spec.attr)
    key = getattr(entry, spec.key_attr)
    for index, existing in enumerate(entries):
        if getattr(existing, spec.key_attr) == key:
            entries[index] = _merge_entry(existing, entry)
            return updated, True
    entries.append(entry)
    return updated, False


def remove_entry(
    config: PackagingConfig, kind: ExtensionKind, key: str
) -> Tuple[PackagingConfig, bool]:
    """Remove the entry identified by ``key``; returns whether one was found."""
    spec = kind.spec
    if not kind.is_list:
        raise ExtensionError(f"{kind.value} is not a list extension; use disable instead")
    updated = copy.deepcopy(config)
    entries: List[Any] = getattr(updated.extensions, spec.attr)
    kept = [item for item in entries if getattr(item, spec.key_attr) != key]
    setattr(updated.extensions, spec.attr, kept)
    return updated, len(kept) != len(entries)


def enable(
    config: PackagingConfig,
    kind: ExtensionKind,
    *,
    task_id: Optional[str] = None,
    activation_type: str = "foreground",
    display_name: Optional[str] = None,
) -> PackagingConfig:
    updated = copy.deepcopy(config)
    extensions = updated.extensions
    if kind is ExtensionKind.SHARE_TARGET:
        extensions.share_target = True
    elif kind is ExtensionKind.STARTUP_TASK:
        extensions.startup_task = StartupTask(enabled=True, task_id=task_id)
    elif kind is ExtensionKind.TOAST_ACTIVATION:
        if activation_type not in TOAST_ACTIVATION_TYPES:
            raise ExtensionError(
                f"Invalid toast activation type '{activation_type}' "
                f"(expected one of: {', '.join(TOAST_ACTIVATION_TYPES)})"
            )
        extensions.toast_activation = ToastActivation(activation_type=activation_type)
    elif kind is ExtensionKind.PRINT_TASK_SETTINGS:
        extensions.print_task_settings = (
            PrintTaskSettings(display_name=display_name) if display_name else PrintTaskSettings()
        )
    else:
        raise ExtensionError(f"{kind.value} cannot be enabled; add entries instead")
    return updated


def disable(config: PackagingConfig, kind: ExtensionKind) -> PackagingConfig:
    updated = copy.deepcopy(config)
    extensions = updated.extensions
    if kind is ExtensionKind.SHARE_TARGET:
        extensions.share_target = False
    elif kind is ExtensionKind.STARTUP_TASK:
        previous = extensions.startup_task
        task_id = previous.task_id if previous else None
        extensions.startup_task = StartupTask(enabled=False, task_id=task_id)
    elif kind is ExtensionKind.TOAST_ACTIVATION:
        extensions.toast_activation = None
    elif kind is ExtensionKind.PRINT_TASK_SETTINGS:
        extensions.print_task_settings = None
    else:
        raise ExtensionError(f"{kind.value} cannot be disabled; remove entries instead")
    return updated


def is_enabled(extensions: Extensions, kind: ExtensionKind) -> bool:
    value = getattr(extensions, kind.spec.attr)
    if kind is ExtensionKind.SHARE_TARGET:
        return bool(value)
    if kind is ExtensionKind.STARTUP_TASK:
        return value is not None and value.enabled
    if kind.is_list:
        return bool(value)
    return value is not None


def describe_extensions(extensions: Extensions) -> List[str]:
    """Return a human-readable summary, one block per extension kind."""
    lines: List[str] = []
    for kind in ExtensionKind:
        spec = kind.spec
        if not kind.is_list:
            state = "enabled" if is_enabled(extensions, kind) else "disabled"
            lines.append(f"{spec.label}: {state}")
            continue
        entries = getattr(extensions, spec.attr)
        if not entries:
            lines.append(f"{spec.label}: none")
            continue
        lines.append(f"{spec.label}:")
        lines.extend(f"  - {_describe_entry(kind, entry)}" for entry in entries)
    return lines


def _describe_entry(kind: ExtensionKind, entry: Any) -> str:
    if kind is ExtensionKind.FILE_ASSOCIATIONS:
        return f"{entry.name}: {', '.join(entry.extensions)}"
    if kind is ExtensionKind.PROTOCOL_HANDLERS:
        return f"{entry.name}:// ({entry.display_name or entry.name})"
    if kind is ExtensionKind.CONTEXT_MENUS:
        return f"{entry.name}: {', '.join(entry.file_types)}"
    if kind is ExtensionKind.BACKGROUND_TASKS:
        return f"{entry.name} ({entry.task_type})"
    if kind is ExtensionKind.APP_EXECUTION_ALIASES:
        return entry.alias
    if kind is ExtensionKind.AUTOPLAY_HANDLERS:
        return f"{entry.verb}: {entry.action_display_name}"
    if kind in (ExtensionKind.THUMBNAIL_HANDLERS, ExtensionKind.PREVIEW_HANDLERS):
        return f"{entry.clsid}: {', '.join(entry.file_types)}"
    return getattr(entry, kind.spec.key_attr)


def _merge_entry(existing: Any, entry: Any) -> Any:
    values = {f.name: getattr(entry, f.name) for f in fields(entry)}
    changes = {name: value for name, value in values.items() if value is not None}
    if isinstance(entry, AutoplayHandler):
        # The two events are exclusive; the new entry decides which one is set.
        changes["content_event"] = entry.content_event
        changes["device_event"] = entry.device_event
    return replace(existing, **changes)


def _validated(entry: Any) -> Any:
    if isinstance(entry, FileAssociation):
        if not entry.extensions:
            raise ExtensionError(f"File association '{entry.name}' needs at least one extension")
        return replace(entry, extensions=[normalise_file_extension(ext) for ext in entry.extensions])
    if isinstance(entry, BackgroundTask) and entry.task_type not in BACKGROUND_TASK_TYPES:
        raise ExtensionError(
            f"Invalid background task type '{entry.task_type}' "
            f"(expected one of: {', '.join(BACKGROUND_TASK_TYPES)})"
        )
    if isinstance(entry, AutoplayHandler):
        if bool(entry.content_event) == bool(entry.device_event):
            raise ExtensionError(
                f"Autoplay handler '{entry.verb}' needs exactly one of content event or device event"
            )
        if not entry.action_display_name:
            raise ExtensionError(f"Autoplay handler '{entry.verb}' needs an action display name")
    return entry


__all__ = [
    "ExtensionError",
    "TOGGLE_KINDS",
    "add_entry",
    "describe_extensions",
    "disable",
    "enable",
    "is_enabled",
    "normalise_file_extension",
    "remove_entry",
]
