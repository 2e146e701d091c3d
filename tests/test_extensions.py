"""Tests for winbundle.extensions."""

from __future__ import annotations

import pytest

from winbundle.config import default_packaging_config
from winbundle.extensions import (
    ExtensionError,
    add_entry,
    describe_extensions,
    disable,
    enable,
    is_enabled,
    remove_entry,
)
from winbundle.models import (
    AppExecutionAlias,
    AutoplayHandler,
    BackgroundTask,
    ExtensionKind,
    FileAssociation,
    ProtocolHandler,
    StartupTask,
    ThumbnailHandler,
    ToastActivation,
)


def test_add_file_association_appends_and_normalises_dots() -> None:
    config = default_packaging_config()

    updated, replaced = add_entry(
        config, ExtensionKind.FILE_ASSOCIATIONS, FileAssociation(name="myfiles", extensions=["myf", ".myx"])
    )

    assert replaced is False
    assert updated.extensions.file_associations == [
        FileAssociation(name="myfiles", extensions=[".myf", ".myx"])
    ]
    assert config.extensions.file_associations == []


def test_duplicate_key_updates_in_place() -> None:
    config, _ = add_entry(
        default_packaging_config(),
        ExtensionKind.FILE_ASSOCIATIONS,
        FileAssociation(name="myfiles", extensions=[".myf"]),
    )
    config, _ = add_entry(
        config, ExtensionKind.FILE_ASSOCIATIONS, FileAssociation(name="other", extensions=[".oth"])
    )

    updated, replaced = add_entry(
        config,
        ExtensionKind.FILE_ASSOCIATIONS,
        FileAssociation(name="myfiles", extensions=[".new"], description="Updated"),
    )

    assert replaced is True
    assert [a.name for a in updated.extensions.file_associations] == ["myfiles", "other"]
    assert updated.extensions.file_associations[0].extensions == [".new"]
    assert updated.extensions.file_associations[0].description == "Updated"


@pytest.mark.parametrize(
    ("kind", "first", "second"),
    [
        (ExtensionKind.PROTOCOL_HANDLERS, ProtocolHandler("myapp"), ProtocolHandler("myapp", "My App")),
        (ExtensionKind.APP_EXECUTION_ALIASES, AppExecutionAlias("myapp"), AppExecutionAlias("myapp")),
        (
            ExtensionKind.THUMBNAIL_HANDLERS,
            ThumbnailHandler("{1}", [".a"]),
            ThumbnailHandler("{1}", [".b"]),
        ),
        (
            ExtensionKind.AUTOPLAY_HANDLERS,
            AutoplayHandler("open", "Open", content_event="PlayMusicFilesOnArrival"),
            AutoplayHandler("open", "Open with", device_event="WPD\\ImageSource"),
        ),
    ],
)
def test_identifying_keys_stay_unique(kind, first, second) -> None:
    config, _ = add_entry(default_packaging_config(), kind, first)
    config, replaced = add_entry(config, kind, second)

    entries = getattr(config.extensions, kind.spec.attr)
    assert replaced is True
    assert entries == [second]


def test_add_rejects_wrong_entry_type() -> None:
    with pytest.raises(ExtensionError, match="expects ProtocolHandler"):
        add_entry(default_packaging_config(), ExtensionKind.PROTOCOL_HANDLERS, AppExecutionAlias("x"))


def test_add_rejects_toggle_kind() -> None:
    with pytest.raises(ExtensionError, match="not a list extension"):
        add_entry(default_packaging_config(), ExtensionKind.SHARE_TARGET, True)


def test_background_task_type_is_validated() -> None:
    with pytest.raises(ExtensionError, match="Invalid background task type"):
        add_entry(default_packaging_config(), ExtensionKind.BACKGROUND_TASKS, BackgroundTask("sync", "hourly"))


@pytest.mark.parametrize(
    "handler",
    [
        AutoplayHandler("open", "Open"),
        AutoplayHandler("open", "Open", content_event="A", device_event="B"),
    ],
)
def test_autoplay_requires_exactly_one_event(handler) -> None:
    with pytest.raises(ExtensionError, match="exactly one"):
        add_entry(default_packaging_config(), ExtensionKind.AUTOPLAY_HANDLERS, handler)


def test_remove_entry() -> None:
    config, _ = add_entry(default_packaging_config(), ExtensionKind.PROTOCOL_HANDLERS, ProtocolHandler("myapp"))

    updated, removed = remove_entry(config, ExtensionKind.PROTOCOL_HANDLERS, "myapp")
    assert removed is True
    assert updated.extensions.protocol_handlers == []

    _, removed = remove_entry(updated, ExtensionKind.PROTOCOL_HANDLERS, "myapp")
    assert removed is False


def test_enable_and_disable_toggles() -> None:
    config = default_packaging_config()

    config = enable(config, ExtensionKind.SHARE_TARGET)
    config = enable(config, ExtensionKind.STARTUP_TASK, task_id="boot")
    config = enable(config, ExtensionKind.TOAST_ACTIVATION, activation_type="protocol")
    config = enable(config, ExtensionKind.PRINT_TASK_SETTINGS)

    assert config.extensions.share_target is True
    assert config.extensions.startup_task == StartupTask(enabled=True, task_id="boot")
    assert config.extensions.toast_activation == ToastActivation(activation_type="protocol")
    assert config.extensions.print_task_settings.display_name == "Print Settings"

    config = disable(config, ExtensionKind.SHARE_TARGET)
    config = disable(config, ExtensionKind.STARTUP_TASK)
    config = disable(config, ExtensionKind.TOAST_ACTIVATION)
    config = disable(config, ExtensionKind.PRINT_TASK_SETTINGS)

    assert config.extensions.share_target is False
    assert config.extensions.startup_task == StartupTask(enabled=False, task_id="boot")
    assert config.extensions.toast_activation is None
    assert config.extensions.print_task_settings is None
    assert not is_enabled(config.extensions, ExtensionKind.STARTUP_TASK)


def test_enable_rejects_invalid_toast_activation_type() -> None:
    with pytest.raises(ExtensionError, match="Invalid toast activation type"):
        enable(default_packaging_config(), ExtensionKind.TOAST_ACTIVATION, activation_type="sideways")


def test_enable_rejects_list_kind() -> None:
    with pytest.raises(ExtensionError, match="cannot be enabled"):
        enable(default_packaging_config(), ExtensionKind.CONTEXT_MENUS)


def test_describe_extensions_summarises_every_kind() -> None:
    config, _ = add_entry(
        default_packaging_config(),
        ExtensionKind.FILE_ASSOCIATIONS,
        FileAssociation(name="myfiles", extensions=[".myf", ".myx"]),
    )
    config = enable(config, ExtensionKind.SHARE_TARGET)

    lines = describe_extensions(config.extensions)

    assert lines[0] == "Share Target: enabled"
    assert "File Associations:" in lines
    assert "  - myfiles: .myf, .myx" in lines
    assert "Protocol Handlers: none" in lines
    assert "Toast Activation: disabled" in lines
    assert sum(1 for line in lines if not line.startswith("  ")) == len(ExtensionKind)


def test_duplicate_key_keeps_fields_the_update_leaves_unset() -> None:
    config, _ = add_entry(
        default_packaging_config(),
        ExtensionKind.PROTOCOL_HANDLERS,
        ProtocolHandler("myapp", "My App"),
    )
    config, _ = add_entry(
        config,
        ExtensionKind.FILE_ASSOCIATIONS,
        FileAssociation(name="myfiles", extensions=[".myf"], description="My files"),
    )

    config, _ = add_entry(config, ExtensionKind.PROTOCOL_HANDLERS, ProtocolHandler("myapp"))
    config, replaced = add_entry(
        config, ExtensionKind.FILE_ASSOCIATIONS, FileAssociation(name="myfiles", extensions=["myx"])
    )

    assert replaced is True
    assert config.extensions.protocol_handlers == [ProtocolHandler("myapp", "My App")]
    assert config.extensions.file_associations == [
        FileAssociation(name="myfiles", extensions=[".myx"], description="My files")
    ]


def test_autoplay_update_switches_event_kind() -> None:
    config, _ = add_entry(
        default_packaging_config(),
        ExtensionKind.AUTOPLAY_HANDLERS,
        AutoplayHandler("open", "Open", content_event="PlayMusicFilesOnArrival"),
    )

    config, _ = add_entry(
        config,
        ExtensionKind.AUTOPLAY_HANDLERS,
        AutoplayHandler("open", "Open", device_event="WPD\\ImageSource"),
    )

    handler = config.extensions.autoplay_handlers[0]
    assert handler.content_event is None
    assert handler.device_event == "WPD\\ImageSource"
