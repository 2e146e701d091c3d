"""Core data models shared across winbundle components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

DEFAULT_MIN_WINDOWS_VERSION = "10.0.17763.0"
DEFAULT_CAPABILITIES = ["internetClient"]
DEFAULT_RUNNER = "cargo"
DEFAULT_ARCHITECTURES = ["x64"]


@dataclass(frozen=True)
class Architecture:
    """Target architecture tag with its platform identifiers."""

    tag: str
    manifest_name: str
    rust_target: str


ARCHITECTURES: Dict[str, Architecture] = {
    "x64": Architecture(tag="x64", manifest_name="x64", rust_target="x86_64-pc-windows-msvc"),
    "arm64": Architecture(tag="arm64", manifest_name="arm64", rust_target="aarch64-pc-windows-msvc"),
}


@dataclass(frozen=True)
class MsixAsset:
    """Visual asset required by the package manifest."""

    name: str
    width: int
    height: int


MSIX_ASSETS: List[MsixAsset] = [
    MsixAsset("StoreLogo.png", 50, 50),
    MsixAsset("Square44x44Logo.png", 44, 44),
    MsixAsset("Square150x150Logo.png", 150, 150),
    MsixAsset("Wide310x150Logo.png", 310, 150),
    MsixAsset("LargeTile.png", 310, 310),
]


# ----------------------------------------------------------------------
# Project configuration (tauri.conf.json)


@dataclass
class ResourceMapping:
    """Structured resource declaration copying ``src`` to ``target``."""

    src: str
    target: str


ResourceDeclaration = Union[str, ResourceMapping]


@dataclass
class ProjectConfig:
    """Read-only view of the host project's configuration."""

    product_name: Optional[str] = None
    version: Optional[str] = None
    identifier: Optional[str] = None
    description: Optional[str] = None
    resources: List[ResourceDeclaration] = field(default_factory=list)
    certificate_thumbprint: Optional[str] = None
    config_dir: Optional[Path] = None


# ----------------------------------------------------------------------
# Packaging configuration (bundle.config.json)
#
# Entry fields carry their JSON key in ``metadata["key"]``.


def _key(name: str) -> Dict[str, str]:
    return {"key": name}


@dataclass
class FileAssociation:
    name: str = field(metadata=_key("name"))
    extensions: List[str] = field(default_factory=list, metadata=_key("extensions"))
    description: Optional[str] = field(default=None, metadata=_key("description"))


@dataclass
class ProtocolHandler:
    name: str = field(metadata=_key("name"))
    display_name: Optional[str] = field(default=None, metadata=_key("displayName"))


@dataclass
class StartupTask:
    enabled: bool = field(default=True, metadata=_key("enabled"))
    task_id: Optional[str] = field(default=None, metadata=_key("taskId"))


@dataclass
class ContextMenu:
    name: str = field(metadata=_key("name"))
    file_types: List[str] = field(default_factory=list, metadata=_key("fileTypes"))
    display_name: Optional[str] = field(default=None, metadata=_key("displayName"))


BACKGROUND_TASK_TYPES = ("timer", "systemEvent", "pushNotification")


@dataclass
class BackgroundTask:
    name: str = field(metadata=_key("name"))
    task_type: str = field(default="timer", metadata=_key("type"))


@dataclass
class AppExecutionAlias:
    alias: str = field(metadata=_key("alias"))


@dataclass
class AppService:
    name: str = field(metadata=_key("name"))
    server_name: Optional[str] = field(default=None, metadata=_key("serverName"))


TOAST_ACTIVATION_TYPES = ("foreground", "background", "protocol")


@dataclass
class ToastActivation:
    activation_type: str = field(default="foreground", metadata=_key("activationType"))


@dataclass
class AutoplayHandler:
    verb: str = field(metadata=_key("verb"))
    action_display_name: str = field(default="", metadata=_key("actionDisplayName"))
    content_event: Optional[str] = field(default=None, metadata=_key("contentEvent"))
    device_event: Optional[str] = field(default=None, metadata=_key("deviceEvent"))


@dataclass
class PrintTaskSettings:
    display_name: str = field(default="Print Settings", metadata=_key("displayName"))


@dataclass
class ThumbnailHandler:
    clsid: str = field(metadata=_key("clsid"))
    file_types: List[str] = field(default_factory=list, metadata=_key("fileTypes"))


@dataclass
class PreviewHandler:
    clsid: str = field(metadata=_key("clsid"))
    file_types: List[str] = field(default_factory=list, metadata=_key("fileTypes"))


class ExtensionKind(Enum):
    """Closed set of optional platform features a package may declare."""

    SHARE_TARGET = "shareTarget"
    FILE_ASSOCIATIONS = "fileAssociations"
    PROTOCOL_HANDLERS = "protocolHandlers"
    STARTUP_TASK = "startupTask"
    CONTEXT_MENUS = "contextMenus"
    BACKGROUND_TASKS = "backgroundTasks"
    APP_EXECUTION_ALIASES = "appExecutionAliases"
    APP_SERVICES = "appServices"
    TOAST_ACTIVATION = "toastActivation"
    AUTOPLAY_HANDLERS = "autoplayHandlers"
    PRINT_TASK_SETTINGS = "printTaskSettings"
    THUMBNAIL_HANDLERS = "thumbnailHandlers"
    PREVIEW_HANDLERS = "previewHandlers"

    @property
    def spec(self) -> "ExtensionSpec":
        return EXTENSION_SPECS[self]

    @property
    def is_list(self) -> bool:
        return self.spec.key_attr is not None


@dataclass(frozen=True)
class ExtensionSpec:
    """How an extension kind is stored on :class:`Extensions`."""

    attr: str
    entry_type: Optional[type]
    key_attr: Optional[str] = None
    label: str = ""


EXTENSION_SPECS: Dict[ExtensionKind, ExtensionSpec] = {
    ExtensionKind.SHARE_TARGET: ExtensionSpec("share_target", None, label="Share Target"),
    ExtensionKind.FILE_ASSOCIATIONS: ExtensionSpec(
        "file_associations", FileAssociation, "name", "File Associations"
    ),
    ExtensionKind.PROTOCOL_HANDLERS: ExtensionSpec(
        "protocol_handlers", ProtocolHandler, "name", "Protocol Handlers"
    ),
    ExtensionKind.STARTUP_TASK: ExtensionSpec("startup_task", StartupTask, label="Startup Task"),
    ExtensionKind.CONTEXT_MENUS: ExtensionSpec(
        "context_menus", ContextMenu, "name", "Context Menus"
    ),
    ExtensionKind.BACKGROUND_TASKS: ExtensionSpec(
        "background_tasks", BackgroundTask, "name", "Background Tasks"
    ),
    ExtensionKind.APP_EXECUTION_ALIASES: ExtensionSpec(
        "app_execution_aliases", AppExecutionAlias, "alias", "App Execution Aliases"
    ),
    ExtensionKind.APP_SERVICES: ExtensionSpec("app_services", AppService, "name", "App Services"),
    ExtensionKind.TOAST_ACTIVATION: ExtensionSpec(
        "toast_activation", ToastActivation, label="Toast Activation"
    ),
    ExtensionKind.AUTOPLAY_HANDLERS: ExtensionSpec(
        "autoplay_handlers", AutoplayHandler, "verb", "Autoplay Handlers"
    ),
    ExtensionKind.PRINT_TASK_SETTINGS: ExtensionSpec(
        "print_task_settings", PrintTaskSettings, label="Print Task Settings"
    ),
    ExtensionKind.THUMBNAIL_HANDLERS: ExtensionSpec(
        "thumbnail_handlers", ThumbnailHandler, "clsid", "Thumbnail Handlers"
    ),
    ExtensionKind.PREVIEW_HANDLERS: ExtensionSpec(
        "preview_handlers", PreviewHandler, "clsid", "Preview Handlers"
    ),
}


@dataclass
class Extensions:
    """Optional feature declarations of a package."""

    share_target: bool = False
    file_associations: List[FileAssociation] = field(default_factory=list)
    protocol_handlers: List[ProtocolHandler] = field(default_factory=list)
    startup_task: Optional[StartupTask] = None
    context_menus: List[ContextMenu] = field(default_factory=list)
    background_tasks: List[BackgroundTask] = field(default_factory=list)
    app_execution_aliases: List[AppExecutionAlias] = field(default_factory=list)
    app_services: List[AppService] = field(default_factory=list)
    toast_activation: Optional[ToastActivation] = None
    autoplay_handlers: List[AutoplayHandler] = field(default_factory=list)
    print_task_settings: Optional[PrintTaskSettings] = None
    thumbnail_handlers: List[ThumbnailHandler] = field(default_factory=list)
    preview_handlers: List[PreviewHandler] = field(default_factory=list)


@dataclass
class CapabilitySet:
    """Capability names grouped by namespace."""

    general: List[str] = field(default_factory=list)
    device: List[str] = field(default_factory=list)
    restricted: List[str] = field(default_factory=list)

    def is_flat(self) -> bool:
        return not self.device and not self.restricted


@dataclass
class SigningConfig:
    """Signing material handed to the packaging tool."""

    pfx: Optional[str] = None
    pfx_password: Optional[str] = None


@dataclass
class PackagingConfig:
    """User-owned packaging configuration (bundle.config.json)."""

    publisher: str
    publisher_display_name: str
    capabilities: CapabilitySet = field(default_factory=CapabilitySet)
    signing: SigningConfig = field(default_factory=SigningConfig)
    extensions: Extensions = field(default_factory=Extensions)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MergedConfig:
    """Packaging configuration combined with project identity for one render."""

    display_name: str
    version: str
    description: str
    identifier: str
    publisher: str
    publisher_display_name: str
    capabilities: CapabilitySet
    extensions: Extensions
    signing: SigningConfig

    @property
    def package_name(self) -> str:
        return self.identifier.replace(".", "")

    @property
    def executable_name(self) -> str:
        return "".join(self.display_name.split()) + ".exe"
