"""CLI entrypoints for winbundle commands."""

from __future__ import annotations

import argparse
import sys
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict

from .config import MissingInputError, WinBundleError
from .discovery import find_project_root
from .extensions import add_entry, disable, enable, remove_entry
from .logging import configure_logging
from .models import (
    BACKGROUND_TASK_TYPES,
    TOAST_ACTIVATION_TYPES,
    AppExecutionAlias,
    AppService,
    AutoplayHandler,
    BackgroundTask,
    ContextMenu,
    ExtensionKind,
    FileAssociation,
    PackagingConfig,
    PreviewHandler,
    ProtocolHandler,
    ThumbnailHandler,
)
from .orchestrator import ConfigUpdate, Orchestrator
from .settings import load_settings, parse_architectures

TOGGLE_NAMES: Dict[str, ExtensionKind] = {
    "share-target": ExtensionKind.SHARE_TARGET,
    "startup-task": ExtensionKind.STARTUP_TASK,
    "toast-activation": ExtensionKind.TOAST_ACTIVATION,
    "print-task-settings": ExtensionKind.PRINT_TASK_SETTINGS,
}

LIST_NAMES: Dict[str, ExtensionKind] = {
    "file-association": ExtensionKind.FILE_ASSOCIATIONS,
    "protocol": ExtensionKind.PROTOCOL_HANDLERS,
    "context-menu": ExtensionKind.CONTEXT_MENUS,
    "background-task": ExtensionKind.BACKGROUND_TASKS,
    "alias": ExtensionKind.APP_EXECUTION_ALIASES,
    "app-service": ExtensionKind.APP_SERVICES,
    "autoplay": ExtensionKind.AUTOPLAY_HANDLERS,
    "thumbnail-handler": ExtensionKind.THUMBNAIL_HANDLERS,
    "preview-handler": ExtensionKind.PREVIEW_HANDLERS,
}


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_path_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-p",
        "--path",
        default=None,
        help="Path inside the Tauri project (defaults to current directory).",
    )


def _add_target_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--arch",
        default=None,
        help="Architectures to package, comma-separated (x64,arm64).",
    )
    parser.add_argument(
        "--min-windows",
        default=None,
        help="Minimum Windows version written to the manifest.",
    )
    profile = parser.add_mutually_exclusive_group()
    profile.add_argument(
        "--release",
        dest="release",
        action="store_const",
        const=True,
        default=None,
        help="Use the release build profile (default).",
    )
    profile.add_argument(
        "--debug",
        dest="release",
        action="store_const",
        const=False,
        help="Use the debug build profile.",
    )


def _subcommand(subparsers, name: str, help_text: str) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(name, help=help_text)
    _add_verbose_option(parser, suppress_default=True)
    _add_path_option(parser)
    return parser


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="winbundle",
        description="Generate and package MSIX bundles for Tauri applications.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Initialize Windows bundle configuration.")
    _add_verbose_option(init_parser, suppress_default=True)
    init_parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Path to the Tauri project (defaults to current directory).",
    )

    build_parser = _subcommand(subparsers, "build", "Build, stage and package the MSIX bundle.")
    _add_target_options(build_parser)
    build_parser.add_argument("--runner", default=None, help="Build tool to invoke (default: cargo).")

    stage_parser = _subcommand(subparsers, "stage", "Stage existing build output without packaging.")
    _add_target_options(stage_parser)

    manifest_parser = _subcommand(subparsers, "manifest", "Print the rendered AppxManifest.xml.")
    manifest_parser.add_argument("--arch", default="x64", help="Architecture to render for.")
    manifest_parser.add_argument("--min-windows", default=None, help="Minimum Windows version.")

    _subcommand(subparsers, "capabilities", "Validate configured capabilities.")

    extension_parser = subparsers.add_parser("extension", help="Manage package extensions.")
    _add_verbose_option(extension_parser, suppress_default=True)
    extension_sub = extension_parser.add_subparsers(dest="extension_command", required=True)
    _build_extension_parsers(extension_sub)

    return parser


def _build_extension_parsers(subparsers) -> None:
    _subcommand(subparsers, "list", "Show configured extensions.")

    for action in ("enable", "disable"):
        toggle = _subcommand(subparsers, action, f"{action.title()} a toggle extension.")
        toggle.add_argument("feature", choices=sorted(TOGGLE_NAMES))
        if action == "enable":
            toggle.add_argument("--task-id", default=None, help="Startup task id.")
            toggle.add_argument(
                "--activation-type",
                choices=TOAST_ACTIVATION_TYPES,
                default="foreground",
                help="Toast activation type.",
            )
            toggle.add_argument("--display-name", default=None, help="Print task settings name.")

    remove = _subcommand(subparsers, "remove", "Remove a list extension entry by key.")
    remove.add_argument("feature", choices=sorted(LIST_NAMES))
    remove.add_argument("key", help="Name, alias, verb or CLSID identifying the entry.")

    parser = _subcommand(subparsers, "add-file-association", "Associate file extensions.")
    parser.add_argument("name")
    parser.add_argument("extensions", nargs="+", help="File extensions such as .myf")
    parser.add_argument("--description", default=None)

    parser = _subcommand(subparsers, "add-protocol", "Register a URI protocol handler.")
    parser.add_argument("name")
    parser.add_argument("--display-name", default=None)

    parser = _subcommand(subparsers, "add-context-menu", "Add an Explorer context menu entry.")
    parser.add_argument("name")
    parser.add_argument("file_types", nargs="+")
    parser.add_argument("--display-name", default=None)

    parser = _subcommand(subparsers, "add-background-task", "Declare a background task.")
    parser.add_argument("name")
    parser.add_argument("type", choices=BACKGROUND_TASK_TYPES)

    parser = _subcommand(subparsers, "add-alias", "Add an app execution alias.")
    parser.add_argument("alias")

    parser = _subcommand(subparsers, "add-app-service", "Expose an app service.")
    parser.add_argument("name")
    parser.add_argument("--server-name", default=None)

    parser = _subcommand(subparsers, "add-autoplay", "Add an AutoPlay handler.")
    parser.add_argument("verb")
    parser.add_argument("action_display_name")
    event = parser.add_mutually_exclusive_group(required=True)
    event.add_argument("--content-event", default=None)
    event.add_argument("--device-event", default=None)

    for name, help_text in (
        ("add-thumbnail-handler", "Register a thumbnail handler."),
        ("add-preview-handler", "Register a preview handler."),
    ):
        parser = _subcommand(subparsers, name, help_text)
        parser.add_argument("clsid")
        parser.add_argument("file_types", nargs="+")


def _extension_operation(args: argparse.Namespace) -> Callable[[PackagingConfig], ConfigUpdate]:
    command = args.extension_command
    if command == "enable":
        toggle_on = partial(
            enable,
            kind=TOGGLE_NAMES[args.feature],
            task_id=args.task_id,
            activation_type=args.activation_type,
            display_name=args.display_name,
        )
        return lambda config: ConfigUpdate(toggle_on(config))
    if command == "disable":
        return lambda config: ConfigUpdate(disable(config, TOGGLE_NAMES[args.feature]))
    if command == "remove":
        return partial(_remove, kind=LIST_NAMES[args.feature], key=args.key)

    entries = {
        "add-file-association": lambda: FileAssociation(
            name=args.name, extensions=list(args.extensions), description=args.description
        ),
        "add-protocol": lambda: ProtocolHandler(name=args.name, display_name=args.display_name),
        "add-context-menu": lambda: ContextMenu(
            name=args.name, file_types=list(args.file_types), display_name=args.display_name
        ),
        "add-background-task": lambda: BackgroundTask(name=args.name, task_type=args.type),
        "add-alias": lambda: AppExecutionAlias(alias=args.alias),
        "add-app-service": lambda: AppService(name=args.name, server_name=args.server_name),
        "add-autoplay": lambda: AutoplayHandler(
            verb=args.verb,
            action_display_name=args.action_display_name,
            content_event=args.content_event,
            device_event=args.device_event,
        ),
        "add-thumbnail-handler": lambda: ThumbnailHandler(
            clsid=args.clsid, file_types=list(args.file_types)
        ),
        "add-preview-handler": lambda: PreviewHandler(
            clsid=args.clsid, file_types=list(args.file_types)
        ),
    }
    entry = entries[command]()
    kind = next(k for k in ExtensionKind if k.is_list and isinstance(entry, k.spec.entry_type))
    return partial(_add, kind=kind, entry=entry)


def _add(config: PackagingConfig, *, kind: ExtensionKind, entry: Any) -> ConfigUpdate:
    updated, replaced = add_entry(config, kind, entry)
    if replaced:
        key = getattr(entry, kind.spec.key_attr)
        return ConfigUpdate(updated, f"{kind.spec.label}: '{key}' already exists, updating.")
    return ConfigUpdate(updated)


def _remove(config: PackagingConfig, *, kind: ExtensionKind, key: str) -> ConfigUpdate:
    updated, removed = remove_entry(config, kind, key)
    if not removed:
        return ConfigUpdate(None, f"{kind.spec.label}: '{key}' not found.")
    return ConfigUpdate(updated)


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for winbundle commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    path = getattr(args, "path", None)
    configure_logging(verbose=bool(args.verbose), log_file=_settings_log_file(path))

    orchestrator = Orchestrator()

    try:
        if args.command == "init":
            windows_dir = orchestrator.run_init(path)
            print(f"Windows bundle initialised at {_relativize(windows_dir)}")
        elif args.command in ("build", "stage"):
            architectures = parse_architectures(args.arch) or None
            if args.command == "build":
                outcome = orchestrator.run_build(
                    path,
                    architectures=architectures,
                    release=args.release,
                    min_windows=args.min_windows,
                    runner=args.runner,
                )
                print(f"MSIX package created in {_relativize(outcome.package_dir)}")
            else:
                outcome = orchestrator.run_stage(
                    path,
                    architectures=architectures,
                    release=args.release,
                    min_windows=args.min_windows,
                )
                for arch, staging_dir in outcome.staging_dirs.items():
                    print(f"{arch}: {_relativize(staging_dir)}")
        elif args.command == "manifest":
            sys.stdout.write(
                orchestrator.render_manifest(path, arch=args.arch, min_windows=args.min_windows)
            )
        elif args.command == "capabilities":
            errors = orchestrator.check_capabilities(path)
            for error in errors:
                print(error)
            if errors:
                parser.exit(1)
            print("All capabilities are valid.")
        elif args.command == "extension":
            if args.extension_command == "list":
                print("\n".join(orchestrator.list_extensions(path)))
            else:
                update = orchestrator.update_packaging_config(path, _extension_operation(args))
                print(update.message)
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except (WinBundleError, FileNotFoundError) as exc:
        parser.exit(1, f"winbundle {args.command} failed: {exc}\n")


def _settings_log_file(path: str | None) -> Path | None:
    try:
        root = find_project_root(path)
    except MissingInputError:
        return None
    try:
        return load_settings(root).log_file
    except WinBundleError:
        return None


def _relativize(path: Path | None) -> str:
    if path is None:
        return ""
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
