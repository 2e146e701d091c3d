"""Pipeline orchestration for init/stage/build/extension flows."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from .assets import generate_assets
from .capabilities import validate_capabilities
from .config import (
    BUNDLE_CONFIG_FILENAME,
    ConfigParseError,
    default_packaging_config,
    load_packaging_config,
    read_json,
    save_packaging_config,
    write_text_atomic,
)
from .discovery import find_project_root, get_windows_dir, read_project_config
from .extensions import describe_extensions
from .logging import get_logger
from .manifest import TEMPLATE_FILENAME, generate_manifest, generate_manifest_template
from .merge import merge_config
from .models import MergedConfig, PackagingConfig, ProjectConfig
from .settings import WinBundleSettings, load_settings
from .staging import ASSETS_DIRNAME, prepare_staging
from .toolchain import Toolchain, package_command

BUILD_SCRIPT_NAME = "tauri:windows:build"
BUILD_SCRIPT_COMMAND = "winbundle build"
GITIGNORE_CONTENT = "# Signing material must never be committed\n*.pfx\n"


@dataclass
class ProjectContext:
    """Configuration loaded once at the start of an operation."""

    root: Path
    windows_dir: Path
    project: ProjectConfig
    packaging: PackagingConfig
    settings: WinBundleSettings

    def merged(self) -> MergedConfig:
        return merge_config(self.packaging, self.project, default_name=self.root.name or "App")


@dataclass
class ConfigUpdate:
    """Result of an edit to the packaging configuration.

    ``config`` is None when the edit found nothing to change, in which case
    nothing is written.
    """

    config: Optional[PackagingConfig]
    message: str = "Extension configuration updated."


@dataclass
class BuildOutcome:
    """Result of a build or stage run."""

    staging_dirs: Dict[str, Path]
    package_dir: Optional[Path] = None
    warnings: List[str] = field(default_factory=list)


class Orchestrator:
    """Coordinates configuration, staging and the external tools."""

    def __init__(self, toolchain: Toolchain | None = None) -> None:
        self.toolchain = toolchain or Toolchain()
        self.logger = get_logger("orchestrator")

    def run_init(self, path: str | Path | None = None) -> Path:
        """Create the packaging metadata directory for a project."""
        project_root = find_project_root(path)
        windows_dir = get_windows_dir(project_root)
        self.logger.info("Initialising Windows bundle in %s", windows_dir)

        (windows_dir / "Assets").mkdir(parents=True, exist_ok=True)
        (windows_dir / "extensions").mkdir(parents=True, exist_ok=True)

        if (windows_dir / BUNDLE_CONFIG_FILENAME).exists():
            self.logger.info("Keeping existing %s", BUNDLE_CONFIG_FILENAME)
        else:
            save_packaging_config(windows_dir, default_packaging_config())
            self.logger.info("Created %s; set your publisher before building", BUNDLE_CONFIG_FILENAME)

        generate_manifest_template(windows_dir)
        self.logger.debug("Wrote %s", TEMPLATE_FILENAME)

        written = generate_assets(windows_dir)
        self.logger.debug("Generated %d placeholder asset(s)", len(written))

        gitignore = windows_dir / ".gitignore"
        if not gitignore.exists():
            gitignore.write_text(GITIGNORE_CONTENT, encoding="utf-8")

        self._add_build_script(project_root)
        return windows_dir

    def load_context(self, path: str | Path | None = None) -> ProjectContext:
        project_root = find_project_root(path)
        windows_dir = get_windows_dir(project_root)
        return ProjectContext(
            root=project_root,
            windows_dir=windows_dir,
            project=read_project_config(project_root),
            packaging=load_packaging_config(windows_dir),
            settings=load_settings(project_root),
        )

    def check_capabilities(self, path: str | Path | None = None) -> List[str]:
        context = self.load_context(path)
        return validate_capabilities(context.packaging.capabilities)

    def render_manifest(
        self, path: str | Path | None = None, *, arch: str = "x64", min_windows: str | None = None
    ) -> str:
        context = self.load_context(path)
        template_path = context.windows_dir / TEMPLATE_FILENAME
        template = template_path.read_text(encoding="utf-8") if template_path.is_file() else None
        min_version = min_windows or context.settings.build.min_windows
        return generate_manifest(context.merged(), arch, min_version, template=template)

    def run_stage(
        self,
        path: str | Path | None = None,
        *,
        architectures: Sequence[str] | None = None,
        min_windows: str | None = None,
        release: bool | None = None,
    ) -> BuildOutcome:
        """Stage already-built executables without invoking any external tool."""
        context = self.load_context(path)
        return self._stage_all(context, architectures, min_windows, release, build=False)

    def run_build(
        self,
        path: str | Path | None = None,
        *,
        architectures: Sequence[str] | None = None,
        release: bool | None = None,
        min_windows: str | None = None,
        runner: str | None = None,
    ) -> BuildOutcome:
        """Build, stage and package every requested architecture."""
        self.toolchain.ensure_packager()
        context = self.load_context(path)
        outcome = self._stage_all(
            context, architectures, min_windows, release, build=True, runner=runner
        )

        package_dir = context.root / "target" / "msixbundle"
        args = package_command(outcome.staging_dirs, package_dir, context.merged(), context.project)
        self.toolchain.package(context.root, args)
        outcome.package_dir = package_dir
        self.logger.info("MSIX package written to %s", package_dir)
        return outcome

    def list_extensions(self, path: str | Path | None = None) -> List[str]:
        windows_dir = get_windows_dir(find_project_root(path))
        return describe_extensions(load_packaging_config(windows_dir).extensions)

    def update_packaging_config(
        self,
        path: str | Path | None,
        operation: Callable[[PackagingConfig], ConfigUpdate],
    ) -> ConfigUpdate:
        """Load the packaging configuration, apply ``operation``, and save the result once."""
        windows_dir = get_windows_dir(find_project_root(path))
        update = operation(load_packaging_config(windows_dir))
        if update.config is None:
            self.logger.debug("No changes; leaving %s untouched", BUNDLE_CONFIG_FILENAME)
            return update
        save_packaging_config(windows_dir, update.config)
        return update

    # ------------------------------------------------------------------
    # Internal helpers

    def _stage_all(
        self,
        context: ProjectContext,
        architectures: Sequence[str] | None,
        min_windows: str | None,
        release: bool | None,
        *,
        build: bool,
        runner: str | None = None,
    ) -> BuildOutcome:
        build_settings = context.settings.build
        arches = list(architectures or build_settings.architectures)
        min_version = min_windows or build_settings.min_windows
        use_release = build_settings.release if release is None else release
        merged = context.merged()

        warnings = validate_capabilities(merged.capabilities)
        for warning in warnings:
            self.logger.warning(warning)

        if (context.windows_dir / TEMPLATE_FILENAME).is_file():
            self.logger.debug("Using manifest template %s", context.windows_dir / TEMPLATE_FILENAME)
        assets_dir = context.windows_dir / ASSETS_DIRNAME
        if not assets_dir.is_dir():
            self.logger.warning("No assets found at %s; the package will lack its logos", assets_dir)

        staging_dirs: Dict[str, Path] = {}
        for arch in arches:
            if build:
                self.toolchain.build(
                    context.root,
                    arch,
                    release=use_release,
                    runner=runner or build_settings.runner,
                )
            staging_dirs[arch] = prepare_staging(
                context.root,
                arch,
                merged,
                context.project,
                min_version,
                windows_dir=context.windows_dir,
                profile="release" if use_release else "debug",
            )
            self.logger.info("Staged %s package in %s", arch, staging_dirs[arch])
        return BuildOutcome(staging_dirs=staging_dirs, warnings=warnings)

    def _add_build_script(self, project_root: Path) -> None:
        package_json = project_root / "package.json"
        if not package_json.is_file():
            self.logger.warning(
                "Warning: package.json not found; add '%s' manually", BUILD_SCRIPT_COMMAND
            )
            return
        try:
            data = read_json(package_json)
        except ConfigParseError as exc:
            self.logger.warning("Warning: Could not update package.json: %s", exc)
            return
        if not isinstance(data, dict):
            self.logger.warning("Warning: Could not update package.json: not an object")
            return
        scripts = data.get("scripts")
        if not isinstance(scripts, dict):
            scripts = {}
            data["scripts"] = scripts
        if BUILD_SCRIPT_NAME in scripts:
            return
        scripts[BUILD_SCRIPT_NAME] = BUILD_SCRIPT_COMMAND
        write_text_atomic(package_json, json.dumps(data, indent=2, ensure_ascii=False) + "\n")
        self.logger.info("Added '%s' script to package.json", BUILD_SCRIPT_NAME)


__all__ = ["BuildOutcome", "ConfigUpdate", "Orchestrator", "ProjectContext"]
