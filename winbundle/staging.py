"""Assemble the per-architecture directory handed to the packaging tool."""

from __future__ import annotations

import glob
import shutil
from pathlib import Path
from typing import Optional

from .config import MissingInputError
from .discovery import get_project_dir, get_windows_dir
from .manifest import MANIFEST_FILENAME, TEMPLATE_FILENAME, generate_manifest, resolve_architecture
from .models import MergedConfig, ProjectConfig, ResourceMapping

ASSETS_DIRNAME = "Assets"


def get_build_dir(project_root: Path, arch: str, profile: str = "release") -> Path:
    architecture = resolve_architecture(arch)
    return project_root / "target" / architecture.rust_target / profile


def get_staging_dir(project_root: Path, arch: str) -> Path:
    return project_root / "target" / "appx" / resolve_architecture(arch).tag


def prepare_staging(
    project_root: Path,
    arch: str,
    config: MergedConfig,
    project: ProjectConfig,
    min_version: str,
    *,
    windows_dir: Optional[Path] = None,
    profile: str = "release",
) -> Path:
    """Lay out executable, manifest, assets and resources; return the staging dir."""
    windows_dir = windows_dir or get_windows_dir(project_root)
    exe_name = config.executable_name
    src_exe = get_build_dir(project_root, arch, profile) / exe_name
    if not src_exe.is_file():
        raise MissingInputError(f"Executable not found: {src_exe}")

    staging_dir = get_staging_dir(project_root, arch)
    (staging_dir / ASSETS_DIRNAME).mkdir(parents=True, exist_ok=True)

    shutil.copy2(src_exe, staging_dir / exe_name)

    template_path = windows_dir / TEMPLATE_FILENAME
    template = None
    if template_path.is_file():
        template = template_path.read_text(encoding="utf-8")
    manifest = generate_manifest(config, arch, min_version, template=template)
    (staging_dir / MANIFEST_FILENAME).write_text(manifest, encoding="utf-8")

    assets_dir = windows_dir / ASSETS_DIRNAME
    if assets_dir.is_dir():
        shutil.copytree(assets_dir, staging_dir / ASSETS_DIRNAME, dirs_exist_ok=True)

    copy_bundled_resources(get_project_dir(project_root), staging_dir, project)
    return staging_dir


def copy_bundled_resources(resource_root: Path, staging_dir: Path, project: ProjectConfig) -> int:
    """Copy declared resources into ``staging_dir``; returns the number of copies."""
    copied = 0
    for resource in project.resources:
        if isinstance(resource, ResourceMapping):
            src = resource_root / resource.src
            if not src.exists():
                raise MissingInputError(f"Resource not found: {src}")
            _copy_path(src, staged_path(staging_dir, resource.target))
            copied += 1
            continue

        for relative in sorted(glob.glob(resource, root_dir=resource_root, recursive=True)):
            _copy_path(resource_root / relative, staged_path(staging_dir, relative, resource_root))
            copied += 1
    return copied


def staged_path(staging_dir: Path, relative: str, base: Optional[Path] = None) -> Path:
    """Map a resource path to its location inside ``staging_dir``.

    Absolute paths lose their anchor (or ``base`` when they lie under it) and
    ``..`` segments become ``_up_``, as the Tauri bundler lays them out, so the
    result never leaves the staging tree.
    """
    path = Path(relative)
    if path.is_absolute():
        if base is not None and path.is_relative_to(base):
            path = path.relative_to(base)
        else:
            path = path.relative_to(path.anchor)
    parts = ["_up_" if part == ".." else part for part in path.parts]
    return staging_dir.joinpath(*parts)


def _copy_path(src: Path, dest: Path) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    if src.is_dir():
        shutil.copytree(src, dest, dirs_exist_ok=True)
    else:
        shutil.copy2(src, dest)


__all__ = [
    "copy_bundled_resources",
    "get_build_dir",
    "get_staging_dir",
    "prepare_staging",
    "staged_path",
]
