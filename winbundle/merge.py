"""Combine packaging and project configuration into one render view."""

from __future__ import annotations

from pathlib import Path

from .discovery import resolve_version, to_four_part_version
from .models import MergedConfig, PackagingConfig, ProjectConfig

DEFAULT_DISPLAY_NAME = "App"
DEFAULT_VERSION = "1.0.0"
DEFAULT_IDENTIFIER = "com.example.app"


def merge_config(
    packaging: PackagingConfig,
    project: ProjectConfig,
    *,
    default_name: str = DEFAULT_DISPLAY_NAME,
) -> MergedConfig:
    """Build the merged configuration used for a single manifest render.

    Identity fields (name, version, identifier, description) come from the
    project; publisher, capabilities, signing and extensions come from the
    packaging configuration.
    """
    display_name = project.product_name or default_name
    version = project.version or DEFAULT_VERSION
    if project.config_dir is not None:
        version = resolve_version(version, Path(project.config_dir))

    return MergedConfig(
        display_name=display_name,
        version=to_four_part_version(version),
        description=project.description or display_name,
        identifier=project.identifier or DEFAULT_IDENTIFIER,
        publisher=packaging.publisher,
        publisher_display_name=packaging.publisher_display_name,
        capabilities=packaging.capabilities,
        extensions=packaging.extensions,
        signing=packaging.signing,
    )


__all__ = ["merge_config"]
