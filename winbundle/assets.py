"""Placeholder logo generation for freshly initialised projects."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from PIL import Image

from .models import MSIX_ASSETS, MsixAsset

PLACEHOLDER_COLOR = (0, 120, 212, 255)


def generate_assets(
    windows_dir: Path,
    assets: Sequence[MsixAsset] = MSIX_ASSETS,
    *,
    overwrite: bool = False,
) -> List[Path]:
    """Write solid-colour PNGs for each required asset; returns the files written."""
    assets_dir = windows_dir / "Assets"
    assets_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []
    for asset in assets:
        target = assets_dir / asset.name
        if target.exists() and not overwrite:
            continue
        image = Image.new("RGBA", (asset.width, asset.height), color=PLACEHOLDER_COLOR)
        image.save(target, format="PNG")
        written.append(target)
    return written


__all__ = ["generate_assets"]
