"""Tests for winbundle.assets."""

from __future__ import annotations

from PIL import Image

from winbundle.assets import generate_assets
from winbundle.models import MSIX_ASSETS


def test_generates_every_required_logo(tmp_path) -> None:
    written = generate_assets(tmp_path)

    assert [path.name for path in written] == [asset.name for asset in MSIX_ASSETS]
    for asset in MSIX_ASSETS:
        with Image.open(tmp_path / "Assets" / asset.name) as image:
            assert image.format == "PNG"
            assert image.size == (asset.width, asset.height)


def test_existing_assets_are_kept(tmp_path) -> None:
    assets_dir = tmp_path / "Assets"
    assets_dir.mkdir()
    (assets_dir / "StoreLogo.png").write_bytes(b"custom")

    written = generate_assets(tmp_path)

    assert (assets_dir / "StoreLogo.png").read_bytes() == b"custom"
    assert "StoreLogo.png" not in [path.name for path in written]


def test_overwrite_replaces_existing_assets(tmp_path) -> None:
    assets_dir = tmp_path / "Assets"
    assets_dir.mkdir()
    (assets_dir / "StoreLogo.png").write_bytes(b"custom")

    generate_assets(tmp_path, overwrite=True)

    with Image.open(assets_dir / "StoreLogo.png") as image:
        assert image.size == (50, 50)
