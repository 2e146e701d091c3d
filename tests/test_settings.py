"""Tests for winbundle.settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from winbundle.config import ConfigError, ConfigParseError
from winbundle.settings import WinBundleSettings, load_settings, parse_architectures


def test_load_settings_returns_defaults_when_missing(tmp_path: Path) -> None:
    settings = load_settings(tmp_path)

    assert isinstance(settings, WinBundleSettings)
    assert settings.root == tmp_path.resolve()
    assert settings.build.architectures == ["x64"]
    assert settings.build.release is True
    assert settings.build.min_windows == "10.0.17763.0"
    assert settings.build.runner == "cargo"
    assert settings.log_file is None


def test_load_settings_parses_expected_fields(tmp_path: Path) -> None:
    (tmp_path / ".winbundle.yml").write_text(
        """
build:
  arch: [x64, arm64]
  release: false
  min_windows: "10.0.19041.0"
  runner: cross
log_file: "target/winbundle.log"
""",
        encoding="utf-8",
    )

    settings = load_settings(tmp_path)

    assert settings.build.architectures == ["x64", "arm64"]
    assert settings.build.release is False
    assert settings.build.min_windows == "10.0.19041.0"
    assert settings.build.runner == "cross"
    assert settings.log_file == tmp_path.resolve() / "target" / "winbundle.log"


def test_load_settings_accepts_comma_separated_arch(tmp_path: Path) -> None:
    (tmp_path / ".winbundle.yml").write_text("build:\n  arch: 'arm64, x64'\n", encoding="utf-8")

    assert load_settings(tmp_path).build.architectures == ["arm64", "x64"]


def test_load_settings_rejects_invalid_yaml(tmp_path: Path) -> None:
    (tmp_path / ".winbundle.yml").write_text("build: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigParseError, match="Failed to parse .winbundle.yml"):
        load_settings(tmp_path)


def test_load_settings_rejects_non_mapping(tmp_path: Path) -> None:
    (tmp_path / ".winbundle.yml").write_text("- x64\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="must contain a mapping"):
        load_settings(tmp_path)


def test_parse_architectures_ignores_blanks() -> None:
    assert parse_architectures("x64,,arm64 ") == ["x64", "arm64"]
    assert parse_architectures(None) == []
