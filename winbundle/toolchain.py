"""Wrappers around the external build and packaging tools."""

from __future__ import annotations

import re
import subprocess
from pathlib import Path
from typing import Callable, Iterable, List, Mapping, Optional

from .config import WinBundleError
from .logging import get_logger
from .models import DEFAULT_RUNNER, MergedConfig, ProjectConfig
from .manifest import resolve_architecture

PACKAGER = "msixbundle-cli"
MIN_PACKAGER_VERSION = "1.0.0"

_VERSION_PATTERN = re.compile(r"(\d+\.\d+\.\d+)")

Runner = Callable[..., str]


class ToolchainError(WinBundleError):
    """Raised when an external tool is missing, outdated, or fails."""


def parse_tool_version(output: str) -> Optional[str]:
    """Extract the first ``major.minor.patch`` from ``--version`` output."""
    match = _VERSION_PATTERN.search(output.strip())
    return match.group(1) if match else None


def is_version_sufficient(version: str, minimum: str) -> bool:
    """Compare two dotted versions by major, then minor, then patch."""
    return _version_tuple(version) >= _version_tuple(minimum)


def _version_tuple(version: str) -> tuple[int, int, int]:
    parts = [int(part) if part.isdigit() else 0 for part in version.split(".")[:3]]
    while len(parts) < 3:
        parts.append(0)
    return parts[0], parts[1], parts[2]


def build_command(
    arch: str, *, release: bool = False, runner: str = DEFAULT_RUNNER
) -> List[str]:
    target = resolve_architecture(arch).rust_target
    args = [
        runner,
        "build",
        "--manifest-path",
        str(Path("src-tauri") / "Cargo.toml"),
        "--target",
        target,
        "--target-dir",
        "target",
    ]
    if release:
        args.append("--release")
    return args


def package_command(
    staging_dirs: Mapping[str, Path],
    out_dir: Path,
    config: MergedConfig,
    project: ProjectConfig,
) -> List[str]:
    """Return the packaging tool invocation, including signing flags."""
    args = [PACKAGER, "--out-dir", str(out_dir)]
    for arch, staging_dir in staging_dirs.items():
        args.extend([f"--dir-{resolve_architecture(arch).tag}", str(staging_dir)])
    if config.signing.pfx:
        args.extend(["--pfx", config.signing.pfx])
        if config.signing.pfx_password:
            args.extend(["--pfx-password", config.signing.pfx_password])
    elif project.certificate_thumbprint:
        args.extend(["--thumbprint", project.certificate_thumbprint])
    return args


class Toolchain:
    """Runs the build tool and packaging tool as subprocesses."""

    def __init__(self, runner: Runner | None = None) -> None:
        self._runner = runner or self._default_runner
        self.logger = get_logger("toolchain")

    def packager_version(self) -> Optional[str]:
        """Return the installed packaging tool version, or None when unavailable."""
        try:
            output = self._runner([PACKAGER, "--version"], cwd=None, capture_output=True)
        except (OSError, subprocess.CalledProcessError) as exc:
            self.logger.debug("%s --version failed: %s", PACKAGER, exc)
            return None
        return parse_tool_version(output)

    def ensure_packager(self, minimum: str = MIN_PACKAGER_VERSION) -> str:
        version = self.packager_version()
        if version is None:
            raise ToolchainError(
                f"Could not determine {PACKAGER} version. Install with: cargo install {PACKAGER}"
            )
        if not is_version_sufficient(version, minimum):
            raise ToolchainError(
                f"{PACKAGER} version {version} is too old. Minimum required: {minimum}. "
                f"Update with: cargo install {PACKAGER} --force"
            )
        self.logger.debug("Found %s %s", PACKAGER, version)
        return version

    def build(
        self, project_root: Path, arch: str, *, release: bool = False, runner: str = DEFAULT_RUNNER
    ) -> None:
        args = build_command(arch, release=release, runner=runner)
        self.logger.info("Building %s: %s", arch, " ".join(args))
        self._run(args, cwd=project_root, failure=f"Build failed for {arch}")

    def package(self, project_root: Path, args: List[str]) -> None:
        self.logger.info("Creating MSIX package")
        self.logger.debug("Running %s", " ".join(_redact(args)))
        self._run(args, cwd=project_root, failure="Failed to create MSIX")

    def _run(self, args: Iterable[str], *, cwd: Path, failure: str) -> str:
        try:
            return self._runner(list(args), cwd=cwd, capture_output=False)
        except FileNotFoundError as exc:
            raise ToolchainError(f"{failure}: {exc}") from exc
        except subprocess.CalledProcessError as exc:
            raise ToolchainError(f"{failure}: exit status {exc.returncode}") from exc

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path | None,
        capture_output: bool = False,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd) if cwd is not None else None,
            check=True,
            text=True,
            capture_output=capture_output,
        )
        if capture_output:
            return completed.stdout
        return ""


def _redact(args: List[str]) -> List[str]:
    redacted = list(args)
    for index, value in enumerate(redacted[:-1]):
        if value == "--pfx-password":
            redacted[index + 1] = "****"
    return redacted


__all__ = [
    "MIN_PACKAGER_VERSION",
    "PACKAGER",
    "Toolchain",
    "ToolchainError",
    "build_command",
    "is_version_sufficient",
    "package_command",
    "parse_tool_version",
]
