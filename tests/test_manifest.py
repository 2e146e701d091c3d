"""Tests for winbundle.manifest."""

from __future__ import annotations

from pathlib import Path

import pytest

from winbundle.config import ConfigError
from winbundle.manifest import (
    MANIFEST_TEMPLATE,
    TEMPLATE_FILENAME,
    generate_capabilities,
    generate_extensions,
    generate_manifest,
    generate_manifest_template,
)
from winbundle.models import (
    CapabilitySet,
    Extensions,
    FileAssociation,
    MergedConfig,
    ProtocolHandler,
    SigningConfig,
    StartupTask,
)


def _merged(**overrides) -> MergedConfig:
    values = dict(
        display_name="Test App",
        version="1.0.0.0",
        description="A test application",
        identifier="com.example.testapp",
        publisher="CN=TestCompany",
        publisher_display_name="Test Company",
        capabilities=CapabilitySet(general=["internetClient"]),
        extensions=Extensions(),
        signing=SigningConfig(),
    )
    values.update(overrides)
    return MergedConfig(**values)


def test_replaces_all_template_variables() -> None:
    manifest = generate_manifest(_merged(), "x64", "10.0.17763.0")

    assert "Test App" in manifest
    assert "CN=TestCompany" in manifest
    assert "1.0.0.0" in manifest
    assert "{{" not in manifest
    assert 'Name="comexampletestapp"' in manifest
    assert 'Executable="TestApp.exe"' in manifest
    assert 'MinVersion="10.0.17763.0"' in manifest


@pytest.mark.parametrize("arch", ["x64", "arm64"])
def test_sets_processor_architecture(arch: str) -> None:
    manifest = generate_manifest(_merged(), arch, "10.0.17763.0")
    assert f'ProcessorArchitecture="{arch}"' in manifest


def test_rejects_unknown_architecture() -> None:
    with pytest.raises(ConfigError, match="Unsupported architecture 'x86'"):
        generate_manifest(_merged(), "x86", "10.0.17763.0")


def test_includes_capabilities_in_order_with_duplicates() -> None:
    capabilities = CapabilitySet(general=["internetClient", "privateNetworkClientServer", "internetClient"])
    manifest = generate_manifest(_merged(capabilities=capabilities), "x64", "10.0.17763.0")

    lines = [line.strip() for line in manifest.splitlines() if "<Capability " in line]
    assert lines == [
        '<Capability Name="internetClient" />',
        '<Capability Name="privateNetworkClientServer" />',
        '<Capability Name="internetClient" />',
    ]


def test_grouped_capabilities_use_their_namespaces() -> None:
    rendered = generate_capabilities(
        CapabilitySet(general=["internetClient"], device=["webcam"], restricted=["runFullTrust"])
    )
    assert rendered.splitlines() == [
        '    <Capability Name="internetClient" />',
        '    <DeviceCapability Name="webcam" />',
        '    <rescap:Capability Name="runFullTrust" />',
    ]


def test_no_extensions_renders_empty_fragment() -> None:
    assert generate_extensions(Extensions()) == ""
    assert generate_extensions(Extensions(startup_task=StartupTask(enabled=True))) == ""


def test_includes_share_target_when_enabled() -> None:
    manifest = generate_manifest(_merged(extensions=Extensions(share_target=True)), "x64", "10.0.17763.0")

    assert 'Category="windows.shareTarget"' in manifest
    assert "<uap:ShareTarget>" in manifest


def test_file_association_lists_each_extension() -> None:
    extensions = Extensions(
        file_associations=[FileAssociation(name="myfiles", extensions=[".myf", ".myx"])]
    )
    manifest = generate_manifest(_merged(extensions=extensions), "x64", "10.0.17763.0")

    assert 'Category="windows.fileTypeAssociation"' in manifest
    assert '<uap:FileTypeAssociation Name="myfiles">' in manifest
    assert "<uap:FileType>.myf</uap:FileType>" in manifest
    assert "<uap:FileType>.myx</uap:FileType>" in manifest
    assert manifest.index(".myf<") < manifest.index(".myx<")


def test_protocol_handler_uses_display_name_or_name() -> None:
    extensions = Extensions(
        protocol_handlers=[
            ProtocolHandler(name="myapp", display_name="My App"),
            ProtocolHandler(name="other"),
        ]
    )
    manifest = generate_manifest(_merged(extensions=extensions), "x64", "10.0.17763.0")

    assert '<uap:Protocol Name="myapp">' in manifest
    assert "<uap:DisplayName>My App</uap:DisplayName>" in manifest
    assert "<uap:DisplayName>other</uap:DisplayName>" in manifest


def test_extension_blocks_are_separated_by_blank_lines() -> None:
    fragment = generate_extensions(
        Extensions(share_target=True, protocol_handlers=[ProtocolHandler(name="myapp")])
    )
    assert "</uap:Extension>\n\n      <uap:Extension" in fragment
    assert fragment.startswith("      <Extensions>")
    assert fragment.endswith("</Extensions>")


def test_values_are_xml_escaped() -> None:
    manifest = generate_manifest(
        _merged(display_name="Tom & Jerry", publisher='CN=Acme, O="Acme <Inc>"'),
        "x64",
        "10.0.17763.0",
    )

    assert "<DisplayName>Tom &amp; Jerry</DisplayName>" in manifest
    assert 'Publisher="CN=Acme, O=&quot;Acme &lt;Inc&gt;&quot;"' in manifest


def test_description_falls_back_to_display_name() -> None:
    manifest = generate_manifest(_merged(description=""), "x64", "10.0.17763.0")
    assert 'Description="Test App"' in manifest


def test_custom_template_is_rendered() -> None:
    manifest = generate_manifest(_merged(), "x64", "10.0.17763.0", template="<App>{{DISPLAY_NAME}} {{CUSTOM}}</App>")
    assert manifest == "<App>Test App {{CUSTOM}}</App>"


def test_generate_manifest_template_writes_unrendered_text(tmp_path: Path) -> None:
    path = generate_manifest_template(tmp_path)

    assert path == tmp_path / TEMPLATE_FILENAME
    content = path.read_text(encoding="utf-8")
    assert content == MANIFEST_TEMPLATE
    assert '<?xml version="1.0" encoding="utf-8"?>' in content
    for token in ("PACKAGE_NAME", "PUBLISHER", "VERSION", "ARCH", "DISPLAY_NAME", "EXTENSIONS", "CAPABILITIES"):
        assert f"{{{{{token}}}}}" in content
