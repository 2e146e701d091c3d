"""AppxManifest.xml rendering."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional
from xml.sax.saxutils import escape

from .config import ConfigError
from .models import ARCHITECTURES, Architecture, CapabilitySet, Extensions, MergedConfig
from .template import replace_template_variables

MANIFEST_FILENAME = "AppxManifest.xml"
TEMPLATE_FILENAME = "AppxManifest.xml.template"

MANIFEST_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<Package
  xmlns="http://schemas.microsoft.com/appx/manifest/foundation/windows10"
  xmlns:uap="http://schemas.microsoft.com/appx/manifest/uap/windows10"
  xmlns:uap3="http://schemas.microsoft.com/appx/manifest/uap/windows10/3"
  xmlns:desktop="http://schemas.microsoft.com/appx/manifest/desktop/windows10"
  xmlns:rescap="http://schemas.microsoft.com/appx/manifest/foundation/windows10/restrictedcapabilities">

  <Identity
    Name="{{PACKAGE_NAME}}"
    Publisher="{{PUBLISHER}}"
    Version="{{VERSION}}"
    ProcessorArchitecture="{{ARCH}}" />

  <Properties>
    <DisplayName>{{DISPLAY_NAME}}</DisplayName>
    <PublisherDisplayName>{{PUBLISHER_DISPLAY_NAME}}</PublisherDisplayName>
    <Logo>Assets\\StoreLogo.png</Logo>
  </Properties>

  <Dependencies>
    <TargetDeviceFamily Name="Windows.Desktop"
      MinVersion="{{MIN_VERSION}}"
      MaxVersionTested="10.0.22621.0" />
  </Dependencies>

  <Resources>
    <Resource Language="en-us" />
  </Resources>

  <Applications>
    <Application Id="App"
      Executable="{{EXECUTABLE}}"
      EntryPoint="Windows.FullTrustApplication">
      <uap:VisualElements
        DisplayName="{{DISPLAY_NAME}}"
        Description="{{DESCRIPTION}}"
        BackgroundColor="transparent"
        Square150x150Logo="Assets\\Square150x150Logo.png"
        Square44x44Logo="Assets\\Square44x44Logo.png">
        <uap:DefaultTile Wide310x150Logo="Assets\\Wide310x150Logo.png" />
      </uap:VisualElements>

{{EXTENSIONS}}
    </Application>
  </Applications>

  <Capabilities>
{{CAPABILITIES}}
  </Capabilities>
</Package>
"""


def generate_manifest_template(windows_dir: Path) -> Path:
    """Write the unrendered template so users can customise it."""
    windows_dir.mkdir(parents=True, exist_ok=True)
    template_path = windows_dir / TEMPLATE_FILENAME
    template_path.write_text(MANIFEST_TEMPLATE, encoding="utf-8")
    return template_path


def resolve_architecture(arch: str) -> Architecture:
    try:
        return ARCHITECTURES[arch]
    except KeyError:
        supported = ", ".join(sorted(ARCHITECTURES))
        raise ConfigError(f"Unsupported architecture '{arch}' (expected one of: {supported})") from None


def build_variables(config: MergedConfig, arch: str, min_version: str) -> Dict[str, str]:
    """Return the token mapping for a render, with values XML-escaped."""
    architecture = resolve_architecture(arch)
    scalars = {
        "PACKAGE_NAME": config.package_name,
        "PUBLISHER": config.publisher,
        "VERSION": config.version,
        "ARCH": architecture.manifest_name,
        "DISPLAY_NAME": config.display_name,
        "PUBLISHER_DISPLAY_NAME": config.publisher_display_name,
        "MIN_VERSION": min_version,
        "EXECUTABLE": config.executable_name,
        "DESCRIPTION": config.description or config.display_name,
    }
    variables = {name: _xml(value) for name, value in scalars.items()}
    variables["EXTENSIONS"] = generate_extensions(config.extensions)
    variables["CAPABILITIES"] = generate_capabilities(config.capabilities)
    return variables


def generate_manifest(
    config: MergedConfig,
    arch: str,
    min_version: str,
    *,
    template: Optional[str] = None,
) -> str:
    """Render the manifest, using ``template`` instead of the built-in one when given."""
    source = MANIFEST_TEMPLATE if template is None else template
    return replace_template_variables(source, build_variables(config, arch, min_version))


def generate_extensions(extensions: Extensions) -> str:
    blocks: List[str] = []

    if extensions.share_target:
        blocks.append(
            """      <uap:Extension Category="windows.shareTarget">
        <uap:ShareTarget>
          <uap:SupportedFileTypes>
            <uap:SupportsAnyFileType />
          </uap:SupportedFileTypes>
          <uap:DataFormat>Text</uap:DataFormat>
          <uap:DataFormat>Uri</uap:DataFormat>
        </uap:ShareTarget>
      </uap:Extension>"""
        )

    for association in extensions.file_associations:
        file_types = "\n".join(
            f"          <uap:FileType>{_xml(ext)}</uap:FileType>" for ext in association.extensions
        )
        blocks.append(
            f"""      <uap:Extension Category="windows.fileTypeAssociation">
        <uap:FileTypeAssociation Name="{_xml(association.name)}">
          <uap:SupportedFileTypes>
{file_types}
          </uap:SupportedFileTypes>
        </uap:FileTypeAssociation>
      </uap:Extension>"""
        )

    for handler in extensions.protocol_handlers:
        label = handler.display_name or handler.name
        blocks.append(
            f"""      <uap:Extension Category="windows.protocol">
        <uap:Protocol Name="{_xml(handler.name)}">
          <uap:DisplayName>{_xml(label)}</uap:DisplayName>
        </uap:Protocol>
      </uap:Extension>"""
        )

    if not blocks:
        return ""
    return "      <Extensions>\n" + "\n\n".join(blocks) + "\n      </Extensions>"


def generate_capabilities(capabilities: CapabilitySet) -> str:
    lines = [f'    <Capability Name="{_xml(name)}" />' for name in capabilities.general]
    lines.extend(f'    <DeviceCapability Name="{_xml(name)}" />' for name in capabilities.device)
    lines.extend(f'    <rescap:Capability Name="{_xml(name)}" />' for name in capabilities.restricted)
    return "\n".join(lines)


def _xml(value: str) -> str:
    return escape(value, {'"': "&quot;"})


__all__ = [
    "MANIFEST_FILENAME",
    "MANIFEST_TEMPLATE",
    "TEMPLATE_FILENAME",
    "build_variables",
    "generate_capabilities",
    "generate_extensions",
    "generate_manifest",
    "generate_manifest_template",
    "resolve_architecture",
]
