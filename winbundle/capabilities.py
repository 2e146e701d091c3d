"""Capability allow-lists and validation."""

from __future__ import annotations

from typing import List, Mapping, Optional, Sequence, Union

from .models import CapabilitySet

GENERAL_CAPABILITIES = frozenset(
    {
        "internetClient",
        "internetClientServer",
        "privateNetworkClientServer",
        "allJoyn",
        "appointments",
        "backgroundMediaPlayback",
        "blockedChatMessages",
        "chat",
        "codeGeneration",
        "contacts",
        "globalMediaControl",
        "graphicsCapture",
        "lowLevelDevices",
        "musicLibrary",
        "objects3D",
        "offlineMapsManagement",
        "phoneCall",
        "phoneCallHistoryPublic",
        "picturesLibrary",
        "recordedCallsFolder",
        "remoteSystem",
        "removableStorage",
        "spatialPerception",
        "systemManagement",
        "userAccountInformation",
        "userDataTasks",
        "userNotificationListener",
        "videosLibrary",
        "voipCall",
    }
)

DEVICE_CAPABILITIES = frozenset(
    {
        "activity",
        "bluetooth",
        "gazeInput",
        "humaninterfacedevice",
        "humanPresence",
        "location",
        "lowLevel",
        "microphone",
        "optical",
        "pointOfService",
        "proximity",
        "radios",
        "serialcommunication",
        "usb",
        "webcam",
        "wiFiControl",
    }
)

RESTRICTED_CAPABILITIES = frozenset(
    {
        "allowElevation",
        "appCaptureSettings",
        "appDiagnostics",
        "broadFileSystemAccess",
        "cellularDeviceControl",
        "confirmAppClose",
        "customInstallActions",
        "deviceUnlock",
        "documentsLibrary",
        "enterpriseAuthentication",
        "enterpriseDataPolicy",
        "extendedBackgroundTaskTime",
        "extendedExecutionUnconstrained",
        "inputInjectionBrokered",
        "localSystemServices",
        "modifiableApp",
        "packageManagement",
        "packagedServices",
        "previewStore",
        "runFullTrust",
        "sharedUserCertificates",
        "smsSend",
        "unvirtualizedResources",
        "userPrincipalName",
    }
)

_CATEGORIES = (
    ("general", GENERAL_CAPABILITIES),
    ("device", DEVICE_CAPABILITIES),
    ("restricted", RESTRICTED_CAPABILITIES),
)

CapabilityInput = Union[CapabilitySet, Mapping[str, Optional[Sequence[str]]]]


def validate_capabilities(capabilities: CapabilityInput) -> List[str]:
    """Return one message per capability missing from its category's allow-list."""
    if isinstance(capabilities, CapabilitySet):
        grouped: Mapping[str, Optional[Sequence[str]]] = {
            "general": capabilities.general,
            "device": capabilities.device,
            "restricted": capabilities.restricted,
        }
    else:
        grouped = capabilities

    errors: List[str] = []
    for category, allowed in _CATEGORIES:
        for name in grouped.get(category) or []:
            if name not in allowed:
                errors.append(f"Invalid {category} capability: {name}")
    return errors


__all__ = [
    "DEVICE_CAPABILITIES",
    "GENERAL_CAPABILITIES",
    "RESTRICTED_CAPABILITIES",
    "validate_capabilities",
]
