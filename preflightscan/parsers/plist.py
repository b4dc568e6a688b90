"""
Property list readers for Info.plist and .entitlements files.

Both XML and binary plists are accepted. A file that cannot be read or does
not decode to a dictionary raises ArtifactParseError; callers decide whether
that is fatal.
"""

import plistlib
from pathlib import Path
from typing import Any, Dict, Union
from xml.parsers.expat import ExpatError

from ..errors import ArtifactParseError

PathLike = Union[str, Path]

# Info.plist keys checked by the rule set
CAMERA_USAGE_KEY = "NSCameraUsageDescription"
MICROPHONE_USAGE_KEY = "NSMicrophoneUsageDescription"
SPEECH_RECOGNITION_USAGE_KEY = "NSSpeechRecognitionUsageDescription"
PHOTO_LIBRARY_USAGE_KEY = "NSPhotoLibraryUsageDescription"
CONTACTS_USAGE_KEY = "NSContactsUsageDescription"
FACE_ID_USAGE_KEY = "NSFaceIDUsageDescription"
TRACKING_USAGE_KEY = "NSUserTrackingUsageDescription"
LOCATION_WHEN_IN_USE_KEY = "NSLocationWhenInUseUsageDescription"
LOCATION_ALWAYS_AND_WHEN_IN_USE_KEY = "NSLocationAlwaysAndWhenInUseUsageDescription"
LOCATION_ALWAYS_KEY = "NSLocationAlwaysUsageDescription"
BACKGROUND_MODES_KEY = "UIBackgroundModes"
APP_TRANSPORT_SECURITY_KEY = "NSAppTransportSecurity"

# Entitlement keys
SIGN_IN_WITH_APPLE_ENTITLEMENT = "com.apple.developer.applesignin"

# Lowercased substrings that mark a usage description as filler text
PLACEHOLDER_MARKERS = (
    "lorem ipsum",
    "todo",
    "fixme",
    "placeholder",
    "description here",
    "add description",
    "your app",
    "this app",
    "test",
    "testing",
    "xxx",
    "...",
)

MIN_DESCRIPTION_LENGTH = 10


def parse_plist_bytes(data: bytes, source: str = "<bytes>") -> Dict[str, Any]:
    """Decode XML or binary plist bytes into a dictionary"""
    try:
        value = plistlib.loads(data)
    except (plistlib.InvalidFileException, ExpatError, ValueError, TypeError, OverflowError) as e:
        raise ArtifactParseError(source, str(e) or type(e).__name__) from e

    if not isinstance(value, dict):
        raise ArtifactParseError(source, f"root is {type(value).__name__}, expected dict")
    return value


def parse_plist(path: PathLike) -> Dict[str, Any]:
    """Read and decode a plist file"""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ArtifactParseError(str(path), e.strerror or str(e)) from e
    return parse_plist_bytes(data, str(path))


def parse_entitlements(path: PathLike) -> Dict[str, Any]:
    """Entitlements files are ordinary plists"""
    return parse_plist(path)


def is_placeholder(value: str) -> bool:
    """Check if a usage description looks like placeholder text.

    Anything shorter than ten characters after trimming counts, as does any
    value containing a common filler marker.
    """
    lowered = value.strip().lower()
    if len(lowered) < MIN_DESCRIPTION_LENGTH:
        return True
    return any(marker in lowered for marker in PLACEHOLDER_MARKERS)


def is_usage_description_key(key: str) -> bool:
    return key.startswith("NS") and key.endswith("UsageDescription")
