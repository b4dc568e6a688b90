"""Privacy rules: usage descriptions, location permissions and tracking"""

from .capture import MissingCameraPurposeRule, MissingMicrophonePurposeRule
from .location import LocationAlwaysUnjustifiedRule, MissingLocationPurposeRule
from .tracking import ATTTrackingMismatchRule
from .usage_descriptions import (
    MissingContactsPurposeRule,
    MissingFaceIDPurposeRule,
    MissingPhotoLibraryPurposeRule,
)

__all__ = [
    'MissingCameraPurposeRule',
    'MissingLocationPurposeRule',
    'ATTTrackingMismatchRule',
    'LocationAlwaysUnjustifiedRule',
    'MissingMicrophonePurposeRule',
    'MissingContactsPurposeRule',
    'MissingPhotoLibraryPurposeRule',
    'MissingFaceIDPurposeRule',
]
