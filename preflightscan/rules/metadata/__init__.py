"""Metadata and completeness rules"""

from .privacy_manifest import MissingPrivacyManifestRule
from .orientations import MissingSupportedOrientationsRule

__all__ = ['MissingPrivacyManifestRule', 'MissingSupportedOrientationsRule']
