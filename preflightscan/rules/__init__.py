"""
PreflightScan rules.

Each rule inspects a ScanContext and reports App Store review findings.
Rules are grouped by category:
- privacy: usage-description strings and tracking transparency
- auth: Sign in with Apple
- metadata: privacy manifests and supported orientations
- config: App Transport Security and required Info.plist keys
- code: private APIs, external payments and dynamic code
"""

from .base import Rule
from .registry import DEFAULT_RULE_CLASSES, RuleRegistry, build_default_registry

__all__ = [
    'Rule',
    'RuleRegistry',
    'DEFAULT_RULE_CLASSES',
    'build_default_registry',
]
