"""
PreflightScan - App Store pre-submission analyzer for iOS projects.

Finds the Xcode project behind a directory, .xcodeproj or .xcworkspace path,
reads its Info.plist, entitlements, build settings, linked frameworks,
dependency lock files and sources, and runs a catalog of rules that flag
likely App Review rejections before submission.

Rule Categories:
    privacy   - Usage descriptions, location permissions, App Tracking Transparency
    auth      - Sign in with Apple alongside third-party login
    metadata  - Privacy manifests, supported orientations
    config    - App Transport Security, export compliance, launch screen
    code      - Private APIs, dynamic code execution
    iap       - External payment SDKs

Dependency Sources:
    CocoaPods (Podfile.lock), Swift Package Manager (Package.resolved),
    Carthage (Cartfile.resolved)

Quick Start:
    >>> from preflightscan import create_scanner
    >>> scanner = create_scanner()
    >>> result = scanner.scan("/path/to/MyApp")
    >>> print(f"Found {len(result.findings)} issues")
"""

__version__ = "0.1.0"
__author__ = "PreflightScan"

from .scanner import PreflightScanner, create_scanner, scan
from .models import (
    Severity,
    Confidence,
    RuleCategory,
    DependencySource,
    Dependency,
    ProjectDiscovery,
    RuleMetadata,
    Finding,
    ScanResult,
)
from .errors import (
    PreflightError,
    DiscoveryError,
    ProjectNotFoundError,
    UnsupportedInputError,
    ArtifactParseError,
    RuleSelectionError,
    InvalidRulesError,
    NoRulesError,
    CatalogError,
)
from .context import ScanContext, build_scan_context
from .project_locator import discover_project
from .rules import Rule, RuleRegistry, build_default_registry

__all__ = [
    # Core
    'PreflightScanner',
    'create_scanner',
    'scan',
    'discover_project',
    'ScanContext',
    'build_scan_context',
    'Rule',
    'RuleRegistry',
    'build_default_registry',
    # Models
    'Severity',
    'Confidence',
    'RuleCategory',
    'DependencySource',
    'Dependency',
    'ProjectDiscovery',
    'RuleMetadata',
    'Finding',
    'ScanResult',
    # Errors
    'PreflightError',
    'DiscoveryError',
    'ProjectNotFoundError',
    'UnsupportedInputError',
    'ArtifactParseError',
    'RuleSelectionError',
    'InvalidRulesError',
    'NoRulesError',
    'CatalogError',
]
