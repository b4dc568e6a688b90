"""
Scan context - the read-only view of a project that every rule evaluates.

A context is assembled once per scan by ``build_scan_context`` and then only
read. All containers are exposed as immutable views (mapping proxies,
frozensets, tuples), so rules can run concurrently against one context.
"""

import os
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union
import logging

from .dependencies import load_dependencies
from .errors import ArtifactParseError
from .filesystem import PROJECT_SKIP_DIRS, find_files_recursive
from .models import Dependency, ProjectDiscovery
from .parsers.pbxproj import (
    APP_EXTENSION_PRODUCT_TYPES,
    FRAMEWORK_PRODUCT_TYPES,
    GENERATE_INFOPLIST_FILE,
    PRODUCT_TYPE,
    BuildSettingsInfo,
    extract_build_settings,
    generated_plist_keys,
    parse_frameworks,
)
from .parsers.plist import SIGN_IN_WITH_APPLE_ENTITLEMENT, is_usage_description_key, parse_entitlements, parse_plist
from .parsers.values import StructuredValue
from .source_usage import SourceFile, SourceUsageSignals, detect_source_usage, read_source_files

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

PRIVACY_MANIFEST_NAME = "PrivacyInfo.xcprivacy"

_TRUE_STRINGS = {"YES", "TRUE", "1"}
_FALSE_STRINGS = {"NO", "FALSE", "0"}


class ScanContext:
    """Everything known about one project, frozen for rule evaluation.

    Plist lookups consult the literal Info.plist first and fall back to the
    ``INFOPLIST_KEY_*`` build settings when the project generates its plist.
    """

    def __init__(self,
                 project_path: PathLike,
                 info_plist: Optional[Mapping[str, Any]] = None,
                 entitlements: Optional[Mapping[str, Any]] = None,
                 linked_frameworks: Iterable[str] = (),
                 dependencies: Iterable[Dependency] = (),
                 build_settings: Optional[Mapping[str, str]] = None,
                 info_plist_path: Optional[str] = None,
                 entitlements_path: Optional[str] = None,
                 source_files: Optional[Sequence[SourceFile]] = None,
                 source_usage: Optional[SourceUsageSignals] = None,
                 privacy_manifests: Iterable[str] = (),
                 discovery: Optional[ProjectDiscovery] = None):
        self._project_path = str(project_path)
        self._info_plist = MappingProxyType(dict(info_plist or {}))
        self._entitlements = MappingProxyType(dict(entitlements or {}))
        self._frameworks = frozenset(linked_frameworks)
        self._dependencies = tuple(dependencies)
        self._build_settings = MappingProxyType(dict(build_settings or {}))
        self._generated_keys = MappingProxyType(generated_plist_keys(dict(self._build_settings)))
        self._info_plist_path = info_plist_path
        self._entitlements_path = entitlements_path
        self._source_files = tuple(source_files or ())
        self._source_usage = source_usage if source_usage is not None else detect_source_usage(self._source_files)
        self._privacy_manifests = tuple(privacy_manifests)
        self._discovery = discovery

    # =========================================================================
    # Paths
    # =========================================================================

    @property
    def project_path(self) -> str:
        """Scope directory of the analyzed project"""
        return self._project_path

    @property
    def info_plist_path(self) -> Optional[str]:
        return self._info_plist_path

    @property
    def entitlements_path(self) -> Optional[str]:
        return self._entitlements_path

    @property
    def discovery(self) -> Optional[ProjectDiscovery]:
        return self._discovery

    def relative_path(self, path: str) -> str:
        """``path`` relative to the project, or unchanged if outside it"""
        try:
            rel = os.path.relpath(path, self._project_path)
        except ValueError:
            return path
        return path if rel.startswith(os.pardir) else rel

    # =========================================================================
    # Info.plist
    # =========================================================================

    @property
    def info_plist(self) -> Mapping[str, Any]:
        return self._info_plist

    @property
    def generated_plist_keys(self) -> Mapping[str, str]:
        return self._generated_keys

    def generates_info_plist(self) -> bool:
        return self._build_settings.get(GENERATE_INFOPLIST_FILE) == "YES"

    def plist_value(self, key: str) -> StructuredValue:
        """The value for ``key``; a literal plist entry wins over a generated one"""
        if key in self._info_plist:
            return StructuredValue(self._info_plist[key])
        if key in self._generated_keys:
            return StructuredValue(self._generated_keys[key])
        return StructuredValue.missing()

    def has_plist_key(self, key: str) -> bool:
        return self.plist_value(key).is_present

    def plist_string(self, key: str) -> Optional[str]:
        return self.plist_value(key).as_string()

    def plist_array(self, key: str) -> Optional[List[Any]]:
        return self.plist_value(key).as_array()

    def plist_dict(self, key: str) -> Optional[Dict[str, Any]]:
        return self.plist_value(key).as_dict()

    def plist_bool(self, key: str) -> Optional[bool]:
        value = self.plist_value(key)
        as_bool = value.as_bool()
        if as_bool is not None:
            return as_bool
        # Generated keys are always build-setting strings
        text = value.as_string()
        if text is not None and key not in self._info_plist:
            if text.strip().upper() in _TRUE_STRINGS:
                return True
            if text.strip().upper() in _FALSE_STRINGS:
                return False
        return None

    @property
    def usage_descriptions(self) -> Dict[str, str]:
        """Every ``NS*UsageDescription`` string, literal values over generated ones"""
        merged: Dict[str, str] = {}
        for source in (self._generated_keys, self._info_plist):
            for key, value in source.items():
                if is_usage_description_key(key) and isinstance(value, str):
                    merged[key] = value
        return merged

    # =========================================================================
    # Entitlements
    # =========================================================================

    @property
    def entitlements(self) -> Mapping[str, Any]:
        return self._entitlements

    def has_entitlement(self, key: str) -> bool:
        return key in self._entitlements

    def entitlement_value(self, key: str) -> StructuredValue:
        if key in self._entitlements:
            return StructuredValue(self._entitlements[key])
        return StructuredValue.missing()

    def entitlement_bool(self, key: str) -> Optional[bool]:
        return self.entitlement_value(key).as_bool()

    @property
    def has_sign_in_with_apple(self) -> bool:
        value = self.entitlement_value(SIGN_IN_WITH_APPLE_ENTITLEMENT)
        if value.is_missing:
            return False
        items = value.as_array()
        if items is not None:
            return "Default" in items
        return True

    # =========================================================================
    # Frameworks, dependencies and build settings
    # =========================================================================

    @property
    def linked_frameworks(self) -> frozenset:
        return self._frameworks

    def has_framework(self, name: str) -> bool:
        return name in self._frameworks

    @property
    def dependencies(self) -> Sequence[Dependency]:
        return self._dependencies

    def has_dependency(self, name: str) -> bool:
        """Case-insensitive substring match on dependency names"""
        needle = name.lower()
        return any(needle in dep.name.lower() for dep in self._dependencies)

    @property
    def build_settings(self) -> Mapping[str, str]:
        return self._build_settings

    def build_setting(self, name: str) -> Optional[str]:
        return self._build_settings.get(name)

    # =========================================================================
    # Target classification
    # =========================================================================

    def is_extension(self) -> bool:
        """App extensions carry NSExtension keys or an extension product type"""
        extension = self.plist_value("NSExtension")
        if extension.is_present:
            return True
        if self.has_plist_key("NSExtensionPointIdentifier"):
            return True
        point = extension.get("NSExtensionPointIdentifier")
        if point.is_present:
            return True
        return self._build_settings.get(PRODUCT_TYPE) in APP_EXTENSION_PRODUCT_TYPES

    def is_framework_target(self) -> bool:
        if self._build_settings.get(PRODUCT_TYPE) in FRAMEWORK_PRODUCT_TYPES:
            return True
        return self.plist_string("CFBundlePackageType") == "FMWK"

    # =========================================================================
    # Sources
    # =========================================================================

    @property
    def source_usage(self) -> SourceUsageSignals:
        return self._source_usage

    def source_files(self) -> Sequence[SourceFile]:
        """Comment-stripped Swift and Objective-C sources under the project"""
        return self._source_files

    @property
    def privacy_manifests(self) -> Sequence[str]:
        return self._privacy_manifests

    def __repr__(self) -> str:
        return (f"ScanContext(project_path={self._project_path!r}, "
                f"frameworks={len(self._frameworks)}, dependencies={len(self._dependencies)}, "
                f"sources={len(self._source_files)})")


# =============================================================================
# Builder
# =============================================================================

def _read_plist(path: Optional[str], what: str) -> Dict[str, Any]:
    if not path:
        return {}
    try:
        if what == "entitlements":
            return parse_entitlements(path)
        return parse_plist(path)
    except ArtifactParseError as e:
        logger.warning(f"Ignoring unreadable {what}: {e.message}")
        return {}


def _read_project(pbxproj: Optional[str], scope_dir: str):
    if not pbxproj:
        return BuildSettingsInfo(), set()
    try:
        return extract_build_settings(pbxproj, scope_dir), parse_frameworks(pbxproj)
    except ArtifactParseError as e:
        logger.warning(f"Ignoring unreadable project file: {e.message}")
        return BuildSettingsInfo(), set()


def build_scan_context(discovery: ProjectDiscovery) -> ScanContext:
    """
    Read every artifact named by ``discovery`` into a ScanContext.

    Unreadable artifacts are logged and treated as empty; this never raises
    for missing or malformed project files.
    """
    scope = discovery.project_scope_dir
    build_info, frameworks = _read_project(discovery.pbxproj_path, scope)
    sources = read_source_files(scope)
    manifests = [
        p for p in find_files_recursive(scope, lambda name: name == PRIVACY_MANIFEST_NAME,
                                        skip_dirs=PROJECT_SKIP_DIRS,
                                        current_xcodeproj=discovery.xcodeproj_path)
        if os.path.isfile(p)
    ]

    context = ScanContext(
        project_path=scope,
        info_plist=_read_plist(discovery.info_plist_path, "Info.plist"),
        entitlements=_read_plist(discovery.entitlements_path, "entitlements"),
        linked_frameworks=frameworks,
        dependencies=load_dependencies(discovery),
        build_settings=build_info.build_settings,
        info_plist_path=discovery.info_plist_path,
        entitlements_path=discovery.entitlements_path,
        source_files=sources,
        privacy_manifests=manifests,
        discovery=discovery,
    )
    logger.debug(f"Built {context!r}")
    return context
