"""
Artifact parsers: property lists, pbxproj build settings, workspace data and
dependency lock files.
"""

from .values import StructuredValue, ValueKind
from .plist import parse_plist, parse_plist_bytes, parse_entitlements, is_placeholder
from .pbxproj import (
    BuildSettingsInfo,
    NativeTarget,
    extract_build_settings,
    generated_plist_keys,
    parse_build_settings_content,
    parse_frameworks,
    parse_frameworks_content,
    parse_native_targets,
)
from .workspace import (
    get_workspace_projects,
    parse_workspace_data,
    parse_workspace_data_string,
    resolve_project_ref,
)
from .lockfiles import (
    parse_cartfile_resolved,
    parse_package_resolved,
    parse_package_resolved_data,
    parse_podfile_lock,
    parse_podfile_lock_content,
)

__all__ = [
    'StructuredValue',
    'ValueKind',
    'parse_plist',
    'parse_plist_bytes',
    'parse_entitlements',
    'is_placeholder',
    'BuildSettingsInfo',
    'NativeTarget',
    'extract_build_settings',
    'generated_plist_keys',
    'parse_build_settings_content',
    'parse_frameworks',
    'parse_frameworks_content',
    'parse_native_targets',
    'get_workspace_projects',
    'parse_workspace_data',
    'parse_workspace_data_string',
    'resolve_project_ref',
    'parse_cartfile_resolved',
    'parse_package_resolved',
    'parse_package_resolved_data',
    'parse_podfile_lock',
    'parse_podfile_lock_content',
]
