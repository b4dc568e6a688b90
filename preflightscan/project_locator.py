"""
Project locator - turns a user supplied path into a ProjectDiscovery.

Accepted inputs are a directory, a ``.xcodeproj`` bundle or a
``.xcworkspace`` bundle. The locator picks one project and a scope directory
(the directory holding that project) and resolves Info.plist and
entitlements inside that scope only, so sibling apps in a monorepo never
contribute artifacts.

Artifact precedence, first hit wins:
    1. Paths named by the project's build settings
    2. ``Info.plist`` / ``*.entitlements`` directly in the scope directory
    3. The shallowest match of a bounded search under the scope directory
"""

import os
from pathlib import Path
from typing import List, Optional, Tuple, Union
import logging

from .errors import ArtifactParseError, ProjectNotFoundError, UnsupportedInputError
from .filesystem import PROJECT_SKIP_DIRS, find_files_recursive
from .models import ProjectDiscovery, WorkspaceProjectRef
from .parsers.pbxproj import BuildSettingsInfo, extract_build_settings
from .parsers.workspace import get_workspace_projects, parse_workspace_data

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

PBXPROJ = "project.pbxproj"
INFO_PLIST = "Info.plist"
ENTITLEMENTS_SUFFIX = ".entitlements"


def _pbxproj_for(xcodeproj: Optional[str]) -> Optional[str]:
    if not xcodeproj:
        return None
    candidate = os.path.join(xcodeproj, PBXPROJ)
    return candidate if os.path.isfile(candidate) else None


def _find_xcodeprojs(root: str) -> List[str]:
    """Projects under ``root`` that have a pbxproj, shallowest first"""
    found = find_files_recursive(root, lambda name: name.endswith(".xcodeproj"), skip_dirs=PROJECT_SKIP_DIRS)
    return [p for p in found if os.path.isdir(p) and _pbxproj_for(p)]


def _top_level_xcodeprojs(directory: str) -> List[str]:
    try:
        entries = sorted(os.listdir(directory))
    except OSError:
        return []
    return [
        os.path.join(directory, e) for e in entries
        if e.endswith(".xcodeproj") and os.path.isdir(os.path.join(directory, e))
    ]


def _load_build_settings(pbxproj: Optional[str], scope_dir: str) -> BuildSettingsInfo:
    if not pbxproj:
        return BuildSettingsInfo()
    try:
        return extract_build_settings(pbxproj, scope_dir)
    except ArtifactParseError as e:
        logger.warning(f"Could not read build settings: {e.message}")
        return BuildSettingsInfo()


def _resolve_info_plist(scope_dir: str, xcodeproj: Optional[str], explicit: Optional[str]) -> Optional[str]:
    if explicit:
        logger.debug(f"Info.plist from build settings: {explicit}")
        return explicit

    root_plist = os.path.join(scope_dir, INFO_PLIST)
    if os.path.isfile(root_plist):
        logger.debug(f"Info.plist at scope root: {root_plist}")
        return root_plist

    matches = [
        p for p in find_files_recursive(scope_dir, lambda name: name == INFO_PLIST,
                                        skip_dirs=PROJECT_SKIP_DIRS, current_xcodeproj=xcodeproj)
        if os.path.isfile(p)
    ]
    if matches:
        logger.debug(f"Info.plist from directory search: {matches[0]}")
        return matches[0]
    return None


def _resolve_entitlements(scope_dir: str, xcodeproj: Optional[str], explicit: Optional[str]) -> Optional[str]:
    if explicit:
        logger.debug(f"Entitlements from build settings: {explicit}")
        return explicit

    direct = [
        os.path.join(scope_dir, e) for e in sorted(os.listdir(scope_dir))
        if e.endswith(ENTITLEMENTS_SUFFIX) and os.path.isfile(os.path.join(scope_dir, e))
    ] if os.path.isdir(scope_dir) else []
    if direct:
        logger.debug(f"Entitlements at scope root: {direct[0]}")
        return direct[0]

    matches = [
        p for p in find_files_recursive(scope_dir, lambda name: name.endswith(ENTITLEMENTS_SUFFIX),
                                        skip_dirs=PROJECT_SKIP_DIRS, current_xcodeproj=xcodeproj)
        if os.path.isfile(p)
    ]
    if matches:
        logger.debug(f"Entitlements from directory search: {matches[0]}")
        return matches[0]
    return None


def _build_discovery(project_path: str,
                     xcodeproj: Optional[str],
                     is_workspace: bool = False,
                     workspace_projects: Optional[List[WorkspaceProjectRef]] = None,
                     fallback_scope: Optional[str] = None) -> ProjectDiscovery:
    scope_dir = os.path.dirname(xcodeproj) if xcodeproj else (fallback_scope or project_path)
    pbxproj = _pbxproj_for(xcodeproj)
    build_info = _load_build_settings(pbxproj, scope_dir)

    discovery = ProjectDiscovery(
        project_path=project_path,
        project_scope_dir=scope_dir,
        pbxproj_path=pbxproj,
        info_plist_path=_resolve_info_plist(scope_dir, xcodeproj, build_info.info_plist_path),
        entitlements_path=_resolve_entitlements(scope_dir, xcodeproj, build_info.entitlements_path),
        is_workspace=is_workspace,
        workspace_projects=workspace_projects,
    )
    logger.debug(f"Selected project {xcodeproj or '(none)'} with scope {scope_dir}")
    return discovery


def _select_workspace_project(workspace: str) -> Tuple[Optional[str], List[WorkspaceProjectRef]]:
    """First member project with a pbxproj, else a search next to the workspace"""
    refs = parse_workspace_data(workspace).project_refs
    for project in get_workspace_projects(workspace):
        if _pbxproj_for(project):
            return project, refs

    fallback = _find_xcodeprojs(os.path.dirname(workspace))
    return (fallback[0] if fallback else None), refs


def discover_project(input_path: PathLike) -> ProjectDiscovery:
    """
    Locate the project to analyze for a user supplied path.

    Args:
        input_path: Directory, .xcodeproj or .xcworkspace path

    Returns:
        ProjectDiscovery describing the selected project and its artifacts

    Raises:
        ProjectNotFoundError: If the path does not exist
        UnsupportedInputError: If the path is an .ipa archive
    """
    path = os.path.abspath(str(input_path))

    if not os.path.exists(path):
        raise ProjectNotFoundError(str(input_path))

    if os.path.isfile(path) and path.lower().endswith(".ipa"):
        raise UnsupportedInputError(str(input_path))

    if os.path.isdir(path) and path.endswith(".xcodeproj"):
        return _build_discovery(os.path.dirname(path), path)

    if os.path.isdir(path) and path.endswith(".xcworkspace"):
        xcodeproj, refs = _select_workspace_project(path)
        return _build_discovery(
            os.path.dirname(path), xcodeproj,
            is_workspace=True, workspace_projects=refs,
        )

    base = path if os.path.isdir(path) else os.path.dirname(path)

    top_level = _top_level_xcodeprojs(base)
    if len(top_level) == 1:
        return _build_discovery(base, top_level[0])

    workspaces = [
        w for w in find_files_recursive(base, lambda name: name.endswith(".xcworkspace"),
                                        skip_dirs=PROJECT_SKIP_DIRS)
        if os.path.isdir(w)
    ]
    if workspaces:
        xcodeproj, refs = _select_workspace_project(workspaces[0])
        if xcodeproj:
            return _build_discovery(base, xcodeproj, is_workspace=True, workspace_projects=refs)

    projects = _find_xcodeprojs(base)
    return _build_discovery(
        base, projects[0] if projects else None,
        is_workspace=bool(workspaces), fallback_scope=base,
    )
