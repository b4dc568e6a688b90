"""
Reader for ``.xcworkspace/contents.xcworkspacedata``.

A workspace lists its member projects as ``FileRef`` elements whose
``location`` attribute is ``<type>:<path>``. Only ``.xcodeproj`` references
are kept. Each is classified as CocoaPods-owned, test/example, or main so the
project locator can prefer the app project.
"""

import os
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Optional, Union
import logging

from ..models import LocationType, WorkspaceData, WorkspaceProjectRef

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

WORKSPACE_DATA_FILE = "contents.xcworkspacedata"

TEST_OR_EXAMPLE_PATTERN = re.compile(r'test|example|demo|sample', re.IGNORECASE)


def _is_pods_path(project_path: str) -> bool:
    return "Pods" in Path(project_path).parts


def _is_test_or_example(project_path: str) -> bool:
    name = Path(project_path).name
    if name.endswith(".xcodeproj"):
        name = name[: -len(".xcodeproj")]
    return bool(TEST_OR_EXAMPLE_PATTERN.search(name))


def _parse_location(location: str) -> Optional[WorkspaceProjectRef]:
    location_type, sep, project_path = location.partition(":")
    if not sep:
        location_type, project_path = "group", location

    try:
        kind = LocationType(location_type)
    except ValueError:
        logger.debug(f"Skipping workspace reference with unknown location type: {location}")
        return None

    project_path = project_path.rstrip("/")
    if not project_path.endswith(".xcodeproj"):
        return None

    return WorkspaceProjectRef(
        raw_location=location,
        location_type=kind,
        project_path=project_path,
        is_pods=_is_pods_path(project_path),
        is_test_or_example=_is_test_or_example(project_path),
    )


def parse_workspace_data_string(xml: str) -> WorkspaceData:
    """Parse workspace XML. Malformed XML yields an empty result."""
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as e:
        logger.warning(f"Could not parse workspace data: {e}")
        return WorkspaceData()

    refs: List[WorkspaceProjectRef] = []
    for file_ref in root.iter("FileRef"):
        location = file_ref.get("location")
        if not location:
            continue
        ref = _parse_location(location)
        if ref is not None:
            refs.append(ref)

    return WorkspaceData(version=root.get("version"), project_refs=refs)


def parse_workspace_data(workspace_path: PathLike) -> WorkspaceData:
    """Parse a workspace given either the bundle or its data file"""
    path = Path(workspace_path)
    data_file = path if path.name == WORKSPACE_DATA_FILE else path / WORKSPACE_DATA_FILE

    if not data_file.is_file():
        logger.debug(f"No workspace data file at {data_file}")
        return WorkspaceData()

    try:
        xml = data_file.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning(f"Could not read workspace data {data_file}: {e}")
        return WorkspaceData()

    return parse_workspace_data_string(xml)


def resolve_project_ref(ref: WorkspaceProjectRef, workspace_path: PathLike) -> str:
    """Absolute path of a workspace member project.

    Absolute references are returned verbatim; group and container references
    are relative to the directory holding the ``.xcworkspace`` bundle.
    """
    if ref.location_type is LocationType.ABSOLUTE:
        return ref.project_path

    workspace = Path(workspace_path)
    if workspace.name == WORKSPACE_DATA_FILE:
        workspace = workspace.parent
    return os.path.normpath(os.path.join(str(workspace.parent), ref.project_path))


def resolve_existing_project(ref: WorkspaceProjectRef, workspace_path: PathLike) -> Optional[str]:
    """Like resolve_project_ref, but None when the project is not on disk"""
    resolved = resolve_project_ref(ref, workspace_path)
    return resolved if os.path.isdir(resolved) else None


def get_workspace_projects(workspace_path: PathLike) -> List[str]:
    """Existing member projects, main projects preferred.

    Falls back to every existing reference when no main project exists, so a
    Pods-only workspace still resolves to something.
    """
    data = parse_workspace_data(workspace_path)

    def existing(refs: List[WorkspaceProjectRef]) -> List[str]:
        paths = []
        for ref in refs:
            resolved = resolve_existing_project(ref, workspace_path)
            if resolved and resolved not in paths:
                paths.append(resolved)
        return paths

    main = existing(data.main_project_refs)
    if main:
        return main
    return existing(data.project_refs)
