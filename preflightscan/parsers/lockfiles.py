"""
Dependency lock file parsers.

Supported formats:
    Podfile.lock        CocoaPods, line oriented YAML-ish text
    Package.resolved    Swift Package Manager JSON, schema v1 and v2/v3
    Cartfile.resolved   Carthage, one ``<origin> "<name>" "<version>"`` per line
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union
import logging

from ..errors import ArtifactParseError
from ..models import Dependency, DependencySource

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

PODFILE_LOCK = "Podfile.lock"
PACKAGE_RESOLVED = "Package.resolved"
CARTFILE_RESOLVED = "Cartfile.resolved"

POD_ENTRY_PATTERN = re.compile(r'^([^\s(]+)\s*\(([^)]+)\)')
CARTFILE_ENTRY_PATTERN = re.compile(r'^\s*(github|git|binary)\s+"([^"]+)"\s+"([^"]+)"')


def dedupe(dependencies: Iterable[Dependency]) -> List[Dependency]:
    """Drop repeated ``name@version`` records, keeping first-seen order"""
    seen = set()
    result = []
    for dep in dependencies:
        if dep.key not in seen:
            seen.add(dep.key)
            result.append(dep)
    return result


def _read_text(path: PathLike) -> str:
    path = Path(path)
    try:
        return path.read_text(encoding='utf-8', errors='replace')
    except OSError as e:
        raise ArtifactParseError(str(path), e.strerror or str(e)) from e


# =============================================================================
# CocoaPods
# =============================================================================

def parse_podfile_lock_content(content: str) -> List[Dependency]:
    """Parse the PODS section of a Podfile.lock.

    ``Firebase/Analytics (10.0.0)`` yields both ``Firebase`` and
    ``Firebase/Analytics`` so rules can match either granularity.
    """
    dependencies: List[Dependency] = []
    in_pods = False

    for line in content.splitlines():
        stripped = line.strip()

        if stripped == "PODS:":
            in_pods = True
            continue

        if not in_pods:
            continue

        # Next top-level key ends the section
        if line and not line[0].isspace() and stripped.endswith(":"):
            break

        if not line.startswith("  - "):
            continue

        entry = line[4:].lstrip('"')
        match = POD_ENTRY_PATTERN.match(entry)
        if not match:
            continue

        full_name, version = match.group(1), match.group(2)
        base_name = full_name.split("/")[0]

        dependencies.append(Dependency(base_name, version, DependencySource.COCOAPODS))
        if full_name != base_name:
            dependencies.append(Dependency(full_name, version, DependencySource.COCOAPODS))

    return dedupe(dependencies)


def parse_podfile_lock(path: PathLike) -> List[Dependency]:
    return parse_podfile_lock_content(_read_text(path))


# =============================================================================
# Swift Package Manager
# =============================================================================

def _pin_version(pin: Dict[str, Any]):
    state = pin.get("state")
    if isinstance(state, dict):
        version = state.get("version")
        if isinstance(version, str):
            return version
    return None


def parse_package_resolved_data(data: Any) -> List[Dependency]:
    """Extract pins from decoded Package.resolved JSON.

    v2 and later keep a top-level ``pins`` array keyed by ``identity``; v1
    nests it under ``object.pins`` keyed by ``package``. Anything else
    yields an empty list.
    """
    if not isinstance(data, dict):
        return []

    dependencies: List[Dependency] = []

    pins = data.get("pins")
    if isinstance(pins, list):
        for pin in pins:
            if isinstance(pin, dict) and isinstance(pin.get("identity"), str) and pin["identity"]:
                dependencies.append(Dependency(pin["identity"], _pin_version(pin), DependencySource.SPM))
        return dependencies

    container = data.get("object")
    v1_pins = container.get("pins") if isinstance(container, dict) else None
    if isinstance(v1_pins, list):
        for pin in v1_pins:
            if isinstance(pin, dict) and isinstance(pin.get("package"), str) and pin["package"]:
                dependencies.append(Dependency(pin["package"], _pin_version(pin), DependencySource.SPM))

    return dependencies


def parse_package_resolved_content(content: str, source: str = "<string>") -> List[Dependency]:
    try:
        data = json.loads(content)
    except ValueError as e:
        logger.warning(f"Could not parse {source}: {e}")
        return []
    return parse_package_resolved_data(data)


def parse_package_resolved(path: PathLike) -> List[Dependency]:
    """Never raises: unreadable or malformed files yield an empty list"""
    try:
        content = _read_text(path)
    except ArtifactParseError as e:
        logger.warning(e.message)
        return []
    return parse_package_resolved_content(content, str(path))


# =============================================================================
# Carthage
# =============================================================================

def parse_cartfile_resolved_content(content: str) -> List[Dependency]:
    dependencies = []
    for line in content.splitlines():
        match = CARTFILE_ENTRY_PATTERN.match(line)
        if not match:
            continue
        origin = match.group(2).rstrip("/")
        name = origin.rsplit("/", 1)[-1]
        if name.endswith(".git"):
            name = name[:-4]
        if name.endswith(".json"):
            name = name[:-5]
        dependencies.append(Dependency(name, match.group(3), DependencySource.CARTHAGE))
    return dedupe(dependencies)


def parse_cartfile_resolved(path: PathLike) -> List[Dependency]:
    return parse_cartfile_resolved_content(_read_text(path))
