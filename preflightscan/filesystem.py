"""
Bounded recursive filesystem search shared by project discovery and
dependency loading.
"""

import os
from pathlib import Path
from typing import Callable, FrozenSet, List, Optional, Union
import logging

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

MAX_SEARCH_DEPTH = 5

# Directories never worth descending into
SKIP_DIRS: FrozenSet[str] = frozenset({
    'node_modules', '.git', 'build', 'DerivedData', '.build',
})

# Project discovery also ignores CocoaPods' generated project
PROJECT_SKIP_DIRS: FrozenSet[str] = SKIP_DIRS | {'Pods'}

# Bundles that are matched by name but never entered
OPAQUE_BUNDLE_SUFFIXES = ('.xcodeproj', '.xcworkspace', '.app', '.framework')


def path_depth(path: PathLike, root: PathLike) -> int:
    rel = os.path.relpath(str(path), str(root))
    return 0 if rel == os.curdir else len(Path(rel).parts)


def contains_sibling_xcodeproj(directory: PathLike, current_xcodeproj: Optional[PathLike]) -> bool:
    """True if ``directory`` directly holds a .xcodeproj other than ``current_xcodeproj``"""
    if not current_xcodeproj:
        return False
    current = os.path.abspath(str(current_xcodeproj))
    try:
        entries = os.listdir(str(directory))
    except OSError:
        return False
    for entry in entries:
        if entry.endswith('.xcodeproj') and os.path.abspath(os.path.join(str(directory), entry)) != current:
            return True
    return False


def find_files_recursive(root: PathLike,
                         predicate: Callable[[str], bool],
                         max_depth: int = MAX_SEARCH_DEPTH,
                         skip_dirs: FrozenSet[str] = SKIP_DIRS,
                         current_xcodeproj: Optional[PathLike] = None) -> List[str]:
    """
    Find entries (files or directories) whose name satisfies ``predicate``.

    Entries directly inside ``root`` are at depth 0 and the search stops
    before depth ``max_depth``. Directories named in ``skip_dirs`` are
    ignored entirely; Xcode, app and framework bundles can match but are not
    entered. When ``current_xcodeproj`` is given, directories holding a
    different .xcodeproj are not entered either, so one project's search
    never reaches into a sibling project.

    Args:
        root: Directory to search
        predicate: Called with each entry's base name
        max_depth: Number of directory levels to visit
        skip_dirs: Directory names to ignore
        current_xcodeproj: Project whose siblings should be excluded

    Returns:
        Matching paths ordered shallowest first, then alphabetically
    """
    root = os.path.abspath(str(root))
    if not os.path.isdir(root):
        return []

    matches: List[str] = []

    def on_error(error: OSError) -> None:
        logger.debug(f"Skipping unreadable directory: {error}")

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        depth = path_depth(dirpath, root)
        if depth >= max_depth:
            dirnames[:] = []
            continue

        dirnames[:] = [d for d in dirnames if d not in skip_dirs]

        for name in dirnames + filenames:
            if predicate(name):
                matches.append(os.path.join(dirpath, name))

        dirnames[:] = [
            d for d in dirnames
            if not d.endswith(OPAQUE_BUNDLE_SUFFIXES)
            and not contains_sibling_xcodeproj(os.path.join(dirpath, d), current_xcodeproj)
        ]

    matches.sort(key=lambda p: (path_depth(p, root), p))
    return matches


def shallowest(paths: List[str], root: PathLike) -> Optional[str]:
    if not paths:
        return None
    return min(paths, key=lambda p: (path_depth(p, root), p))
