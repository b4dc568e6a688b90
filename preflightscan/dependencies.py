"""
Dependency loader - reads lock files that belong to the located project.

When a single project has been identified only a fixed set of candidate
locations next to it is read (project directory, its parent, and the SPM
resolution files Xcode keeps inside the project and workspace bundles), so
scanning one app in a monorepo never ingests a sibling app's lock file.
A bounded recursive search is used only when no single project could be
identified.
"""

import os
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union
import logging

from .errors import ArtifactParseError
from .filesystem import find_files_recursive
from .models import Dependency, ProjectDiscovery
from .parsers.lockfiles import (
    CARTFILE_RESOLVED,
    PACKAGE_RESOLVED,
    PODFILE_LOCK,
    dedupe,
    parse_cartfile_resolved,
    parse_package_resolved,
    parse_podfile_lock,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

SWIFTPM_SHARED_DATA = os.path.join("xcshareddata", "swiftpm", PACKAGE_RESOLVED)


# =============================================================================
# SDK detection tables
# =============================================================================

# (substring pattern, display name); matched case-insensitively against names
TRACKING_SDK_PATTERNS: Sequence[Tuple[str, str]] = (
    ("FBSDKCoreKit", "Facebook SDK"),
    ("FacebookCore", "Facebook SDK"),
    ("FBAudienceNetwork", "Facebook Audience Network"),
    ("GoogleAnalytics", "Google Analytics"),
    ("FirebaseAnalytics", "Firebase Analytics"),
    ("Firebase/Analytics", "Firebase Analytics"),
    ("Google-Mobile-Ads-SDK", "Google Mobile Ads"),
    ("GoogleMobileAds", "Google Mobile Ads"),
    ("Adjust", "Adjust"),
    ("AppsFlyer", "AppsFlyer"),
    ("AppsFlyerFramework", "AppsFlyer"),
    ("Branch", "Branch.io"),
    ("Amplitude", "Amplitude"),
    ("amplitude-ios", "Amplitude"),
    ("Mixpanel", "Mixpanel"),
    ("Segment", "Segment"),
    ("Singular", "Singular"),
    ("Kochava", "Kochava"),
    ("Tenjin", "Tenjin"),
)

SOCIAL_LOGIN_SDK_PATTERNS: Sequence[Tuple[str, str]] = (
    ("GoogleSignIn", "Google Sign-In"),
    ("GIDSignIn", "Google Sign-In"),
    ("FBSDKLoginKit", "Facebook Login"),
    ("FacebookLogin", "Facebook Login"),
    ("TwitterKit", "Twitter Login"),
    ("FirebaseAuth", "Firebase Auth"),
    ("Firebase/Auth", "Firebase Auth"),
    ("Auth0", "Auth0"),
    ("LoginWithAmazon", "Login with Amazon"),
    ("linkedin-sdk", "LinkedIn Login"),
)

# SDKs that may be used for email/password only
AMBIGUOUS_LOGIN_SDKS = frozenset({"Firebase Auth", "Auth0"})

# SDKs on Apple's list of commonly used SDKs that must ship a privacy manifest
PRIVACY_MANIFEST_SDK_PATTERNS: Sequence[Tuple[str, str]] = (
    ("Firebase", "Firebase"),
    ("FBSDKCoreKit", "Facebook SDK"),
    ("FacebookCore", "Facebook SDK"),
    ("FBAudienceNetwork", "Facebook Audience Network"),
    ("Google-Mobile-Ads-SDK", "Google Mobile Ads"),
    ("GoogleMobileAds", "Google Mobile Ads"),
    ("GoogleSignIn", "Google Sign-In"),
    ("GoogleUtilities", "GoogleUtilities"),
    ("GoogleDataTransport", "GoogleDataTransport"),
    ("Alamofire", "Alamofire"),
    ("AFNetworking", "AFNetworking"),
    ("SDWebImage", "SDWebImage"),
    ("Kingfisher", "Kingfisher"),
    ("Amplitude", "Amplitude"),
    ("Mixpanel", "Mixpanel"),
    ("AppsFlyer", "AppsFlyer"),
    ("Adjust", "Adjust"),
    ("Branch", "Branch.io"),
    ("OneSignal", "OneSignal"),
    ("Realm", "Realm"),
    ("Lottie", "Lottie"),
    ("Sentry", "Sentry"),
    ("Crashlytics", "Crashlytics"),
    ("RxSwift", "RxSwift"),
    ("SnapKit", "SnapKit"),
    ("SwiftyJSON", "SwiftyJSON"),
)


def _detect(dependencies: Sequence[Dependency], patterns: Sequence[Tuple[str, str]]) -> List[str]:
    names = [dep.name.lower() for dep in dependencies]
    detected: List[str] = []
    for pattern, display in patterns:
        needle = pattern.lower()
        if display not in detected and any(needle in name for name in names):
            detected.append(display)
    return detected


def detect_tracking_sdks(dependencies: Sequence[Dependency]) -> List[str]:
    """Display names of tracking/attribution SDKs, in table order"""
    return _detect(dependencies, TRACKING_SDK_PATTERNS)


def detect_social_login_sdks(dependencies: Sequence[Dependency]) -> List[str]:
    """Display names of social login SDKs, in table order"""
    return _detect(dependencies, SOCIAL_LOGIN_SDK_PATTERNS)


def detect_privacy_manifest_sdks(dependencies: Sequence[Dependency]) -> List[str]:
    return _detect(dependencies, PRIVACY_MANIFEST_SDK_PATTERNS)


# =============================================================================
# Loading
# =============================================================================

def _read_lock(path: str, parser: Callable[[str], List[Dependency]]) -> List[Dependency]:
    try:
        deps = parser(path)
    except ArtifactParseError as e:
        logger.warning(e.message)
        return []
    logger.debug(f"Read {len(deps)} dependencies from {path}")
    return deps


def _parser_for(path: str) -> Callable[[str], List[Dependency]]:
    name = os.path.basename(path)
    if name == PODFILE_LOCK:
        return parse_podfile_lock
    if name == CARTFILE_RESOLVED:
        return parse_cartfile_resolved
    return parse_package_resolved


def _load_files(paths: Sequence[str]) -> List[Dependency]:
    collected: List[Dependency] = []
    seen_files = set()
    for path in paths:
        real = os.path.abspath(path)
        if real in seen_files or not os.path.isfile(real):
            continue
        seen_files.add(real)
        collected.extend(_read_lock(real, _parser_for(real)))
    return dedupe(collected)


def _normalize_xcodeproj(path: str) -> str:
    if os.path.basename(path) == "project.pbxproj":
        return os.path.dirname(path)
    return path.rstrip(os.sep)


def candidate_lock_files(xcodeproj_path: PathLike) -> List[str]:
    """The fixed lock file locations read for one project, in read order"""
    xcodeproj = _normalize_xcodeproj(os.path.abspath(str(xcodeproj_path)))
    project_dir = os.path.dirname(xcodeproj)
    parent_dir = os.path.dirname(project_dir)

    candidates = [
        os.path.join(project_dir, PODFILE_LOCK),
        os.path.join(parent_dir, PODFILE_LOCK),
        os.path.join(xcodeproj, "project.xcworkspace", SWIFTPM_SHARED_DATA),
        os.path.join(project_dir, PACKAGE_RESOLVED),
        os.path.join(project_dir, ".swiftpm", PACKAGE_RESOLVED),
        os.path.join(parent_dir, PACKAGE_RESOLVED),
        os.path.join(parent_dir, ".swiftpm", PACKAGE_RESOLVED),
        os.path.join(project_dir, CARTFILE_RESOLVED),
    ]

    name = os.path.basename(xcodeproj)
    if name.endswith(".xcodeproj"):
        workspace = os.path.join(project_dir, name[: -len(".xcodeproj")] + ".xcworkspace")
        candidates.append(os.path.join(workspace, SWIFTPM_SHARED_DATA))

    return candidates


def load_dependencies_for_project(xcodeproj_path: PathLike) -> List[Dependency]:
    """Dependencies of one .xcodeproj, read only from its fixed candidate locations"""
    return _load_files(candidate_lock_files(xcodeproj_path))


def _single_xcodeproj(directory: str) -> Optional[str]:
    try:
        projects = [e for e in os.listdir(directory) if e.endswith(".xcodeproj")]
    except OSError:
        return None
    return os.path.join(directory, projects[0]) if len(projects) == 1 else None


def load_all_dependencies(project_dir: PathLike) -> List[Dependency]:
    """
    Load dependencies for a directory or .xcodeproj.

    A .xcodeproj, or a directory holding exactly one, is loaded with the
    scoped candidate list. Any other directory falls back to a bounded
    recursive search for lock files, including the SPM files nested in
    project and workspace bundles.
    """
    directory = os.path.abspath(str(project_dir))

    if directory.endswith(".xcodeproj"):
        return load_dependencies_for_project(directory)

    single = _single_xcodeproj(directory)
    if single:
        return load_dependencies_for_project(single)

    lock_names = {PODFILE_LOCK, PACKAGE_RESOLVED, CARTFILE_RESOLVED}
    files = find_files_recursive(directory, lambda name: name in lock_names)

    for explicit in (os.path.join(directory, PACKAGE_RESOLVED),
                     os.path.join(directory, ".swiftpm", PACKAGE_RESOLVED)):
        if explicit not in files:
            files.append(explicit)

    bundles = find_files_recursive(directory, lambda name: name.endswith((".xcodeproj", ".xcworkspace")))
    for bundle in bundles:
        if bundle.endswith(".xcodeproj"):
            files.append(os.path.join(bundle, "project.xcworkspace", SWIFTPM_SHARED_DATA))
        else:
            files.append(os.path.join(bundle, SWIFTPM_SHARED_DATA))

    return _load_files(files)


def load_dependencies(discovery: ProjectDiscovery) -> List[Dependency]:
    """Dependencies for a discovered project, scoped when a project was selected"""
    if discovery.xcodeproj_path:
        return load_dependencies_for_project(discovery.xcodeproj_path)
    return load_all_dependencies(discovery.project_scope_dir)
