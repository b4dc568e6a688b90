"""
Targeted extraction from Xcode ``project.pbxproj`` files.

The pbxproj format is an old-style ASCII plist that Xcode writes in a very
regular layout. Only a handful of values are needed (linked framework names,
one flat build-settings map, the Info.plist and entitlements paths), so these
are pulled out with regular expressions instead of a full grammar. The one
structural walk is from each ``PBXNativeTarget`` through its
``XCConfigurationList`` to its ``XCBuildConfiguration`` objects, which ties
settings to the application target rather than to whichever block comes first.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set, Tuple, Union
import logging

from ..errors import ArtifactParseError
from .plist import parse_plist

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

INFOPLIST_FILE = "INFOPLIST_FILE"
CODE_SIGN_ENTITLEMENTS = "CODE_SIGN_ENTITLEMENTS"
GENERATE_INFOPLIST_FILE = "GENERATE_INFOPLIST_FILE"
PRODUCT_TYPE = "PRODUCT_TYPE"
INFOPLIST_KEY_PREFIX = "INFOPLIST_KEY_"

APPLICATION_PRODUCT_TYPE = "com.apple.product-type.application"

APP_EXTENSION_PRODUCT_TYPES = {
    "com.apple.product-type.app-extension",
    "com.apple.product-type.extensionkit-extension",
}

FRAMEWORK_PRODUCT_TYPES = {
    "com.apple.product-type.framework",
    "com.apple.product-type.framework.static",
    "com.apple.product-type.library.static",
    "com.apple.product-type.library.dynamic",
}

TEST_PRODUCT_TYPES = {
    "com.apple.product-type.bundle.unit-test",
    "com.apple.product-type.bundle.ui-testing",
}

# Settings whose presence marks a test bundle configuration
_TEST_BUNDLE_SETTINGS = ("TEST_HOST", "BUNDLE_LOADER", "TEST_TARGET_NAME")

_SRCROOT_PREFIXES = ("$(SRCROOT)/", "${SRCROOT}/", "$(PROJECT_DIR)/", "${PROJECT_DIR}/")

# Object types walked to tie build configurations to their target
_GRAPH_ISAS = {"PBXNativeTarget", "XCConfigurationList", "XCBuildConfiguration"}

FRAMEWORK_PATTERN = re.compile(r'(\w+)\.framework')

BUILD_SETTINGS_BLOCK_PATTERN = re.compile(
    r'buildSettings\s*=\s*\{(?P<body>.*?)\n\s*\};',
    re.DOTALL,
)

SETTING_PATTERN = re.compile(
    r'^\s*(?P<key>"[^"]+"|[A-Za-z0-9_.\-\[\]=*]+)\s*=\s*'
    r'(?P<value>"(?:[^"\\]|\\.)*"|\((?:[^()"]|"(?:[^"\\]|\\.)*")*\)|[^;\n]*?)\s*;',
    re.MULTILINE,
)

OBJECT_HEADER_PATTERN = re.compile(
    r'(?P<id>[A-Za-z0-9_]+)\s*(?:/\*.*?\*/\s*)?=\s*(?P<open>\{)\s*isa\s*=\s*(?P<isa>\w+)\s*;'
)

OBJECT_FIELD_PATTERNS = {
    'name': re.compile(r'^\s*name\s*=\s*("(?:[^"\\]|\\.)*"|[^;\n]+?)\s*;', re.MULTILINE),
    'productType': re.compile(r'productType\s*=\s*"?([\w.\-]+)"?\s*;'),
    'buildConfigurationList': re.compile(r'buildConfigurationList\s*=\s*([A-Za-z0-9_]+)'),
}

BUILD_CONFIGURATIONS_PATTERN = re.compile(r'buildConfigurations\s*=\s*\((?P<ids>[^)]*)\)')

COMMENT_PATTERN = re.compile(r'/\*.*?\*/', re.DOTALL)

OBJECT_ID_PATTERN = re.compile(r'[A-Za-z0-9_]+')

ARRAY_ITEM_PATTERN = re.compile(r'"(?:[^"\\]|\\.)*"|[^,\s()]+')


@dataclass
class BuildSettingsInfo:
    """Settings pulled from one project.pbxproj"""
    build_settings: Dict[str, str] = field(default_factory=dict)
    info_plist_path: Optional[str] = None
    entitlements_path: Optional[str] = None
    target_name: Optional[str] = None

    @property
    def generates_info_plist(self) -> bool:
        return self.build_settings.get(GENERATE_INFOPLIST_FILE) == "YES"


@dataclass
class NativeTarget:
    """A ``PBXNativeTarget`` with the settings of each of its configurations"""
    name: str
    product_type: Optional[str] = None
    configurations: List[Dict[str, str]] = field(default_factory=list)

    @property
    def is_application(self) -> bool:
        return self.product_type == APPLICATION_PRODUCT_TYPE

    @property
    def is_test_bundle(self) -> bool:
        return self.product_type in TEST_PRODUCT_TYPES


# =============================================================================
# Low-level text extraction
# =============================================================================

def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        value = value[1:-1].replace('\\"', '"').replace('\\\\', '\\')
    return value


def _decode_value(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("("):
        items = [_unquote(item) for item in ARRAY_ITEM_PATTERN.findall(raw[1:-1])]
        return " ".join(item for item in items if item)
    return _unquote(raw)


def parse_settings_block(body: str) -> Dict[str, str]:
    """Tokenize the inside of one ``buildSettings = { ... };`` block"""
    settings: Dict[str, str] = {}
    for match in SETTING_PATTERN.finditer(body):
        key = _unquote(match.group('key'))
        if key not in settings:
            settings[key] = _decode_value(match.group('value'))
    return settings


def find_settings_blocks(content: str) -> List[Dict[str, str]]:
    return [parse_settings_block(m.group('body')) for m in BUILD_SETTINGS_BLOCK_PATTERN.finditer(content)]


def _closing_brace(content: str, start: int) -> int:
    """Index of the brace closing the one at ``start``, skipping quoted text"""
    depth = 0
    in_string = False
    i = start
    while i < len(content):
        ch = content[i]
        if in_string:
            if ch == '\\':
                i += 1
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == '{':
            depth += 1
        elif ch == '}':
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def _graph_objects(content: str) -> Iterator[Tuple[str, str, str]]:
    """Yield ``(object_id, isa, body)`` for targets, configuration lists and configurations"""
    for match in OBJECT_HEADER_PATTERN.finditer(content):
        if match.group('isa') not in _GRAPH_ISAS:
            continue
        end = _closing_brace(content, match.start('open'))
        if end < 0:
            continue
        yield match.group('id'), match.group('isa'), content[match.end():end]


def _field(body: str, name: str) -> Optional[str]:
    match = OBJECT_FIELD_PATTERNS[name].search(body)
    return _unquote(match.group(1)) if match else None


def parse_native_targets(content: str) -> List[NativeTarget]:
    """Native targets in file order, each with its build configurations resolved"""
    configurations: Dict[str, Dict[str, str]] = {}
    configuration_lists: Dict[str, List[str]] = {}
    raw_targets: List[Tuple[str, Optional[str], Optional[str]]] = []

    for object_id, isa, body in _graph_objects(content):
        if isa == "XCBuildConfiguration":
            block = BUILD_SETTINGS_BLOCK_PATTERN.search(body)
            configurations[object_id] = parse_settings_block(block.group('body')) if block else {}
        elif isa == "XCConfigurationList":
            ids = BUILD_CONFIGURATIONS_PATTERN.search(body)
            listed = COMMENT_PATTERN.sub('', ids.group('ids')) if ids else ''
            configuration_lists[object_id] = OBJECT_ID_PATTERN.findall(listed)
        else:
            raw_targets.append((
                _field(body, 'name') or object_id,
                _field(body, 'productType'),
                _field(body, 'buildConfigurationList'),
            ))

    targets = []
    for name, product_type, list_id in raw_targets:
        config_ids = configuration_lists.get(list_id, []) if list_id else []
        targets.append(NativeTarget(
            name=name,
            product_type=product_type,
            configurations=[configurations[c] for c in config_ids if c in configurations],
        ))
    return targets


def select_app_target(targets: List[NativeTarget]) -> Optional[NativeTarget]:
    """The application target; otherwise the first target that is not a test bundle"""
    for target in targets:
        if target.is_application:
            return target
    for target in targets:
        if not target.is_test_bundle:
            return target
    return targets[0] if targets else None


def _looks_like_test_bundle(settings: Dict[str, str]) -> bool:
    if any(key in settings for key in _TEST_BUNDLE_SETTINGS):
        return True
    return "test" in settings.get(INFOPLIST_FILE, "").lower()


def _declares_extension(plist_path: Optional[str]) -> bool:
    if not plist_path:
        return False
    try:
        return "NSExtension" in parse_plist(plist_path)
    except ArtifactParseError:
        return False


def _is_secondary_configuration(settings: Dict[str, str], scope_dir: Optional[PathLike]) -> bool:
    """Whether a configuration belongs to an extension or framework rather than the app"""
    product_type = settings.get(PRODUCT_TYPE)
    if product_type in APP_EXTENSION_PRODUCT_TYPES or product_type in FRAMEWORK_PRODUCT_TYPES:
        return True
    if scope_dir is None or INFOPLIST_FILE not in settings:
        return False
    return _declares_extension(resolve_setting_path(settings[INFOPLIST_FILE], scope_dir))


def _preferred_configuration(blocks: List[Dict[str, str]],
                             scope_dir: Optional[PathLike] = None) -> Optional[Dict[str, str]]:
    """First app configuration that sets up an Info.plist, else the first block.

    With ``scope_dir``, configurations whose Info.plist declares ``NSExtension``
    rank after the rest.
    """
    if not blocks:
        return None
    plist_blocks = [b for b in blocks if INFOPLIST_FILE in b or GENERATE_INFOPLIST_FILE in b]
    app_blocks = [b for b in plist_blocks if not _looks_like_test_bundle(b)]
    if app_blocks and scope_dir is not None:
        app_blocks.sort(key=lambda b: _is_secondary_configuration(b, scope_dir))

    if app_blocks:
        return app_blocks[0]
    if plist_blocks:
        return plist_blocks[0]
    return blocks[0]


def _select_settings(content: str,
                     scope_dir: Optional[PathLike] = None) -> Tuple[Dict[str, str], Optional[NativeTarget]]:
    target = select_app_target(parse_native_targets(content))
    if target is not None and target.configurations:
        chosen = _preferred_configuration(target.configurations)
    else:
        chosen = _preferred_configuration(find_settings_blocks(content), scope_dir)
    if chosen is None:
        return {}, target

    settings = dict(chosen)
    if PRODUCT_TYPE not in settings and target is not None and target.product_type:
        settings[PRODUCT_TYPE] = target.product_type
    return settings, target


def parse_build_settings_content(content: str, scope_dir: Optional[PathLike] = None) -> Dict[str, str]:
    """Pick one build configuration and return its settings.

    Configurations of the application target are used when the project's
    targets can be tied to their configuration lists; without an application
    target the first target that is not a test bundle stands in. Within those
    configurations the first one that sets up an Info.plist (file based or
    generated) wins. When no configuration is tied to a target, every
    ``buildSettings`` block is a candidate and test bundles, extension and
    framework configurations rank last. ``PRODUCT_TYPE`` is filled in from
    the selected target when the configuration does not set one.
    """
    return _select_settings(content, scope_dir)[0]


def parse_frameworks_content(content: str) -> Set[str]:
    """Names of every ``<Name>.framework`` referenced in the project"""
    return set(FRAMEWORK_PATTERN.findall(content))


def generated_plist_keys(build_settings: Dict[str, str]) -> Dict[str, str]:
    """Map ``INFOPLIST_KEY_*`` settings to the Info.plist keys they generate.

    Only meaningful when ``GENERATE_INFOPLIST_FILE = YES``; otherwise Xcode
    ignores them and so does this function.
    """
    if build_settings.get(GENERATE_INFOPLIST_FILE) != "YES":
        return {}
    return {
        key[len(INFOPLIST_KEY_PREFIX):]: value
        for key, value in build_settings.items()
        if key.startswith(INFOPLIST_KEY_PREFIX) and len(key) > len(INFOPLIST_KEY_PREFIX)
    }


# =============================================================================
# Path resolution
# =============================================================================

def _setting_occurrences(content: str, name: str) -> List[str]:
    pattern = re.compile(
        r'^\s*"?' + re.escape(name) + r'"?\s*=\s*("(?:[^"\\]|\\.)*"|[^;\n]+?)\s*;',
        re.MULTILINE,
    )
    seen: List[str] = []
    for match in pattern.finditer(content):
        value = _unquote(match.group(1))
        if value and value not in seen:
            seen.append(value)
    return seen


def resolve_setting_path(raw: str, scope_dir: PathLike) -> Optional[str]:
    """Resolve a build-setting path against the project scope directory.

    Returns None when the value still holds unexpanded variables, points
    outside ``scope_dir`` or names a file that does not exist.
    """
    value = _unquote(raw)
    for prefix in _SRCROOT_PREFIXES:
        if value.startswith(prefix):
            value = value[len(prefix):]
            break

    if not value or "$(" in value or "${" in value:
        return None

    scope = os.path.normpath(os.path.abspath(str(scope_dir)))
    candidate = value if os.path.isabs(value) else os.path.join(scope, value)
    candidate = os.path.normpath(candidate)

    if candidate != scope and not candidate.startswith(scope + os.sep):
        logger.debug(f"Ignoring build setting path outside project scope: {value}")
        return None
    if not os.path.isfile(candidate):
        logger.debug(f"Build setting path does not exist: {candidate}")
        return None
    return candidate


def resolve_setting_paths(content: str, name: str, scope_dir: PathLike) -> Optional[str]:
    """First existing path among every value of ``name``.

    App paths come first, then files declaring ``NSExtension``, then paths
    that look like test bundles.
    """
    ranked = []
    for value in _setting_occurrences(content, name):
        resolved = resolve_setting_path(value, scope_dir)
        if not resolved:
            continue
        if "test" in value.lower():
            rank = 2
        elif _declares_extension(resolved):
            rank = 1
        else:
            rank = 0
        ranked.append((rank, resolved))
    if not ranked:
        return None
    return min(ranked, key=lambda item: item[0])[1]


def _first_resolved(configurations: List[Dict[str, str]], name: str, scope_dir: PathLike) -> Optional[str]:
    for settings in configurations:
        if settings.get(name):
            resolved = resolve_setting_path(settings[name], scope_dir)
            if resolved:
                return resolved
    return None


# =============================================================================
# File-level entry points
# =============================================================================

def read_pbxproj(path: PathLike) -> str:
    path = Path(path)
    try:
        return path.read_text(encoding='utf-8', errors='replace')
    except OSError as e:
        raise ArtifactParseError(str(path), e.strerror or str(e)) from e


def parse_frameworks(path: PathLike) -> Set[str]:
    return parse_frameworks_content(read_pbxproj(path))


def extract_build_settings(pbxproj_path: PathLike, scope_dir: PathLike) -> BuildSettingsInfo:
    """Build settings plus explicit Info.plist/entitlements paths for a project.

    When the selected target's configurations are known, paths come only
    from that target; otherwise every value in the file is a candidate.
    """
    content = read_pbxproj(pbxproj_path)
    settings, target = _select_settings(content, scope_dir)

    if target is not None and target.configurations:
        configurations = [settings] + target.configurations
        info_plist_path = _first_resolved(configurations, INFOPLIST_FILE, scope_dir)
        entitlements_path = _first_resolved(configurations, CODE_SIGN_ENTITLEMENTS, scope_dir)
    else:
        info_plist_path = (_first_resolved([settings], INFOPLIST_FILE, scope_dir)
                           or resolve_setting_paths(content, INFOPLIST_FILE, scope_dir))
        entitlements_path = (_first_resolved([settings], CODE_SIGN_ENTITLEMENTS, scope_dir)
                             or resolve_setting_paths(content, CODE_SIGN_ENTITLEMENTS, scope_dir))

    if target is not None:
        logger.debug(f"Using target {target.name} ({target.product_type}) from {pbxproj_path}")

    return BuildSettingsInfo(
        build_settings=settings,
        info_plist_path=info_plist_path,
        entitlements_path=entitlements_path,
        target_name=target.name if target is not None else None,
    )
