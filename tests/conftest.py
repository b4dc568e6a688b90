"""Shared test fixtures for PreflightScan test suite."""

import json
import plistlib
import sys
import pytest
from pathlib import Path

# Ensure preflightscan is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from preflightscan.context import ScanContext
from preflightscan.models import Dependency, DependencySource, Finding, Severity, Confidence
from preflightscan.source_usage import SourceFile, strip_comments

APPLICATION_PRODUCT_TYPE = "com.apple.product-type.application"


# =============================================================================
# On-disk project builders
# =============================================================================

def write_plist(path, data, fmt=plistlib.FMT_XML):
    """Write ``data`` as a plist file, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(plistlib.dumps(data, fmt=fmt))
    return path


def write_text(path, content):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def _configuration_lines(object_id, settings):
    lines = [
        f"\t\t{object_id} /* Debug */ = {{",
        "\t\t\tisa = XCBuildConfiguration;",
        "\t\t\tbuildSettings = {",
    ]
    for key, value in settings.items():
        escaped = str(value).replace('"', '\\"')
        lines.append(f"\t\t\t\t{key} = \"{escaped}\";")
    lines.extend(["\t\t\t};", "\t\t\tname = Debug;", "\t\t};"])
    return lines


def _linked_targets_lines(targets):
    """Native targets, their configurations and configuration lists in Xcode's section order."""
    lines = []
    for index, target in enumerate(targets):
        name = target["name"]
        lines.extend([
            f"\t\tT{index:023d} /* {name} */ = {{",
            "\t\t\tisa = PBXNativeTarget;",
            f"\t\t\tbuildConfigurationList = L{index:023d} /* Build configuration list for PBXNativeTarget \"{name}\" */;",
            "\t\t\tbuildPhases = (",
            "\t\t\t);",
            f"\t\t\tname = {name};",
            f"\t\t\tproductName = {name};",
            f"\t\t\tproductType = \"{target.get('product_type', APPLICATION_PRODUCT_TYPE)}\";",
            "\t\t};",
        ])
    for index, target in enumerate(targets):
        lines.extend(_configuration_lines(f"C{index:02d}{0:021d}", target.get("build_settings", {})))
        lines.extend(_configuration_lines(f"C{index:02d}{1:021d}", target.get("build_settings", {})))
    for index, target in enumerate(targets):
        lines.extend([
            f"\t\tL{index:023d} /* Build configuration list for PBXNativeTarget \"{target['name']}\" */ = {{",
            "\t\t\tisa = XCConfigurationList;",
            "\t\t\tbuildConfigurations = (",
            f"\t\t\t\tC{index:02d}{0:021d} /* Debug */,",
            f"\t\t\t\tC{index:02d}{1:021d} /* Release */,",
            "\t\t\t);",
            "\t\t\tdefaultConfigurationName = Release;",
            "\t\t};",
        ])
    return lines


def pbxproj_content(frameworks=(), build_settings=None, product_type=APPLICATION_PRODUCT_TYPE,
                    extra_configurations=(), targets=None):
    """
    Minimal project.pbxproj text in Xcode's layout.

    Without ``targets`` a single unlinked ``App`` target is written followed by
    loose configurations (``extra_configurations`` first). ``targets`` is a list
    of dicts with ``name``, ``product_type`` and ``build_settings``, each written
    with its own configuration list.
    """
    lines = ["// !$*UTF8*$!", "{", "\tarchiveVersion = 1;", "\tobjects = {", ""]
    for index, name in enumerate(frameworks):
        lines.append(
            f"\t\tF{index:023d} /* {name}.framework */ = {{isa = PBXFileReference; "
            f"lastKnownFileType = wrapper.framework; name = {name}.framework; "
            f"path = System/Library/Frameworks/{name}.framework; sourceTree = SDKROOT; }};"
        )
    lines.append("")

    if targets is not None:
        lines.extend(_linked_targets_lines(targets))
    else:
        lines.append("\t\tT00000000000000000000001 /* App */ = {")
        lines.append("\t\t\tisa = PBXNativeTarget;")
        lines.append("\t\t\tname = App;")
        lines.append(f"\t\t\tproductType = \"{product_type}\";")
        lines.append("\t\t};")
        for index, settings in enumerate(list(extra_configurations) + [build_settings or {}]):
            lines.extend(_configuration_lines(f"C{index:023d}", settings))

    lines.extend(["\t};", "\trootObject = R00000000000000000000001;", "}", ""])
    return "\n".join(lines)


def write_project(root, name="App", frameworks=(), build_settings=None,
                  product_type=APPLICATION_PRODUCT_TYPE, info_plist=None, entitlements=None,
                  sources=None, files=None):
    """
    Lay out an Xcode project under ``root``.

    Args:
        root: Directory that will hold ``<name>.xcodeproj``
        name: Project and app folder name
        frameworks: Linked system frameworks
        build_settings: Extra build settings
        product_type: Native target product type
        info_plist: Info.plist contents, written to ``<name>/Info.plist``
        entitlements: Entitlements contents, written to ``<name>/<name>.entitlements``
        sources: Relative path -> source text
        files: Relative path -> arbitrary text (lock files etc.)

    Returns:
        Path to the .xcodeproj bundle
    """
    root = Path(root)
    settings = dict(build_settings or {})

    if info_plist is not None:
        write_plist(root / name / "Info.plist", info_plist)
        settings.setdefault("INFOPLIST_FILE", f"{name}/Info.plist")
    if entitlements is not None:
        write_plist(root / name / f"{name}.entitlements", entitlements)
        settings.setdefault("CODE_SIGN_ENTITLEMENTS", f"{name}/{name}.entitlements")

    xcodeproj = root / f"{name}.xcodeproj"
    write_text(xcodeproj / "project.pbxproj", pbxproj_content(frameworks, settings, product_type))

    for rel, content in (sources or {}).items():
        write_text(root / rel, content)
    for rel, content in (files or {}).items():
        write_text(root / rel, content)
    return xcodeproj


def podfile_lock(*pods):
    """Podfile.lock text for ``(name, version)`` pairs."""
    lines = ["PODS:"]
    lines.extend(f"  - {name} ({version})" for name, version in pods)
    lines.extend(["", "DEPENDENCIES:"])
    lines.extend(f"  - {name}" for name, _ in pods)
    lines.extend(["", "COCOAPODS: 1.15.2", ""])
    return "\n".join(lines)


def package_resolved_v2(*pins):
    """Package.resolved (schema v2) text for ``(identity, version)`` pairs."""
    return json.dumps({
        "pins": [
            {
                "identity": identity,
                "kind": "remoteSourceControl",
                "location": f"https://github.com/example/{identity}.git",
                "state": {"revision": "0" * 40, "version": version},
            }
            for identity, version in pins
        ],
        "version": 2,
    }, indent=2)


# =============================================================================
# In-memory contexts
# =============================================================================

def deps(*names):
    """CocoaPods dependencies with a fixed version."""
    return [Dependency(name, "1.0.0", DependencySource.COCOAPODS) for name in names]


def make_context(info_plist=None, frameworks=(), dependencies=(), entitlements=None,
                 build_settings=None, sources=None, privacy_manifests=(),
                 project_path="/project"):
    """ScanContext built without touching the filesystem."""
    source_files = [
        SourceFile(f"{project_path}/{rel}", strip_comments(content))
        for rel, content in (sources or {}).items()
    ]
    return ScanContext(
        project_path=project_path,
        info_plist=info_plist,
        entitlements=entitlements,
        linked_frameworks=frameworks,
        dependencies=dependencies,
        build_settings=build_settings,
        info_plist_path=f"{project_path}/App/Info.plist",
        source_files=source_files,
        privacy_manifests=privacy_manifests,
    )


def titles(findings):
    return [f.title for f in findings]


@pytest.fixture
def sample_finding():
    """A fully populated sample finding."""
    return Finding(
        rule_id="privacy-001-missing-camera-purpose",
        severity=Severity.CRITICAL,
        confidence=Confidence.HIGH,
        title="Missing Camera Usage Description",
        description="Your app links against camera-related frameworks (AVKit)",
        guideline="5.1.1",
        fix_guidance="Add NSCameraUsageDescription to your Info.plist",
        location="App/Info.plist",
    )


@pytest.fixture
def sample_finding_low():
    """A low severity finding."""
    return Finding(
        rule_id="config-001-ats-exception-without-justification",
        severity=Severity.LOW,
        confidence=Confidence.MEDIUM,
        title="App Transport Security Relaxed for Web Content or Media",
        description="NSAllowsArbitraryLoadsInWebContent is enabled.",
        guideline="1.6",
        fix_guidance="Remove the key",
    )


@pytest.fixture
def catalog_dir(tmp_path):
    """A catalog directory with one valid file and one broken entry."""
    directory = tmp_path / "catalog"
    write_text(directory / "sample.yaml", """
metadata:
  category: privacy

rules:
  - id: sample-001
    name: Sample Rule
    description: A sample rule
    severity: critical
    confidence: high
    guideline: "5.1.1"
    documentation_url: https://example.com/sample
    tags: [sample]

  - id: sample-002
    name: Defaults Rule
    description: Uses default guideline
    severity: bogus
    confidence: low

  - name: No Identifier
    severity: high
""")
    write_text(directory / "other.yaml", """
rules:
  - id: other-001
    name: Other Rule
    description: Overrides category
    category: config
    severity: low
    confidence: medium
""")
    return directory
