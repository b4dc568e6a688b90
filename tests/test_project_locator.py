"""Tests for preflightscan.project_locator"""

import pytest
from preflightscan.errors import ProjectNotFoundError, UnsupportedInputError
from preflightscan.project_locator import discover_project

from conftest import pbxproj_content, write_plist, write_project, write_text

WORKSPACE_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<Workspace version = "1.0">
{refs}
</Workspace>
"""


def write_workspace(root, *locations, name="App.xcworkspace"):
    refs = "\n".join(f'   <FileRef location = "{loc}"></FileRef>' for loc in locations)
    write_text(root / name / "contents.xcworkspacedata", WORKSPACE_TEMPLATE.format(refs=refs))
    return root / name


class TestInputValidation:
    def test_missing_path(self, tmp_path):
        with pytest.raises(ProjectNotFoundError) as excinfo:
            discover_project(tmp_path / "nowhere")
        assert excinfo.value.path.endswith("nowhere")

    def test_ipa_rejected(self, tmp_path):
        ipa = write_text(tmp_path / "App.ipa", "PK")
        with pytest.raises(UnsupportedInputError) as excinfo:
            discover_project(ipa)
        assert "IPA scanning is not yet supported" in str(excinfo.value)

    def test_empty_directory(self, tmp_path):
        discovery = discover_project(tmp_path)
        assert discovery.project_scope_dir == str(tmp_path)
        assert discovery.pbxproj_path is None
        assert discovery.info_plist_path is None
        assert discovery.entitlements_path is None


class TestDirectoryInput:
    def test_build_settings_beat_decoy_plist(self, tmp_path):
        write_project(tmp_path, info_plist={"CFBundleName": "App"}, entitlements={})
        write_plist(tmp_path / "Info.plist", {"CFBundleName": "Decoy"})
        write_plist(tmp_path / "Decoy.entitlements", {})

        discovery = discover_project(tmp_path)
        assert discovery.project_scope_dir == str(tmp_path)
        assert discovery.pbxproj_path == str(tmp_path / "App.xcodeproj" / "project.pbxproj")
        assert discovery.info_plist_path == str(tmp_path / "App" / "Info.plist")
        assert discovery.entitlements_path == str(tmp_path / "App" / "App.entitlements")
        assert not discovery.is_workspace

    def test_widget_configuration_listed_first(self, tmp_path):
        write_plist(tmp_path / "Widget" / "Info.plist", {
            "NSExtension": {"NSExtensionPointIdentifier": "com.apple.widgetkit-extension"},
        })
        write_plist(tmp_path / "App" / "Info.plist", {"CFBundleName": "App"})
        write_text(tmp_path / "App.xcodeproj" / "project.pbxproj", pbxproj_content(
            build_settings={"INFOPLIST_FILE": "App/Info.plist"},
            extra_configurations=[{"INFOPLIST_FILE": "Widget/Info.plist"}],
        ))
        assert discover_project(tmp_path).info_plist_path == str(tmp_path / "App" / "Info.plist")

    def test_root_plist_beats_nested_without_build_settings(self, tmp_path):
        write_project(tmp_path)
        write_plist(tmp_path / "App" / "Info.plist", {})
        write_plist(tmp_path / "Info.plist", {})
        assert discover_project(tmp_path).info_plist_path == str(tmp_path / "Info.plist")

    def test_search_skips_sibling_projects(self, tmp_path):
        write_project(tmp_path)
        (tmp_path / "Aaa" / "Aaa.xcodeproj").mkdir(parents=True)
        write_plist(tmp_path / "Aaa" / "Info.plist", {})
        write_plist(tmp_path / "App" / "Info.plist", {})
        assert discover_project(tmp_path).info_plist_path == str(tmp_path / "App" / "Info.plist")

    def test_search_skips_pods(self, tmp_path):
        write_project(tmp_path)
        write_plist(tmp_path / "Pods" / "Info.plist", {})
        assert discover_project(tmp_path).info_plist_path is None

    def test_nested_project_found(self, tmp_path):
        write_project(tmp_path / "ios", info_plist={})
        discovery = discover_project(tmp_path)
        assert discovery.project_path == str(tmp_path)
        assert discovery.project_scope_dir == str(tmp_path / "ios")
        assert discovery.info_plist_path == str(tmp_path / "ios" / "App" / "Info.plist")


class TestBundleInput:
    def test_xcodeproj_input(self, tmp_path):
        xcodeproj = write_project(tmp_path, info_plist={})
        discovery = discover_project(xcodeproj)
        assert discovery.project_path == str(tmp_path)
        assert discovery.project_scope_dir == str(tmp_path)
        assert discovery.xcodeproj_path == str(xcodeproj)

    def test_monorepo_scope(self, tmp_path):
        write_project(tmp_path / "AppA", info_plist={"CFBundleName": "A"})
        write_project(tmp_path / "AppB", info_plist={"CFBundleName": "B"})
        discovery = discover_project(tmp_path / "AppB" / "App.xcodeproj")
        assert discovery.project_scope_dir == str(tmp_path / "AppB")
        assert discovery.info_plist_path == str(tmp_path / "AppB" / "App" / "Info.plist")


class TestWorkspaceInput:
    def test_main_project_preferred_over_pods(self, tmp_path):
        write_project(tmp_path, info_plist={})
        write_text(tmp_path / "Pods" / "Pods.xcodeproj" / "project.pbxproj", "{}")
        workspace = write_workspace(tmp_path, "group:Pods/Pods.xcodeproj", "group:App.xcodeproj")

        discovery = discover_project(workspace)
        assert discovery.is_workspace
        assert discovery.xcodeproj_path == str(tmp_path / "App.xcodeproj")
        assert [ref.project_path for ref in discovery.workspace_projects] == [
            "Pods/Pods.xcodeproj", "App.xcodeproj",
        ]

    def test_fallback_search_when_refs_missing(self, tmp_path):
        write_project(tmp_path, info_plist={})
        workspace = write_workspace(tmp_path, "group:Missing.xcodeproj")
        discovery = discover_project(workspace)
        assert discovery.xcodeproj_path == str(tmp_path / "App.xcodeproj")

    def test_directory_with_workspace_and_several_projects(self, tmp_path):
        write_project(tmp_path, name="App", info_plist={})
        write_project(tmp_path, name="Widget")
        write_workspace(tmp_path, "group:App.xcodeproj", "group:Widget.xcodeproj")
        discovery = discover_project(tmp_path)
        assert discovery.is_workspace
        assert discovery.xcodeproj_path == str(tmp_path / "App.xcodeproj")
