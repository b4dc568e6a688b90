"""Tests for preflightscan.parsers.pbxproj"""

import pytest
from preflightscan.errors import ArtifactParseError
from preflightscan.parsers.pbxproj import (
    extract_build_settings, generated_plist_keys, parse_build_settings_content,
    parse_frameworks, parse_frameworks_content, parse_native_targets, parse_settings_block,
    resolve_setting_path, resolve_setting_paths, select_app_target,
)

from conftest import pbxproj_content, write_plist, write_text


class TestFrameworks:
    def test_frameworks_from_file_references(self):
        content = pbxproj_content(frameworks=["AVFoundation", "CoreLocation", "UIKit"])
        assert {"AVFoundation", "CoreLocation", "UIKit"} <= parse_frameworks_content(content)

    def test_no_frameworks(self):
        assert parse_frameworks_content("// !$*UTF8*$!\n{\n}\n") == set()

    def test_parse_frameworks_reads_file(self, tmp_path):
        path = write_text(tmp_path / "project.pbxproj", pbxproj_content(frameworks=["Photos"]))
        assert "Photos" in parse_frameworks(path)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ArtifactParseError):
            parse_frameworks(tmp_path / "project.pbxproj")


class TestSettingsBlock:
    def test_quoted_unquoted_and_arrays(self):
        body = """
				CODE_SIGN_STYLE = Automatic;
				INFOPLIST_FILE = "App/Info.plist";
				"OTHER_LDFLAGS[sdk=iphoneos*]" = "-ObjC";
				LD_RUNPATH_SEARCH_PATHS = (
					"$(inherited)",
					"@executable_path/Frameworks",
				);
"""
        settings = parse_settings_block(body)
        assert settings["CODE_SIGN_STYLE"] == "Automatic"
        assert settings["INFOPLIST_FILE"] == "App/Info.plist"
        assert settings["OTHER_LDFLAGS[sdk=iphoneos*]"] == "-ObjC"
        assert settings["LD_RUNPATH_SEARCH_PATHS"] == "$(inherited) @executable_path/Frameworks"

    def test_escaped_quotes(self):
        settings = parse_settings_block('\t\tINFOPLIST_KEY_NSCameraUsageDescription = "Scan \\"receipts\\"";\n')
        assert settings["INFOPLIST_KEY_NSCameraUsageDescription"] == 'Scan "receipts"'


class TestBuildSettingsSelection:
    def test_first_app_block_wins(self):
        content = pbxproj_content(
            build_settings={"INFOPLIST_FILE": "App/Info.plist", "SWIFT_VERSION": "5.0"},
            extra_configurations=[
                {"SDKROOT": "iphoneos"},
                {"INFOPLIST_FILE": "AppTests/Info.plist", "TEST_HOST": "$(BUILT_PRODUCTS_DIR)/App.app/App"},
            ],
        )
        settings = parse_build_settings_content(content)
        assert settings["INFOPLIST_FILE"] == "App/Info.plist"
        assert settings["SWIFT_VERSION"] == "5.0"

    def test_generated_plist_block_counts(self):
        content = pbxproj_content(
            build_settings={"GENERATE_INFOPLIST_FILE": "YES"},
            extra_configurations=[{"SDKROOT": "iphoneos"}],
        )
        assert parse_build_settings_content(content)["GENERATE_INFOPLIST_FILE"] == "YES"

    def test_falls_back_to_first_block(self):
        content = pbxproj_content(build_settings={"SWIFT_VERSION": "5.0"},
                                  extra_configurations=[{"SDKROOT": "iphoneos"}])
        assert parse_build_settings_content(content) == {
            "SDKROOT": "iphoneos",
            "PRODUCT_TYPE": "com.apple.product-type.application",
        }

    def test_product_type_from_target(self):
        content = pbxproj_content(build_settings={"INFOPLIST_FILE": "Ext/Info.plist"},
                                  product_type="com.apple.product-type.app-extension")
        assert parse_build_settings_content(content)["PRODUCT_TYPE"] == "com.apple.product-type.app-extension"

    def test_empty_content(self):
        assert parse_build_settings_content("") == {}


class TestGeneratedPlistKeys:
    def test_keys_mapped_when_generating(self):
        settings = {
            "GENERATE_INFOPLIST_FILE": "YES",
            "INFOPLIST_KEY_NSCameraUsageDescription": "Scan receipts for expenses",
            "INFOPLIST_KEY_": "ignored",
            "SWIFT_VERSION": "5.0",
        }
        assert generated_plist_keys(settings) == {"NSCameraUsageDescription": "Scan receipts for expenses"}

    def test_ignored_without_generation(self):
        settings = {"INFOPLIST_KEY_NSCameraUsageDescription": "Scan receipts for expenses"}
        assert generated_plist_keys(settings) == {}


class TestPathResolution:
    def test_relative_path(self, tmp_path):
        plist = write_plist(tmp_path / "App" / "Info.plist", {})
        assert resolve_setting_path("App/Info.plist", tmp_path) == str(plist)

    def test_srcroot_prefix(self, tmp_path):
        plist = write_plist(tmp_path / "App" / "Info.plist", {})
        assert resolve_setting_path("$(SRCROOT)/App/Info.plist", tmp_path) == str(plist)

    def test_unexpanded_variable(self, tmp_path):
        assert resolve_setting_path("$(TARGET_NAME)/Info.plist", tmp_path) is None

    def test_outside_scope_rejected(self, tmp_path):
        scope = tmp_path / "project"
        scope.mkdir()
        write_plist(tmp_path / "Info.plist", {})
        assert resolve_setting_path("../Info.plist", scope) is None

    def test_nonexistent(self, tmp_path):
        assert resolve_setting_path("App/Info.plist", tmp_path) is None

    def test_extract_build_settings(self, tmp_path):
        write_plist(tmp_path / "App" / "Info.plist", {})
        write_plist(tmp_path / "App" / "App.entitlements", {})
        pbxproj = write_text(tmp_path / "App.xcodeproj" / "project.pbxproj", pbxproj_content(
            build_settings={
                "INFOPLIST_FILE": "App/Info.plist",
                "CODE_SIGN_ENTITLEMENTS": "App/App.entitlements",
            },
            extra_configurations=[{"INFOPLIST_FILE": "AppTests/Info.plist", "TEST_HOST": "x"}],
        ))
        info = extract_build_settings(pbxproj, tmp_path)
        assert info.info_plist_path == str(tmp_path / "App" / "Info.plist")
        assert info.entitlements_path == str(tmp_path / "App" / "App.entitlements")
        assert not info.generates_info_plist


FRAMEWORK = "com.apple.product-type.framework"
EXTENSION = "com.apple.product-type.app-extension"
APPLICATION = "com.apple.product-type.application"
UNIT_TEST = "com.apple.product-type.bundle.unit-test"

WIDGET_PLIST = {"NSExtension": {"NSExtensionPointIdentifier": "com.apple.widgetkit-extension"}}


def multi_target_content(app_settings=None):
    """Framework and widget targets listed ahead of the app target"""
    return pbxproj_content(targets=[
        {"name": "SharedKit", "product_type": FRAMEWORK,
         "build_settings": {"INFOPLIST_FILE": "SharedKit/Info.plist"}},
        {"name": "Widget", "product_type": EXTENSION,
         "build_settings": {"INFOPLIST_FILE": "Widget/Info.plist",
                            "CODE_SIGN_ENTITLEMENTS": "Widget/Widget.entitlements"}},
        {"name": "App", "product_type": APPLICATION,
         "build_settings": app_settings if app_settings is not None else {"INFOPLIST_FILE": "App/Info.plist"}},
    ])


class TestNativeTargets:
    def test_targets_linked_to_configurations(self):
        targets = parse_native_targets(multi_target_content())
        assert [t.name for t in targets] == ["SharedKit", "Widget", "App"]
        assert [t.product_type for t in targets] == [FRAMEWORK, EXTENSION, APPLICATION]
        assert len(targets[2].configurations) == 2
        assert targets[2].configurations[0]["INFOPLIST_FILE"] == "App/Info.plist"

    def test_application_target_selected_regardless_of_order(self):
        target = select_app_target(parse_native_targets(multi_target_content()))
        assert target.name == "App"

    def test_without_application_skips_test_bundles(self):
        content = pbxproj_content(targets=[
            {"name": "KitTests", "product_type": UNIT_TEST, "build_settings": {"TEST_HOST": "x"}},
            {"name": "Kit", "product_type": FRAMEWORK, "build_settings": {}},
        ])
        assert select_app_target(parse_native_targets(content)).name == "Kit"

    def test_no_targets(self):
        assert select_app_target(parse_native_targets("")) is None


class TestMultiTargetSelection:
    def test_application_settings_and_product_type(self):
        settings = parse_build_settings_content(multi_target_content(
            {"GENERATE_INFOPLIST_FILE": "YES", "INFOPLIST_KEY_UILaunchScreen_Generation": "YES"},
        ))
        assert settings["PRODUCT_TYPE"] == APPLICATION
        assert settings["GENERATE_INFOPLIST_FILE"] == "YES"
        assert "INFOPLIST_FILE" not in settings

    def test_paths_come_from_application_target(self, tmp_path):
        write_plist(tmp_path / "SharedKit" / "Info.plist", {})
        write_plist(tmp_path / "Widget" / "Info.plist", WIDGET_PLIST)
        write_plist(tmp_path / "Widget" / "Widget.entitlements", {})
        write_plist(tmp_path / "App" / "Info.plist", {"CFBundleName": "App"})
        pbxproj = write_text(tmp_path / "App.xcodeproj" / "project.pbxproj", multi_target_content())

        info = extract_build_settings(pbxproj, tmp_path)
        assert info.target_name == "App"
        assert info.info_plist_path == str(tmp_path / "App" / "Info.plist")
        assert info.entitlements_path is None
        assert info.build_settings["PRODUCT_TYPE"] == APPLICATION

    def test_extension_configuration_listed_first_loses(self, tmp_path):
        write_plist(tmp_path / "Widget" / "Info.plist", WIDGET_PLIST)
        write_plist(tmp_path / "App" / "Info.plist", {"CFBundleName": "App"})
        pbxproj = write_text(tmp_path / "App.xcodeproj" / "project.pbxproj", pbxproj_content(
            build_settings={"INFOPLIST_FILE": "App/Info.plist", "SWIFT_VERSION": "5.0"},
            extra_configurations=[{"INFOPLIST_FILE": "Widget/Info.plist"}],
        ))
        info = extract_build_settings(pbxproj, tmp_path)
        assert info.info_plist_path == str(tmp_path / "App" / "Info.plist")
        assert info.build_settings["INFOPLIST_FILE"] == "App/Info.plist"
        assert info.build_settings["SWIFT_VERSION"] == "5.0"

    def test_extension_plists_ranked_after_app(self, tmp_path):
        write_plist(tmp_path / "Widget" / "Info.plist", WIDGET_PLIST)
        write_plist(tmp_path / "App" / "Info.plist", {})
        content = pbxproj_content(
            build_settings={"INFOPLIST_FILE": "App/Info.plist"},
            extra_configurations=[{"INFOPLIST_FILE": "Widget/Info.plist"}],
        )
        assert resolve_setting_paths(content, "INFOPLIST_FILE", tmp_path) == str(tmp_path / "App" / "Info.plist")

    def test_only_extension_plist_still_resolves(self, tmp_path):
        write_plist(tmp_path / "Widget" / "Info.plist", WIDGET_PLIST)
        content = pbxproj_content(build_settings={"INFOPLIST_FILE": "Widget/Info.plist"})
        assert resolve_setting_paths(content, "INFOPLIST_FILE", tmp_path) == str(tmp_path / "Widget" / "Info.plist")
