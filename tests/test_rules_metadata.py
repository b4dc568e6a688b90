"""Tests for the privacy manifest and orientation rules"""

import pytest
from preflightscan.models import Confidence, Severity
from preflightscan.rules.metadata import MissingPrivacyManifestRule, MissingSupportedOrientationsRule

from conftest import deps, make_context, titles


class TestMissingPrivacyManifestRule:
    @pytest.fixture
    def rule(self):
        return MissingPrivacyManifestRule()

    def test_no_dependencies(self, rule):
        assert rule.evaluate(make_context()) == []

    def test_manifest_present(self, rule):
        context = make_context(dependencies=deps("FirebaseCore"),
                               privacy_manifests=["/project/App/PrivacyInfo.xcprivacy"])
        assert rule.evaluate(context) == []

    def test_listed_sdks_without_manifest(self, rule):
        findings = rule.evaluate(make_context(dependencies=deps("FirebaseCore", "Alamofire")))
        assert len(findings) == 1
        finding = findings[0]
        assert finding.title == "Missing Privacy Manifest for Third-Party SDKs"
        assert finding.severity == Severity.HIGH
        assert finding.location == "PrivacyInfo.xcprivacy"
        assert "Firebase, Alamofire" in finding.description

    def test_unlisted_dependencies_advisory(self, rule):
        findings = rule.evaluate(make_context(dependencies=deps("MyInHouseKit")))
        assert titles(findings) == ["Consider Adding a Privacy Manifest"]
        assert findings[0].severity == Severity.INFO
        assert findings[0].confidence == Confidence.LOW
        assert "1 third-party dependencies" in findings[0].description


class TestMissingSupportedOrientationsRule:
    @pytest.fixture
    def rule(self):
        return MissingSupportedOrientationsRule()

    def test_missing(self, rule):
        findings = rule.evaluate(make_context(info_plist={"CFBundleName": "App"}))
        assert titles(findings) == ["Missing Supported Interface Orientations"]
        assert findings[0].severity == Severity.MEDIUM
        assert findings[0].location == "/project/App/Info.plist"

    @pytest.mark.parametrize("key", ["UISupportedInterfaceOrientations", "UISupportedInterfaceOrientations~ipad"])
    def test_declared(self, rule, key):
        context = make_context(info_plist={key: ["UIInterfaceOrientationPortrait"]})
        assert rule.evaluate(context) == []

    def test_empty_array_counts_as_missing(self, rule):
        context = make_context(info_plist={"UISupportedInterfaceOrientations": []})
        assert len(rule.evaluate(context)) == 1

    def test_generated_orientations(self, rule):
        context = make_context(build_settings={
            "GENERATE_INFOPLIST_FILE": "YES",
            "INFOPLIST_KEY_UISupportedInterfaceOrientations_iPhone":
                "UIInterfaceOrientationPortrait UIInterfaceOrientationLandscapeLeft",
        })
        assert rule.evaluate(context) == []

    def test_extension_skipped(self, rule):
        context = make_context(info_plist={"NSExtension": {"NSExtensionPointIdentifier": "com.apple.share-services"}})
        assert rule.evaluate(context) == []

    def test_framework_target_skipped(self, rule):
        context = make_context(build_settings={"PRODUCT_TYPE": "com.apple.product-type.framework"})
        assert rule.evaluate(context) == []
