"""Tests for the Sign in with Apple rule"""

import pytest
from preflightscan.models import Confidence, Severity
from preflightscan.rules.auth import ThirdPartyLoginNoSIWARule

from conftest import deps, make_context, titles

SIWA = {"com.apple.developer.applesignin": ["Default"]}


@pytest.fixture
def rule():
    return ThirdPartyLoginNoSIWARule()


class TestThirdPartyLoginNoSIWA:
    def test_no_login_sdks(self, rule):
        assert rule.evaluate(make_context(dependencies=deps("Alamofire"))) == []

    def test_definitive_sdk_without_siwa(self, rule):
        findings = rule.evaluate(make_context(dependencies=deps("GoogleSignIn", "FBSDKLoginKit")))
        assert len(findings) == 1
        finding = findings[0]
        assert finding.title == "Third-Party Login Without Sign in with Apple"
        assert finding.severity == Severity.CRITICAL
        assert finding.confidence == Confidence.HIGH
        assert finding.location == "Entitlements"
        assert finding.guideline == "4.8"
        assert "Google Sign-In, Facebook Login" in finding.description

    def test_siwa_configured_and_implemented(self, rule):
        context = make_context(dependencies=deps("GoogleSignIn"), entitlements=SIWA,
                               frameworks=["AuthenticationServices"])
        assert rule.evaluate(context) == []

    def test_siwa_without_authentication_services(self, rule):
        context = make_context(dependencies=deps("GoogleSignIn"), entitlements=SIWA)
        findings = rule.evaluate(context)
        assert titles(findings) == ["Sign in with Apple May Not Be Implemented"]
        assert findings[0].severity == Severity.MEDIUM
        assert findings[0].confidence == Confidence.MEDIUM

    def test_empty_entitlement_array_is_not_siwa(self, rule):
        context = make_context(dependencies=deps("GoogleSignIn"),
                               entitlements={"com.apple.developer.applesignin": []})
        assert titles(rule.evaluate(context)) == ["Third-Party Login Without Sign in with Apple"]

    @pytest.mark.parametrize("sdk,display", [("FirebaseAuth", "Firebase Auth"), ("Auth0", "Auth0")])
    def test_ambiguous_sdk_only(self, rule, sdk, display):
        findings = rule.evaluate(make_context(dependencies=deps(sdk)))
        assert titles(findings) == ["Potential Social Login Without Sign in with Apple"]
        assert findings[0].severity == Severity.MEDIUM
        assert findings[0].confidence == Confidence.MEDIUM
        assert display in findings[0].description

    def test_ambiguous_sdk_with_siwa(self, rule):
        context = make_context(dependencies=deps("FirebaseAuth"), entitlements=SIWA)
        assert rule.evaluate(context) == []

    def test_definitive_sdk_wins_over_ambiguous(self, rule):
        findings = rule.evaluate(make_context(dependencies=deps("FirebaseAuth", "GoogleSignIn")))
        assert len(findings) == 1
        assert findings[0].severity == Severity.CRITICAL
        assert "Google Sign-In" in findings[0].description
        assert "Firebase Auth" not in findings[0].description

    def test_subspec_names_detected(self, rule):
        findings = rule.evaluate(make_context(dependencies=deps("Firebase", "Firebase/Auth")))
        assert titles(findings) == ["Potential Social Login Without Sign in with Apple"]
