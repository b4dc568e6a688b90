"""Tests for preflightscan.parsers.lockfiles"""

import json
import pytest
from preflightscan.errors import ArtifactParseError
from preflightscan.models import Dependency, DependencySource
from preflightscan.parsers.lockfiles import (
    dedupe, parse_cartfile_resolved_content, parse_package_resolved, parse_package_resolved_content,
    parse_podfile_lock, parse_podfile_lock_content,
)

from conftest import package_resolved_v2, podfile_lock, write_text

PODFILE_LOCK_WITH_SUBSPECS = """PODS:
  - Firebase/Analytics (10.0.0):
    - Firebase/Core
  - Firebase/Core (10.0.0):
    - FirebaseAnalytics (~> 10.0.0)
  - FirebaseAnalytics (10.0.0)
  - "GoogleSignIn (7.0.0)"

DEPENDENCIES:
  - Firebase/Analytics
  - GoogleSignIn

SPEC CHECKSUMS:
  Firebase: 0123456789abcdef

COCOAPODS: 1.15.2
"""


class TestPodfileLock:
    def test_simple(self):
        result = parse_podfile_lock_content(podfile_lock(("Alamofire", "5.8.0")))
        assert result == [Dependency("Alamofire", "5.8.0", DependencySource.COCOAPODS)]

    def test_subspecs_expand_and_dedupe(self):
        names = [dep.name for dep in parse_podfile_lock_content(PODFILE_LOCK_WITH_SUBSPECS)]
        assert names == [
            "Firebase", "Firebase/Analytics", "Firebase/Core", "FirebaseAnalytics", "GoogleSignIn",
        ]

    def test_nested_requirements_ignored(self):
        result = parse_podfile_lock_content(PODFILE_LOCK_WITH_SUBSPECS)
        assert all(dep.version != "~> 10.0.0" for dep in result)

    def test_no_pods_section(self):
        assert parse_podfile_lock_content("COCOAPODS: 1.15.2\n") == []

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ArtifactParseError):
            parse_podfile_lock(tmp_path / "Podfile.lock")


class TestPackageResolved:
    def test_v2(self):
        result = parse_package_resolved_content(package_resolved_v2(("alamofire", "5.8.0")))
        assert result == [Dependency("alamofire", "5.8.0", DependencySource.SPM)]

    def test_v1(self):
        content = json.dumps({
            "object": {"pins": [
                {"package": "Alamofire", "repositoryURL": "https://github.com/Alamofire/Alamofire.git",
                 "state": {"branch": None, "revision": "abc", "version": "5.6.1"}},
                {"package": "Local", "state": {"branch": "main", "revision": "def", "version": None}},
            ]},
            "version": 1,
        })
        result = parse_package_resolved_content(content)
        assert result == [
            Dependency("Alamofire", "5.6.1", DependencySource.SPM),
            Dependency("Local", None, DependencySource.SPM),
        ]

    def test_malformed_json_is_empty(self):
        assert parse_package_resolved_content("{not json") == []

    def test_unexpected_shape_is_empty(self):
        assert parse_package_resolved_content("[1, 2, 3]") == []
        assert parse_package_resolved_content('{"version": 3}') == []

    def test_unreadable_file_is_empty(self, tmp_path):
        assert parse_package_resolved(tmp_path / "Package.resolved") == []

    def test_file(self, tmp_path):
        path = write_text(tmp_path / "Package.resolved", package_resolved_v2(("stripe-ios", "23.0.0")))
        assert [dep.name for dep in parse_package_resolved(path)] == ["stripe-ios"]


class TestCartfileResolved:
    def test_entries(self):
        content = (
            'github "Alamofire/Alamofire" "5.8.0"\n'
            'git "https://example.com/Kit.git" "1.2.0"\n'
            'binary "https://example.com/Sdk.json" "3.0.0"\n'
            '# comment\n'
        )
        result = parse_cartfile_resolved_content(content)
        assert [(dep.name, dep.version) for dep in result] == [
            ("Alamofire", "5.8.0"), ("Kit", "1.2.0"), ("Sdk", "3.0.0"),
        ]
        assert all(dep.source == DependencySource.CARTHAGE for dep in result)


class TestDedupe:
    def test_keeps_first_seen(self):
        a = Dependency("A", "1", DependencySource.COCOAPODS)
        a_spm = Dependency("A", "1", DependencySource.SPM)
        b = Dependency("A", "2", DependencySource.SPM)
        assert dedupe([a, a_spm, b]) == [a, b]
