"""
Data models for PreflightScan.

This module defines all core data structures used throughout the analyzer:

- Severity/Confidence/RuleCategory: Enums for finding classification
- Dependency/DependencySource: Resolved third-party packages
- WorkspaceProjectRef/WorkspaceData: Workspace member projects
- ProjectDiscovery: Where the project and its artifacts live
- RuleMetadata: Catalog entry describing a rule
- Finding/ScanResult: Reported issues and the complete scan output
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional, List, Dict, Any, Iterator


class Severity(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    @property
    def priority(self) -> int:
        priorities = {
            Severity.CRITICAL: 5,
            Severity.HIGH: 4,
            Severity.MEDIUM: 3,
            Severity.LOW: 2,
            Severity.INFO: 1,
        }
        return priorities[self]

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class Confidence(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def priority(self) -> int:
        priorities = {
            Confidence.HIGH: 3,
            Confidence.MEDIUM: 2,
            Confidence.LOW: 1,
        }
        return priorities[self]


class RuleCategory(Enum):
    PRIVACY = "privacy"
    AUTH = "auth"
    PERMISSIONS = "permissions"
    COMPLETENESS = "completeness"
    METADATA = "metadata"
    FEATURES = "features"
    CODE = "code"
    IAP = "iap"
    CONFIG = "config"

    @property
    def display_name(self) -> str:
        names = {
            RuleCategory.PRIVACY: "Privacy",
            RuleCategory.AUTH: "Authentication",
            RuleCategory.PERMISSIONS: "Permissions",
            RuleCategory.COMPLETENESS: "Completeness",
            RuleCategory.METADATA: "Metadata",
            RuleCategory.FEATURES: "Features",
            RuleCategory.CODE: "Code Quality",
            RuleCategory.IAP: "In-App Purchase",
            RuleCategory.CONFIG: "Configuration",
        }
        return names[self]

    @property
    def guideline_section(self) -> str:
        sections = {
            RuleCategory.PRIVACY: "5.1",
            RuleCategory.AUTH: "4.8",
            RuleCategory.PERMISSIONS: "5.1.1",
            RuleCategory.COMPLETENESS: "2.1",
            RuleCategory.METADATA: "2.3",
            RuleCategory.FEATURES: "Various",
            RuleCategory.CODE: "2.5",
            RuleCategory.IAP: "3.1",
            RuleCategory.CONFIG: "2.5",
        }
        return sections[self]


class DependencySource(Enum):
    COCOAPODS = "cocoapods"
    SPM = "spm"
    CARTHAGE = "carthage"
    MANUAL = "manual"


@dataclass(frozen=True)
class Dependency:
    """A resolved third-party package"""
    name: str
    version: Optional[str] = None
    source: DependencySource = DependencySource.MANUAL

    @property
    def key(self) -> str:
        """Identity used for deduplication"""
        return f"{self.name}@{self.version}"


class LocationType(Enum):
    GROUP = "group"
    ABSOLUTE = "absolute"
    CONTAINER = "container"


@dataclass(frozen=True)
class WorkspaceProjectRef:
    """A project referenced from a workspace's contents.xcworkspacedata"""
    raw_location: str
    location_type: LocationType
    project_path: str
    is_pods: bool = False
    is_test_or_example: bool = False

    @property
    def is_main(self) -> bool:
        return not self.is_pods and not self.is_test_or_example


@dataclass
class WorkspaceData:
    """Parsed workspace file references"""
    version: Optional[str] = None
    project_refs: List[WorkspaceProjectRef] = field(default_factory=list)

    @property
    def main_project_refs(self) -> List[WorkspaceProjectRef]:
        return [ref for ref in self.project_refs if ref.is_main]


@dataclass(frozen=True)
class ProjectDiscovery:
    """Result of locating the project to analyze.

    ``project_scope_dir`` is the most specific directory containing the
    selected project; every resolved artifact path lives beneath it.
    """
    project_path: str
    project_scope_dir: str
    pbxproj_path: Optional[str] = None
    info_plist_path: Optional[str] = None
    entitlements_path: Optional[str] = None
    is_workspace: bool = False
    workspace_projects: Optional[List[WorkspaceProjectRef]] = None

    @property
    def xcodeproj_path(self) -> Optional[str]:
        """The .xcodeproj bundle owning ``pbxproj_path``, if one was found"""
        if not self.pbxproj_path:
            return None
        return str(Path(self.pbxproj_path).parent)


@dataclass(frozen=True)
class RuleMetadata:
    """Catalog entry describing a rule"""
    id: str
    name: str
    description: str
    category: RuleCategory
    severity: Severity
    confidence: Confidence
    guideline: str
    documentation_url: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    def summary(self) -> Dict[str, str]:
        """Short listing entry"""
        return {
            'id': self.id,
            'name': self.name,
            'category': self.category.value,
            'severity': self.severity.value,
            'guideline': self.guideline,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'category': self.category.value,
            'category_name': self.category.display_name,
            'severity': self.severity.value,
            'confidence': self.confidence.value,
            'guideline': self.guideline,
            'documentation_url': self.documentation_url,
            'tags': list(self.tags),
        }


@dataclass(frozen=True)
class Finding:
    """An App Store review issue detected in the project"""
    rule_id: str
    severity: Severity
    confidence: Confidence
    title: str
    description: str
    guideline: str
    fix_guidance: str
    location: Optional[str] = None
    documentation_url: Optional[str] = None

    @property
    def id(self) -> str:
        if self.location:
            return f"{self.rule_id}:{self.location}"
        return self.rule_id

    def to_dict(self) -> Dict[str, Any]:
        """Convert finding to dictionary"""
        return {
            'rule_id': self.rule_id,
            'severity': self.severity.value,
            'confidence': self.confidence.value,
            'title': self.title,
            'description': self.description,
            'location': self.location,
            'guideline': self.guideline,
            'fix_guidance': self.fix_guidance,
            'documentation_url': self.documentation_url,
        }


@dataclass
class ScanResult:
    """Result of a pre-submission scan"""
    project_path: str
    findings: List[Finding] = field(default_factory=list)
    rules_run: List[str] = field(default_factory=list)
    duration: float = 0.0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    discovery: Optional[ProjectDiscovery] = None
    version: str = ""

    @property
    def summary(self) -> Dict[str, int]:
        """Get count by severity"""
        counts = {s.value: 0 for s in Severity}
        for finding in self.findings:
            counts[finding.severity.value] += 1
        counts['total'] = len(self.findings)
        return counts

    @property
    def passed(self) -> bool:
        """True when nothing at high severity or above was found"""
        return not any(f.severity.priority >= Severity.HIGH.priority for f in self.findings)

    def findings_by_severity(self) -> Dict[Severity, List[Finding]]:
        grouped: Dict[Severity, List[Finding]] = {}
        for finding in self.findings:
            grouped.setdefault(finding.severity, []).append(finding)
        return grouped

    def findings_for_rule(self, rule_id: str) -> List[Finding]:
        return [f for f in self.findings if f.rule_id == rule_id]

    def sort_findings(self) -> None:
        """Sort findings by severity (critical first), then by rule."""
        self.findings.sort(key=lambda f: (-f.severity.priority, f.rule_id))

    def filter_by_severity(self, min_severity: Severity) -> List[Finding]:
        """Get findings at or above a minimum severity level."""
        return [f for f in self.findings if f.severity.priority >= min_severity.priority]

    def filter_by_confidence(self, min_confidence: Confidence) -> List[Finding]:
        """Get findings at or above a minimum confidence level."""
        return [f for f in self.findings if f.confidence.priority >= min_confidence.priority]

    def has_critical_findings(self) -> bool:
        """Check if scan has any critical findings."""
        return any(f.severity == Severity.CRITICAL for f in self.findings)

    def __iter__(self) -> Iterator[Finding]:
        """Iterate over findings."""
        return iter(self.findings)

    def __len__(self) -> int:
        """Number of findings."""
        return len(self.findings)

    def to_dict(self) -> Dict[str, Any]:
        """Convert scan result to dictionary."""
        return {
            'version': self.version,
            'project_path': self.project_path,
            'timestamp': self.timestamp.isoformat(),
            'duration': self.duration,
            'rules_run': list(self.rules_run),
            'findings': [f.to_dict() for f in self.findings],
            'summary': self.summary,
            'passed': self.passed,
        }
