"""
Base class for PreflightScan rules.

A rule is a side-effect-free evaluator: it reads a ScanContext and returns
zero or more Findings. Behaviour lives in Python; the rule's name, default
severity and confidence, guideline and documentation URL come from the YAML
catalog entry whose ID matches ``rule_id``.

Shared evaluation policy for usage-description keys, applied in order and
mutually exclusive:
- Presence: key absent -> "Missing X Usage Description"
- Emptiness: blank or whitespace-only -> "Empty X Usage Description"
- Placeholder: filler text -> "Placeholder X Usage Description"
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..context import ScanContext
from ..errors import CatalogError
from ..models import Confidence, Finding, RuleCategory, RuleMetadata, Severity
from ..parsers.plist import is_placeholder
from ..rule_loader import default_catalog

DEFAULT_PLIST_LOCATION = "Info.plist"
MAX_LISTED_FILES = 5


def format_file_list(paths: List[str]) -> str:
    """Comma-separated paths, truncated to the first few with a remainder count"""
    listed = ', '.join(paths[:MAX_LISTED_FILES])
    if len(paths) > MAX_LISTED_FILES:
        listed += f" and {len(paths) - MAX_LISTED_FILES} more"
    return listed


class Rule(ABC):
    """A single App Store review check"""

    rule_id: str = ""

    def __init__(self, metadata: Optional[RuleMetadata] = None):
        if metadata is None:
            metadata = default_catalog().get(self.rule_id)
        if metadata is None:
            raise CatalogError(f"No catalog entry for rule {self.rule_id or type(self).__name__}")
        if metadata.id != self.rule_id:
            raise CatalogError(f"Catalog entry {metadata.id} does not match rule {self.rule_id}")
        self.metadata = metadata

    # =========================================================================
    # Metadata
    # =========================================================================

    @property
    def id(self) -> str:
        return self.rule_id

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def description(self) -> str:
        return self.metadata.description

    @property
    def category(self) -> RuleCategory:
        return self.metadata.category

    @property
    def severity(self) -> Severity:
        return self.metadata.severity

    @property
    def confidence(self) -> Confidence:
        return self.metadata.confidence

    @property
    def guideline(self) -> str:
        return self.metadata.guideline

    @property
    def documentation_url(self) -> Optional[str]:
        return self.metadata.documentation_url

    @abstractmethod
    def evaluate(self, context: ScanContext) -> List[Finding]:
        """Evaluate the rule; never raises for missing data"""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.rule_id!r})"

    # =========================================================================
    # Finding construction
    # =========================================================================

    def make_finding(self,
                     description: str,
                     fix_guidance: str,
                     title: Optional[str] = None,
                     location: Optional[str] = None,
                     documentation_url: Optional[str] = None) -> Finding:
        """A finding at the rule's default severity and confidence"""
        return self.make_custom_finding(
            self.severity, self.confidence,
            description=description,
            fix_guidance=fix_guidance,
            title=title,
            location=location,
            documentation_url=documentation_url,
        )

    def make_custom_finding(self,
                            severity: Severity,
                            confidence: Confidence,
                            description: str,
                            fix_guidance: str,
                            title: Optional[str] = None,
                            location: Optional[str] = None,
                            documentation_url: Optional[str] = None) -> Finding:
        return Finding(
            rule_id=self.rule_id,
            severity=severity,
            confidence=confidence,
            title=title or self.name,
            description=description,
            guideline=self.guideline,
            fix_guidance=fix_guidance,
            location=location,
            documentation_url=documentation_url or self.documentation_url,
        )

    # =========================================================================
    # Shared usage-description policy
    # =========================================================================

    @staticmethod
    def plist_location(context: ScanContext) -> str:
        return context.info_plist_path or DEFAULT_PLIST_LOCATION

    def check_usage_description(self,
                                context: ScanContext,
                                key: str,
                                label: str,
                                access: str,
                                missing_description: str,
                                missing_fix: str,
                                severity: Optional[Severity] = None,
                                confidence: Optional[Confidence] = None,
                                note: str = "",
                                documentation_url: Optional[str] = None) -> List[Finding]:
        """
        Apply the presence, emptiness and placeholder checks to one key.

        Args:
            context: Scan context
            key: Info.plist key, e.g. NSCameraUsageDescription
            label: Title word, e.g. "Camera" in "Missing Camera Usage Description"
            access: What the description unlocks, e.g. "camera"
            missing_description: Description used when the key is absent
            missing_fix: Fix guidance used when the key is absent
            severity: Overrides the default severity
            confidence: Overrides the default confidence
            note: Text appended to every description
            documentation_url: Overrides the catalog documentation URL

        Returns:
            At most one finding
        """
        severity = severity or self.severity
        confidence = confidence or self.confidence
        location = self.plist_location(context)
        value = context.plist_value(key)

        if value.is_missing:
            return [self.make_custom_finding(
                severity, confidence,
                title=f"Missing {label} Usage Description",
                description=missing_description + note,
                fix_guidance=missing_fix,
                location=location,
                documentation_url=documentation_url,
            )]

        text = value.as_string()
        if text is None or not text.strip():
            return [self.make_custom_finding(
                severity, confidence,
                title=f"Empty {label} Usage Description",
                description=(
                    f"{key} exists in Info.plist but is empty. Apple requires a meaningful "
                    f"description explaining why your app needs {access} access.{note}"
                ),
                fix_guidance=(
                    f"Update {key} with a clear, specific explanation of why your app needs "
                    f"{access} access. Generic or empty descriptions may be rejected."
                ),
                location=location,
                documentation_url=documentation_url,
            )]

        if is_placeholder(text):
            return [self.make_custom_finding(
                severity, confidence,
                title=f"Placeholder {label} Usage Description",
                description=(
                    f"{key} appears to contain placeholder text: \"{text}\". "
                    f"Apple requires meaningful, user-facing descriptions.{note}"
                ),
                fix_guidance=(
                    f"Replace the placeholder text with a clear explanation of why your app needs "
                    f"{access} access. The description should be specific to your app's features.\n\n"
                    f"Current value: \"{text}\""
                ),
                location=location,
                documentation_url=documentation_url,
            )]

        return []
