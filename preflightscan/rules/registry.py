"""
Rule registry for PreflightScan.

Provides the set of rules a scan can run:
- Ordered lookup by rule ID
- Filtering by category and severity
- Include/exclude selection with unknown-ID reporting
- Catalog listings and per-rule explanations for callers
"""

from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Any
import logging

from ..errors import CatalogError
from ..models import RuleCategory, RuleMetadata, Severity
from .base import Rule
from .privacy import (
    MissingCameraPurposeRule,
    MissingLocationPurposeRule,
    ATTTrackingMismatchRule,
    LocationAlwaysUnjustifiedRule,
    MissingMicrophonePurposeRule,
    MissingContactsPurposeRule,
    MissingPhotoLibraryPurposeRule,
    MissingFaceIDPurposeRule,
)
from .auth import ThirdPartyLoginNoSIWARule
from .metadata import MissingPrivacyManifestRule, MissingSupportedOrientationsRule
from .config import ATSExceptionRule, MissingEncryptionFlagRule, MissingLaunchStoryboardRule
from .code import PrivateAPIUsageRule, ExternalPaymentRule, DynamicCodeExecutionRule

logger = logging.getLogger(__name__)

# Evaluation and reporting order
DEFAULT_RULE_CLASSES = [
    MissingCameraPurposeRule,
    MissingLocationPurposeRule,
    ATTTrackingMismatchRule,
    LocationAlwaysUnjustifiedRule,
    MissingMicrophonePurposeRule,
    MissingContactsPurposeRule,
    MissingPhotoLibraryPurposeRule,
    MissingFaceIDPurposeRule,
    ThirdPartyLoginNoSIWARule,
    MissingPrivacyManifestRule,
    MissingSupportedOrientationsRule,
    ATSExceptionRule,
    MissingEncryptionFlagRule,
    MissingLaunchStoryboardRule,
    PrivateAPIUsageRule,
    ExternalPaymentRule,
    DynamicCodeExecutionRule,
]


class RuleRegistry:
    """
    Immutable, ordered collection of rules keyed by ID.

    Iteration and every listing follow registration order, which is also the
    order findings are reported in.
    """

    def __init__(self, rules: Iterable[Rule]):
        self._rules: Dict[str, Rule] = {}
        for rule in rules:
            if rule.id in self._rules:
                raise CatalogError(f"Duplicate rule ID: {rule.id}")
            self._rules[rule.id] = rule

    # =========================================================================
    # Lookup
    # =========================================================================

    def all_rules(self) -> List[Rule]:
        return list(self._rules.values())

    @property
    def ids(self) -> List[str]:
        return list(self._rules)

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._rules.get(rule_id)

    def rules_for_category(self, category: RuleCategory) -> List[Rule]:
        return [rule for rule in self._rules.values() if rule.category == category]

    def rules_at_or_above(self, severity: Severity) -> List[Rule]:
        """Rules whose default severity is at least ``severity``"""
        return [rule for rule in self._rules.values() if rule.severity.priority >= severity.priority]

    # =========================================================================
    # Selection
    # =========================================================================

    def get_rules_with_validation(self, ids: Optional[Sequence[str]] = None) -> Tuple[List[Rule], List[str]]:
        """
        Resolve an include list of rule IDs.

        Args:
            ids: Rule IDs to select; None or empty selects every rule

        Returns:
            (matching rules in registry order, unknown IDs in input order)
        """
        if not ids:
            return self.all_rules(), []

        wanted = set(ids)
        unknown: List[str] = []
        for rule_id in ids:
            if rule_id not in self._rules and rule_id not in unknown:
                unknown.append(rule_id)
        rules = [rule for rule in self._rules.values() if rule.id in wanted]
        return rules, unknown

    def rules_excluding(self, ids: Iterable[str]) -> List[Rule]:
        """Every rule except ``ids``; unknown IDs are ignored"""
        excluded = set(ids)
        return [rule for rule in self._rules.values() if rule.id not in excluded]

    # =========================================================================
    # Catalog
    # =========================================================================

    def catalog(self) -> List[Dict[str, str]]:
        """Short listing of every rule: id, name, category, severity, guideline"""
        return [rule.metadata.summary() for rule in self._rules.values()]

    def explain(self, rule_id: str) -> Optional[Dict[str, Any]]:
        """Full metadata for ``rule_id``, or None when no such rule exists"""
        rule = self._rules.get(rule_id)
        if rule is None:
            return None
        return rule.metadata.to_dict()

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __iter__(self) -> Iterator[Rule]:
        return iter(list(self._rules.values()))

    def __repr__(self) -> str:
        return f"RuleRegistry({len(self._rules)} rules)"


def build_default_registry(catalog: Optional[Mapping[str, RuleMetadata]] = None) -> RuleRegistry:
    """
    Build a registry holding every built-in rule.

    Args:
        catalog: Rule metadata by ID; defaults to the packaged catalog

    Returns:
        RuleRegistry in reporting order
    """
    if catalog is None:
        rules = [rule_class() for rule_class in DEFAULT_RULE_CLASSES]
    else:
        rules = []
        for rule_class in DEFAULT_RULE_CLASSES:
            metadata = catalog.get(rule_class.rule_id)
            if metadata is None:
                raise CatalogError(f"No catalog entry for rule {rule_class.rule_id}")
            rules.append(rule_class(metadata))
    registry = RuleRegistry(rules)
    logger.debug(f"Built default registry with {len(registry)} rules")
    return registry
