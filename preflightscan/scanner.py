"""
Main scanner - orchestrates discovery, context building and rule evaluation
"""

import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence, Union
import logging

from . import __version__
from .context import ScanContext, build_scan_context
from .errors import InvalidRulesError, NoRulesError
from .models import Finding, ScanResult, Severity
from .project_locator import discover_project
from .rules.base import Rule
from .rules.registry import RuleRegistry, build_default_registry

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
SeverityLike = Union[Severity, str]


def _coerce_severity(value: SeverityLike) -> Severity:
    if isinstance(value, Severity):
        return value
    return Severity(value.lower())


class PreflightScanner:
    """Runs the rule registry against one project per scan"""

    def __init__(self, registry: Optional[RuleRegistry] = None, max_workers: int = 4):
        self.registry = registry or build_default_registry()
        self.max_workers = max_workers

    def select_rules(self,
                     rules: Optional[Sequence[str]] = None,
                     exclude: Optional[Sequence[str]] = None) -> List[Rule]:
        """
        Resolve include and exclude lists against the registry.

        Raises:
            InvalidRulesError: If ``rules`` names an unknown rule ID
            NoRulesError: If nothing is left to run
        """
        selected, unknown = self.registry.get_rules_with_validation(rules)
        if unknown:
            raise InvalidRulesError(unknown, self.registry.ids)

        if exclude:
            excluded = set(exclude)
            selected = [rule for rule in selected if rule.id not in excluded]

        if not selected:
            raise NoRulesError()
        return selected

    def scan(self,
             path: PathLike,
             rules: Optional[Sequence[str]] = None,
             exclude: Optional[Sequence[str]] = None,
             min_severity: Optional[SeverityLike] = None) -> ScanResult:
        """
        Scan a project directory, .xcodeproj or .xcworkspace.

        Args:
            path: Project path as given by the caller
            rules: Rule IDs to run; all rules when omitted
            exclude: Rule IDs to skip
            min_severity: Drop findings below this severity from the result

        Returns:
            ScanResult with findings in rule order

        Raises:
            DiscoveryError: If the path does not exist or is an IPA
            InvalidRulesError: If ``rules`` names an unknown rule ID
            NoRulesError: If the selection is empty
        """
        start_time = time.time()
        timestamp = datetime.now(timezone.utc)

        selected = self.select_rules(rules, exclude)
        threshold = _coerce_severity(min_severity) if min_severity is not None else None

        logger.info(f"Scanning {path} with {len(selected)} rules...")
        discovery = discover_project(path)
        context = build_scan_context(discovery)

        if self.max_workers > 1 and len(selected) > 1:
            findings = self._evaluate_parallel(selected, context)
        else:
            findings = self._evaluate_sequential(selected, context)

        if threshold is not None:
            findings = [f for f in findings if f.severity.priority >= threshold.priority]

        result = ScanResult(
            project_path=str(path),
            findings=findings,
            rules_run=[rule.id for rule in selected],
            duration=time.time() - start_time,
            timestamp=timestamp,
            discovery=discovery,
            version=__version__,
        )

        logger.info(f"Scan complete: {len(result.findings)} findings in {result.duration:.2f}s")
        return result

    def _evaluate_rule(self, rule: Rule, context: ScanContext) -> List[Finding]:
        findings = rule.evaluate(context)
        logger.debug(f"{rule.id}: {len(findings)} findings")
        return findings

    def _evaluate_sequential(self, rules: List[Rule], context: ScanContext) -> List[Finding]:
        findings = []
        for rule in rules:
            findings.extend(self._evaluate_rule(rule, context))
        return findings

    def _evaluate_parallel(self, rules: List[Rule], context: ScanContext) -> List[Finding]:
        """Evaluate rules in parallel, keeping registry order in the output"""
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(self._evaluate_rule, rule, context) for rule in rules]
            findings = []
            for future in futures:
                findings.extend(future.result())
        return findings


def create_scanner(registry: Optional[RuleRegistry] = None, max_workers: int = 4) -> PreflightScanner:
    """Factory function to create a scanner

    Args:
        registry: Rules to run; defaults to every built-in rule
        max_workers: Worker threads for rule evaluation; 1 evaluates sequentially

    Returns:
        Configured PreflightScanner instance
    """
    return PreflightScanner(registry=registry, max_workers=max_workers)


def scan(path: PathLike,
         rules: Optional[Sequence[str]] = None,
         exclude: Optional[Sequence[str]] = None,
         min_severity: Optional[SeverityLike] = None) -> ScanResult:
    """Scan ``path`` with a default scanner"""
    return create_scanner().scan(path, rules=rules, exclude=exclude, min_severity=min_severity)
