"""
Private API rule (Guideline 2.5.1).

Sources are matched after comment stripping, so migration notes that
mention UIWebView do not count as usage.
"""

import re
from typing import List, Optional, Pattern, Sequence

from ...context import ScanContext
from ...models import Confidence, Finding, Severity
from ...source_usage import SourceFile
from ..base import Rule, format_file_list

UIWEBVIEW_PATTERN = re.compile(r'\bUIWebView\b')

PRIVATE_KVC_PATTERNS = [
    re.compile(r'value\(forKey:\s*"_\w+"\)'),
    re.compile(r'setValue\([^)]*forKey:\s*"_\w+"\)'),
    re.compile(r'valueForKey:\s*@"_\w+"'),
    re.compile(r'valueForKeyPath:\s*@"_\w+'),
]

PRIVATE_SELECTOR_PATTERNS = [
    re.compile(r'NSSelectorFromString\(\s*"_\w*'),
    re.compile(r'NSSelectorFromString\(\s*@"_\w*'),
    re.compile(r'#selector\(\s*_\w+'),
    re.compile(r'@selector\(\s*_\w+'),
]

PRIVATE_FRAMEWORKS = frozenset({
    'GraphicsServices',
    'SpringBoardServices',
    'BackBoardServices',
    'FrontBoardServices',
    'MobileInstallation',
    'AppSupport',
    'ChatKit',
    'TelephonyUtilities',
    'ManagedConfiguration',
})

PRIVATE_FRAMEWORK_SOURCE_PATTERNS = [
    re.compile(r'/System/Library/PrivateFrameworks/'),
    re.compile(r'\bPrivateFrameworks\b'),
    re.compile(r'\b(?:GSEvent|SBSLaunchApplication|LSApplicationWorkspace|MCProfileConnection)\w*'),
]


def _files_matching(sources: Sequence[SourceFile], patterns: Sequence[Pattern]) -> List[str]:
    return [source.path for source in sources
            if any(pattern.search(source.content) for pattern in patterns)]


class PrivateAPIUsageRule(Rule):
    rule_id = "code-001-private-api-usage"

    def evaluate(self, context: ScanContext) -> List[Finding]:
        sources = context.source_files()
        findings = []

        files = _files_matching(sources, [UIWEBVIEW_PATTERN])
        if files:
            findings.append(self._finding(
                context, files, Severity.CRITICAL, Confidence.HIGH,
                title="Deprecated UIWebView Usage",
                summary=(
                    "UIWebView is deprecated and Apple no longer accepts new apps or app updates that "
                    "use it."
                ),
                fix_guidance=(
                    "Replace UIWebView with WKWebView:\n\n"
                    "import WebKit\n\n"
                    "let webView = WKWebView(frame: .zero, configuration: WKWebViewConfiguration())\n"
                    "webView.load(URLRequest(url: url))\n\n"
                    "Also update any third-party SDKs that still reference UIWebView."
                ),
            ))

        files = _files_matching(sources, PRIVATE_KVC_PATTERNS)
        if files:
            findings.append(self._finding(
                context, files, Severity.HIGH, Confidence.MEDIUM,
                title="Private UIKit Property Access",
                summary=(
                    "Key-value coding is used with underscore-prefixed keys, which reach into private "
                    "instance variables of system classes."
                ),
                fix_guidance=(
                    "Use public API instead of private ivars. For example, use "
                    "attributedPlaceholder instead of value(forKey: \"_placeholderLabel\")."
                ),
            ))

        files = _files_matching(sources, PRIVATE_SELECTOR_PATTERNS)
        if files:
            findings.append(self._finding(
                context, files, Severity.HIGH, Confidence.MEDIUM,
                title="Private Selector Usage",
                summary="Underscore-prefixed selectors are built dynamically, which usually indicates private methods.",
                fix_guidance="Replace private selectors with documented public API.",
            ))

        linked = sorted(context.linked_frameworks & PRIVATE_FRAMEWORKS)
        files = _files_matching(sources, PRIVATE_FRAMEWORK_SOURCE_PATTERNS)
        if linked or files:
            summary = "Private system frameworks are referenced."
            if linked:
                summary = f"The project links private frameworks: {', '.join(linked)}."
            findings.append(self._finding(
                context, files, Severity.HIGH, Confidence.MEDIUM,
                title="Private Framework Usage",
                summary=summary,
                fix_guidance=(
                    "Remove references to private frameworks and their classes. Apps that link or load "
                    "private frameworks are rejected during App Review."
                ),
                location=None if files else "Project",
            ))

        return findings

    def _finding(self,
                 context: ScanContext,
                 files: List[str],
                 severity: Severity,
                 confidence: Confidence,
                 title: str,
                 summary: str,
                 fix_guidance: str,
                 location: Optional[str] = None) -> Finding:
        relative = [context.relative_path(path) for path in files]
        description = summary
        if relative:
            description += f" Found in: {format_file_list(relative)}."
        description += " Private API usage causes rejection under Guideline 2.5.1."
        return self.make_custom_finding(
            severity, confidence,
            title=title,
            description=description,
            fix_guidance=fix_guidance,
            location=location or (relative[0] if relative else None),
        )
