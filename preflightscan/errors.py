"""
Exception hierarchy for PreflightScan.

Discovery and rule-selection errors abort a scan. Artifact parse errors are
raised by the parsers and recovered by the callers that load artifacts, since
a missing or unreadable artifact is itself something rules report on.
"""

from typing import List, Optional


class PreflightError(Exception):
    """Base exception for all PreflightScan errors"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# =============================================================================
# Discovery
# =============================================================================

class DiscoveryError(PreflightError):
    """The input path could not be turned into a project to analyze"""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class ProjectNotFoundError(DiscoveryError):
    def __init__(self, path: str):
        super().__init__(f"Path does not exist: {path}", path)


class UnsupportedInputError(DiscoveryError):
    def __init__(self, path: str):
        super().__init__(
            "IPA scanning is not yet supported. "
            "Please extract the IPA and point to the extracted app.",
            path,
        )


# =============================================================================
# Artifacts
# =============================================================================

class ArtifactParseError(PreflightError):
    """A plist, entitlements, lock or workspace file could not be decoded"""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not parse {path}: {reason}")


# =============================================================================
# Rule selection
# =============================================================================

class RuleSelectionError(PreflightError):
    """The requested rule set cannot be run"""


class InvalidRulesError(RuleSelectionError):
    """Raised when an include list names rules that are not registered."""

    def __init__(self, unknown_ids: List[str], available_ids: List[str]):
        self.unknown_ids = list(unknown_ids)
        self.available_ids = list(available_ids)
        super().__init__(
            f"Unknown rule ID(s): {', '.join(self.unknown_ids)}\n\n"
            f"Available rules: {', '.join(self.available_ids)}"
        )


class NoRulesError(RuleSelectionError):
    def __init__(self, message: str = "No rules to run. Check your rules and exclude options."):
        super().__init__(message)


class CatalogError(PreflightError):
    """Rule metadata is missing or two rules share an ID"""
