"""App Tracking Transparency rule"""

from typing import List

from ...context import ScanContext
from ...dependencies import detect_tracking_sdks
from ...models import Confidence, Finding, Severity
from ...parsers.plist import TRACKING_USAGE_KEY
from ..base import Rule

ATT_FRAMEWORK = "AppTrackingTransparency"


class ATTTrackingMismatchRule(Rule):
    rule_id = "privacy-003-att-tracking-mismatch"

    def evaluate(self, context: ScanContext) -> List[Finding]:
        sdks = detect_tracking_sdks(context.dependencies)
        if not sdks:
            return []

        findings = self.check_usage_description(
            context,
            key=TRACKING_USAGE_KEY,
            label="Tracking",
            access="tracking",
            missing_description=(
                f"Your app includes tracking/attribution SDKs ({', '.join(sdks)}) but Info.plist is "
                f"missing NSUserTrackingUsageDescription. Since iOS 14.5, apps that track users must "
                f"implement App Tracking Transparency and include a purpose string."
            ),
            missing_fix=(
                "Add NSUserTrackingUsageDescription to your Info.plist:\n\n"
                "<key>NSUserTrackingUsageDescription</key>\n"
                "<string>We use tracking to show you personalized ads and measure ad effectiveness.</string>\n\n"
                "Then request authorization before initializing tracking SDKs:\n\n"
                "import AppTrackingTransparency\n\n"
                "ATTrackingManager.requestTrackingAuthorization { status in\n"
                "    // Enable tracking only when status == .authorized\n"
                "}"
            ),
        )

        if context.plist_string(TRACKING_USAGE_KEY) is not None and not context.has_framework(ATT_FRAMEWORK):
            findings.append(self.make_custom_finding(
                Severity.MEDIUM, Confidence.MEDIUM,
                title="AppTrackingTransparency Framework Not Linked",
                description=(
                    "Your app has NSUserTrackingUsageDescription but AppTrackingTransparency framework "
                    "does not appear to be linked. This may indicate an incomplete ATT implementation."
                ),
                fix_guidance=(
                    "Ensure you're importing AppTrackingTransparency in your code and actually showing "
                    "the tracking permission prompt to users. If a third-party SDK wrapper presents the "
                    "prompt for you, you can ignore this finding."
                ),
                location="Project",
            ))

        return findings
