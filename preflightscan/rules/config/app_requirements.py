"""Info.plist keys every app target must declare"""

from typing import List

from ...context import ScanContext
from ...models import Finding
from ..base import Rule

ENCRYPTION_KEY = "ITSAppUsesNonExemptEncryption"
LAUNCH_STORYBOARD_KEY = "UILaunchStoryboardName"
LAUNCH_SCREEN_KEY = "UILaunchScreen"
LAUNCH_SCREEN_GENERATION_KEY = "UILaunchScreen_Generation"


def _is_app_target(context: ScanContext) -> bool:
    return not (context.is_extension() or context.is_framework_target())


class MissingEncryptionFlagRule(Rule):
    rule_id = "config-002-missing-encryption-flag"

    def evaluate(self, context: ScanContext) -> List[Finding]:
        if not _is_app_target(context) or context.has_plist_key(ENCRYPTION_KEY):
            return []

        return [self.make_finding(
            description=(
                "Info.plist does not declare ITSAppUsesNonExemptEncryption. Without it, every upload to "
                "App Store Connect asks for export compliance information, and builds stay in "
                "\"Missing Compliance\" until it is answered."
            ),
            fix_guidance=(
                "If your app only uses exempt encryption (HTTPS, Apple's built-in cryptography), add:\n\n"
                "<key>ITSAppUsesNonExemptEncryption</key>\n"
                "<false/>\n\n"
                "If it uses non-exempt encryption, set the key to true and provide the export compliance "
                "documentation in App Store Connect."
            ),
            location=self.plist_location(context),
        )]


class MissingLaunchStoryboardRule(Rule):
    rule_id = "config-003-missing-launch-storyboard"

    def evaluate(self, context: ScanContext) -> List[Finding]:
        if not _is_app_target(context):
            return []

        if context.has_plist_key(LAUNCH_STORYBOARD_KEY) or context.has_plist_key(LAUNCH_SCREEN_KEY):
            return []
        if context.plist_bool(LAUNCH_SCREEN_GENERATION_KEY):
            return []

        return [self.make_finding(
            description=(
                "No launch screen is configured. Info.plist has neither UILaunchStoryboardName nor "
                "UILaunchScreen. Apps submitted to the App Store must provide a launch storyboard or "
                "launch screen configuration."
            ),
            fix_guidance=(
                "Add a LaunchScreen.storyboard and reference it from Info.plist:\n\n"
                "<key>UILaunchStoryboardName</key>\n"
                "<string>LaunchScreen</string>\n\n"
                "or declare an empty UILaunchScreen dictionary, or enable \"Launch Screen\" generation "
                "in your target's Info tab."
            ),
            location=self.plist_location(context),
        )]
