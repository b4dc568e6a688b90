"""Supported interface orientations rule"""

from typing import List

from ...context import ScanContext
from ...models import Finding
from ..base import Rule

ORIENTATION_KEYS = [
    "UISupportedInterfaceOrientations",
    "UISupportedInterfaceOrientations~ipad",
    # Generated from INFOPLIST_KEY_* build settings
    "UISupportedInterfaceOrientations_iPhone",
    "UISupportedInterfaceOrientations_iPad",
]


def _declares_orientations(context: ScanContext, key: str) -> bool:
    value = context.plist_value(key)
    items = value.as_array()
    if items is not None:
        return len(items) > 0
    text = value.as_string()
    return bool(text and text.strip())


class MissingSupportedOrientationsRule(Rule):
    rule_id = "metadata-002-missing-supported-orientations"

    def evaluate(self, context: ScanContext) -> List[Finding]:
        if context.is_extension() or context.is_framework_target():
            return []

        if any(_declares_orientations(context, key) for key in ORIENTATION_KEYS):
            return []

        return [self.make_finding(
            description=(
                "Info.plist does not declare UISupportedInterfaceOrientations. Apps must declare the "
                "interface orientations they support, and iPad apps that support multitasking must "
                "support all four orientations."
            ),
            fix_guidance=(
                "Add UISupportedInterfaceOrientations to your Info.plist, or set the orientation options "
                "in your target's General tab:\n\n"
                "<key>UISupportedInterfaceOrientations</key>\n"
                "<array>\n"
                "    <string>UIInterfaceOrientationPortrait</string>\n"
                "</array>"
            ),
            location=self.plist_location(context),
        )]
