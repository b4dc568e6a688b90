"""Privacy manifest rule"""

from typing import List

from ...context import ScanContext
from ...dependencies import detect_privacy_manifest_sdks
from ...models import Confidence, Finding, Severity
from ..base import Rule

MANIFEST_FIX = (
    "Add a PrivacyInfo.xcprivacy file to your app target (File > New > File > App Privacy) and "
    "declare the data your app collects and the required-reason APIs it uses. Update the listed "
    "SDKs to versions that ship their own privacy manifests and signatures."
)


class MissingPrivacyManifestRule(Rule):
    rule_id = "metadata-001-missing-privacy-manifest"

    def evaluate(self, context: ScanContext) -> List[Finding]:
        if context.privacy_manifests or not context.dependencies:
            return []

        sdks = detect_privacy_manifest_sdks(context.dependencies)
        if sdks:
            return [self.make_finding(
                title="Missing Privacy Manifest for Third-Party SDKs",
                description=(
                    f"Your app uses third-party SDKs that Apple lists as commonly used SDKs requiring "
                    f"a privacy manifest ({', '.join(sdks)}), but no PrivacyInfo.xcprivacy file was "
                    f"found in the project. Since May 2024, submissions including these SDKs without "
                    f"privacy manifests are rejected."
                ),
                fix_guidance=MANIFEST_FIX,
                location="PrivacyInfo.xcprivacy",
            )]

        return [self.make_custom_finding(
            Severity.INFO, Confidence.LOW,
            title="Consider Adding a Privacy Manifest",
            description=(
                f"Your app has {len(context.dependencies)} third-party dependencies but no "
                f"PrivacyInfo.xcprivacy file. None of them is on Apple's list of SDKs that require a "
                f"manifest, but your app still needs one if it uses required-reason APIs."
            ),
            fix_guidance=MANIFEST_FIX,
            location="PrivacyInfo.xcprivacy",
        )]
