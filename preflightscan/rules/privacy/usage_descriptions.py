"""
Usage-description rules triggered purely by framework linkage.

Each rule names the frameworks that imply a protected resource and the
Info.plist key that must explain it; the shared presence, emptiness and
placeholder policy does the rest.
"""

from typing import List

from ...context import ScanContext
from ...models import Finding
from ...parsers.plist import CONTACTS_USAGE_KEY, FACE_ID_USAGE_KEY, PHOTO_LIBRARY_USAGE_KEY
from ..base import Rule


class FrameworkUsageDescriptionRule(Rule):
    """Framework linked -> usage description required"""

    frameworks: List[str] = []
    key: str = ""
    label: str = ""
    access: str = ""
    example: str = ""

    def evaluate(self, context: ScanContext) -> List[Finding]:
        if context.is_framework_target():
            return []

        detected = [f for f in self.frameworks if context.has_framework(f)]
        if not detected:
            return []

        return self.check_usage_description(
            context,
            key=self.key,
            label=self.label,
            access=self.access,
            missing_description=(
                f"Your app links against {', '.join(detected)} but Info.plist is missing {self.key}. "
                f"Apps that access {self.access} must provide a purpose string explaining why access "
                f"is needed."
            ),
            missing_fix=(
                f"Add {self.key} to your Info.plist with a clear, user-facing explanation:\n\n"
                f"<key>{self.key}</key>\n"
                f"<string>{self.example}</string>"
            ),
        )


class MissingContactsPurposeRule(FrameworkUsageDescriptionRule):
    rule_id = "privacy-006-missing-contacts-purpose"
    frameworks = ["Contacts", "ContactsUI"]
    key = CONTACTS_USAGE_KEY
    label = "Contacts"
    access = "contacts"
    example = "We use your contacts to help you find friends who already use the app."


class MissingPhotoLibraryPurposeRule(FrameworkUsageDescriptionRule):
    rule_id = "privacy-007-missing-photo-library-purpose"
    frameworks = ["Photos", "PhotosUI"]
    key = PHOTO_LIBRARY_USAGE_KEY
    label = "Photo Library"
    access = "photo library"
    example = "We access your photo library so you can choose pictures to attach to posts."


class MissingFaceIDPurposeRule(FrameworkUsageDescriptionRule):
    rule_id = "privacy-008-missing-face-id-purpose"
    frameworks = ["LocalAuthentication"]
    key = FACE_ID_USAGE_KEY
    label = "Face ID"
    access = "Face ID"
    example = "We use Face ID so you can unlock your saved passwords securely."
