"""Location permission rules"""

from typing import List

from ...context import ScanContext
from ...models import Confidence, Finding, Severity
from ...parsers.plist import (
    BACKGROUND_MODES_KEY,
    LOCATION_ALWAYS_AND_WHEN_IN_USE_KEY,
    LOCATION_ALWAYS_KEY,
    LOCATION_WHEN_IN_USE_KEY,
    is_placeholder,
)
from ..base import Rule

LOCATION_FRAMEWORKS = ["CoreLocation", "MapKit"]

ALWAYS_KEYS = [LOCATION_ALWAYS_KEY, LOCATION_ALWAYS_AND_WHEN_IN_USE_KEY]

LOCATION_BACKGROUND_MODE = "location"

ALWAYS_DOC_URL = (
    "https://developer.apple.com/documentation/corelocation/"
    "choosing_the_location_services_authorization_to_request"
)

# Phrases that describe location generically rather than a continuous feature
VAGUE_PHRASES = ["nearby", "location services", "your location", "we need", "is required"]
CONTINUOUS_FEATURE_WORDS = ["track", "background", "navigation", "running", "workout", "geofence", "alert"]


def has_always_permission(context: ScanContext) -> bool:
    return any(context.has_plist_key(key) for key in ALWAYS_KEYS)


def is_vague_always_description(description: str) -> bool:
    lowered = description.lower()
    return (any(phrase in lowered for phrase in VAGUE_PHRASES)
            and not any(word in lowered for word in CONTINUOUS_FEATURE_WORDS))


class MissingLocationPurposeRule(Rule):
    rule_id = "privacy-002-missing-location-purpose"

    def evaluate(self, context: ScanContext) -> List[Finding]:
        if context.is_framework_target():
            return []

        frameworks = [f for f in LOCATION_FRAMEWORKS if context.has_framework(f)]
        if not frameworks:
            return []

        findings = self.check_usage_description(
            context,
            key=LOCATION_WHEN_IN_USE_KEY,
            label="Location",
            access="location",
            missing_description=(
                f"Your app links against location-related frameworks ({', '.join(frameworks)}) but "
                f"Info.plist is missing NSLocationWhenInUseUsageDescription. Apps that access location "
                f"services must provide a purpose string explaining why access is needed."
            ),
            missing_fix=(
                "Add NSLocationWhenInUseUsageDescription to your Info.plist with a clear, user-facing "
                "explanation of why your app needs location access. For example:\n\n"
                "<key>NSLocationWhenInUseUsageDescription</key>\n"
                "<string>We use your location to show nearby restaurants and provide directions.</string>\n\n"
                "This key is required for any location access."
            ),
        )

        if has_always_permission(context):
            findings.extend(self._check_always(context))

        return findings

    def _check_always(self, context: ScanContext) -> List[Finding]:
        location = self.plist_location(context)
        value = context.plist_value(LOCATION_ALWAYS_AND_WHEN_IN_USE_KEY)

        if value.is_missing:
            # Only the legacy key is present
            if not context.has_plist_key(LOCATION_ALWAYS_KEY):
                return []
            return [self.make_finding(
                title="Missing Always And When In Use Description",
                description=(
                    "Your app has NSLocationAlwaysUsageDescription but is missing "
                    "NSLocationAlwaysAndWhenInUseUsageDescription. Since iOS 11, both keys are required "
                    "when requesting Always location permission."
                ),
                fix_guidance=(
                    "Add NSLocationAlwaysAndWhenInUseUsageDescription to your Info.plist:\n\n"
                    "<key>NSLocationAlwaysAndWhenInUseUsageDescription</key>\n"
                    "<string>Send you alerts when you're near saved places, even when the app is closed.</string>\n\n"
                    "Only request Always permission if you have a visible, continuous location feature "
                    "like navigation or fitness tracking."
                ),
                location=location,
                documentation_url=ALWAYS_DOC_URL,
            )]

        text = value.as_string()
        if text is None or not text.strip():
            return [self.make_finding(
                title="Empty Always Location Description",
                description=(
                    "NSLocationAlwaysAndWhenInUseUsageDescription exists but is empty. "
                    "Apple requires a meaningful description for Always location access."
                ),
                fix_guidance=(
                    "Provide a clear explanation of why your app needs Always location access. This "
                    "should describe a user-facing feature that requires continuous location."
                ),
                location=location,
                documentation_url=ALWAYS_DOC_URL,
            )]

        if is_placeholder(text):
            return [self.make_finding(
                title="Placeholder Always Location Description",
                description=f"NSLocationAlwaysAndWhenInUseUsageDescription contains placeholder text: \"{text}\".",
                fix_guidance=(
                    "Replace the placeholder with a real description of your continuous location feature. "
                    "Always permission requires a clear, user-visible justification."
                ),
                location=location,
                documentation_url=ALWAYS_DOC_URL,
            )]

        return []


class LocationAlwaysUnjustifiedRule(Rule):
    """Always location permission without a continuous location feature.

    Requesting Always access without the ``location`` background mode means
    the app cannot use location in the background at all, which App Review
    reads as an unjustified request.
    """

    rule_id = "privacy-004-location-always-unjustified"

    def evaluate(self, context: ScanContext) -> List[Finding]:
        if not has_always_permission(context):
            return []

        modes = context.plist_array(BACKGROUND_MODES_KEY) or []
        location = self.plist_location(context)

        if LOCATION_BACKGROUND_MODE not in modes:
            present = [key for key in ALWAYS_KEYS if context.has_plist_key(key)]
            return [self.make_finding(
                description=(
                    f"Your app requests Always location permission ({', '.join(present)}) but "
                    f"UIBackgroundModes does not include \"location\". This configuration strongly "
                    f"suggests your app doesn't have a legitimate continuous location feature, which "
                    f"Apple will likely question during review."
                ),
                fix_guidance=(
                    "If you need Always permission (navigation, fitness, geofencing), add \"location\" to "
                    "UIBackgroundModes in Info.plist:\n\n"
                    "<key>UIBackgroundModes</key>\n"
                    "<array>\n"
                    "    <string>location</string>\n"
                    "</array>\n\n"
                    "Otherwise switch to When In Use permission: remove the Always description keys and "
                    "call requestWhenInUseAuthorization() instead of requestAlwaysAuthorization()."
                ),
                location=location,
            )]

        description = (context.plist_string(LOCATION_ALWAYS_AND_WHEN_IN_USE_KEY)
                       or context.plist_string(LOCATION_ALWAYS_KEY))
        if description and is_vague_always_description(description):
            return [self.make_custom_finding(
                Severity.MEDIUM, Confidence.LOW,
                title="Always Location Description May Be Insufficient",
                description=(
                    f"Your Always location description doesn't clearly explain a continuous location "
                    f"feature: \"{description}\". Apple expects clear justification for Always permission."
                ),
                fix_guidance=(
                    "Update your description to clearly explain the continuous location feature.\n\n"
                    "Good examples:\n"
                    "- \"Track your runs in the background so you can see your complete route.\"\n"
                    "- \"Send alerts when you arrive at or leave saved locations.\"\n\n"
                    "Bad examples:\n"
                    "- \"We use your location\" (too vague)\n"
                    "- \"Show nearby places\" (doesn't justify Always)"
                ),
                location=location,
            )]

        return []
