"""
Camera and microphone usage-description rules.

Both rules reconcile framework linkage with source evidence: AVFoundation
alone is ambiguous, so without a capture API in source the finding is
reported at medium severity and confidence with a playback caveat, and
playback-only sources suppress it.
"""

from typing import List

from ...context import ScanContext
from ...models import Confidence, Finding, Severity
from ...parsers.plist import CAMERA_USAGE_KEY, MICROPHONE_USAGE_KEY, SPEECH_RECOGNITION_USAGE_KEY
from ..base import Rule

AVFOUNDATION = "AVFoundation"

# VisionKit never triggers alone; its camera classes come from source evidence
CAMERA_FRAMEWORKS = [AVFOUNDATION, "AVKit"]

MICROPHONE_FRAMEWORKS = ["AVFAudio", "Speech"]

SPEECH_DOC_URL = (
    "https://developer.apple.com/documentation/bundleresources/"
    "information_property_list/nsspeechrecognitionusagedescription"
)

CAMERA_CAVEAT = (
    "\n\nNote: AVFoundation is commonly used for audio/video playback. If your app only plays "
    "media and doesn't capture photos or video, you may not need this permission."
)

MICROPHONE_CAVEAT = (
    "\n\nNote: AVFoundation is commonly used for audio/video playback. If your app only plays "
    "media and doesn't record audio, you may not need this permission."
)


class MissingCameraPurposeRule(Rule):
    rule_id = "privacy-001-missing-camera-purpose"

    def evaluate(self, context: ScanContext) -> List[Finding]:
        if context.is_framework_target():
            return []

        frameworks = [f for f in CAMERA_FRAMEWORKS if context.has_framework(f)]
        only_avfoundation = frameworks == [AVFOUNDATION]
        usage = context.source_usage
        has_camera = usage.has_camera_specific_usage

        if not frameworks and not has_camera:
            return []

        if only_avfoundation and not has_camera and usage.has_playback_only_usage:
            return []

        if has_camera:
            severity, confidence = Severity.CRITICAL, Confidence.HIGH
        elif only_avfoundation:
            severity, confidence = Severity.MEDIUM, Confidence.MEDIUM
        else:
            severity, confidence = Severity.CRITICAL, Confidence.HIGH

        evidence = ""
        if has_camera:
            evidence = f" Source analysis detected camera APIs: {', '.join(usage.camera_evidence[:3])}."

        caveat = CAMERA_CAVEAT if only_avfoundation and not has_camera else ""
        reported = ", ".join(frameworks) if frameworks else "source analysis"

        return self.check_usage_description(
            context,
            key=CAMERA_USAGE_KEY,
            label="Camera",
            access="camera",
            missing_description=(
                f"Your app links against camera-related frameworks ({reported}) but Info.plist is "
                f"missing NSCameraUsageDescription. Apps that access the camera must provide a "
                f"purpose string explaining why access is needed.{evidence}"
            ),
            missing_fix=(
                "Add NSCameraUsageDescription to your Info.plist with a clear, user-facing explanation "
                "of why your app needs camera access. For example:\n\n"
                "<key>NSCameraUsageDescription</key>\n"
                "<string>We need access to your camera to take photos for your profile.</string>\n\n"
                "The description should explain the specific feature that uses the camera and "
                "be written from the user's perspective."
            ),
            severity=severity,
            confidence=confidence,
            note=caveat,
        )


class MissingMicrophonePurposeRule(Rule):
    rule_id = "privacy-005-missing-microphone-purpose"

    def evaluate(self, context: ScanContext) -> List[Finding]:
        if context.is_framework_target():
            return []

        frameworks = [f for f in MICROPHONE_FRAMEWORKS if context.has_framework(f)]
        has_avfoundation = context.has_framework(AVFOUNDATION)
        only_avfoundation = has_avfoundation and not frameworks
        usage = context.source_usage
        has_microphone = usage.has_microphone_specific_usage
        has_camera = usage.has_camera_specific_usage

        if not frameworks and not has_avfoundation and not has_microphone:
            return []

        if only_avfoundation and not has_microphone and not has_camera and usage.has_any_signal:
            return []

        findings: List[Finding] = []

        if context.has_framework("Speech"):
            findings.extend(self.check_usage_description(
                context,
                key=SPEECH_RECOGNITION_USAGE_KEY,
                label="Speech Recognition",
                access="speech recognition",
                missing_description=(
                    "Your app links against the Speech framework but Info.plist is missing "
                    "NSSpeechRecognitionUsageDescription. Apps using speech recognition must provide "
                    "a purpose string explaining why access is needed."
                ),
                missing_fix=(
                    "Add NSSpeechRecognitionUsageDescription to your Info.plist:\n\n"
                    "<key>NSSpeechRecognitionUsageDescription</key>\n"
                    "<string>We use speech recognition to transcribe your voice notes.</string>\n\n"
                    "Note: You'll also need NSMicrophoneUsageDescription since speech recognition "
                    "requires microphone access."
                ),
                documentation_url=SPEECH_DOC_URL,
            ))

        implies_microphone = has_microphone or has_camera
        if implies_microphone:
            severity, confidence = Severity.CRITICAL, Confidence.HIGH
        elif only_avfoundation:
            severity, confidence = Severity.MEDIUM, Confidence.MEDIUM
        else:
            severity, confidence = self.severity, Confidence.HIGH

        reported_frameworks = frameworks + [AVFOUNDATION] if has_avfoundation else frameworks
        reported = ", ".join(reported_frameworks) if reported_frameworks else "source analysis"

        evidence = ""
        if has_microphone:
            evidence = f" Source analysis detected microphone APIs: {', '.join(usage.microphone_evidence[:3])}."

        caveat = MICROPHONE_CAVEAT if only_avfoundation and not has_microphone else ""

        findings.extend(self.check_usage_description(
            context,
            key=MICROPHONE_USAGE_KEY,
            label="Microphone",
            access="microphone",
            missing_description=(
                f"Your app links against audio frameworks ({reported}) but Info.plist is missing "
                f"NSMicrophoneUsageDescription. Apps that access the microphone must provide a "
                f"purpose string explaining why access is needed.{evidence}"
            ),
            missing_fix=(
                "Add NSMicrophoneUsageDescription to your Info.plist with a clear, user-facing "
                "explanation of why your app needs microphone access. For example:\n\n"
                "<key>NSMicrophoneUsageDescription</key>\n"
                "<string>We need microphone access to record voice messages and make calls.</string>\n\n"
                "The description should explain the specific feature that uses the microphone."
            ),
            severity=severity,
            confidence=confidence,
            note=caveat,
        ))

        return findings
