"""
Guideline 4.8: apps offering third-party social login must also offer
Sign in with Apple.

Firebase Auth and Auth0 are often used for email/password only, so when they
are the only login SDKs the finding is reported at medium severity and
confidence. Any definitive social SDK takes precedence and restores the
default severity.
"""

from typing import List

from ...context import ScanContext
from ...dependencies import AMBIGUOUS_LOGIN_SDKS, detect_social_login_sdks
from ...models import Confidence, Finding, Severity
from ..base import Rule

AUTHENTICATION_SERVICES = "AuthenticationServices"

SIWA_FIX = (
    "Add Sign in with Apple to your app:\n\n"
    "1. In Xcode, select your app target and open Signing & Capabilities\n"
    "2. Click \"+ Capability\" and add \"Sign in with Apple\"\n"
    "3. Implement the Sign in with Apple button alongside your existing login options:\n\n"
    "import AuthenticationServices\n\n"
    "let button = ASAuthorizationAppleIDButton(type: .signIn, style: .black)\n\n"
    "Sign in with Apple must be presented as an equivalent option, with the same prominence "
    "as other social login buttons."
)


class ThirdPartyLoginNoSIWARule(Rule):
    rule_id = "auth-001-third-party-login-no-siwa"

    def evaluate(self, context: ScanContext) -> List[Finding]:
        sdks = detect_social_login_sdks(context.dependencies)
        if not sdks:
            return []

        definitive = [sdk for sdk in sdks if sdk not in AMBIGUOUS_LOGIN_SDKS]
        ambiguous = [sdk for sdk in sdks if sdk in AMBIGUOUS_LOGIN_SDKS]
        has_siwa = context.has_sign_in_with_apple

        if definitive:
            if not has_siwa:
                return [self.make_finding(
                    description=(
                        f"Your app includes third-party social login SDKs ({', '.join(definitive)}) but "
                        f"the Sign in with Apple capability is not configured. According to App Store "
                        f"Review Guideline 4.8, apps that offer third-party social login must also offer "
                        f"Sign in with Apple as an equivalent option."
                    ),
                    fix_guidance=SIWA_FIX,
                    location="Entitlements",
                )]
            if not context.has_framework(AUTHENTICATION_SERVICES):
                return [self.make_custom_finding(
                    Severity.MEDIUM, Confidence.MEDIUM,
                    title="Sign in with Apple May Not Be Implemented",
                    description=(
                        "Your app has the Sign in with Apple capability enabled but AuthenticationServices "
                        "framework doesn't appear to be linked. This may indicate an incomplete Sign in "
                        "with Apple implementation."
                    ),
                    fix_guidance=(
                        "Ensure you're importing AuthenticationServices and implementing the sign-in flow. "
                        "If a third-party library wraps Sign in with Apple for you, you can ignore this finding."
                    ),
                    location="Project",
                )]
            return []

        if ambiguous and not has_siwa:
            return [self.make_custom_finding(
                Severity.MEDIUM, Confidence.MEDIUM,
                title="Potential Social Login Without Sign in with Apple",
                description=(
                    f"Your app includes authentication SDKs ({', '.join(ambiguous)}) that may be "
                    f"configured for social login. If you offer Google, Facebook, or other social login "
                    f"options, you must also offer Sign in with Apple."
                ),
                fix_guidance=(
                    "Review your authentication implementation.\n\n"
                    "If you use social login (Google, Facebook, etc.), add the Sign in with Apple capability "
                    "and implement it as an equivalent option.\n\n"
                    "If you only use email/password authentication, Guideline 4.8 does not apply.\n\n"
                    "Firebase Auth supports Sign in with Apple as a provider: "
                    "https://firebase.google.com/docs/auth/ios/apple"
                ),
                location="Entitlements",
            )]

        return []
