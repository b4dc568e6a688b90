"""
External payment rule (Guideline 3.1.1).

Digital goods must be sold through In-App Purchase, but physical goods and
services may use any processor. Payment SDKs are detected from source
imports, usage and resolved dependencies; when the sources also show signs
of physical commerce the finding drops to medium severity and low
confidence. StripeTerminal (card-present point of sale) is never flagged.
"""

import re
from dataclasses import dataclass
from typing import List, Pattern, Sequence, Tuple

from ...context import ScanContext
from ...models import Confidence, Finding, Severity
from ..base import Rule

DEPENDENCY_LOCATION = "Package.resolved/Podfile.lock"
STOREKIT = "StoreKit"


@dataclass(frozen=True)
class PaymentSDK:
    name: str
    import_patterns: Tuple[Pattern, ...]
    usage_patterns: Tuple[Pattern, ...]


PAYMENT_SDKS = [
    PaymentSDK(
        name="Stripe",
        import_patterns=(
            re.compile(r'\bimport\s+Stripe\b'),
            re.compile(r'\bimport\s+StripePaymentSheet\b'),
            re.compile(r'\bimport\s+StripePayments\b'),
            re.compile(r'^\s*#import\s+<Stripe/', re.MULTILINE),
        ),
        usage_patterns=(
            re.compile(r'\bSTPPaymentCardTextField\b'),
            re.compile(r'\bSTPPaymentContext\b'),
            re.compile(r'\bPaymentSheet\b'),
            re.compile(r'\bSTPAPIClient\b'),
            re.compile(r'\bStripeAPI\b'),
        ),
    ),
    PaymentSDK(
        name="PayPal",
        import_patterns=(
            re.compile(r'\bimport\s+PayPal\w*'),
            re.compile(r'^\s*#import\s+<PayPal\w*/', re.MULTILINE),
        ),
        usage_patterns=(
            re.compile(r'\bPayPalCheckout\b'),
            re.compile(r'\bBTPayPalDriver\b'),
            re.compile(r'\bBTPayPalRequest\b'),
        ),
    ),
    PaymentSDK(
        name="Braintree",
        import_patterns=(
            re.compile(r'\bimport\s+Braintree\w*'),
            re.compile(r'^\s*#import\s+<Braintree\w*/', re.MULTILINE),
        ),
        usage_patterns=(
            re.compile(r'\bBTAPIClient\b'),
            re.compile(r'\bBTCardClient\b'),
            re.compile(r'\bBTDropInController\b'),
        ),
    ),
    PaymentSDK(
        name="Square",
        import_patterns=(
            re.compile(r'\bimport\s+SquareInAppPaymentsSDK\b'),
            re.compile(r'\bimport\s+SquareBuyerVerificationSDK\b'),
        ),
        usage_patterns=(
            re.compile(r'\bSQIPCardEntryViewController\b'),
        ),
    ),
]

PHYSICAL_GOODS_INDICATORS = [
    re.compile(r'\bshipping\s*address', re.IGNORECASE),
    re.compile(r'\bdelivery\s*address', re.IGNORECASE),
    re.compile(r'\bStripeTerminal\b'),
    re.compile(r'\bphysical\s*goods', re.IGNORECASE),
    re.compile(r'\bshopping\s*cart', re.IGNORECASE),
    re.compile(r'\bCLLocationManager\b'),
]


def _dependency_sdks(dependency_names: Sequence[str]) -> List[str]:
    names = [name.lower() for name in dependency_names]
    found = []
    if any('stripe' in n and 'stripeterminal' not in n for n in names):
        found.append("Stripe")
    if any('paypal' in n for n in names):
        found.append("PayPal")
    if any('braintree' in n for n in names):
        found.append("Braintree")
    if any('squareinapp' in n for n in names):
        found.append("Square")
    return found


def _matches(patterns: Sequence[Pattern], content: str) -> bool:
    return any(pattern.search(content) for pattern in patterns)


class ExternalPaymentRule(Rule):
    rule_id = "code-002-external-payment"

    def evaluate(self, context: ScanContext) -> List[Finding]:
        detected: List[str] = []
        files: List[str] = []
        physical = False

        for source in context.source_files():
            if not physical and _matches(PHYSICAL_GOODS_INDICATORS, source.content):
                physical = True
            for sdk in PAYMENT_SDKS:
                if _matches(sdk.import_patterns, source.content) or _matches(sdk.usage_patterns, source.content):
                    if sdk.name not in detected:
                        detected.append(sdk.name)
                    relative = context.relative_path(source.path)
                    if relative not in files:
                        files.append(relative)

        for name in _dependency_sdks([dep.name for dep in context.dependencies]):
            if name not in detected:
                detected.append(name)
                if DEPENDENCY_LOCATION not in files:
                    files.append(DEPENDENCY_LOCATION)

        if not detected:
            return []

        severity = Severity.MEDIUM if physical else Severity.CRITICAL
        confidence = Confidence.LOW if physical else Confidence.MEDIUM

        description = f"External payment SDK(s) detected: {', '.join(detected)}. "
        if physical:
            description += "Physical goods indicators were also found, so this may be legitimate. "
        description += (
            "Apple requires In-App Purchase for all digital goods and services. Using external "
            "payment processing for digital content will cause rejection."
        )
        if context.has_framework(STOREKIT):
            description += " Note: StoreKit is also linked, which suggests IAP may be implemented alongside."

        return [self.make_custom_finding(
            severity, confidence,
            title=f"External Payment SDK Detected: {', '.join(detected)}",
            description=description,
            fix_guidance=(
                "If you sell digital goods, services or subscriptions, use Apple In-App Purchase "
                "(StoreKit). External payment SDKs are only allowed for physical goods and for services "
                "performed outside the app."
            ),
            location=files[0],
        )]
