"""
App Transport Security rule (Guideline 1.6).

App Review asks for a justification whenever ATS is weakened. Arbitrary
loads are reported at the default severity; insecure exception domains and
web-content/media-only relaxations are reported at reduced severity.
"""

from typing import Any, Dict, List

from ...context import ScanContext
from ...models import Confidence, Finding, Severity
from ...parsers.plist import APP_TRANSPORT_SECURITY_KEY
from ...parsers.values import StructuredValue
from ..base import Rule

ALLOWS_ARBITRARY_LOADS = "NSAllowsArbitraryLoads"
ALLOWS_ARBITRARY_LOADS_IN_WEB_CONTENT = "NSAllowsArbitraryLoadsInWebContent"
ALLOWS_ARBITRARY_LOADS_FOR_MEDIA = "NSAllowsArbitraryLoadsForMedia"
EXCEPTION_DOMAINS = "NSExceptionDomains"
EXCEPTION_ALLOWS_INSECURE_HTTP_LOADS = "NSExceptionAllowsInsecureHTTPLoads"
THIRD_PARTY_EXCEPTION_ALLOWS_INSECURE_HTTP_LOADS = "NSThirdPartyExceptionAllowsInsecureHTTPLoads"

LOOPBACK_DOMAINS = frozenset({"localhost", "127.0.0.1", "::1"})


def _is_true(value: StructuredValue) -> bool:
    flag = value.as_bool()
    if flag is not None:
        return flag
    text = value.as_string()
    return text is not None and text.strip().upper() in ("YES", "TRUE", "1")


def insecure_exception_domains(ats: Dict[str, Any]) -> List[str]:
    """Non-loopback exception domains that allow plain HTTP, sorted"""
    domains = StructuredValue(ats).get(EXCEPTION_DOMAINS).as_dict() or {}
    insecure = []
    for domain, settings in domains.items():
        if domain.lower() in LOOPBACK_DOMAINS:
            continue
        entry = StructuredValue(settings)
        if (_is_true(entry.get(EXCEPTION_ALLOWS_INSECURE_HTTP_LOADS))
                or _is_true(entry.get(THIRD_PARTY_EXCEPTION_ALLOWS_INSECURE_HTTP_LOADS))):
            insecure.append(domain)
    return sorted(insecure)


class ATSExceptionRule(Rule):
    rule_id = "config-001-ats-exception-without-justification"

    def evaluate(self, context: ScanContext) -> List[Finding]:
        ats = context.plist_dict(APP_TRANSPORT_SECURITY_KEY)
        if not ats:
            return []

        settings = StructuredValue(ats)
        location = self.plist_location(context)

        if _is_true(settings.get(ALLOWS_ARBITRARY_LOADS)):
            return [self.make_finding(
                title="App Transport Security Disabled",
                description=(
                    "NSAllowsArbitraryLoads is set to true, which disables App Transport Security for "
                    "all network connections. App Review requires a justification for disabling ATS, and "
                    "apps without one may be rejected."
                ),
                fix_guidance=(
                    "Remove NSAllowsArbitraryLoads and serve your content over HTTPS. If specific servers "
                    "cannot support HTTPS, add NSExceptionDomains entries for just those domains:\n\n"
                    "<key>NSAppTransportSecurity</key>\n"
                    "<dict>\n"
                    "    <key>NSExceptionDomains</key>\n"
                    "    <dict>\n"
                    "        <key>legacy.example.com</key>\n"
                    "        <dict>\n"
                    "            <key>NSExceptionAllowsInsecureHTTPLoads</key>\n"
                    "            <true/>\n"
                    "        </dict>\n"
                    "    </dict>\n"
                    "</dict>"
                ),
                location=location,
            )]

        findings = []
        domains = insecure_exception_domains(ats)
        if domains:
            findings.append(self.make_custom_finding(
                Severity.MEDIUM, Confidence.MEDIUM,
                title="Insecure HTTP Exception Domains",
                description=(
                    f"App Transport Security allows insecure HTTP loads for: {', '.join(domains)}. "
                    f"Be prepared to justify each exception during App Review."
                ),
                fix_guidance=(
                    "Migrate the listed domains to HTTPS and remove their NSExceptionAllowsInsecureHTTPLoads "
                    "entries. Keep only the exceptions you can justify to App Review."
                ),
                location=location,
            ))

        relaxed = [key for key in (ALLOWS_ARBITRARY_LOADS_IN_WEB_CONTENT, ALLOWS_ARBITRARY_LOADS_FOR_MEDIA)
                   if _is_true(settings.get(key))]
        if relaxed:
            findings.append(self.make_custom_finding(
                Severity.LOW, Confidence.MEDIUM,
                title="App Transport Security Relaxed for Web Content or Media",
                description=(
                    f"{' and '.join(relaxed)} is enabled. This is narrower than disabling ATS entirely, "
                    f"but App Review may still ask why it is needed."
                ),
                fix_guidance=(
                    "Confirm that your web views or media players need to load insecure content. Remove "
                    "the key if all content is available over HTTPS."
                ),
                location=location,
            ))

        return findings
