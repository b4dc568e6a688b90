"""Dynamic code execution rule (Guideline 2.5.2)"""

import re
from typing import List

from ...context import ScanContext
from ...models import Finding
from ..base import Rule, format_file_list

JSCONTEXT_PATTERN = re.compile(r'\bJSContext\b')
EVALUATE_SCRIPT_PATTERN = re.compile(r'\bevaluateScript\b')
DYNAMIC_LIBRARY_PATTERN = re.compile(r'\b(?:dlopen|dlsym)\s*\(')
CLASS_FROM_STRING_PATTERN = re.compile(r'NSClassFromString\(\s*@?"([A-Za-z_]\w*)"')

# Class prefixes of Apple frameworks
SYSTEM_CLASS_PREFIXES = ('NS', 'UI', 'CA', 'CL', 'AV', 'CG', 'SK', 'WK', 'MK')


def _is_system_class(name: str) -> bool:
    return name.startswith(SYSTEM_CLASS_PREFIXES)


class DynamicCodeExecutionRule(Rule):
    rule_id = "code-003-dynamic-code-execution"

    def evaluate(self, context: ScanContext) -> List[Finding]:
        findings = []
        javascript: List[str] = []
        libraries: List[str] = []
        classes: List[str] = []
        class_names: List[str] = []

        for source in context.source_files():
            relative = context.relative_path(source.path)
            content = source.content
            if JSCONTEXT_PATTERN.search(content) and EVALUATE_SCRIPT_PATTERN.search(content):
                javascript.append(relative)
            if DYNAMIC_LIBRARY_PATTERN.search(content):
                libraries.append(relative)
            dynamic = [name for name in CLASS_FROM_STRING_PATTERN.findall(content) if not _is_system_class(name)]
            if dynamic:
                classes.append(relative)
                class_names.extend(name for name in dynamic if name not in class_names)

        if javascript:
            findings.append(self.make_finding(
                title="JavaScript Code Execution",
                description=(
                    f"JSContext.evaluateScript is used in {format_file_list(javascript)}. Executing JavaScript "
                    f"downloaded at runtime to change app features or behavior violates Guideline 2.5.2."
                ),
                fix_guidance=(
                    "Only evaluate scripts that ship inside the app bundle. If scripts are downloaded, make "
                    "sure they do not add or change features, and be ready to explain their use to App Review."
                ),
                location=javascript[0],
            ))

        if libraries:
            findings.append(self.make_finding(
                title="Dynamic Library Loading",
                description=(
                    f"dlopen/dlsym is used in {format_file_list(libraries)}. Loading code at runtime that was "
                    f"not part of the reviewed binary violates Guideline 2.5.2."
                ),
                fix_guidance=(
                    "Link frameworks at build time instead of loading them with dlopen. Remove dynamic "
                    "symbol lookup of system libraries."
                ),
                location=libraries[0],
            ))

        if classes:
            findings.append(self.make_finding(
                title="Dynamic Class Loading via NSClassFromString",
                description=(
                    f"NSClassFromString is used with non-system class names ({', '.join(class_names)}) in "
                    f"{format_file_list(classes)}. Instantiating classes by name can be used to activate hidden "
                    f"functionality."
                ),
                fix_guidance=(
                    "Reference classes directly in code. If this is a plugin or routing mechanism over "
                    "classes compiled into the app, document it for App Review."
                ),
                location=classes[0],
            ))

        return findings
