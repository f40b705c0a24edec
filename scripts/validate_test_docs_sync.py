#!/usr/bin/env python3
"""
Validate that the payout scenario summary stays in sync with the integration tests.

Checks docs/test_scenarios_business_summary.md against
tests/test_integration_scenarios.py:
- every test class and test method is documented
- every documented class and method still exists

Run: python scripts/validate_test_docs_sync.py
"""

import re
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
TEST_FILE = PROJECT_ROOT / 'tests' / 'test_integration_scenarios.py'
DOC_FILE = PROJECT_ROOT / 'docs' / 'test_scenarios_business_summary.md'

CLASS_DOC_PATTERN = re.compile(r'\*\*Test Class\*\*:\s*`(Test\w+)`')
METHOD_DOC_PATTERN = re.compile(r'\*\*Test Method\*\*:\s*`(test_\w+)`')


def collect_tests(test_file: Path) -> dict[str, list[str]]:
    """Map each top-level Test class to its test methods."""
    classes: dict[str, list[str]] = {}
    current = None

    for line in test_file.read_text().splitlines():
        class_match = re.match(r'^class (Test\w+)', line)
        if class_match:
            current = class_match.group(1)
            classes[current] = []
        elif current:
            method_match = re.match(r'^\s+def (test_\w+)', line)
            if method_match:
                classes[current].append(method_match.group(1))

    return classes


def collect_documented(doc_file: Path) -> tuple[set[str], set[str]]:
    content = doc_file.read_text()
    return set(CLASS_DOC_PATTERN.findall(content)), set(METHOD_DOC_PATTERN.findall(content))


def find_sync_issues(test_file: Path = TEST_FILE, doc_file: Path = DOC_FILE) -> tuple[list[str], list[str]]:
    """
    Compare tests with documentation.

    Returns (missing, stale): tests without documentation, and documentation
    for tests that no longer exist.
    """
    tests = collect_tests(test_file)
    doc_classes, doc_methods = collect_documented(doc_file)
    methods = {m for names in tests.values() for m in names}

    missing = [f"class {c}" for c in sorted(set(tests) - doc_classes)]
    missing += [f"method {m}" for m in sorted(methods - doc_methods)]
    stale = [f"class {c}" for c in sorted(doc_classes - set(tests))]
    stale += [f"method {m}" for m in sorted(doc_methods - methods)]
    return missing, stale


def main() -> int:
    for path in (TEST_FILE, DOC_FILE):
        if not path.exists():
            print(f"Not found: {path}")
            return 1

    missing, stale = find_sync_issues()
    tests = collect_tests(TEST_FILE)

    print(f"{TEST_FILE.name}: {len(tests)} classes, {sum(len(m) for m in tests.values())} methods")
    for item in missing:
        print(f"  MISSING from {DOC_FILE.name}: {item}")
    for item in stale:
        print(f"  STALE in {DOC_FILE.name}: {item}")

    if not missing and not stale:
        print("All integration scenarios are documented.")
    return 1 if missing else 0


if __name__ == '__main__':
    sys.exit(main())
