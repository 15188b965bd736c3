"""Catalog helpers for chemical color tests."""

import re

_NON_SLUG = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^a-z0-9]")


def generate_test_id(method_name: str, test_number: str) -> str:
    """Build the catalog slug for a test, e.g. ``("Marquis Test", "1") -> "marquis-test-1"``."""
    clean_method = _NON_SLUG.sub("", method_name.lower())
    clean_method = _WHITESPACE.sub("-", clean_method.strip())
    clean_number = _NON_ALNUM.sub("", test_number.lower())
    return f"{clean_method}-{clean_number}"
