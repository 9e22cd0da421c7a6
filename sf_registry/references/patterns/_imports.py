"""Shared regex fragments for ES module import statements."""

from __future__ import annotations

import re

# default, named, namespace, or default + named import clause
IMPORT_CLAUSE = (
    r"(?:\s+\w+|\s*\{[^}]*\}|\s*\*\s*as\s+\w+)"
    r"(?:\s*,\s*(?:\{[^}]*\}|\*\s*as\s+\w+))?"
)


def import_from(module_re: str) -> re.Pattern[str]:
    """Compile ``import <clause> from '<module>'`` with *module_re* capturing the name."""
    return re.compile(rf"\bimport{IMPORT_CLAUSE}\s*from\s*['\"]{module_re}['\"]")
