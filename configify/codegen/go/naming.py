"""
Go-specific naming rules.

Handles Go reserved words and the default package name implied by an
import path.
"""

import re


# Go reserved words
GO_RESERVED_WORDS = {
    "break",
    "case",
    "chan",
    "const",
    "continue",
    "default",
    "defer",
    "else",
    "fallthrough",
    "for",
    "func",
    "go",
    "goto",
    "if",
    "import",
    "interface",
    "map",
    "package",
    "range",
    "return",
    "select",
    "struct",
    "switch",
    "type",
    "var",
}

_MAJOR_VERSION = re.compile(r"^v[0-9]+$")
_GOPKG_VERSION = re.compile(r"\.v[0-9]+$")


def default_package_name(import_path: str) -> str:
    """
    Guess the package name an import path binds when imported unaliased.

    Uses the last path element, skipping a `/vN` major-version element
    and dropping a gopkg.in style `.vN` suffix.
    """
    parts = [p for p in import_path.split("/") if p]
    if not parts:
        return ""
    name = parts[-1]
    if len(parts) > 1 and _MAJOR_VERSION.match(name):
        name = parts[-2]
    name = _GOPKG_VERSION.sub("", name)
    return name.replace("-", "_").replace(".", "_")
