"""
Naming utilities for generated identifiers.

Option carrier types use the lower-camel form of a field name and the
exported factories use the upper-camel form. Only the first character
changes; the remainder of the identifier is kept as written.
"""


def lower_name(name: str) -> str:
    """Return `name` with its first character lower-cased."""
    if not name:
        raise ValueError("Cannot derive a name from an empty identifier")
    return name[0].lower() + name[1:]


def upper_name(name: str) -> str:
    """Return `name` with its first character upper-cased."""
    if not name:
        raise ValueError("Cannot derive a name from an empty identifier")
    return name[0].upper() + name[1:]


def option_type_name(field_name: str) -> str:
    """Name of the private option carrier type for a field."""
    return f"{lower_name(field_name)}Option"


def factory_name(field_name: str) -> str:
    """Name of the exported `With*` factory for a field."""
    return f"With{upper_name(field_name)}"
