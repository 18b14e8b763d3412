"""
Go options generator.

Loads a Go package, classifies the fields of one struct type and
renders functional options for them.
"""

from .catalog import TemplateCatalog, field_context
from .constraints import BuildContext, BuildConstraintError, should_build
from .formatter import GoFormatter
from .generator import OptionsGenerator, create_generator
from .lexer import GoSyntaxError
from .loader import GoPackageLoader, LoaderError, load_package, lookup_struct
from .types import (
    ClassifiedField,
    ImportSet,
    ShapeCategory,
    SkippedField,
    classify_field,
    render_type,
)

__all__ = [
    "OptionsGenerator",
    "create_generator",
    # Loading
    "GoPackageLoader",
    "LoaderError",
    "GoSyntaxError",
    "load_package",
    "lookup_struct",
    "BuildContext",
    "BuildConstraintError",
    "should_build",
    # Classification
    "ClassifiedField",
    "SkippedField",
    "ShapeCategory",
    "ImportSet",
    "classify_field",
    "render_type",
    # Rendering
    "TemplateCatalog",
    "field_context",
    "GoFormatter",
]
