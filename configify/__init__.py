"""
configify: functional options for Go struct types.

Reads a Go package, picks one struct type and writes a `New`
constructor, an `Option` interface and one `With<Field>` option per
field.
"""

from .codegen import GenerationResult, GeneratorConfig, generate_from_package, load_config
from .codegen.go import LoaderError

__version__ = "0.1.0"


def generate_options(patterns, type_name, **options):
    """
    Generate options source for a struct type.

    Args:
        patterns: A directory, or the .go files of one package
        type_name: Struct type to generate options for
        **options: GeneratorConfig overrides (build_tags, add_comments, ...)

    Returns:
        Generated Go source text
    """
    if isinstance(patterns, str):
        patterns = [patterns]
    config = load_config(custom_config=options)
    result = generate_from_package(patterns, type_name, config)

    if result.success:
        return result.code
    else:
        raise RuntimeError(f"Code generation failed: {result.error_message}")


__all__ = [
    "GenerationResult",
    "GeneratorConfig",
    "LoaderError",
    "generate_from_package",
    "generate_options",
    "load_config",
    "__version__",
]
