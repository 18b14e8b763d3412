"""
Configify code generation module.

Generates functional options for a Go struct type.
"""

from dataclasses import asdict
from typing import Optional, Sequence

from .core.config import ConfigManager, GeneratorConfig, load_config
from .core.generator import CodeGenerator, GenerationResult, generate_code
from .core.schema import Package, TargetType
from .go import LoaderError, OptionsGenerator, create_generator, load_package, lookup_struct


def generate_from_package(
    patterns: Optional[Sequence[str]],
    type_name: str,
    config: Optional[GeneratorConfig] = None,
) -> GenerationResult:
    """
    Generate options for `type_name` in the package named by `patterns`.

    Args:
        patterns: A single directory, or the .go files of one package
        type_name: Struct type to generate options for
        config: Generator configuration (defaults when omitted)

    Returns:
        GenerationResult with generated code

    Raises:
        LoaderError: If the package cannot be loaded or has no such struct
    """
    config = config or GeneratorConfig()
    package = load_package(patterns, config)
    target = lookup_struct(package, type_name)

    generator = create_generator(asdict(config))
    generator.declared_types = set(package.types) - {type_name}
    return generate_code(generator, target)


__all__ = [
    "CodeGenerator",
    "GenerationResult",
    "GeneratorConfig",
    "ConfigManager",
    "LoaderError",
    "OptionsGenerator",
    "Package",
    "TargetType",
    "generate_code",
    "generate_from_package",
    "load_config",
]
