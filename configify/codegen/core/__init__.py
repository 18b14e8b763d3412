"""
Core code generation components.

Provides base classes and utilities used by the Go options generator.
"""

from .generator import CodeGenerator, GeneratorError, GenerationResult, generate_code
from .schema import (
    GoType,
    Named,
    Package,
    PackageRef,
    StructField,
    TargetType,
)
from .naming import lower_name, upper_name
from .config import GeneratorConfig, ConfigManager, ConfigError, load_config
from .templates import TemplateEngine, TemplateError, create_template_engine

__all__ = [
    # Base generator interface
    "CodeGenerator",
    "GeneratorError",
    "GenerationResult",
    "generate_code",
    # Type model
    "GoType",
    "Named",
    "Package",
    "PackageRef",
    "StructField",
    "TargetType",
    # Naming utilities
    "lower_name",
    "upper_name",
    # Configuration system
    "GeneratorConfig",
    "ConfigManager",
    "ConfigError",
    "load_config",
    # Template system
    "TemplateEngine",
    "TemplateError",
    "create_template_engine",
]
