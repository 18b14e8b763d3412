"""
Base generator interface for code generation targets.

Defines the contract the options generator implements and the
result container handed back to callers.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Any, Optional
from pathlib import Path
from .schema import TargetType
from .templates import TemplateEngine, TemplateError, create_template_engine


class GeneratorError(Exception):
    """Base exception for code generation errors."""

    pass


class CodeGenerator(ABC):
    """Abstract base class for code generators."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize generator with optional configuration."""
        self.config = config or {}
        self._template_engine = None
        self._setup_templates()

    def _setup_templates(self):
        """Setup template engine for this generator."""
        template_dir = self.get_template_directory()
        self._template_engine = create_template_engine(template_dir)

    @property
    @abstractmethod
    def language_name(self) -> str:
        """Return the name of the target language (e.g., 'go')."""
        pass

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Return the file extension for generated files (e.g., '.go')."""
        pass

    def get_template_directory(self) -> Optional[Path]:
        """
        Return the directory containing templates for this generator.

        Return None to use in-memory templates only.
        """
        return None

    @property
    def template_engine(self) -> TemplateEngine:
        """Get the template engine for this generator."""
        if self._template_engine is None:
            self._setup_templates()
        return self._template_engine

    @abstractmethod
    def generate(self, target: TargetType) -> str:
        """
        Generate code for the target type.

        Args:
            target: Struct type to generate code for

        Returns:
            Generated code as a string
        """
        pass

    def validate_target(self, target: TargetType) -> List[str]:
        """
        Validate the target type for basic structural issues.

        Args:
            target: Target type to validate

        Returns:
            List of warning messages (empty if no issues)
        """
        warnings = []
        if not target.fields:
            warnings.append(f"Type '{target.name}' has no fields")
        elif all(f.embedded for f in target.fields):
            warnings.append(f"Type '{target.name}' has only embedded fields")
        return warnings

    def format_code(self, code: str) -> str:
        """
        Apply basic formatting to generated code.

        Strips trailing whitespace and collapses runs of blank lines.
        """
        formatted_lines = []
        blank_count = 0

        for line in code.split("\n"):
            stripped = line.rstrip()
            if not stripped:
                blank_count += 1
                if blank_count <= 1:
                    formatted_lines.append("")
            else:
                blank_count = 0
                formatted_lines.append(stripped)

        return "\n".join(formatted_lines).strip("\n") + "\n"


class GenerationResult:
    """Container for generation results and metadata."""

    def __init__(
        self, code: str, warnings: List[str] = None, metadata: Dict[str, Any] = None
    ):
        """
        Initialize generation result.

        Args:
            code: Generated code
            warnings: Any warnings from generation
            metadata: Additional metadata about generation
        """
        self.code = code
        self.warnings = warnings or []
        self.metadata = metadata or {}
        self.success = True
        self.error_message = None
        self.exception = None

    @classmethod
    def error(cls, message: str, exception: Exception = None) -> "GenerationResult":
        """Create a failed generation result."""
        result = cls(code="")
        result.success = False
        result.error_message = message
        result.exception = exception
        return result


def generate_code(generator: CodeGenerator, target: TargetType) -> GenerationResult:
    """
    Generate code using the specified generator with error handling.

    Args:
        generator: Code generator instance
        target: Struct type to generate code for

    Returns:
        GenerationResult with code, warnings, and metadata
    """
    try:
        warnings = generator.validate_target(target)
        code = generator.generate(target)

        metadata = {
            "language": generator.language_name,
            "file_extension": generator.file_extension,
            "type_name": target.name,
            "package": target.package_name,
            "field_count": len(target.fields),
        }
        metadata.update(getattr(generator, "last_run_metadata", {}))
        warnings.extend(getattr(generator, "last_run_warnings", []))

        return GenerationResult(code, warnings, metadata)

    except (GeneratorError, TemplateError) as e:
        return GenerationResult.error(f"Code generation failed: {str(e)}", exception=e)
