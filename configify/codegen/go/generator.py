"""
Functional options generator for Go struct types.

Walks the target struct's fields in declaration order, classifies each
one, then renders the header with the collected imports followed by one
fragment per usable field.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from ..core.generator import CodeGenerator
from ..core.naming import factory_name, option_type_name
from ..core.schema import TargetType
from ...logging_config import get_logger
from .catalog import HeaderContext, TemplateCatalog
from .formatter import GoFormatter
from .types import ClassifiedField, ImportSet, SkippedField, classify_field

logger = get_logger(__name__)

# Identifiers the header always declares.
HEADER_NAMES = {"New", "Option"}


class OptionsGenerator(CodeGenerator):
    """Code generator for functional options on a Go struct."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize the generator with configuration."""
        super().__init__(config)

        self.add_comments = self.config.get("add_comments", True)
        self.use_gofmt = self.config.get("use_gofmt", True)
        self.formatter = GoFormatter(self.config.get("gofmt_command") or "gofmt")
        self.catalog = TemplateCatalog(self.template_engine)

        # Type names already declared by the target package
        self.declared_types: Set[str] = set()

        # State of the last generate() call
        self.last_run_metadata: Dict[str, Any] = {}
        self.last_run_warnings: List[str] = []

    def get_template_directory(self) -> Optional[Path]:
        """Return the Go templates directory."""
        return Path(__file__).parent / "templates"

    @property
    def language_name(self) -> str:
        return "go"

    @property
    def file_extension(self) -> str:
        return ".go"

    def validate_target(self, target: TargetType) -> List[str]:
        warnings = super().validate_target(target)
        for warning in warnings:
            logger.warning(warning)
        return warnings

    def generate(self, target: TargetType) -> str:
        """Generate the options source for `target`."""
        self.last_run_warnings = []

        classified, skipped = self.collect_fields(target)

        imports = ImportSet()
        for item in classified:
            imports.update(item.imports)
        for warning in imports.warnings:
            self._warn(warning)

        self._check_header_names(target)

        parts = [
            self.catalog.render_header(
                HeaderContext(
                    package=target.package_name,
                    cfg_type=target.name,
                    imports=imports.specs(),
                    add_comments=self.add_comments,
                )
            )
        ]
        for item in classified:
            parts.append(
                self.catalog.render_field(item, target.name, self.add_comments)
            )

        code = self.format_code("\n".join(parts))

        formatted = False
        if self.use_gofmt:
            code, format_warnings = self.formatter.format(code)
            formatted = not format_warnings
            self.last_run_warnings.extend(format_warnings)

        self.last_run_metadata = {
            "type_name": target.name,
            "package": target.package_name,
            "field_count": len(target.fields),
            "generated_count": len(classified),
            "generated_fields": [item.name for item in classified],
            "skipped_fields": [item.name for item in skipped],
            "imports": imports.paths,
            "formatted": formatted,
        }
        logger.info(
            "Generated %d of %d options for %s",
            len(classified),
            len(target.fields),
            target.name,
        )
        return code

    def collect_fields(
        self, target: TargetType
    ) -> Tuple[List[ClassifiedField], List[SkippedField]]:
        """
        Classify every field of `target`, in declaration order.

        Skipped fields are logged and left out; a field whose generated
        names clash with an earlier field is skipped too.
        """
        classified: List[ClassifiedField] = []
        skipped: List[SkippedField] = []
        owners: Dict[str, str] = {}

        for struct_field in target.fields:
            result = classify_field(struct_field, target.package_path)

            if isinstance(result, ClassifiedField):
                clash = self._name_clash(result.name, owners)
                if clash is not None:
                    result = SkippedField(name=result.name, reason=clash)

            if isinstance(result, SkippedField):
                skipped.append(result)
                if result.silent:
                    logger.debug("Skipping field %s: %s", result.name, result.reason)
                else:
                    self._warn(f"skipping field {result.name}: {result.reason}")
                continue

            if result.note:
                self._warn(f"field {result.name}: {result.note}")

            for generated in (option_type_name(result.name), factory_name(result.name)):
                owners[generated] = result.name
            classified.append(result)

        return classified, skipped

    def _name_clash(self, name: str, owners: Dict[str, str]) -> Optional[str]:
        for generated in (option_type_name(name), factory_name(name)):
            if generated in owners:
                return f"{generated} is already generated for field {owners[generated]}"
            if generated in self.declared_types or generated in HEADER_NAMES:
                return f"{generated} is already declared in the package"
        return None

    def _check_header_names(self, target: TargetType):
        for name in sorted(HEADER_NAMES):
            if name == target.name or name in self.declared_types:
                self._warn(
                    f"{name} is already declared in package {target.package_name}; "
                    "the generated code will not compile"
                )

    def _warn(self, message: str):
        logger.warning(message)
        self.last_run_warnings.append(message)


def create_generator(config: Optional[Dict[str, Any]] = None) -> OptionsGenerator:
    """
    Create an options generator.

    Args:
        config: Generator options (add_comments, use_gofmt, gofmt_command)

    Returns:
        Configured OptionsGenerator instance
    """
    return OptionsGenerator(config)
