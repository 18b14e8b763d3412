"""
Template catalog for the options generator.

One template per shape category plus the file header. Each template is
rendered from a small, flat context built here, so the templates only
substitute names and never make type decisions themselves.
"""

from dataclasses import dataclass, asdict
from typing import Dict, List

from ..core.naming import lower_name, option_type_name, upper_name
from ..core.templates import TemplateEngine, TemplateError
from .types import ClassifiedField, ShapeCategory, conversion_type

HEADER_TEMPLATE = "header.go.j2"

TEMPLATE_NAMES: Dict[ShapeCategory, str] = {
    ShapeCategory.SCALAR: "scalar.go.j2",
    ShapeCategory.POINTER: "pointer.go.j2",
    ShapeCategory.SLICE: "slice.go.j2",
    ShapeCategory.MAP: "map.go.j2",
    ShapeCategory.INTERFACE: "interface.go.j2",
}


@dataclass(frozen=True)
class HeaderContext:
    package: str
    cfg_type: str
    imports: List[str]
    add_comments: bool = True


@dataclass(frozen=True)
class FieldContext:
    """
    Values substituted into a field template.

    `carrier` is the option type's definition, `payload` reads the
    option's value inside Apply and `wrap` builds the option from `v`.
    """

    cfg_type: str
    orig_name: str
    name_lower: str
    name_upper: str
    orig_type: str
    carrier: str
    payload: str
    wrap: str
    add_comments: bool = True


def field_context(
    classified: ClassifiedField, cfg_type: str, add_comments: bool = True
) -> FieldContext:
    """Build the template context for one classified field."""
    name_lower = lower_name(classified.name)
    option_type = option_type_name(classified.name)
    orig_type = classified.rendered_type

    if classified.boxed:
        carrier = f"struct {{\n\tv {orig_type}\n}}"
        payload = "o.v"
        wrap = f"{option_type}{{v: v}}"
    else:
        carrier = orig_type
        if classified.category == ShapeCategory.MAP:
            payload = "o"
        else:
            payload = f"{conversion_type(orig_type)}(o)"
        wrap = f"{option_type}(v)"

    return FieldContext(
        cfg_type=cfg_type,
        orig_name=classified.name,
        name_lower=name_lower,
        name_upper=upper_name(classified.name),
        orig_type=orig_type,
        carrier=carrier,
        payload=payload,
        wrap=wrap,
        add_comments=add_comments,
    )


class TemplateCatalog:
    """Renders the header and per-field fragments."""

    def __init__(self, engine: TemplateEngine):
        self.engine = engine
        missing = [
            name
            for name in [HEADER_TEMPLATE, *TEMPLATE_NAMES.values()]
            if not engine.template_exists(name)
        ]
        if missing:
            raise TemplateError(f"Missing templates: {', '.join(missing)}")

    def render_header(self, context: HeaderContext) -> str:
        return self.engine.render_template(HEADER_TEMPLATE, asdict(context))

    def render_field(
        self, classified: ClassifiedField, cfg_type: str, add_comments: bool = True
    ) -> str:
        context = field_context(classified, cfg_type, add_comments)
        template_name = TEMPLATE_NAMES[classified.category]
        return self.engine.render_template(template_name, asdict(context))
