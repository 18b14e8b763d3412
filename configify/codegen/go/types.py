"""
Go type shape classification for option generation.

Decides, for every struct field, which option strategy applies and how
its type is spelled in the generated file, and collects the packages
that spelling refers to.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple, Union
from enum import Enum

from ..core.schema import (
    Array,
    Basic,
    Chan,
    ChanDir,
    GoType,
    Interface,
    Map,
    Named,
    PackageRef,
    Param,
    Pointer,
    Signature,
    Slice,
    Struct,
    StructField,
    TypeParam,
)
from .naming import default_package_name


class ShapeCategory(Enum):
    """How a field's option is applied."""

    SCALAR = "scalar"  # assign a copy
    POINTER = "pointer"  # assign a pointer to a private copy of the pointee
    SLICE = "slice"  # replace the slice wholesale
    MAP = "map"  # merge entries into the existing map
    INTERFACE = "interface"  # assign the interface value


@dataclass(frozen=True)
class ClassifiedField:
    """
    A field ready for rendering.

    `rendered_type` is the option payload type: the field's own type, or
    the pointee type for POINTER fields. `boxed` asks for a struct
    carrier, needed when the payload's underlying type is an interface
    or pointer (Go does not allow methods on such types).
    """

    name: str
    rendered_type: str
    category: ShapeCategory
    imports: Tuple[PackageRef, ...] = ()
    boxed: bool = False
    note: Optional[str] = None


@dataclass(frozen=True)
class SkippedField:
    """A field left out of the generated code, with the reason."""

    name: str
    reason: str
    silent: bool = False


Classification = Union[ClassifiedField, SkippedField]


class TypeRenderer:
    """
    Prints types as they must be written inside the target package.

    Types of the target package render unqualified; every other
    package-qualified reference is recorded in `refs`.
    """

    def __init__(self, local_path: str):
        self.local_path = local_path
        self.refs: List[PackageRef] = []

    def render(self, go_type: GoType) -> str:
        if isinstance(go_type, Named):
            text = self._qualify(go_type.package, go_type.name)
            if go_type.type_args:
                args = ", ".join(self.render(arg) for arg in go_type.type_args)
                text = f"{text}[{args}]"
            return text

        if isinstance(go_type, Basic):
            return go_type.name

        if isinstance(go_type, TypeParam):
            return go_type.name

        if isinstance(go_type, Pointer):
            return "*" + self.render(go_type.elem)

        if isinstance(go_type, Slice):
            return "[]" + self.render(go_type.elem)

        if isinstance(go_type, Array):
            for ref in go_type.length_refs:
                self._record(ref)
            return f"[{go_type.length}]" + self.render(go_type.elem)

        if isinstance(go_type, Map):
            return f"map[{self.render(go_type.key)}]{self.render(go_type.value)}"

        if isinstance(go_type, Chan):
            elem = self.render(go_type.elem)
            if (
                go_type.direction == ChanDir.BOTH
                and isinstance(go_type.elem, Chan)
                and go_type.elem.direction == ChanDir.RECV
            ):
                elem = f"({elem})"
            return f"{go_type.direction.value} {elem}"

        if isinstance(go_type, Signature):
            return "func" + self._signature(go_type)

        if isinstance(go_type, Struct):
            if not go_type.fields:
                return "struct{}"
            parts = [self._struct_field(f) for f in go_type.fields]
            return "struct{ " + "; ".join(parts) + " }"

        if isinstance(go_type, Interface):
            if go_type.spelled_any:
                return "any"
            if not go_type.methods and not go_type.embedded:
                return "interface{}"
            parts = [self.render(e) for e in go_type.embedded]
            parts.extend(
                m.name + self._signature(m.signature) for m in go_type.methods
            )
            return "interface{ " + "; ".join(parts) + " }"

        raise TypeError(f"cannot render {go_type!r}")

    def _qualify(self, package: Optional[PackageRef], name: str) -> str:
        if package is None or package.path == self.local_path:
            return name
        self._record(package)
        return f"{package.name}.{name}"

    def _record(self, ref: PackageRef):
        if ref.path != self.local_path and ref not in self.refs:
            self.refs.append(ref)

    def _signature(self, sig: Signature) -> str:
        params = []
        for index, param in enumerate(sig.params):
            text = self.render(param.type)
            if sig.variadic and index == len(sig.params) - 1:
                text = "..." + text
            params.append(f"{param.name} {text}" if param.name else text)
        result = "(" + ", ".join(params) + ")"

        if not sig.results:
            return result
        if len(sig.results) == 1 and not sig.results[0].name:
            return f"{result} {self.render(sig.results[0].type)}"
        return f"{result} (" + ", ".join(self._param(p) for p in sig.results) + ")"

    def _param(self, param: Param) -> str:
        text = self.render(param.type)
        return f"{param.name} {text}" if param.name else text

    def _struct_field(self, struct_field: StructField) -> str:
        text = self.render(struct_field.type)
        if not struct_field.embedded:
            text = f"{struct_field.name} {text}"
        if struct_field.tag is not None:
            text += " " + _quote_tag(struct_field.tag)
        return text


def _quote_tag(tag: str) -> str:
    if "`" not in tag:
        return f"`{tag}`"
    return '"' + tag.replace("\\", "\\\\").replace('"', '\\"') + '"'


def render_type(go_type: GoType, local_path: str) -> Tuple[str, Tuple[PackageRef, ...]]:
    """Render a type for the package at `local_path`, with the packages it needs."""
    renderer = TypeRenderer(local_path)
    text = renderer.render(go_type)
    return text, tuple(renderer.refs)


def contains_type_param(go_type: GoType) -> bool:
    """Report whether a type mentions a type parameter anywhere."""
    return any(isinstance(t, TypeParam) for t in _walk(go_type))


def _walk(go_type: GoType) -> Iterator[GoType]:
    yield go_type
    if isinstance(go_type, Named):
        for arg in go_type.type_args:
            yield from _walk(arg)
    elif isinstance(go_type, (Pointer, Slice, Array, Chan)):
        yield from _walk(go_type.elem)
    elif isinstance(go_type, Map):
        yield from _walk(go_type.key)
        yield from _walk(go_type.value)
    elif isinstance(go_type, Signature):
        for param in go_type.params + go_type.results:
            yield from _walk(param.type)
    elif isinstance(go_type, Struct):
        for struct_field in go_type.fields:
            yield from _walk(struct_field.type)
    elif isinstance(go_type, Interface):
        for embedded in go_type.embedded:
            yield from _walk(embedded)
        for method in go_type.methods:
            yield from _walk(method.signature)


def _needs_box(go_type: GoType) -> bool:
    return isinstance(go_type.underlying, (Pointer, Interface))


def _describe(go_type: GoType) -> str:
    if isinstance(go_type, Chan):
        return "channel"
    if isinstance(go_type, TypeParam):
        return "type parameter"
    return type(go_type).__name__.lower()


def classify_field(struct_field: StructField, local_path: str) -> Classification:
    """
    Classify one struct field of the target package at `local_path`.

    Never raises for unsupported shapes; those come back as SkippedField.
    """
    name = struct_field.name
    go_type = struct_field.type

    if struct_field.embedded:
        return SkippedField(name=name, reason="embedded field", silent=True)
    if name == "_":
        return SkippedField(name=name, reason="blank field")

    rendered, imports = render_type(go_type, local_path)
    if contains_type_param(go_type):
        return SkippedField(
            name=name, reason=f"unsupported type {rendered}: uses a type parameter"
        )

    underlying = go_type.underlying
    if underlying is None:
        qualified = go_type.qualified_name if isinstance(go_type, Named) else rendered
        return ClassifiedField(
            name=name,
            rendered_type=rendered,
            category=ShapeCategory.SCALAR,
            imports=imports,
            boxed=True,
            note=f"underlying type of {qualified} is unknown; treating it as a value",
        )

    if isinstance(underlying, (Basic, Array, Signature, Struct)):
        category = ShapeCategory.SCALAR
    elif isinstance(underlying, Slice):
        category = ShapeCategory.SLICE
    elif isinstance(underlying, Map):
        category = ShapeCategory.MAP
    elif isinstance(underlying, Pointer):
        pointee = underlying.elem
        payload, imports = render_type(pointee, local_path)
        return ClassifiedField(
            name=name,
            rendered_type=payload,
            category=ShapeCategory.POINTER,
            imports=imports,
            boxed=_needs_box(pointee),
        )
    elif isinstance(underlying, Interface):
        if (
            isinstance(go_type, Named)
            and go_type.package is not None
            and go_type.package.path != local_path
        ):
            return SkippedField(
                name=name,
                reason=(
                    f"interface type {go_type.qualified_name} is declared in "
                    "another package"
                ),
            )
        return ClassifiedField(
            name=name,
            rendered_type=rendered,
            category=ShapeCategory.INTERFACE,
            imports=imports,
            boxed=True,
        )
    else:
        return SkippedField(
            name=name,
            reason=f"unsupported type {rendered} ({_describe(underlying)})",
        )

    return ClassifiedField(
        name=name, rendered_type=rendered, category=category, imports=imports
    )


class ImportSet:
    """
    Packages referenced by the generated code.

    Keyed by (qualifier, path); a path may be bound to more than one
    qualifier, but a qualifier bound to two paths is reported.
    """

    def __init__(self):
        self._entries: Dict[Tuple[str, str], PackageRef] = {}
        self.warnings: List[str] = []

    def add(self, ref: PackageRef):
        key = (ref.name, ref.path)
        if key in self._entries:
            return
        for name, path in self._entries:
            if name == ref.name and path != ref.path:
                self.warnings.append(
                    f"import name {ref.name!r} refers to both {path!r} and {ref.path!r}"
                )
        self._entries[key] = ref

    def update(self, refs):
        for ref in refs:
            self.add(ref)

    @property
    def paths(self) -> List[str]:
        return sorted({path for _, path in self._entries})

    def specs(self) -> List[str]:
        """Import specs in deterministic order, aliased only where needed."""
        specs = []
        for name, path in sorted(self._entries, key=lambda k: (k[1], k[0])):
            if name == default_package_name(path):
                specs.append(f'"{path}"')
            else:
                specs.append(f'{name} "{path}"')
        return specs

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self.specs())


def conversion_type(rendered: str) -> str:
    """Spell a type so it can be used as a conversion `T(x)`."""
    if rendered.startswith(("*", "<-", "func")):
        return f"({rendered})"
    return rendered
