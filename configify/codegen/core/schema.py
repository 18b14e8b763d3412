"""
Core type model for code generation.

Holds the resolved view of a Go package that the generators work on:
the target struct type, its ordered field list and a small family of
type nodes describing each field's declared type.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple
from enum import Enum


class GoType:
    """Base class for every resolved Go type node."""

    @property
    def underlying(self) -> Optional["GoType"]:
        """Return the fully resolved type (itself for non-named types)."""
        return self


@dataclass(frozen=True)
class PackageRef:
    """
    Reference to a package as seen from a source file.

    `name` is the qualifier the source file used for the package (an
    explicit import alias or the package's own name).
    """

    path: str
    name: str


@dataclass(frozen=True)
class Basic(GoType):
    """Predeclared boolean, numeric or string type."""

    name: str


@dataclass(frozen=True)
class Pointer(GoType):
    elem: GoType


@dataclass(frozen=True)
class Slice(GoType):
    elem: GoType


@dataclass(frozen=True)
class Array(GoType):
    """Fixed-length array; the length is kept as written in the source."""

    length: str
    elem: GoType
    length_refs: Tuple[PackageRef, ...] = ()


@dataclass(frozen=True)
class Map(GoType):
    key: GoType
    value: GoType


class ChanDir(Enum):
    """Channel directions."""

    BOTH = "chan"
    SEND = "chan<-"
    RECV = "<-chan"


@dataclass(frozen=True)
class Chan(GoType):
    elem: GoType
    direction: ChanDir = ChanDir.BOTH


@dataclass(frozen=True)
class Param:
    """Function parameter or result; `name` may be empty."""

    name: str
    type: GoType


@dataclass(frozen=True)
class Signature(GoType):
    """Function type. When `variadic` is set the last param is `...T`."""

    params: Tuple[Param, ...] = ()
    results: Tuple[Param, ...] = ()
    variadic: bool = False


@dataclass(frozen=True)
class StructField:
    """Represents a single field in a struct declaration."""

    name: str
    type: GoType
    embedded: bool = False
    tag: Optional[str] = None


@dataclass(frozen=True)
class Struct(GoType):
    fields: Tuple[StructField, ...] = ()


@dataclass(frozen=True)
class InterfaceMethod:
    name: str
    signature: Signature


@dataclass(frozen=True)
class Interface(GoType):
    """
    Interface type literal.

    `embedded` holds embedded interfaces and type-set terms as-is;
    `spelled_any` keeps the predeclared `any` spelling for rendering.
    """

    methods: Tuple[InterfaceMethod, ...] = ()
    embedded: Tuple[GoType, ...] = ()
    spelled_any: bool = False


@dataclass(frozen=True)
class TypeParam(GoType):
    """Type parameter of a generic declaration."""

    name: str


@dataclass(eq=False)
class Named(GoType):
    """
    Defined (or alias) type referenced by name.

    The underlying type is resolved lazily through `resolver`, since the
    declaring package may only be parsed on demand and declarations can
    be self-referential. A resolver returning None means the declaring
    source could not be found; `underlying` is then None as well.
    """

    name: str
    package: Optional[PackageRef] = None
    type_args: Tuple[GoType, ...] = ()
    alias: bool = False
    resolver: Optional[Callable[[], Optional[GoType]]] = field(
        default=None, repr=False
    )
    _resolved: bool = field(default=False, init=False, repr=False)
    _resolving: bool = field(default=False, init=False, repr=False)
    _underlying: Optional[GoType] = field(default=None, init=False, repr=False)

    @property
    def underlying(self) -> Optional[GoType]:
        if self._resolved:
            return self._underlying
        if self._resolving or self.resolver is None:
            # Cycle through names only (`type A B; type B A`) or no source.
            return None

        self._resolving = True
        try:
            declared = self.resolver()
            self._underlying = declared.underlying if declared is not None else None
        finally:
            self._resolving = False
        self._resolved = True
        return self._underlying

    @property
    def qualified_name(self) -> str:
        """Name including the package path, for diagnostics."""
        if self.package is None:
            return self.name
        return f"{self.package.path}.{self.name}"

    def __eq__(self, other):
        if not isinstance(other, Named):
            return NotImplemented
        return (
            self.name == other.name
            and self.package == other.package
            and self.type_args == other.type_args
        )

    def __hash__(self):
        return hash((self.name, self.package, self.type_args))


# Universe scope: `error` is a defined interface type with no package.
ERROR_TYPE = Named(
    name="error",
    resolver=lambda: Interface(
        methods=(
            InterfaceMethod(
                name="Error",
                signature=Signature(results=(Param("", Basic("string")),)),
            ),
        )
    ),
)

ANY_TYPE = Interface(spelled_any=True)

BASIC_TYPE_NAMES = frozenset(
    {
        "bool",
        "byte",
        "complex64",
        "complex128",
        "float32",
        "float64",
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "rune",
        "string",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "uintptr",
    }
)


@dataclass
class TargetType:
    """The struct type selected by name for generation."""

    name: str
    package_name: str
    package_path: str
    fields: List[StructField] = field(default_factory=list)

    def get_field(self, name: str) -> Optional[StructField]:
        """Get field by name."""
        for struct_field in self.fields:
            if struct_field.name == name:
                return struct_field
        return None


@dataclass
class TypeDecl:
    """A `type` declaration of a loaded package."""

    name: str
    type: GoType
    alias: bool = False
    type_params: Tuple[str, ...] = ()
    filename: str = ""


@dataclass
class Package:
    """A loaded Go package: its identity and its type declarations."""

    name: str
    path: str
    directory: str
    files: List[str] = field(default_factory=list)
    types: Dict[str, TypeDecl] = field(default_factory=dict)

    @property
    def ref(self) -> PackageRef:
        return PackageRef(path=self.path, name=self.name)
