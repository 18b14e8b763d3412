"""
Go package loader.

Loads the target package from a directory or an explicit file list,
resolves every type declaration into the core type model and looks up
imported packages' sources on demand so that named types from other
packages can be classified by their underlying type.
"""

import os
import re
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from ..core.config import GeneratorConfig
from ..core.generator import GeneratorError
from ..core.schema import (
    ANY_TYPE,
    BASIC_TYPE_NAMES,
    ERROR_TYPE,
    Array,
    Basic,
    Chan,
    ChanDir,
    GoType,
    Interface,
    InterfaceMethod,
    Map,
    Named,
    Package,
    PackageRef,
    Param,
    Pointer,
    Signature,
    Slice,
    Struct,
    StructField,
    TargetType,
    TypeDecl,
    TypeParam,
)
from ...logging_config import get_logger
from .constraints import BuildConstraintError, BuildContext, default_context, should_build
from .lexer import GoSyntaxError
from .naming import default_package_name
from .parser import (
    ArrayExpr,
    ChanExpr,
    FuncExpr,
    GenericExpr,
    IdentExpr,
    InterfaceExpr,
    MapExpr,
    PointerExpr,
    SelectorExpr,
    SourceFile,
    StructExpr,
    TypeExpr,
    UnionExpr,
    parse_source,
)

logger = get_logger(__name__)

GENERATED_MARKER = "// Code generated by configify; DO NOT EDIT."

_CHAN_DIRECTIONS = {
    "chan": ChanDir.BOTH,
    "chan<-": ChanDir.SEND,
    "<-chan": ChanDir.RECV,
}


class LoaderError(GeneratorError):
    """Raised when the target package cannot be loaded."""

    pass


@dataclass
class ModuleInfo:
    """The parts of a go.mod file needed to locate packages."""

    root: Path
    path: str
    requires: Dict[str, str] = field(default_factory=dict)


_MODULE_LINE = re.compile(r"^module\s+(\S+)")
_REQUIRE_LINE = re.compile(r"^(\S+)\s+(v\S+)")


def parse_go_mod(text: str, root: Path) -> ModuleInfo:
    """Parse the `module` and `require` directives of a go.mod file."""
    module_path = ""
    requires: Dict[str, str] = {}
    in_require = False

    for raw in text.splitlines():
        line = raw.split("//", 1)[0].strip()
        if not line:
            continue
        if in_require:
            if line == ")":
                in_require = False
                continue
            match = _REQUIRE_LINE.match(line)
            if match:
                requires[match.group(1)] = match.group(2)
            continue

        match = _MODULE_LINE.match(line)
        if match:
            module_path = match.group(1).strip('"')
        elif line.startswith("require"):
            rest = line[len("require"):].strip()
            if rest == "(":
                in_require = True
            else:
                match = _REQUIRE_LINE.match(rest)
                if match:
                    requires[match.group(1)] = match.group(2)

    return ModuleInfo(root=root, path=module_path, requires=requires)


def find_module(directory: Path) -> Optional[ModuleInfo]:
    """Find the module enclosing `directory` by walking up to a go.mod."""
    current = directory.resolve()
    for candidate in [current, *current.parents]:
        go_mod = candidate / "go.mod"
        if go_mod.is_file():
            return parse_go_mod(go_mod.read_text(encoding="utf-8"), candidate)
    return None


def escape_module_path(path: str) -> str:
    """Module cache path escaping: upper-case letters become `!` + lower."""
    return "".join(f"!{c.lower()}" if c.isupper() else c for c in path)


class _Scope:
    """Name resolution scope for one declaration in one file."""

    def __init__(
        self,
        loader: "GoPackageLoader",
        package: Package,
        imports: Dict[str, PackageRef],
        type_params: Sequence[str] = (),
        filename: str = "",
        unaliased: Sequence[str] = (),
    ):
        self.loader = loader
        self.package = package
        self.imports = imports
        self.unaliased = list(unaliased)
        self.type_params = set(type_params)
        self.filename = filename

    def resolve(self, expr: TypeExpr) -> GoType:
        if isinstance(expr, IdentExpr):
            return self._resolve_ident(expr.name)

        if isinstance(expr, SelectorExpr):
            ref = self.imports.get(expr.qualifier) or self._discover(expr.qualifier)
            if ref is None:
                raise LoaderError(
                    f"{self.filename}: undefined package qualifier {expr.qualifier!r}"
                )
            path, name = ref.path, expr.name
            return Named(
                name=name,
                package=ref,
                resolver=lambda: self.loader.lookup_type(path, name),
            )

        if isinstance(expr, GenericExpr):
            base = self.resolve(expr.base)
            if not isinstance(base, Named):
                raise LoaderError(f"{self.filename}: {base} is not a generic type")
            return Named(
                name=base.name,
                package=base.package,
                type_args=tuple(self.resolve(arg) for arg in expr.args),
                alias=base.alias,
                resolver=base.resolver,
            )

        if isinstance(expr, PointerExpr):
            return Pointer(elem=self.resolve(expr.elem))

        if isinstance(expr, ArrayExpr):
            elem = self.resolve(expr.elem)
            if expr.length is None:
                return Slice(elem=elem)
            refs = tuple(
                self.imports[q] for q, _ in expr.length_selectors if q in self.imports
            )
            return Array(length=expr.length, elem=elem, length_refs=refs)

        if isinstance(expr, MapExpr):
            return Map(key=self.resolve(expr.key), value=self.resolve(expr.value))

        if isinstance(expr, ChanExpr):
            return Chan(
                elem=self.resolve(expr.elem),
                direction=_CHAN_DIRECTIONS[expr.direction],
            )

        if isinstance(expr, FuncExpr):
            return self._resolve_signature(expr)

        if isinstance(expr, StructExpr):
            fields = []
            for field_expr in expr.fields:
                field_type = self.resolve(field_expr.type)
                for name in field_expr.names:
                    fields.append(
                        StructField(
                            name=name,
                            type=field_type,
                            embedded=field_expr.embedded,
                            tag=field_expr.tag,
                        )
                    )
            return Struct(fields=tuple(fields))

        if isinstance(expr, InterfaceExpr):
            return Interface(
                methods=tuple(
                    InterfaceMethod(
                        name=method.name,
                        signature=self._resolve_signature(method.signature),
                    )
                    for method in expr.methods
                ),
                embedded=tuple(self.resolve(e) for e in expr.embedded),
            )

        if isinstance(expr, UnionExpr):
            # Type-set unions only occur in constraint interfaces.
            return Interface(embedded=tuple(self.resolve(t) for _, t in expr.terms))

        raise LoaderError(f"{self.filename}: unsupported type expression {expr!r}")

    def _discover(self, qualifier: str) -> Optional[PackageRef]:
        """Find an unaliased import whose real name differs from its path."""
        for path in self.unaliased:
            if self.loader.package_name(path) == qualifier:
                ref = PackageRef(path=path, name=qualifier)
                self.imports[qualifier] = ref
                return ref
        return None

    def _resolve_signature(self, expr: FuncExpr) -> Signature:
        return Signature(
            params=tuple(Param(p.name, self.resolve(p.type)) for p in expr.params),
            results=tuple(Param(p.name, self.resolve(p.type)) for p in expr.results),
            variadic=expr.variadic,
        )

    def _resolve_ident(self, name: str) -> GoType:
        if name in self.type_params:
            return TypeParam(name=name)

        package = self.package
        decl = package.types.get(name)
        if decl is not None:
            return Named(
                name=name,
                package=package.ref,
                alias=decl.alias,
                resolver=lambda: package.types[name].type,
            )

        if name in BASIC_TYPE_NAMES:
            return Basic(name=name)
        if name == "error":
            return ERROR_TYPE
        if name == "any":
            return ANY_TYPE
        if name == "comparable":
            return Named(name="comparable", resolver=Interface)

        logger.debug("%s: undefined type %s", self.filename, name)
        return Named(name=name, package=package.ref)


class GoPackageLoader:
    """
    Loads a single Go package and the imported packages its types need.

    Imported packages are parsed lazily, at most once each, when a
    named type's underlying type is first requested.
    """

    def __init__(self, config: Optional[GeneratorConfig] = None):
        self.config = config or GeneratorConfig()
        self.context: BuildContext = default_context(
            self.config.build_tags, self.config.goos, self.config.goarch
        )
        self.module: Optional[ModuleInfo] = None
        self._imported: Dict[str, Optional[Package]] = {}
        self._goroot: Optional[str] = None
        self._goroot_resolved = False

    # Target package

    def load(self, patterns: Optional[Sequence[str]] = None) -> Package:
        """
        Load the package named by `patterns`.

        A single directory loads every buildable file in it; otherwise
        every pattern must be a `.go` file of the same package.
        """
        patterns = list(patterns or ["."])
        paths = [Path(p) for p in patterns]

        if any(p.is_dir() for p in paths):
            if len(paths) != 1:
                raise LoaderError(f"error: {len(paths)} packages found")
            return self._load_directory(paths[0])

        for path in paths:
            if not path.is_file():
                raise LoaderError(f"cannot find package or file: {path}")
            if path.suffix != ".go":
                raise LoaderError(f"not a Go source file: {path}")
        return self._load_files(paths)

    def _load_directory(self, directory: Path) -> Package:
        self.module = find_module(directory)
        sources = []

        for path in sorted(directory.glob("*.go")):
            if path.name.endswith("_test.go") and not self.config.include_tests:
                continue
            text = self._read(path)
            if text.lstrip().startswith(GENERATED_MARKER):
                logger.debug("Skipping previously generated file %s", path)
                continue
            try:
                if not should_build(path.name, text, self.context):
                    continue
            except BuildConstraintError as e:
                raise LoaderError(f"{path}: {e}") from e
            sources.append(self._parse(path, text))

        # External test packages are never part of the package under test.
        sources = [s for s in sources if not s.package.endswith("_test")]
        if not sources:
            raise LoaderError(f"no buildable Go source files in {directory}")

        return self._build_target(sources, directory)

    def _load_files(self, paths: List[Path]) -> Package:
        directory = paths[0].parent
        self.module = find_module(directory)
        sources = [self._parse(path, self._read(path)) for path in paths]
        return self._build_target(sources, directory)

    def _build_target(self, sources: List[SourceFile], directory: Path) -> Package:
        names = sorted({source.package for source in sources})
        if len(names) != 1:
            raise LoaderError(f"error: {len(names)} packages found ({', '.join(names)})")

        package = Package(
            name=names[0],
            path=self._import_path_for(directory),
            directory=str(directory),
            files=[source.filename for source in sources],
        )
        self._populate(package, sources, strict=True)
        logger.info(
            "Loaded package %s (%d files, %d types)",
            package.name,
            len(package.files),
            len(package.types),
        )
        return package

    def _import_path_for(self, directory: Path) -> str:
        if self.module is None or not self.module.path:
            return directory.resolve().as_posix()
        rel = directory.resolve().relative_to(self.module.root)
        if str(rel) == ".":
            return self.module.path
        return f"{self.module.path}/{rel.as_posix()}"

    def _read(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise LoaderError(f"reading {path}: {e}") from e

    def _parse(self, path: Path, text: str) -> SourceFile:
        try:
            return parse_source(text, str(path))
        except GoSyntaxError as e:
            raise LoaderError(str(e)) from e

    def _populate(self, package: Package, sources: List[SourceFile], strict: bool):
        """
        Register every type declaration, then resolve their types.

        Outside strict mode a declaration that fails to resolve is left
        without a type instead of failing the whole package.
        """
        pending: List[Tuple[_Scope, object]] = []

        for source in sources:
            imports, unaliased = self._file_imports(source)
            for spec in source.types:
                package.types[spec.name] = TypeDecl(
                    name=spec.name,
                    type=None,
                    alias=spec.alias,
                    type_params=tuple(spec.type_params),
                    filename=source.filename,
                )
                scope = _Scope(
                    self,
                    package,
                    imports,
                    spec.type_params,
                    source.filename,
                    unaliased,
                )
                pending.append((scope, spec))

        for scope, spec in pending:
            try:
                package.types[spec.name].type = scope.resolve(spec.type)
            except LoaderError as e:
                if strict:
                    raise
                logger.debug("Unresolved declaration %s.%s: %s", package.path, spec.name, e)

    def _file_imports(
        self, source: SourceFile
    ) -> Tuple[Dict[str, PackageRef], List[str]]:
        """
        Map qualifiers to packages for one file.

        Unaliased imports are keyed by the name their path implies; the
        real package name is only looked up when that guess misses.
        """
        imports: Dict[str, PackageRef] = {}
        unaliased: List[str] = []
        for spec in source.imports:
            if spec.name in ("_", "."):
                continue
            if spec.name is None:
                unaliased.append(spec.path)
            qualifier = spec.name or default_package_name(spec.path)
            imports[qualifier] = PackageRef(path=spec.path, name=qualifier)
        return imports, unaliased

    def package_name(self, import_path: str) -> str:
        """Declared name of an imported package, guessed from its path if unknown."""
        package = self._load_import(import_path)
        if package is not None:
            return package.name
        return default_package_name(import_path)

    # Imported packages

    def lookup_type(self, import_path: str, name: str) -> Optional[GoType]:
        """Return the declared type of `name` in an imported package."""
        if import_path == "unsafe":
            return Basic(name="unsafe.Pointer") if name == "Pointer" else None

        package = self._load_import(import_path)
        if package is None:
            return None
        decl = package.types.get(name)
        if decl is None:
            logger.debug("Type %s not declared in %s", name, import_path)
            return None
        return decl.type

    def _load_import(self, import_path: str) -> Optional[Package]:
        if import_path in self._imported:
            return self._imported[import_path]
        self._imported[import_path] = None

        directory = self.find_package_dir(import_path)
        if directory is None:
            logger.debug("No source found for package %s", import_path)
            return None

        sources = []
        for path in sorted(directory.glob("*.go")):
            if path.name.endswith("_test.go"):
                continue
            try:
                text = path.read_text(encoding="utf-8")
                if should_build(path.name, text, self.context):
                    sources.append(parse_source(text, str(path)))
            except (OSError, UnicodeDecodeError, GeneratorError) as e:
                logger.warning("Skipping %s while loading %s: %s", path, import_path, e)

        if not sources:
            logger.debug("No buildable files for package %s", import_path)
            return None

        # Pick the dominant package name; stray `package main` tools are ignored.
        counts: Dict[str, int] = {}
        for source in sources:
            counts[source.package] = counts.get(source.package, 0) + 1
        name = max(sorted(counts), key=counts.get)
        sources = [s for s in sources if s.package == name]

        package = Package(
            name=name,
            path=import_path,
            directory=str(directory),
            files=[s.filename for s in sources],
        )
        self._imported[import_path] = package
        self._populate(package, sources, strict=False)
        logger.debug("Loaded imported package %s from %s", import_path, directory)
        return package

    def find_package_dir(self, import_path: str) -> Optional[Path]:
        """Locate the source directory of an imported package."""
        for candidate in self._candidate_dirs(import_path):
            if candidate.is_dir():
                return candidate
        return None

    def _candidate_dirs(self, import_path: str) -> List[Path]:
        candidates = []
        module = self.module

        if module is not None and module.path:
            if import_path == module.path:
                candidates.append(module.root)
            elif import_path.startswith(module.path + "/"):
                candidates.append(module.root / import_path[len(module.path) + 1:])
            candidates.append(module.root / "vendor" / import_path)

            modcache = self._gomodcache()
            # Longest module path wins for nested modules.
            for mod_path in sorted(module.requires, key=len, reverse=True):
                if import_path == mod_path or import_path.startswith(mod_path + "/"):
                    version = module.requires[mod_path]
                    rel = import_path[len(mod_path):].lstrip("/")
                    root = modcache / (
                        f"{escape_module_path(mod_path)}@{escape_module_path(version)}"
                    )
                    candidates.append(root / rel if rel else root)
                    break

        goroot = self._resolve_goroot()
        if goroot:
            candidates.append(Path(goroot) / "src" / import_path)

        gopath = os.environ.get("GOPATH")
        if gopath:
            for entry in gopath.split(os.pathsep):
                candidates.append(Path(entry) / "src" / import_path)

        return candidates

    def _gomodcache(self) -> Path:
        if self.config.gomodcache:
            return Path(self.config.gomodcache)
        if os.environ.get("GOMODCACHE"):
            return Path(os.environ["GOMODCACHE"])
        gopath = os.environ.get("GOPATH", "").split(os.pathsep)[0]
        base = Path(gopath) if gopath else Path.home() / "go"
        return base / "pkg" / "mod"

    def _resolve_goroot(self) -> Optional[str]:
        if self._goroot_resolved:
            return self._goroot
        self._goroot_resolved = True

        self._goroot = self.config.goroot or os.environ.get("GOROOT")
        if not self._goroot and shutil.which("go"):
            try:
                completed = subprocess.run(
                    ["go", "env", "GOROOT"],
                    capture_output=True,
                    text=True,
                    timeout=30,
                    check=True,
                )
                self._goroot = completed.stdout.strip() or None
            except (OSError, subprocess.SubprocessError) as e:
                logger.debug("go env GOROOT failed: %s", e)
        return self._goroot


def lookup_struct(package: Package, name: str) -> TargetType:
    """
    Select the struct type `name` from a loaded package.

    Raises:
        LoaderError: If the type is missing, generic or not a struct.
    """
    decl = package.types.get(name)
    if decl is None:
        raise LoaderError(f"type {name} not found in package {package.name}")
    if decl.type_params:
        raise LoaderError(f"generic type {name} is not supported")

    underlying = decl.type.underlying if decl.type is not None else None
    if not isinstance(underlying, Struct):
        raise LoaderError(f"{name} is not a struct type")

    return TargetType(
        name=name,
        package_name=package.name,
        package_path=package.path,
        fields=list(underlying.fields),
    )


def load_package(
    patterns: Optional[Sequence[str]] = None,
    config: Optional[GeneratorConfig] = None,
) -> Package:
    """Load the package named by `patterns` using `config`."""
    return GoPackageLoader(config).load(patterns)
