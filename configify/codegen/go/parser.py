"""
Go declaration parser.

Parses just enough of a Go source file to drive generation: the package
clause, the import declarations and every top-level `type` declaration.
Function bodies, constants and variables are skipped token-wise.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .lexer import (
    EOF,
    IDENT,
    KEYWORD,
    OP,
    SEMI,
    STRING,
    GoSyntaxError,
    Token,
    tokenize,
)


# Syntax nodes for type expressions


class TypeExpr:
    """Base class for unresolved type expressions."""


@dataclass
class IdentExpr(TypeExpr):
    name: str


@dataclass
class SelectorExpr(TypeExpr):
    qualifier: str
    name: str


@dataclass
class GenericExpr(TypeExpr):
    base: TypeExpr
    args: List[TypeExpr]


@dataclass
class PointerExpr(TypeExpr):
    elem: TypeExpr


@dataclass
class ArrayExpr(TypeExpr):
    """Array or slice; `length` is None for a slice."""

    elem: TypeExpr
    length: Optional[str] = None
    length_selectors: List[Tuple[str, str]] = field(default_factory=list)


@dataclass
class MapExpr(TypeExpr):
    key: TypeExpr
    value: TypeExpr


@dataclass
class ChanExpr(TypeExpr):
    elem: TypeExpr
    direction: str = "chan"


@dataclass
class ParamExpr:
    name: str
    type: TypeExpr


@dataclass
class FuncExpr(TypeExpr):
    params: List[ParamExpr] = field(default_factory=list)
    results: List[ParamExpr] = field(default_factory=list)
    variadic: bool = False


@dataclass
class FieldExpr:
    names: List[str]
    type: TypeExpr
    embedded: bool = False
    tag: Optional[str] = None
    line: int = 0


@dataclass
class StructExpr(TypeExpr):
    fields: List[FieldExpr] = field(default_factory=list)


@dataclass
class MethodExpr:
    name: str
    signature: FuncExpr


@dataclass
class UnionExpr(TypeExpr):
    """Type-set union `A | ~B`; each term is (tilde, type)."""

    terms: List[Tuple[bool, TypeExpr]]


@dataclass
class InterfaceExpr(TypeExpr):
    methods: List[MethodExpr] = field(default_factory=list)
    embedded: List[TypeExpr] = field(default_factory=list)


# Declarations


@dataclass
class ImportSpec:
    path: str
    name: Optional[str] = None
    line: int = 0


@dataclass
class TypeSpec:
    name: str
    type: TypeExpr
    alias: bool = False
    type_params: List[str] = field(default_factory=list)
    line: int = 0


@dataclass
class SourceFile:
    filename: str
    package: str
    imports: List[ImportSpec] = field(default_factory=list)
    types: List[TypeSpec] = field(default_factory=list)


_TYPE_START_KEYWORDS = {"func", "map", "chan", "struct", "interface"}
_TYPE_START_OPS = {"*", "[", "(", "<-"}


def _unquote(literal: str) -> str:
    body = literal[1:-1]
    if literal.startswith("`") or "\\" not in body:
        return body
    return bytes(body, "utf-8").decode("unicode_escape")


class Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, tokens: List[Token], filename: str = ""):
        self.tokens = tokens
        self.filename = filename
        self.pos = 0

    # Token helpers

    @property
    def tok(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int = 1) -> Token:
        index = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.kind != EOF:
            self.pos += 1
        return token

    def error(self, message: str, token: Optional[Token] = None) -> GoSyntaxError:
        token = token or self.tok
        return GoSyntaxError(message, self.filename, token.line)

    def expect_op(self, value: str) -> Token:
        if not self.tok.is_op(value):
            raise self.error(f"expected {value!r}, found {str(self.tok)!r}")
        return self.advance()

    def expect_kind(self, kind: str) -> Token:
        if self.tok.kind != kind:
            raise self.error(f"expected {kind.lower()}, found {str(self.tok)!r}")
        return self.advance()

    def skip_semis(self):
        while self.tok.kind == SEMI:
            self.advance()

    def at_type_start(self, token: Optional[Token] = None) -> bool:
        token = token or self.tok
        if token.kind == IDENT:
            return True
        if token.kind == KEYWORD:
            return token.value in _TYPE_START_KEYWORDS
        return token.kind == OP and token.value in _TYPE_START_OPS

    def matching_bracket(self, offset: int) -> int:
        """Offset of the `]` closing the `[` at `offset` (relative to pos)."""
        depth = 0
        index = offset
        while True:
            token = self.peek(index)
            if token.kind == EOF:
                raise self.error("unterminated '['")
            if token.is_op("[", "(", "{"):
                depth += 1
            elif token.is_op("]", ")", "}"):
                depth -= 1
                if depth == 0:
                    return index
            index += 1

    # File structure

    def parse_file(self) -> SourceFile:
        self.skip_semis()
        if not self.tok.is_keyword("package"):
            raise self.error("expected 'package' clause")
        self.advance()
        package = self.expect_kind(IDENT).value
        source = SourceFile(filename=self.filename, package=package)
        self.skip_semis()

        while self.tok.is_keyword("import"):
            self.advance()
            if self.tok.is_op("("):
                self.advance()
                self.skip_semis()
                while not self.tok.is_op(")"):
                    source.imports.append(self.parse_import_spec())
                    self.skip_semis()
                self.advance()
            else:
                source.imports.append(self.parse_import_spec())
            self.skip_semis()

        while self.tok.kind != EOF:
            if self.tok.is_keyword("type"):
                self.advance()
                if self.tok.is_op("("):
                    self.advance()
                    self.skip_semis()
                    while not self.tok.is_op(")"):
                        source.types.append(self.parse_type_spec())
                        self.skip_semis()
                    self.advance()
                else:
                    source.types.append(self.parse_type_spec())
            else:
                self.skip_declaration()
            self.skip_semis()

        return source

    def parse_import_spec(self) -> ImportSpec:
        line = self.tok.line
        name = None
        if self.tok.kind == IDENT or self.tok.is_op("."):
            name = self.advance().value
        path = self.expect_kind(STRING).value
        return ImportSpec(path=_unquote(path), name=name, line=line)

    def skip_declaration(self):
        """Skip a non-type top-level declaration up to its terminator."""
        depth = 0
        while self.tok.kind != EOF:
            token = self.tok
            if token.is_op("(", "[", "{"):
                depth += 1
            elif token.is_op(")", "]", "}"):
                depth -= 1
            elif token.kind == SEMI and depth <= 0:
                return
            self.advance()

    def parse_type_spec(self) -> TypeSpec:
        line = self.tok.line
        name = self.expect_kind(IDENT).value
        type_params = []
        if self.tok.is_op("[") and self._starts_type_params():
            type_params = self.parse_type_params()
        alias = False
        if self.tok.is_op("="):
            self.advance()
            alias = True
        type_expr = self.parse_type()
        return TypeSpec(
            name=name, type=type_expr, alias=alias, type_params=type_params, line=line
        )

    def _starts_type_params(self) -> bool:
        # `type A [N]int` declares an array; `type A[T any] ...` is generic.
        first, second = self.peek(1), self.peek(2)
        if first.kind != IDENT:
            return False
        if second.kind == IDENT:
            return True
        if second.kind == KEYWORD and second.value in _TYPE_START_KEYWORDS:
            return True
        return second.is_op(",", "~", "[", "*")

    def parse_type_params(self) -> List[str]:
        self.expect_op("[")
        names = []
        while not self.tok.is_op("]"):
            names.append(self.expect_kind(IDENT).value)
            while self.tok.is_op(","):
                self.advance()
                names.append(self.expect_kind(IDENT).value)
            self.parse_constraint()
            if self.tok.is_op(","):
                self.advance()
        self.advance()
        return names

    # Types

    def parse_constraint(self) -> TypeExpr:
        terms = [self._parse_term()]
        while self.tok.is_op("|"):
            self.advance()
            terms.append(self._parse_term())
        if len(terms) == 1 and not terms[0][0]:
            return terms[0][1]
        return UnionExpr(terms=terms)

    def _parse_term(self) -> Tuple[bool, TypeExpr]:
        tilde = False
        if self.tok.is_op("~"):
            self.advance()
            tilde = True
        return tilde, self.parse_type()

    def parse_type(self) -> TypeExpr:
        token = self.tok

        if token.kind == IDENT:
            return self.parse_type_name()

        if token.kind == OP:
            if token.value == "(":
                self.advance()
                inner = self.parse_type()
                self.expect_op(")")
                return inner
            if token.value == "*":
                self.advance()
                return PointerExpr(elem=self.parse_type())
            if token.value == "[":
                return self.parse_array_type()
            if token.value == "<-":
                self.advance()
                if not self.tok.is_keyword("chan"):
                    raise self.error("expected 'chan' after '<-'")
                self.advance()
                return ChanExpr(elem=self.parse_type(), direction="<-chan")

        if token.kind == KEYWORD:
            if token.value == "map":
                self.advance()
                self.expect_op("[")
                key = self.parse_type()
                self.expect_op("]")
                return MapExpr(key=key, value=self.parse_type())
            if token.value == "chan":
                self.advance()
                direction = "chan"
                if self.tok.is_op("<-"):
                    self.advance()
                    direction = "chan<-"
                return ChanExpr(elem=self.parse_type(), direction=direction)
            if token.value == "func":
                self.advance()
                return self.parse_signature()
            if token.value == "struct":
                self.advance()
                return self.parse_struct_body()
            if token.value == "interface":
                self.advance()
                return self.parse_interface_body()

        raise self.error(f"expected type, found {str(token)!r}")

    def parse_type_name(self) -> TypeExpr:
        name = self.expect_kind(IDENT).value
        expr: TypeExpr = IdentExpr(name=name)
        if self.tok.is_op("."):
            self.advance()
            expr = SelectorExpr(qualifier=name, name=self.expect_kind(IDENT).value)
        if self.tok.is_op("[") and not self.peek().is_op("]"):
            expr = GenericExpr(base=expr, args=self.parse_type_list("[", "]"))
        return expr

    def parse_type_list(self, open_op: str, close_op: str) -> List[TypeExpr]:
        self.expect_op(open_op)
        types = []
        while not self.tok.is_op(close_op):
            types.append(self.parse_type())
            if not self.tok.is_op(close_op):
                self.expect_op(",")
        self.advance()
        return types

    def parse_array_type(self) -> ArrayExpr:
        self.expect_op("[")
        if self.tok.is_op("]"):
            self.advance()
            return ArrayExpr(elem=self.parse_type())

        # Keep the length expression as written; note qualified constants.
        close = self.matching_bracket(-1)
        parts = []
        selectors = []
        for _ in range(close):
            token = self.advance()
            parts.append(token.value)
            if token.kind == IDENT and self.tok.is_op(".") and self.peek().kind == IDENT:
                selectors.append((token.value, self.peek().value))
        self.expect_op("]")
        length = "".join(
            f" {p} " if p in ("+", "-", "*", "/", "<<", ">>") else p for p in parts
        ).replace("  ", " ")
        return ArrayExpr(
            elem=self.parse_type(), length=length.strip(), length_selectors=selectors
        )

    def parse_signature(self) -> FuncExpr:
        params, variadic = self.parse_parameters()
        results: List[ParamExpr] = []
        if self.tok.is_op("("):
            results, _ = self.parse_parameters()
        elif self.at_type_start():
            results = [ParamExpr(name="", type=self.parse_type())]
        return FuncExpr(params=params, results=results, variadic=variadic)

    def parse_parameters(self) -> Tuple[List[ParamExpr], bool]:
        self.expect_op("(")
        entries: List[Tuple[Optional[str], Optional[TypeExpr]]] = []
        variadic = False

        while not self.tok.is_op(")"):
            name = None
            if self.tok.kind == IDENT and self._ident_is_name():
                name = self.advance().value
            if self.tok.is_op("..."):
                self.advance()
                variadic = True
            entries.append((name, self.parse_type()))
            if not self.tok.is_op(")"):
                self.expect_op(",")
        self.advance()

        if any(name is not None for name, _ in entries):
            # `a, b int`: leading bare identifiers are names sharing a type.
            params: List[ParamExpr] = []
            pending: List[str] = []
            for name, type_expr in entries:
                if name is None:
                    if not isinstance(type_expr, IdentExpr):
                        raise self.error("mixed named and unnamed parameters")
                    pending.append(type_expr.name)
                    continue
                for pending_name in pending:
                    params.append(ParamExpr(name=pending_name, type=type_expr))
                pending = []
                params.append(ParamExpr(name=name, type=type_expr))
            if pending:
                raise self.error("mixed named and unnamed parameters")
            return params, variadic

        return [ParamExpr(name="", type=t) for _, t in entries], variadic

    def _ident_is_name(self) -> bool:
        """Whether the identifier at pos names a parameter or field."""
        following = self.peek()
        if following.is_op("..."):
            return True
        if following.is_op("["):
            close = self.matching_bracket(1)
            return self.at_type_start(self.peek(close + 1))
        if following.is_op("."):
            return False
        return self.at_type_start(following)

    def parse_struct_body(self) -> StructExpr:
        self.expect_op("{")
        fields = []
        self.skip_semis()
        while not self.tok.is_op("}"):
            fields.append(self.parse_field_decl())
            if self.tok.is_op("}"):
                break
            self.expect_kind(SEMI)
            self.skip_semis()
        self.advance()
        return StructExpr(fields=fields)

    def parse_field_decl(self) -> FieldExpr:
        line = self.tok.line
        if self.tok.kind == IDENT and (
            self.peek().is_op(",") or self._ident_is_name()
        ):
            names = [self.advance().value]
            while self.tok.is_op(","):
                self.advance()
                names.append(self.expect_kind(IDENT).value)
            type_expr = self.parse_type()
            embedded = False
        else:
            # Embedded field: T, *T, pkg.T or a generic instance of those.
            pointer = False
            if self.tok.is_op("*"):
                self.advance()
                pointer = True
            base = self.parse_type_name()
            type_expr = PointerExpr(elem=base) if pointer else base
            names = [_embedded_name(base)]
            embedded = True

        tag = None
        if self.tok.kind == STRING:
            tag = _unquote(self.advance().value)
        return FieldExpr(
            names=names, type=type_expr, embedded=embedded, tag=tag, line=line
        )

    def parse_interface_body(self) -> InterfaceExpr:
        self.expect_op("{")
        iface = InterfaceExpr()
        self.skip_semis()
        while not self.tok.is_op("}"):
            if self.tok.kind == IDENT and self.peek().is_op("("):
                name = self.advance().value
                iface.methods.append(MethodExpr(name=name, signature=self.parse_signature()))
            else:
                iface.embedded.append(self.parse_constraint())
            if self.tok.is_op("}"):
                break
            self.expect_kind(SEMI)
            self.skip_semis()
        self.advance()
        return iface


def _embedded_name(expr: TypeExpr) -> str:
    if isinstance(expr, GenericExpr):
        expr = expr.base
    if isinstance(expr, SelectorExpr):
        return expr.name
    return expr.name


def parse_source(source: str, filename: str = "") -> SourceFile:
    """Parse Go source text into its package, imports and type specs."""
    return Parser(tokenize(source, filename), filename).parse_file()


def parse_package_name(source: str, filename: str = "") -> str:
    """Return only the package clause of a Go source file."""
    parser = Parser(tokenize(source, filename), filename)
    parser.skip_semis()
    if not parser.tok.is_keyword("package"):
        raise parser.error("expected 'package' clause")
    parser.advance()
    return parser.expect_kind(IDENT).value
