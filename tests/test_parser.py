import pytest

from configify.codegen.go.lexer import (
    EOF,
    IDENT,
    KEYWORD,
    SEMI,
    STRING,
    GoSyntaxError,
    tokenize,
)
from configify.codegen.go.parser import (
    ArrayExpr,
    ChanExpr,
    FuncExpr,
    GenericExpr,
    IdentExpr,
    InterfaceExpr,
    MapExpr,
    PointerExpr,
    SelectorExpr,
    StructExpr,
    parse_package_name,
    parse_source,
)


def kinds(source):
    return [t.kind for t in tokenize(source)]


class TestLexer:
    def test_semicolon_inserted_after_identifier(self):
        tokens = tokenize("package foo\n")
        assert [t.kind for t in tokens] == [KEYWORD, IDENT, SEMI, EOF]
        assert tokens[2].value == "\n"

    def test_no_semicolon_after_operator(self):
        assert kinds("a +\nb") == [IDENT, "OP", IDENT, SEMI, EOF]

    def test_semicolon_after_closing_brace_and_return(self):
        assert kinds("}\n")[:2] == ["OP", SEMI]
        assert kinds("return\n")[:2] == [KEYWORD, SEMI]

    def test_comments_are_dropped(self):
        tokens = tokenize("x // trailing\n/* block */ y")
        assert [t.value for t in tokens if t.kind == IDENT] == ["x", "y"]

    def test_multiline_block_comment_ends_line(self):
        tokens = tokenize("x /* a\nb */ y")
        assert [t.kind for t in tokens] == [IDENT, SEMI, IDENT, SEMI, EOF]
        assert tokens[2].line == 2

    def test_strings(self):
        tokens = tokenize('"a\\"b" `raw\nstring`')
        assert [t.kind for t in tokens[:2]] == [STRING, STRING]
        assert tokens[1].value == "`raw\nstring`"

    def test_numbers(self):
        values = [t.kind for t in tokenize("1 0x1F 1.5 1e3 2i 'a'") if t.kind != SEMI]
        assert values == ["INT", "INT", "FLOAT", "FLOAT", "IMAG", "CHAR", EOF]

    def test_unexpected_character(self):
        with pytest.raises(GoSyntaxError) as excinfo:
            tokenize("a\n$", "bad.go")
        assert excinfo.value.line == 2
        assert "bad.go:2" in str(excinfo.value)


class TestParser:
    def test_package_and_imports(self):
        source = parse_source(
            """
            package demo

            import "io"
            import (
                "net/http"
                yaml "gopkg.in/yaml.v3"
                _ "embed"
            )
            """
        )
        assert source.package == "demo"
        assert [(i.name, i.path) for i in source.imports] == [
            (None, "io"),
            (None, "net/http"),
            ("yaml", "gopkg.in/yaml.v3"),
            ("_", "embed"),
        ]

    def test_other_declarations_are_skipped(self):
        source = parse_source(
            """
            package demo

            const (
                A = iota
                B
            )

            var x = map[string]int{"a": 1}

            func (c *Config) Do(v []int) (int, error) {
                if len(v) > 0 {
                    return v[0], nil
                }
                return 0, nil
            }

            type Config struct {
                Name string
            }
            """
        )
        assert [t.name for t in source.types] == ["Config"]

    def test_struct_fields(self):
        source = parse_source(
            """
            package demo

            type T struct {
                a, b int
                c    *string `json:"c"`
                io.Reader
                *Base
                List[int]
                d    [3]int
                e    []map[string]chan<- int
            }
            """
        )
        struct = source.types[0].type
        assert isinstance(struct, StructExpr)
        names = [(f.names, f.embedded) for f in struct.fields]
        assert names == [
            (["a", "b"], False),
            (["c"], False),
            (["Reader"], True),
            (["Base"], True),
            (["List"], True),
            (["d"], False),
            (["e"], False),
        ]
        assert struct.fields[1].tag == 'json:"c"'
        assert isinstance(struct.fields[1].type, PointerExpr)
        assert isinstance(struct.fields[2].type, SelectorExpr)
        assert isinstance(struct.fields[4].type, GenericExpr)

        array = struct.fields[5].type
        assert isinstance(array, ArrayExpr)
        assert array.length == "3"

        slice_of_maps = struct.fields[6].type
        assert isinstance(slice_of_maps, ArrayExpr) and slice_of_maps.length is None
        assert isinstance(slice_of_maps.elem, MapExpr)
        assert isinstance(slice_of_maps.elem.value, ChanExpr)
        assert slice_of_maps.elem.value.direction == "chan<-"

    def test_array_length_with_qualified_constant(self):
        source = parse_source("package demo\ntype A [pkg.Size + 1]byte\n")
        array = source.types[0].type
        assert array.length == "pkg.Size + 1"
        assert array.length_selectors == [("pkg", "Size")]

    def test_function_types(self):
        source = parse_source(
            """
            package demo

            type F func(a, b int, rest ...string) (n int, err error)
            type G func(int) error
            """
        )
        f, g = source.types[0].type, source.types[1].type
        assert isinstance(f, FuncExpr)
        assert [p.name for p in f.params] == ["a", "b", "rest"]
        assert f.variadic
        assert [p.name for p in f.results] == ["n", "err"]
        assert isinstance(g, FuncExpr)
        assert [p.name for p in g.params] == [""]
        assert isinstance(g.results[0].type, IdentExpr)

    def test_generic_declarations(self):
        source = parse_source(
            """
            package demo

            type List[T any] struct {
                items []T
            }

            type Pair[K comparable, V any] struct {
                key K
                val V
            }

            type Number interface {
                ~int | ~float64
            }

            type Arr [N]int
            """
        )
        by_name = {t.name: t for t in source.types}
        assert by_name["List"].type_params == ["T"]
        assert by_name["Pair"].type_params == ["K", "V"]
        assert isinstance(by_name["Number"].type, InterfaceExpr)
        assert by_name["Arr"].type_params == []
        assert isinstance(by_name["Arr"].type, ArrayExpr)

    def test_alias_and_grouped_types(self):
        source = parse_source(
            """
            package demo

            type (
                A = B
                B int
            )
            """
        )
        assert [(t.name, t.alias) for t in source.types] == [("A", True), ("B", False)]

    def test_interface_body(self):
        source = parse_source(
            """
            package demo

            type RW interface {
                io.Reader
                Write(p []byte) (int, error)
                Close() error
            }
            """
        )
        iface = source.types[0].type
        assert [m.name for m in iface.methods] == ["Write", "Close"]
        assert len(iface.embedded) == 1

    def test_missing_package_clause(self):
        with pytest.raises(GoSyntaxError):
            parse_source("type T int\n", "x.go")

    def test_parse_package_name(self):
        assert parse_package_name("// doc\n\npackage widgets // trailing\n") == "widgets"
