import pytest

from configify.codegen.core.schema import (
    ANY_TYPE,
    ERROR_TYPE,
    Array,
    Basic,
    Chan,
    ChanDir,
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
from configify.codegen.go.types import (
    ClassifiedField,
    ImportSet,
    ShapeCategory,
    SkippedField,
    classify_field,
    conversion_type,
    render_type,
)

LOCAL = "example.com/app/conf"
LOCAL_REF = PackageRef(path=LOCAL, name="conf")
TIME = PackageRef(path="time", name="time")
IO = PackageRef(path="io", name="io")


def named(name, package, underlying, **kwargs):
    return Named(name=name, package=package, resolver=lambda: underlying, **kwargs)


def classify(go_type, name="value", embedded=False):
    return classify_field(StructField(name=name, type=go_type, embedded=embedded), LOCAL)


DURATION = named("Duration", TIME, Basic("int64"))
READER = named("Reader", IO, Interface())


class TestRenderType:
    @pytest.mark.parametrize(
        "go_type, text",
        [
            (Basic("int"), "int"),
            (Pointer(Basic("string")), "*string"),
            (Slice(Basic("byte")), "[]byte"),
            (Array("3", Basic("int")), "[3]int"),
            (Map(Basic("string"), Slice(Basic("int"))), "map[string][]int"),
            (Chan(Basic("int")), "chan int"),
            (Chan(Basic("int"), ChanDir.SEND), "chan<- int"),
            (Chan(Chan(Basic("int"), ChanDir.RECV)), "chan (<-chan int)"),
            (Struct(), "struct{}"),
            (Interface(), "interface{}"),
            (ANY_TYPE, "any"),
            (ERROR_TYPE, "error"),
            (
                Signature(
                    params=(Param("", Basic("int")), Param("", Slice(Basic("string")))),
                    results=(Param("", ERROR_TYPE),),
                    variadic=True,
                ),
                "func(int, ...[]string) error",
            ),
            (
                Signature(results=(Param("n", Basic("int")), Param("err", ERROR_TYPE))),
                "func() (n int, err error)",
            ),
            (
                Struct(
                    fields=(
                        StructField("a", Basic("int"), tag='json:"a"'),
                        StructField("Reader", READER, embedded=True),
                    )
                ),
                'struct{ a int `json:"a"`; io.Reader }',
            ),
        ],
    )
    def test_render(self, go_type, text):
        assert render_type(go_type, LOCAL)[0] == text

    def test_local_names_are_unqualified(self):
        local = named("Level", LOCAL_REF, Basic("int"))
        assert render_type(local, LOCAL) == ("Level", ())

    def test_nested_references_are_collected(self):
        go_type = Map(DURATION, Signature(params=(Param("", Pointer(READER)),)))
        text, refs = render_type(go_type, LOCAL)
        assert text == "map[time.Duration]func(*io.Reader)"
        assert refs == (TIME, IO)

    def test_generic_arguments_are_rendered(self):
        pair = Named(
            name="Pair",
            package=PackageRef("example.com/lib", "lib"),
            type_args=(Basic("string"), DURATION),
        )
        text, refs = render_type(pair, LOCAL)
        assert text == "lib.Pair[string, time.Duration]"
        assert [r.path for r in refs] == ["example.com/lib", "time"]

    def test_array_length_constants_are_imports(self):
        sizes = PackageRef("example.com/sizes", "sizes")
        text, refs = render_type(Array("sizes.N", Basic("byte"), (sizes,)), LOCAL)
        assert text == "[sizes.N]byte"
        assert refs == (sizes,)


class TestClassifyField:
    @pytest.mark.parametrize(
        "go_type, category",
        [
            (Basic("string"), ShapeCategory.SCALAR),
            (Array("3", Basic("int")), ShapeCategory.SCALAR),
            (Signature(params=(Param("", Basic("int")),)), ShapeCategory.SCALAR),
            (Struct(fields=(StructField("x", Basic("int")),)), ShapeCategory.SCALAR),
            (DURATION, ShapeCategory.SCALAR),
            (Slice(Basic("int")), ShapeCategory.SLICE),
            (Map(Basic("string"), Basic("string")), ShapeCategory.MAP),
            (Pointer(Basic("string")), ShapeCategory.POINTER),
            (Interface(), ShapeCategory.INTERFACE),
            (ERROR_TYPE, ShapeCategory.INTERFACE),
        ],
    )
    def test_categories(self, go_type, category):
        result = classify(go_type)
        assert isinstance(result, ClassifiedField)
        assert result.category == category

    def test_named_types_classify_by_underlying(self):
        labels = named("Labels", LOCAL_REF, Map(Basic("string"), Basic("string")))
        result = classify(labels)
        assert result.category == ShapeCategory.MAP
        assert result.rendered_type == "Labels"
        assert result.imports == ()

    def test_qualified_scalar_records_import(self):
        result = classify(DURATION)
        assert result.rendered_type == "time.Duration"
        assert [ref.path for ref in result.imports] == ["time"]

    def test_pointer_payload_is_the_pointee(self):
        result = classify(Pointer(DURATION))
        assert result.category == ShapeCategory.POINTER
        assert result.rendered_type == "time.Duration"
        assert [ref.path for ref in result.imports] == ["time"]
        assert not result.boxed

    def test_pointer_to_pointer_is_boxed(self):
        result = classify(Pointer(Pointer(Basic("int"))))
        assert result.rendered_type == "*int"
        assert result.boxed

    def test_interfaces_are_boxed(self):
        assert classify(Interface()).boxed

    def test_local_named_interface(self):
        store = named("Store", LOCAL_REF, Interface())
        result = classify(store)
        assert result.category == ShapeCategory.INTERFACE
        assert result.rendered_type == "Store"

    def test_interface_from_another_package_is_skipped(self):
        result = classify(READER, name="inter")
        assert isinstance(result, SkippedField)
        assert "io.Reader" in result.reason
        assert not result.silent

    def test_embedded_fields_are_skipped_silently(self):
        result = classify(Basic("string"), name="MyType", embedded=True)
        assert isinstance(result, SkippedField)
        assert result.silent

    def test_blank_fields_are_skipped(self):
        result = classify(Basic("int"), name="_")
        assert isinstance(result, SkippedField)
        assert not result.silent

    def test_channels_are_unsupported(self):
        result = classify(Chan(Basic("int")), name="events")
        assert isinstance(result, SkippedField)
        assert result.reason == "unsupported type chan int (channel)"

    @pytest.mark.parametrize(
        "go_type",
        [TypeParam("T"), Slice(TypeParam("T")), Map(Basic("string"), TypeParam("V"))],
    )
    def test_type_parameters_are_unsupported(self, go_type):
        result = classify(go_type)
        assert isinstance(result, SkippedField)
        assert "type parameter" in result.reason

    def test_unknown_underlying_is_a_boxed_scalar(self):
        mystery = Named(name="Value", package=PackageRef("github.com/x/lib", "lib"))
        result = classify(mystery)
        assert result.category == ShapeCategory.SCALAR
        assert result.boxed
        assert "github.com/x/lib.Value" in result.note


class TestImportSet:
    def test_specs_are_sorted_and_aliased_when_needed(self):
        imports = ImportSet()
        imports.update(
            [
                TIME,
                PackageRef("gopkg.in/yaml.v3", "yaml"),
                PackageRef("github.com/x/go-lib", "lib"),
                IO,
                TIME,
            ]
        )
        assert imports.specs() == [
            'lib "github.com/x/go-lib"',
            '"gopkg.in/yaml.v3"',
            '"io"',
            '"time"',
        ]
        assert imports.paths == ["github.com/x/go-lib", "gopkg.in/yaml.v3", "io", "time"]
        assert len(imports) == 4
        assert imports.warnings == []

    def test_same_qualifier_for_two_paths_warns(self):
        imports = ImportSet()
        imports.add(PackageRef("crypto/rand", "rand"))
        imports.add(PackageRef("math/rand", "rand"))
        assert len(imports.warnings) == 1
        assert "rand" in imports.warnings[0]


@pytest.mark.parametrize(
    "rendered, expected",
    [
        ("int", "int"),
        ("*int", "(*int)"),
        ("func(int) error", "(func(int) error)"),
        ("<-chan int", "(<-chan int)"),
        ("[]string", "[]string"),
    ],
)
def test_conversion_type(rendered, expected):
    assert conversion_type(rendered) == expected
