import pytest

from configify.codegen.core.naming import (
    factory_name,
    lower_name,
    option_type_name,
    upper_name,
)
from configify.codegen.go.naming import default_package_name


@pytest.mark.parametrize(
    "name, lower, upper",
    [
        ("color", "color", "Color"),
        ("Height", "height", "Height"),
        ("myType", "myType", "MyType"),
        ("URL", "uRL", "URL"),
        ("x", "x", "X"),
        ("_private", "_private", "_private"),
    ],
)
def test_case_forms_change_only_the_first_character(name, lower, upper):
    assert lower_name(name) == lower
    assert upper_name(name) == upper


def test_empty_identifier_is_rejected():
    with pytest.raises(ValueError):
        lower_name("")
    with pytest.raises(ValueError):
        upper_name("")


def test_generated_names():
    assert option_type_name("Height") == "heightOption"
    assert factory_name("height") == "WithHeight"


@pytest.mark.parametrize(
    "path, name",
    [
        ("io", "io"),
        ("net/http", "http"),
        ("github.com/go-chi/chi/v5", "chi"),
        ("gopkg.in/yaml.v3", "yaml"),
        ("github.com/x/go-lib", "go_lib"),
        ("v2", "v2"),
    ],
)
def test_default_package_name(path, name):
    assert default_package_name(path) == name
