import pytest

from configify.codegen.go.constraints import (
    BuildConstraintError,
    BuildContext,
    default_context,
    evaluate_go_build,
    evaluate_plus_build,
    match_file_name,
    read_constraints,
    should_build,
)


@pytest.fixture
def linux():
    return BuildContext(goos="linux", goarch="amd64", tags={"integration"})


class TestBuildContext:
    def test_satisfied_tags(self, linux):
        assert linux.satisfied("linux")
        assert linux.satisfied("amd64")
        assert linux.satisfied("unix")
        assert linux.satisfied("gc")
        assert linux.satisfied("go1.21")
        assert linux.satisfied("integration")
        assert not linux.satisfied("windows")
        assert not linux.satisfied("arm64")
        assert not linux.satisfied("cgo_only")

    def test_implied_os(self):
        android = BuildContext(goos="android", goarch="arm64")
        assert android.satisfied("linux")
        assert android.satisfied("unix")

    def test_windows_is_not_unix(self):
        assert not BuildContext(goos="windows", goarch="amd64").satisfied("unix")

    def test_default_context_reads_environment(self, monkeypatch):
        monkeypatch.setenv("GOOS", "plan9")
        monkeypatch.setenv("GOARCH", "386")
        ctx = default_context(["a", " b ", ""])
        assert (ctx.goos, ctx.goarch) == ("plan9", "386")
        assert ctx.tags == {"a", "b"}

    def test_explicit_values_win(self, monkeypatch):
        monkeypatch.setenv("GOOS", "plan9")
        assert default_context(goos="darwin").goos == "darwin"


class TestExpressions:
    @pytest.mark.parametrize(
        "expr, expected",
        [
            ("linux", True),
            ("!linux", False),
            ("linux && amd64", True),
            ("linux && !amd64", False),
            ("windows || integration", True),
            ("(windows || darwin) && amd64", False),
            ("!(windows || darwin)", True),
            ("ignore", False),
        ],
    )
    def test_go_build(self, linux, expr, expected):
        assert evaluate_go_build(expr, linux) is expected

    @pytest.mark.parametrize("expr", ["linux &&", "(linux", "linux darwin", "&& x", "a $ b"])
    def test_malformed_go_build(self, linux, expr):
        with pytest.raises(BuildConstraintError):
            evaluate_go_build(expr, linux)

    def test_plus_build(self, linux):
        assert evaluate_plus_build("windows linux", linux)
        assert evaluate_plus_build("linux,amd64", linux)
        assert not evaluate_plus_build("linux,!amd64", linux)
        assert not evaluate_plus_build("ignore", linux)


class TestFiles:
    def test_read_constraints_stops_at_package_clause(self):
        source = (
            "// Copyright notice\n"
            "\n"
            "//go:build linux\n"
            "// +build linux\n"
            "\n"
            "package demo\n"
            "//go:build windows\n"
        )
        assert read_constraints(source) == ("linux", ["linux"])

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("config.go", True),
            ("linux.go", True),
            ("config_linux.go", True),
            ("config_windows.go", False),
            ("config_amd64.go", True),
            ("config_arm64.go", False),
            ("config_linux_amd64.go", True),
            ("config_linux_arm64.go", False),
            ("config_windows_test.go", False),
            ("config_extra.go", True),
        ],
    )
    def test_file_name_rules(self, linux, name, expected):
        assert match_file_name(name, linux) is expected

    def test_should_build_combines_name_and_comment(self, linux):
        assert should_build("a.go", "package demo\n", linux)
        assert not should_build("a_windows.go", "package demo\n", linux)
        assert not should_build("b.go", "//go:build !linux\n\npackage demo\n", linux)

    def test_go_build_overrides_plus_build(self, linux):
        source = "//go:build linux\n// +build windows\n\npackage demo\n"
        assert should_build("a.go", source, linux)

    def test_plus_build_lines_are_anded(self, linux):
        source = "// +build linux\n// +build arm64\n\npackage demo\n"
        assert not should_build("a.go", source, linux)
