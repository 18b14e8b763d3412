import subprocess

import pytest

from configify.codegen.go import formatter as formatter_module
from configify.codegen.go.formatter import GoFormatter
from configify.codegen.go.generator import OptionsGenerator
from configify.codegen.core.schema import Basic, StructField, TargetType

from conftest import requires_gofmt

SOURCE = "package demo\n\nfunc  F( ) {}\n"


@pytest.fixture
def fake_gofmt(monkeypatch):
    """Pretend gofmt is installed and answer with a canned process result."""
    calls = []

    def install(returncode=0, stdout="", stderr=""):
        def run(args, **kwargs):
            calls.append((args, kwargs))
            return subprocess.CompletedProcess(args, returncode, stdout, stderr)

        monkeypatch.setattr(formatter_module.shutil, "which", lambda cmd: f"/usr/bin/{cmd}")
        monkeypatch.setattr(formatter_module.subprocess, "run", run)
        return calls

    return install


def test_formatted_output_is_returned(fake_gofmt):
    calls = fake_gofmt(stdout="package demo\n\nfunc F() {}\n")
    text, warnings = GoFormatter().format(SOURCE)
    assert text == "package demo\n\nfunc F() {}\n"
    assert warnings == []
    assert calls[0][0] == ["/usr/bin/gofmt"]
    assert calls[0][1]["input"] == SOURCE


def test_invalid_source_returns_raw_text_with_warnings(fake_gofmt, caplog):
    fake_gofmt(returncode=2, stderr="<standard input>:3:7: expected '('\n")
    with caplog.at_level("WARNING", logger="configify"):
        text, warnings = GoFormatter().format(SOURCE)
    assert text == SOURCE
    assert warnings == [
        "internal error: invalid Go generated: 3:7: expected '('",
        "compile the package to analyze the error",
    ]
    assert len([r for r in caplog.records if r.levelname == "WARNING"]) == 2


def test_missing_gofmt(monkeypatch):
    monkeypatch.setattr(formatter_module.shutil, "which", lambda cmd: None)
    text, warnings = GoFormatter("no-such-gofmt").format(SOURCE)
    assert text == SOURCE
    assert warnings == ["no-such-gofmt not found; output left unformatted"]


def test_failure_to_run(fake_gofmt, monkeypatch):
    fake_gofmt()

    def boom(args, **kwargs):
        raise subprocess.TimeoutExpired(args, 30)

    monkeypatch.setattr(formatter_module.subprocess, "run", boom)
    text, warnings = GoFormatter().format(SOURCE)
    assert text == SOURCE
    assert "running gofmt failed" in warnings[0]


def test_generator_reports_formatting(fake_gofmt):
    fake_gofmt(stdout="formatted\n")
    generator = OptionsGenerator({"use_gofmt": True})
    target = TargetType("Config", "app", "example.com/app", [StructField("a", Basic("int"))])
    assert generator.generate(target) == "formatted\n"
    assert generator.last_run_metadata["formatted"] is True


@requires_gofmt
def test_real_gofmt_is_stable_on_generated_code():
    generator = OptionsGenerator({"use_gofmt": True})
    target = TargetType(
        "Config",
        "app",
        "example.com/app",
        [StructField("a", Basic("int")), StructField("b", Basic("string"))],
    )
    code = generator.generate(target)
    assert generator.last_run_metadata["formatted"] is True
    assert GoFormatter().format(code) == (code, [])
