import shutil
import textwrap
from pathlib import Path

import pytest

from configify.codegen.core.config import GeneratorConfig

EXAMPLE_SOURCE = """\
package example

import "io"

type config struct {
	myType MyType
	color  string
	Height int
	array  [3]int
	slice  []int
	maps   map[string]string
	funcs  func(int) error
	point  *string
	inter  io.Reader
	MyType
}

type MyType string
"""

GOROOT_FILES = {
    "io/io.go": """\
        package io

        type Reader interface {
        	Read(p []byte) (n int, err error)
        }

        type Writer interface {
        	Write(p []byte) (n int, err error)
        }
        """,
    "time/time.go": """\
        package time

        type Duration int64

        type Time struct {
        	wall uint64
        	ext  int64
        }

        type Month int
        """,
    "net/http/header.go": """\
        package http

        type Header map[string][]string

        type Client struct {
        	Timeout int64
        }
        """,
    "sync/mutex.go": """\
        package sync

        type Mutex struct {
        	state int32
        	sema  uint32
        }
        """,
}


def write_go_files(directory: Path, files: dict) -> Path:
    """Write dedented Go sources below `directory`."""
    for name, content in files.items():
        path = directory / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content), encoding="utf-8")
    return directory


@pytest.fixture
def fake_goroot(tmp_path: Path) -> Path:
    """A GOROOT with a handful of standard library type declarations."""
    root = tmp_path / "goroot"
    write_go_files(root / "src", GOROOT_FILES)
    return root


@pytest.fixture
def isolated_env(monkeypatch, tmp_path: Path):
    """Keep the host Go installation out of package lookups."""
    for name in ("GOROOT", "GOPATH", "GOMODCACHE", "GOOS", "GOARCH", "GOFLAGS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


@pytest.fixture
def config(fake_goroot: Path, isolated_env, tmp_path: Path) -> GeneratorConfig:
    """Generator config pinned to the fake GOROOT, linux/amd64 and no gofmt."""
    return GeneratorConfig(
        goroot=str(fake_goroot),
        gomodcache=str(tmp_path / "modcache"),
        goos="linux",
        goarch="amd64",
        use_gofmt=False,
    )


@pytest.fixture
def example_dir(tmp_path: Path) -> Path:
    """The canonical example package in its own directory."""
    directory = tmp_path / "example"
    directory.mkdir()
    (directory / "example.go").write_text(EXAMPLE_SOURCE, encoding="utf-8")
    return directory


@pytest.fixture
def go_package(tmp_path: Path):
    """Factory writing a package directory from a name -> source mapping."""

    def make(files: dict, name: str = "pkg") -> Path:
        return write_go_files(tmp_path / name, files)

    return make


requires_go = pytest.mark.skipif(shutil.which("go") is None, reason="go not installed")
requires_gofmt = pytest.mark.skipif(
    shutil.which("gofmt") is None, reason="gofmt not installed"
)
