"""
Go build constraint evaluation.

Decides whether a source file takes part in the build for a given set
of tags, honouring `//go:build` lines, legacy `// +build` lines and the
GOOS/GOARCH file name suffixes.
"""

import os
import platform
import re
import sys
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Set, Tuple

from ..core.generator import GeneratorError
from ...logging_config import get_logger

logger = get_logger(__name__)


class BuildConstraintError(GeneratorError):
    """Raised for a malformed build constraint expression."""

    pass


KNOWN_OS = {
    "aix", "android", "darwin", "dragonfly", "freebsd", "hurd", "illumos",
    "ios", "js", "linux", "nacl", "netbsd", "openbsd", "plan9", "solaris",
    "wasip1", "windows", "zos",
}  # fmt: skip

UNIX_OS = {
    "aix", "android", "darwin", "dragonfly", "freebsd", "hurd", "illumos",
    "ios", "linux", "netbsd", "openbsd", "solaris",
}  # fmt: skip

KNOWN_ARCH = {
    "386", "amd64", "amd64p32", "arm", "armbe", "arm64", "arm64be",
    "loong64", "mips", "mipsle", "mips64", "mips64le", "mips64p32",
    "mips64p32le", "ppc", "ppc64", "ppc64le", "riscv", "riscv64", "s390",
    "s390x", "sparc", "sparc64", "wasm",
}  # fmt: skip

# GOOS values that also satisfy another GOOS tag.
_IMPLIED_OS = {"android": "linux", "ios": "darwin", "illumos": "solaris"}

_MACHINE_TO_ARCH = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "armv7l": "arm",
    "armv6l": "arm",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
    "riscv64": "riscv64",
}

_RELEASE_TAG = re.compile(r"^go1\.[0-9]+$")
_EXPR_TOKEN = re.compile(r"\s*(\|\||&&|!|\(|\)|[A-Za-z0-9_.]+)")


def host_goos() -> str:
    """GOOS of the running platform."""
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform.startswith("freebsd"):
        return "freebsd"
    if sys.platform.startswith("openbsd"):
        return "openbsd"
    if sys.platform.startswith("netbsd"):
        return "netbsd"
    if sys.platform.startswith("aix"):
        return "aix"
    if sys.platform == "darwin":
        return "darwin"
    return "linux"


def host_goarch() -> str:
    """GOARCH of the running platform."""
    machine = platform.machine().lower()
    return _MACHINE_TO_ARCH.get(machine, machine or "amd64")


@dataclass
class BuildContext:
    """The target platform and user tags that constraints are matched against."""

    goos: str
    goarch: str
    tags: Set[str] = field(default_factory=set)

    def satisfied(self, tag: str) -> bool:
        """Report whether a single build tag holds in this context."""
        if tag in self.tags:
            return True
        if tag == self.goos or tag == self.goarch:
            return True
        if _IMPLIED_OS.get(self.goos) == tag:
            return True
        if tag == "unix":
            return self.goos in UNIX_OS
        if tag == "gc":
            return True
        return bool(_RELEASE_TAG.match(tag))


def default_context(
    tags: Optional[List[str]] = None,
    goos: Optional[str] = None,
    goarch: Optional[str] = None,
) -> BuildContext:
    """Build context from explicit values, GOOS/GOARCH env vars, then the host."""
    return BuildContext(
        goos=goos or os.environ.get("GOOS") or host_goos(),
        goarch=goarch or os.environ.get("GOARCH") or host_goarch(),
        tags={t.strip() for t in (tags or []) if t.strip()},
    )


class _ExprParser:
    """Parser for `//go:build` expressions."""

    def __init__(self, text: str):
        self.text = text
        self.tokens = self._tokenize(text)
        self.pos = 0

    def _tokenize(self, text: str) -> List[str]:
        tokens = []
        pos = 0
        text = text.rstrip()
        while pos < len(text):
            match = _EXPR_TOKEN.match(text, pos)
            if match is None:
                raise BuildConstraintError(f"invalid build constraint: {self.text!r}")
            tokens.append(match.group(1))
            pos = match.end()
        return tokens

    def _next(self) -> Optional[str]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def parse(self) -> Callable[[BuildContext], bool]:
        expr = self._or()
        if self._next() is not None:
            raise BuildConstraintError(f"invalid build constraint: {self.text!r}")
        return expr

    def _or(self):
        left = self._and()
        while self._next() == "||":
            self.pos += 1
            right = self._and()
            left = (lambda a, b: lambda ctx: a(ctx) or b(ctx))(left, right)
        return left

    def _and(self):
        left = self._not()
        while self._next() == "&&":
            self.pos += 1
            right = self._not()
            left = (lambda a, b: lambda ctx: a(ctx) and b(ctx))(left, right)
        return left

    def _not(self):
        token = self._next()
        if token == "!":
            self.pos += 1
            inner = self._not()
            return lambda ctx: not inner(ctx)
        if token == "(":
            self.pos += 1
            inner = self._or()
            if self._next() != ")":
                raise BuildConstraintError(f"invalid build constraint: {self.text!r}")
            self.pos += 1
            return inner
        if token is None or token in ("||", "&&", ")"):
            raise BuildConstraintError(f"invalid build constraint: {self.text!r}")
        self.pos += 1
        return lambda ctx: ctx.satisfied(token)


def evaluate_go_build(expr: str, ctx: BuildContext) -> bool:
    """Evaluate a `//go:build` expression."""
    return _ExprParser(expr).parse()(ctx)


def evaluate_plus_build(line: str, ctx: BuildContext) -> bool:
    """Evaluate one legacy `// +build` line (space = OR, comma = AND)."""
    for option in line.split():
        terms = option.split(",")
        if all(
            (not ctx.satisfied(t[1:])) if t.startswith("!") else ctx.satisfied(t)
            for t in terms
        ):
            return True
    return False


def read_constraints(source: str) -> Tuple[Optional[str], List[str]]:
    """
    Collect the constraint lines in the file header.

    Only line comments before the package clause count.
    """
    go_build = None
    plus_build = []
    for raw in source.splitlines():
        line = raw.strip()
        if not line:
            continue
        if not line.startswith("//"):
            break
        body = line[2:]
        if body.startswith("go:build "):
            go_build = body[len("go:build "):].strip()
        elif body.strip().startswith("+build "):
            plus_build.append(body.strip()[len("+build "):])
    return go_build, plus_build


def match_file_name(filename: str, ctx: BuildContext) -> bool:
    """Apply the `*_GOOS`, `*_GOARCH` and `*_GOOS_GOARCH` naming rules."""
    name = os.path.basename(filename)
    if name.endswith(".go"):
        name = name[:-3]
    if name.endswith("_test"):
        name = name[: -len("_test")]

    # The part before the first underscore never constrains.
    index = name.find("_")
    if index < 0:
        return True
    parts = name[index:].split("_")

    if len(parts) >= 2 and parts[-1] in KNOWN_ARCH and parts[-2] in KNOWN_OS:
        return ctx.satisfied(parts[-2]) and parts[-1] == ctx.goarch
    if parts[-1] in KNOWN_OS:
        return ctx.satisfied(parts[-1])
    if parts[-1] in KNOWN_ARCH:
        return parts[-1] == ctx.goarch
    return True


def should_build(filename: str, source: str, ctx: BuildContext) -> bool:
    """Report whether a file is part of the build in `ctx`."""
    if not match_file_name(filename, ctx):
        logger.debug("Excluding %s: file name constraint", filename)
        return False

    go_build, plus_build = read_constraints(source)
    if go_build is not None:
        included = evaluate_go_build(go_build, ctx)
    else:
        included = all(evaluate_plus_build(line, ctx) for line in plus_build)

    if not included:
        logger.debug("Excluding %s: build constraint not satisfied", filename)
    return included
