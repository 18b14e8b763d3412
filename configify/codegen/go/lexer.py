"""
Go tokenizer.

Splits Go source into tokens and applies the automatic semicolon
insertion rule, which is what makes line-oriented declarations
parseable without tracking newlines in the parser.
"""

import re
from dataclasses import dataclass
from typing import Iterator, List

from ..core.generator import GeneratorError
from .naming import GO_RESERVED_WORDS


class GoSyntaxError(GeneratorError):
    """Raised when Go source cannot be tokenized or parsed."""

    def __init__(self, message: str, filename: str = "", line: int = 0):
        self.filename = filename
        self.line = line
        location = f"{filename}:{line}: " if filename else ""
        super().__init__(f"{location}{message}")


# Token kinds
IDENT = "IDENT"
KEYWORD = "KEYWORD"
INT = "INT"
FLOAT = "FLOAT"
IMAG = "IMAG"
CHAR = "CHAR"
STRING = "STRING"
OP = "OP"
SEMI = "SEMI"
EOF = "EOF"


@dataclass(frozen=True)
class Token:
    kind: str
    value: str
    line: int

    def is_op(self, *values: str) -> bool:
        return self.kind == OP and self.value in values

    def is_keyword(self, *values: str) -> bool:
        return self.kind == KEYWORD and self.value in values

    def __str__(self) -> str:
        if self.kind in (SEMI, EOF):
            return "newline" if self.value == "\n" else self.kind.lower()
        return self.value


_OPERATORS = [
    "<<=", ">>=", "&^=", "...",
    "&&", "||", "<-", "++", "--", "==", "!=", "<=", ">=", ":=",
    "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "<<", ">>", "&^",
    "+", "-", "*", "/", "%", "&", "|", "^", "<", ">", "=", "!", "~",
    "(", ")", "[", "]", "{", "}", ",", ".", ":",
]  # fmt: skip

_TOKEN_RE = re.compile(
    r"""
    (?P<newline>\n)
    |(?P<space>[ \t\r\f]+)
    |(?P<line_comment>//[^\n]*)
    |(?P<block_comment>/\*.*?\*/)
    |(?P<raw_string>`[^`]*`)
    |(?P<string>"(?:\\.|[^"\\\n])*")
    |(?P<char>'(?:\\.|[^'\\\n])+')
    |(?P<number>
        0[xX][0-9a-fA-F_]*(?:\.[0-9a-fA-F_]*)?(?:[pP][+-]?[0-9_]+)?i?
        |0[bBoO][0-9_]+i?
        |[0-9][0-9_]*(?:\.[0-9_]*)?(?:[eE][+-]?[0-9_]+)?i?
        |\.[0-9][0-9_]*(?:[eE][+-]?[0-9_]+)?i?
    )
    |(?P<ident>[^\W\d]\w*)
    |(?P<op>"""
    + "|".join(re.escape(op) for op in _OPERATORS)
    + r""")
    |(?P<semi>;)
    """,
    re.VERBOSE | re.DOTALL,
)

# Tokens after which a newline terminates the statement.
_SEMI_TRIGGER_KEYWORDS = {"break", "continue", "fallthrough", "return"}
_SEMI_TRIGGER_OPS = {"++", "--", ")", "]", "}"}


def _number_kind(text: str) -> str:
    if text.endswith("i"):
        return IMAG
    lowered = text.lower()
    if lowered.startswith("0x"):
        return FLOAT if ("." in text or "p" in lowered) else INT
    if lowered.startswith(("0b", "0o")):
        return INT
    return FLOAT if ("." in text or "e" in lowered) else INT


def _needs_semicolon(token: Token) -> bool:
    if token.kind in (IDENT, INT, FLOAT, IMAG, CHAR, STRING):
        return True
    if token.kind == KEYWORD:
        return token.value in _SEMI_TRIGGER_KEYWORDS
    if token.kind == OP:
        return token.value in _SEMI_TRIGGER_OPS
    return False


def iter_tokens(source: str, filename: str = "") -> Iterator[Token]:
    """Yield the tokens of `source`, ending with a single EOF token."""
    pos = 0
    line = 1
    last = None
    length = len(source)

    while pos < length:
        match = _TOKEN_RE.match(source, pos)
        if match is None:
            raise GoSyntaxError(
                f"unexpected character {source[pos]!r}", filename, line
            )
        kind = match.lastgroup
        text = match.group()
        pos = match.end()

        if kind == "space":
            continue

        ends_line = kind == "newline" or (
            kind == "block_comment" and "\n" in text
        )
        if kind in ("newline", "line_comment", "block_comment"):
            # A line comment runs to the newline, which is matched next.
            if ends_line and last is not None and _needs_semicolon(last):
                last = Token(SEMI, "\n", line)
                yield last
            line += text.count("\n")
            continue

        if kind == "semi":
            token = Token(SEMI, ";", line)
        elif kind == "ident":
            token = Token(KEYWORD if text in GO_RESERVED_WORDS else IDENT, text, line)
        elif kind == "number":
            token = Token(_number_kind(text), text, line)
        elif kind in ("string", "raw_string"):
            token = Token(STRING, text, line)
        elif kind == "char":
            token = Token(CHAR, text, line)
        else:
            token = Token(OP, text, line)

        yield token
        last = token
        line += text.count("\n")

    if last is not None and _needs_semicolon(last):
        yield Token(SEMI, "\n", line)
    yield Token(EOF, "", line)


def tokenize(source: str, filename: str = "") -> List[Token]:
    """Tokenize Go source into a list."""
    return list(iter_tokens(source, filename))
