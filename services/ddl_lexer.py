"""Tokenizer for CREATE TABLE statements.

Produces a flat list of tokens; whitespace and comments are dropped. Quoted
identifiers keep the quote character they were written with so the parser can
decide, per dialect, whether a double-quoted token is a name or a string.
"""

import re
from dataclasses import dataclass

from services.exceptions import DdlSyntaxError

WORD = "word"
QUOTED_IDENT = "quoted_ident"
STRING = "string"
NUMBER = "number"
PUNCT = "punct"
OPERATOR = "operator"

_WHITESPACE_RE = re.compile(r"\s+")
_WORD_RE = re.compile(r"[^\W\d][\w$]*")
_NUMBER_RE = re.compile(r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_OPERATOR_RE = re.compile(r"<=|>=|<>|!=|\|\||::|[<>!+\-*/%|&^~:@?]")

_PUNCTUATION = "(),;=."
_CLOSING_QUOTE = {"`": "`", '"': '"', "[": "]"}
_BACKSLASH_ESCAPES = {
    "0": "\0",
    "b": "\b",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "Z": "\x1a",
}


@dataclass(frozen=True)
class Token:
    """A lexical token with its position in the source text."""

    kind: str
    value: str
    offset: int
    end: int
    line: int
    column: int
    quote: str | None = None

    def is_keyword(self, *keywords: str) -> bool:
        return self.kind == WORD and self.value.upper() in keywords

    def is_punct(self, value: str) -> bool:
        return self.kind == PUNCT and self.value == value


class _Scanner:
    def __init__(self, sql: str, backslash_escapes: bool, line: int, column: int):
        self.sql = sql
        self.backslash_escapes = backslash_escapes
        self.pos = 0
        self.line = line
        # Negative start lets the first line report columns of the enclosing text.
        self.line_start = 1 - column

    @property
    def column(self) -> int:
        return self.pos - self.line_start + 1

    def advance_to(self, end: int) -> None:
        newlines = self.sql.count("\n", self.pos, end)
        if newlines:
            self.line += newlines
            self.line_start = self.sql.rindex("\n", self.pos, end) + 1
        self.pos = end

    def error(self, message: str) -> DdlSyntaxError:
        return DdlSyntaxError(message, self.line, self.column)

    def skip_comment(self) -> bool:
        sql, pos = self.sql, self.pos
        if sql.startswith("--", pos) or sql.startswith("#", pos):
            end = sql.find("\n", pos)
            self.advance_to(len(sql) if end == -1 else end)
            return True
        if sql.startswith("/*", pos):
            end = sql.find("*/", pos + 2)
            if end == -1:
                raise self.error("Unterminated block comment")
            self.advance_to(end + 2)
            return True
        return False

    def read_string(self) -> str:
        """Read a single-quoted literal, undoing '' and (optionally) backslash escapes."""
        sql = self.sql
        i = self.pos + 1
        chunks: list[str] = []
        while i < len(sql):
            ch = sql[i]
            if ch == "'":
                if sql.startswith("''", i):
                    chunks.append("'")
                    i += 2
                    continue
                self.advance_to(i + 1)
                return "".join(chunks)
            if ch == "\\" and self.backslash_escapes and i + 1 < len(sql):
                nxt = sql[i + 1]
                chunks.append(_BACKSLASH_ESCAPES.get(nxt, nxt))
                i += 2
                continue
            chunks.append(ch)
            i += 1
        raise self.error("Unterminated string literal")

    def read_quoted_ident(self, quote: str) -> str:
        closing = _CLOSING_QUOTE[quote]
        sql = self.sql
        i = self.pos + 1
        chunks: list[str] = []
        while i < len(sql):
            ch = sql[i]
            if ch == closing:
                # Doubled closing quote escapes itself, except for brackets.
                if closing != "]" and sql.startswith(closing * 2, i):
                    chunks.append(closing)
                    i += 2
                    continue
                self.advance_to(i + 1)
                return "".join(chunks)
            chunks.append(ch)
            i += 1
        raise self.error("Unterminated quoted identifier")


def tokenize(sql: str, backslash_escapes: bool = False, line: int = 1, column: int = 1) -> list[Token]:
    """Split SQL text into tokens.

    Args:
        sql: Source text, possibly holding several statements.
        backslash_escapes: Treat backslash as an escape inside string
            literals (MySQL behaviour).
        line: Line number of the first character, when ``sql`` is a slice
            of a larger script.
        column: Column number of the first character.

    Returns:
        Tokens in source order.

    Raises:
        DdlSyntaxError: On unterminated literals or unexpected characters.
    """
    scanner = _Scanner(sql, backslash_escapes, line, column)
    tokens: list[Token] = []

    while scanner.pos < len(sql):
        pos = scanner.pos
        match = _WHITESPACE_RE.match(sql, pos)
        if match:
            scanner.advance_to(match.end())
            continue
        if scanner.skip_comment():
            continue

        line, column = scanner.line, scanner.column
        ch = sql[pos]

        if ch == "'":
            value = scanner.read_string()
            tokens.append(Token(STRING, value, pos, scanner.pos, line, column, quote="'"))
            continue
        if ch in _CLOSING_QUOTE:
            value = scanner.read_quoted_ident(ch)
            tokens.append(Token(QUOTED_IDENT, value, pos, scanner.pos, line, column, quote=ch))
            continue

        for kind, pattern in ((NUMBER, _NUMBER_RE), (WORD, _WORD_RE)):
            match = pattern.match(sql, pos)
            if match:
                tokens.append(Token(kind, match.group(), pos, match.end(), line, column))
                scanner.advance_to(match.end())
                break
        else:
            if ch in _PUNCTUATION:
                tokens.append(Token(PUNCT, ch, pos, pos + 1, line, column))
                scanner.advance_to(pos + 1)
                continue
            match = _OPERATOR_RE.match(sql, pos)
            if not match:
                raise scanner.error(f"Unexpected character {ch!r}")
            tokens.append(Token(OPERATOR, match.group(), pos, match.end(), line, column))
            scanner.advance_to(match.end())

    return tokens
