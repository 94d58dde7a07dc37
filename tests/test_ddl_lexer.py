"""Tests for the CREATE TABLE tokenizer."""

from __future__ import annotations

import pytest

from services.ddl_lexer import NUMBER, OPERATOR, PUNCT, QUOTED_IDENT, STRING, WORD, tokenize
from services.exceptions import DdlSyntaxError

pytestmark = pytest.mark.unit


def test_tokenize_identifies_token_kinds() -> None:
    """Split a column definition into words, quoted names, strings and punctuation."""

    tokens = tokenize("`first_name` varchar(14) DEFAULT 'x';")

    assert [(t.kind, t.value) for t in tokens] == [
        (QUOTED_IDENT, "first_name"),
        (WORD, "varchar"),
        (PUNCT, "("),
        (NUMBER, "14"),
        (PUNCT, ")"),
        (WORD, "DEFAULT"),
        (STRING, "x"),
        (PUNCT, ";"),
    ]
    assert tokens[0].quote == "`"


def test_tokenize_keeps_quote_style_of_identifiers() -> None:
    """Record which quote delimited each identifier."""

    tokens = tokenize('"emp_no" [gender] `hire_date`')

    assert [t.quote for t in tokens] == ['"', "[", "`"]
    assert all(t.kind == QUOTED_IDENT for t in tokens)


def test_tokenize_preserves_multibyte_strings() -> None:
    """Keep multi-byte literal text exactly."""

    (token,) = tokenize("'默认值测试'")

    assert token.value == "默认值测试"
    assert len(token.value) == 5


def test_tokenize_undoes_doubled_quotes_only() -> None:
    """Undo '' escaping and leave double quotes inside strings untouched."""

    tokens = tokenize("'it''s' '\"\"'")

    assert [t.value for t in tokens] == ["it's", '""']


def test_tokenize_backslash_escapes_are_optional() -> None:
    """Treat backslashes as escapes only when asked to."""

    assert tokenize(r"'a\'b'", backslash_escapes=True)[0].value == "a'b"
    assert tokenize(r"'a\nb'")[0].value == r"a\nb"


def test_tokenize_skips_comments_and_tabs() -> None:
    """Drop line comments, block comments and tab whitespace."""

    tokens = tokenize("-- leading\n\t\"emp_no\"\tINTEGER /* block */ # trailing\n,")

    assert [t.value for t in tokens] == ["emp_no", "INTEGER", ","]


def test_tokenize_tracks_line_and_column() -> None:
    """Report 1-based line and column for every token."""

    tokens = tokenize("CREATE TABLE t (\n  id int\n)")

    id_token = tokens[4]
    assert id_token.value == "id"
    assert (id_token.line, id_token.column) == (2, 3)


def test_tokenize_reads_operators() -> None:
    """Recognise casts and comparison operators."""

    tokens = tokenize("'a'::text <> 1")

    assert [(t.kind, t.value) for t in tokens[1:3]] == [(OPERATOR, "::"), (WORD, "text")]
    assert tokens[3].kind == OPERATOR and tokens[3].value == "<>"


@pytest.mark.parametrize(
    ("sql", "message"),
    [
        ("'open", "Unterminated string literal"),
        ("`open", "Unterminated quoted identifier"),
        ("/* open", "Unterminated block comment"),
    ],
)
def test_tokenize_rejects_unterminated_input(sql: str, message: str) -> None:
    """Raise a syntax error with a position for unterminated input."""

    with pytest.raises(DdlSyntaxError, match=message) as excinfo:
        tokenize(sql)

    assert excinfo.value.line == 1
