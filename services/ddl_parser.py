"""CREATE TABLE parser producing canonical table schemas.

The grammar accepted is the union of the MySQL, SQLite, PostgreSQL and plain
ANSI spellings of CREATE TABLE. The dialect mostly affects how a token is
read rather than what is accepted: in MySQL a double-quoted token in value
position is a string and backslashes escape inside literals; elsewhere double
quotes delimit identifiers.
"""

import logging
from typing import Any

from pydantic import ValidationError

from schemas.table_schema import (
    ColumnDefault,
    ColumnSchema,
    Dialect,
    ForeignKeySchema,
    IndexSchema,
    TableSchema,
)
from services.ddl_lexer import NUMBER, OPERATOR, PUNCT, QUOTED_IDENT, STRING, WORD, Token, tokenize
from services.exceptions import DdlError, DdlSyntaxError, UnsupportedDialectError
from services.type_mapping import normalize_type

logger = logging.getLogger(__name__)

# Words that end a column's type and start its constraint list.
COLUMN_CONSTRAINT_KEYWORDS = {
    "NOT",
    "NULL",
    "DEFAULT",
    "PRIMARY",
    "AUTO_INCREMENT",
    "AUTOINCREMENT",
    "UNIQUE",
    "COMMENT",
    "COLLATE",
    "CHARSET",
    "CHECK",
    "REFERENCES",
    "CONSTRAINT",
    "ON",
    "GENERATED",
    "AS",
    "KEY",
    "VISIBLE",
    "INVISIBLE",
    "STORAGE",
    "COLUMN_FORMAT",
    "SRID",
}
TYPE_MODIFIERS = {"UNSIGNED", "SIGNED", "ZEROFILL"}
INDEX_KEYWORDS = {"KEY", "INDEX"}
REFERENTIAL_ACTIONS = {
    ("CASCADE",): "CASCADE",
    ("RESTRICT",): "RESTRICT",
    ("SET", "NULL"): "SET NULL",
    ("SET", "DEFAULT"): "SET DEFAULT",
    ("NO", "ACTION"): "NO ACTION",
}
TABLE_OPTION_KEYS = {
    "CHARSET": "charset",
    "CHARACTER SET": "charset",
    "COLLATE": "collate",
    "ENGINE": "engine",
    "TYPE": "engine",
}

# Options accepted without "="; any other key must be followed by one.
KNOWN_TABLE_OPTIONS = {
    *TABLE_OPTION_KEYS,
    "AUTO_INCREMENT",
    "AVG_ROW_LENGTH",
    "CHECKSUM",
    "COMMENT",
    "COMPRESSION",
    "DELAY_KEY_WRITE",
    "ENCRYPTION",
    "INSERT_METHOD",
    "KEY_BLOCK_SIZE",
    "MAX_ROWS",
    "MIN_ROWS",
    "PACK_KEYS",
    "PARTITION",
    "ROW_FORMAT",
    "STATS_AUTO_RECALC",
    "STATS_PERSISTENT",
    "STATS_SAMPLE_PAGES",
    "TABLESPACE",
}

MYSQL_MARKERS = {"ENGINE", "AUTO_INCREMENT", "UNSIGNED", "ZEROFILL", "CHARSET"}
POSTGRES_MARKERS = {"SERIAL", "BIGSERIAL", "SMALLSERIAL", "TIMESTAMPTZ", "JSONB", "BYTEA"}
SQLITE_MARKERS = {"AUTOINCREMENT", "ROWID", "STRICT"}


def _tokenize_any(sql: str, dialect: Dialect | None, line: int = 1, column: int = 1) -> list[Token]:
    """Tokenize, retrying with MySQL backslash escapes when no dialect is known."""
    if dialect is not None:
        return tokenize(sql, backslash_escapes=dialect == Dialect.MYSQL, line=line, column=column)
    try:
        return tokenize(sql, line=line, column=column)
    except DdlSyntaxError:
        return tokenize(sql, backslash_escapes=True, line=line, column=column)


def detect_dialect(sql: str) -> Dialect:
    """Guess the dialect a statement was written for.

    Backtick identifiers or MySQL-only table options win, then PostgreSQL
    type names and casts, then double-quoted or bracketed identifiers and
    SQLite keywords. Everything else is treated as ANSI.
    """
    tokens = _tokenize_any(sql, None)
    words = {token.value.upper() for token in tokens if token.kind == WORD}
    quotes = {token.quote for token in tokens if token.kind == QUOTED_IDENT}

    if "`" in quotes or words & MYSQL_MARKERS:
        return Dialect.MYSQL
    if words & POSTGRES_MARKERS or any(t.kind == OPERATOR and t.value == "::" for t in tokens):
        return Dialect.POSTGRESQL
    if '"' in quotes or "[" in quotes or words & SQLITE_MARKERS:
        return Dialect.SQLITE
    return Dialect.ANSI


def split_statements(sql: str, dialect: Dialect | None = None) -> list[str]:
    """Split a script into statements on top-level semicolons.

    Semicolons inside literals, quoted identifiers and comments are ignored.
    Empty statements are dropped.
    """
    return [text for text, _, _ in _split_with_positions(sql, dialect)]


def _split_with_positions(sql: str, dialect: Dialect | None) -> list[tuple[str, int, int]]:
    tokens = _tokenize_any(sql, dialect)
    statements: list[tuple[str, int, int]] = []
    start: Token | None = None
    for token in tokens:
        if token.is_punct(";"):
            if start is not None:
                statements.append((sql[start.offset : token.offset].strip(), start.line, start.column))
            start = None
        elif start is None:
            start = token
    if start is not None:
        statements.append((sql[start.offset :].strip(), start.line, start.column))
    return statements


def parse_create_table(sql: str, dialect: Dialect | str | None = None) -> TableSchema:
    """Parse a single CREATE TABLE statement.

    Args:
        sql: The statement text. A trailing semicolon is allowed.
        dialect: Dialect to read the statement in; detected when omitted.

    Returns:
        The canonical table schema.

    Raises:
        DdlSyntaxError: If the text is not a well-formed CREATE TABLE.
    """
    return _parse_statement(sql, _coerce_dialect(dialect))


def parse_script(sql: str, dialect: Dialect | str | None = None) -> list[TableSchema]:
    """Parse every CREATE TABLE statement in a script.

    Statements other than CREATE TABLE are skipped. When no dialect is given
    each statement is detected on its own, so a file mixing dialects yields
    one schema per variant.

    Raises:
        DdlError: If the script holds no CREATE TABLE statement.
        DdlSyntaxError: If a CREATE TABLE statement is malformed.
    """
    dialect = _coerce_dialect(dialect)
    tables: list[TableSchema] = []
    for text, line, column in _split_with_positions(sql, dialect):
        head = [token.value.upper() for token in _tokenize_any(text, dialect, line, column)[:3]]
        if not head or head[0] != "CREATE" or "TABLE" not in head[1:]:
            logger.debug("Skipping non CREATE TABLE statement at line %d", line)
            continue
        tables.append(_parse_statement(text, dialect, line, column))

    if not tables:
        raise DdlError("No CREATE TABLE statement found")
    logger.info("Parsed %d table definition(s)", len(tables))
    return tables


def _coerce_dialect(dialect: Dialect | str | None) -> Dialect | None:
    if dialect is None or isinstance(dialect, Dialect):
        return dialect
    try:
        return Dialect(dialect.lower())
    except ValueError as e:
        raise UnsupportedDialectError(f"Unsupported dialect: {dialect}") from e


def _parse_statement(sql: str, dialect: Dialect | None, line: int = 1, column: int = 1) -> TableSchema:
    if dialect is None:
        dialect = detect_dialect(sql)
    tokens = tokenize(sql, backslash_escapes=dialect == Dialect.MYSQL, line=line, column=column)
    parser = _CreateTableParser(sql, tokens, dialect)
    return parser.parse()


class _ColumnBuilder:
    """Mutable column state collected while parsing a column definition."""

    def __init__(self, name: str, ordinal: int):
        self.name = name
        self.fields: dict[str, Any] = {"name": name, "ordinal": ordinal}

    def build(self, primary_key: bool) -> ColumnSchema:
        fields = dict(self.fields)
        if primary_key:
            fields["primary_key"] = True
            fields["nullable"] = False
        return ColumnSchema(**fields)


class _CreateTableParser:
    def __init__(self, sql: str, tokens: list[Token], dialect: Dialect):
        self.sql = sql
        self.tokens = tokens
        self.dialect = dialect
        self.pos = 0

        self.columns: list[_ColumnBuilder] = []
        self.primary_key: list[str] = []
        self.checks: list[str] = []
        self.indexes: list[IndexSchema] = []
        self.foreign_keys: list[ForeignKeySchema] = []
        self.options: dict[str, str] = {}
        self.comment: str | None = None

    # -- token helpers -------------------------------------------------

    def peek(self, offset: int = 0) -> Token | None:
        index = self.pos + offset
        return self.tokens[index] if index < len(self.tokens) else None

    def next(self) -> Token:
        token = self.peek()
        if token is None:
            raise self.error("Unexpected end of statement")
        self.pos += 1
        return token

    def error(self, message: str, token: Token | None = None) -> DdlSyntaxError:
        token = token or self.peek()
        if token is None and self.tokens:
            last = self.tokens[-1]
            return DdlSyntaxError(message, last.line, last.column)
        if token is None:
            return DdlSyntaxError(message)
        return DdlSyntaxError(f"{message}, found {token.value!r}", token.line, token.column)

    def at_keyword(self, *keywords: str, offset: int = 0) -> bool:
        token = self.peek(offset)
        return token is not None and token.is_keyword(*keywords)

    def at_punct(self, value: str) -> bool:
        token = self.peek()
        return token is not None and token.is_punct(value)

    def accept_keyword(self, *keywords: str) -> bool:
        if self.at_keyword(*keywords):
            self.pos += 1
            return True
        return False

    def expect_keyword(self, *keywords: str) -> Token:
        if not self.at_keyword(*keywords):
            raise self.error(f"Expected {' or '.join(keywords)}")
        return self.next()

    def accept_punct(self, value: str) -> bool:
        if self.at_punct(value):
            self.pos += 1
            return True
        return False

    def expect_punct(self, value: str) -> Token:
        if not self.at_punct(value):
            raise self.error(f"Expected {value!r}")
        return self.next()

    # -- grammar -------------------------------------------------------

    def parse(self) -> TableSchema:
        self.expect_keyword("CREATE")
        self.accept_keyword("TEMPORARY", "TEMP")
        self.expect_keyword("TABLE")
        if self.accept_keyword("IF"):
            self.expect_keyword("NOT")
            self.expect_keyword("EXISTS")
        schema_name, name = self.parse_qualified_name()

        if self.at_keyword("AS", "LIKE", "SELECT"):
            raise self.error("CREATE TABLE ... AS/LIKE is not supported")
        self.expect_punct("(")
        while True:
            self.parse_element()
            if self.accept_punct(","):
                continue
            self.expect_punct(")")
            break
        self.parse_table_options()

        if self.peek() is not None:
            raise self.error("Unexpected text after table definition")

        return self.build(schema_name, name)

    def parse_identifier(self) -> str:
        token = self.next()
        if token.kind in (WORD, QUOTED_IDENT):
            return token.value
        if token.kind == STRING and self.dialect == Dialect.SQLITE:
            # SQLite accepts 'name' where an identifier is expected.
            return token.value
        raise self.error("Expected identifier", token)

    def parse_qualified_name(self) -> tuple[str | None, str]:
        first = self.parse_identifier()
        if self.accept_punct("."):
            return first, self.parse_identifier()
        return None, first

    def parse_element(self) -> None:
        token = self.peek()
        if token is None:
            raise self.error("Unexpected end of statement")
        if token.kind == WORD and self.is_table_constraint_start():
            self.parse_table_constraint()
        else:
            self.parse_column()

    def is_table_constraint_start(self) -> bool:
        if self.at_keyword("CONSTRAINT", "CHECK", "FULLTEXT", "SPATIAL"):
            return True
        if self.at_keyword("PRIMARY", "FOREIGN") and self.at_keyword("KEY", offset=1):
            return True
        if self.at_keyword("KEY", "INDEX"):
            return True
        if self.at_keyword("UNIQUE"):
            nxt = self.peek(1)
            return nxt is not None and (nxt.is_punct("(") or nxt.is_keyword("KEY", "INDEX") or nxt.kind != PUNCT)
        return False

    # -- columns -------------------------------------------------------

    def parse_column(self) -> None:
        name_token = self.peek()
        name = self.parse_identifier()
        if any(column.name.lower() == name.lower() for column in self.columns):
            raise self.error(f"Duplicate column {name!r}", name_token)
        column = _ColumnBuilder(name, len(self.columns) + 1)
        self.columns.append(column)

        self.parse_column_type(column)
        self.parse_column_constraints(column)

    def parse_column_type(self, column: _ColumnBuilder) -> None:
        words: list[str] = []
        args: list[str] = []
        unsigned = False
        start = self.peek()
        end_offset = start.offset if start is not None else len(self.sql)

        while True:
            token = self.peek()
            if token is None or token.kind != WORD:
                break
            upper = token.value.upper()
            if upper in TYPE_MODIFIERS:
                unsigned = unsigned or upper == "UNSIGNED"
                end_offset = self.next().end
                continue
            if upper in COLUMN_CONSTRAINT_KEYWORDS:
                break
            if upper == "CHARACTER" and self.at_keyword("SET", offset=1):
                break
            if args and upper not in ("WITH", "WITHOUT", "TIME", "ZONE", "VARYING"):
                break
            words.append(token.value)
            end_offset = self.next().end
            if self.at_punct("(") and not args:
                args, end_offset = self.parse_type_arguments()

        raw_type = self.sql[start.offset : end_offset].strip() if words and start is not None else ""
        normalized = normalize_type(" ".join(words), args, self.dialect)
        fields = column.fields
        fields["raw_type"] = raw_type
        fields["data_type"] = normalized.data_type
        fields["length"] = normalized.length
        fields["precision"] = normalized.precision
        fields["scale"] = normalized.scale
        fields["enum_values"] = normalized.enum_values
        fields["unsigned"] = unsigned
        if normalized.auto_increment:
            fields["auto_increment"] = True

    def parse_type_arguments(self) -> tuple[list[str], int]:
        self.expect_punct("(")
        args: list[str] = []
        while True:
            token = self.next()
            if token.kind == OPERATOR and token.value in ("-", "+"):
                number = self.next()
                if number.kind != NUMBER:
                    raise self.error("Expected number", number)
                args.append(token.value + number.value if token.value == "-" else number.value)
            elif token.kind in (NUMBER, STRING, WORD) or (token.kind == QUOTED_IDENT and token.quote == '"'):
                args.append(token.value)
            else:
                raise self.error("Unexpected type argument", token)
            if self.accept_punct(","):
                continue
            closing = self.expect_punct(")")
            return args, closing.end

    def parse_column_constraints(self, column: _ColumnBuilder) -> None:
        fields = column.fields
        while True:
            token = self.peek()
            if token is None or token.is_punct(",") or token.is_punct(")"):
                return

            if self.accept_keyword("CONSTRAINT"):
                self.parse_identifier()
            elif self.accept_keyword("NOT"):
                self.expect_keyword("NULL")
                self.parse_conflict_clause()
                fields["nullable"] = False
            elif self.accept_keyword("NULL"):
                fields["nullable"] = True
            elif self.accept_keyword("DEFAULT"):
                fields["default"] = self.parse_default()
            elif self.accept_keyword("PRIMARY"):
                self.expect_keyword("KEY")
                self.accept_keyword("ASC", "DESC")
                self.parse_conflict_clause()
                if self.accept_keyword("AUTOINCREMENT"):
                    fields["auto_increment"] = True
                if self.primary_key:
                    raise self.error("Multiple primary keys declared", token)
                self.primary_key = [column.name]
            elif self.accept_keyword("AUTO_INCREMENT", "AUTOINCREMENT"):
                fields["auto_increment"] = True
            elif self.accept_keyword("UNIQUE"):
                self.accept_keyword("KEY")
                self.parse_conflict_clause()
                fields["unique"] = True
            elif self.accept_keyword("KEY"):
                # MySQL: a bare KEY on a column means PRIMARY KEY.
                self.primary_key = [column.name]
            elif self.accept_keyword("COMMENT"):
                fields["comment"] = self.parse_string_value()
            elif self.accept_keyword("COLLATE"):
                fields["collation"] = self.parse_name_or_string()
            elif self.accept_keyword("CHARSET"):
                fields["charset"] = self.parse_name_or_string()
            elif self.at_keyword("CHARACTER") and self.at_keyword("SET", offset=1):
                self.pos += 2
                fields["charset"] = self.parse_name_or_string()
            elif self.at_keyword("CHECK"):
                self.next()
                self.add_check(self.capture_parenthesized())
            elif self.accept_keyword("REFERENCES"):
                self.foreign_keys.append(self.parse_references(None, (column.name,)))
            elif self.at_keyword("ON") and self.at_keyword("UPDATE", offset=1):
                self.pos += 2
                expression = self.parse_default()
                logger.debug("Ignoring ON UPDATE %s on column %s", expression.value, column.name)
            elif self.accept_keyword("GENERATED"):
                self.expect_keyword("ALWAYS", "BY")
                if self.accept_keyword("DEFAULT"):
                    self.accept_keyword("ON")
                    self.accept_keyword("NULL")
                self.expect_keyword("AS")
                if self.accept_keyword("IDENTITY"):
                    fields["auto_increment"] = True
                    if self.at_punct("("):
                        self.capture_parenthesized()
                else:
                    self.capture_parenthesized()
                    self.accept_keyword("VIRTUAL", "STORED", "PERSISTENT")
            elif self.accept_keyword("AS"):
                self.capture_parenthesized()
                self.accept_keyword("VIRTUAL", "STORED", "PERSISTENT")
            elif self.accept_keyword("VISIBLE", "INVISIBLE"):
                pass
            elif self.accept_keyword("STORAGE", "COLUMN_FORMAT", "SRID"):
                self.next()
            else:
                raise self.error(f"Unexpected token in definition of column {column.name!r}")

    def parse_conflict_clause(self) -> None:
        if self.at_keyword("ON") and self.at_keyword("CONFLICT", offset=1):
            self.pos += 2
            self.expect_keyword("ROLLBACK", "ABORT", "FAIL", "IGNORE", "REPLACE")

    def parse_default(self) -> ColumnDefault:
        token = self.peek()
        if token is None:
            raise self.error("Expected default value")

        if token.is_punct("("):
            return ColumnDefault(value=self.capture_parenthesized(), kind="expression")

        if token.kind == STRING or (token.kind == QUOTED_IDENT and token.quote == '"' and self.dialect == Dialect.MYSQL):
            self.next()
            default = ColumnDefault(value=token.value, kind="string")
        elif token.kind == NUMBER:
            self.next()
            default = ColumnDefault(value=token.value, kind="number")
        elif token.kind == OPERATOR and token.value in ("-", "+"):
            self.next()
            number = self.next()
            if number.kind != NUMBER:
                raise self.error("Expected number", number)
            value = number.value if token.value == "+" else "-" + number.value
            default = ColumnDefault(value=value, kind="number")
        elif token.is_keyword("NULL"):
            self.next()
            default = ColumnDefault(value=None, kind="null")
        elif token.is_keyword("TRUE", "FALSE"):
            self.next()
            default = ColumnDefault(value=token.value.upper(), kind="boolean")
        elif token.kind == WORD:
            self.next()
            end = token.end
            if self.at_punct("("):
                self.capture_parenthesized()
                end = self.tokens[self.pos - 1].end
            default = ColumnDefault(value=self.sql[token.offset : end], kind="expression")
        else:
            raise self.error("Expected default value", token)

        self.skip_cast()
        return default

    def skip_cast(self) -> None:
        """Drop PostgreSQL casts such as 'x'::character varying."""
        while self.peek() is not None and self.peek().kind == OPERATOR and self.peek().value == "::":
            self.next()
            self.next()
            while self.peek() is not None and self.peek().kind == WORD and not self.at_keyword(
                *COLUMN_CONSTRAINT_KEYWORDS
            ):
                self.next()
            if self.at_punct("("):
                self.capture_parenthesized()

    def parse_string_value(self) -> str:
        token = self.next()
        if token.kind == STRING or (token.kind == QUOTED_IDENT and token.quote == '"' and self.dialect == Dialect.MYSQL):
            return token.value
        raise self.error("Expected string literal", token)

    def parse_name_or_string(self) -> str:
        token = self.next()
        if token.kind in (WORD, QUOTED_IDENT, STRING):
            return token.value
        raise self.error("Expected name", token)

    def capture_parenthesized(self) -> str:
        """Consume a balanced (...) group and return its inner source text."""
        opening = self.expect_punct("(")
        depth = 1
        while depth:
            token = self.next()
            if token.is_punct("("):
                depth += 1
            elif token.is_punct(")"):
                depth -= 1
        return self.sql[opening.end : token.offset].strip()

    # -- table constraints ---------------------------------------------

    def parse_table_constraint(self) -> None:
        name = None
        if self.accept_keyword("CONSTRAINT"):
            if not self.at_keyword("PRIMARY", "UNIQUE", "FOREIGN", "CHECK"):
                name = self.parse_identifier()

        if self.accept_keyword("PRIMARY"):
            self.expect_keyword("KEY")
            self.skip_index_type()
            columns = self.parse_column_list()
            if self.primary_key:
                raise self.error("Multiple primary keys declared")
            self.primary_key = columns
            self.skip_index_options()
        elif self.accept_keyword("UNIQUE"):
            self.accept_keyword("KEY", "INDEX")
            index_name = self.parse_optional_index_name() or name
            columns = self.parse_column_list()
            self.indexes.append(IndexSchema(name=index_name, columns=tuple(columns), unique=True))
            self.skip_index_options()
        elif self.accept_keyword("FOREIGN"):
            self.expect_keyword("KEY")
            name = self.parse_optional_index_name() or name
            columns = self.parse_column_list()
            self.expect_keyword("REFERENCES")
            self.foreign_keys.append(self.parse_references(name, tuple(columns)))
        elif self.accept_keyword("CHECK"):
            self.add_check(self.capture_parenthesized())
            self.accept_keyword("ENFORCED")
        elif self.accept_keyword("FULLTEXT", "SPATIAL"):
            self.accept_keyword("KEY", "INDEX")
            index_name = self.parse_optional_index_name()
            columns = self.parse_column_list()
            self.indexes.append(IndexSchema(name=index_name, columns=tuple(columns)))
            self.skip_index_options()
        elif self.accept_keyword(*INDEX_KEYWORDS):
            index_name = self.parse_optional_index_name()
            columns = self.parse_column_list()
            self.indexes.append(IndexSchema(name=index_name, columns=tuple(columns)))
            self.skip_index_options()
        else:
            raise self.error("Expected table constraint")

    def parse_optional_index_name(self) -> str | None:
        token = self.peek()
        if token is not None and token.kind in (WORD, QUOTED_IDENT) and not token.is_keyword("USING"):
            return self.parse_identifier()
        self.skip_index_type()
        return None

    def skip_index_type(self) -> None:
        if self.accept_keyword("USING"):
            self.expect_keyword("BTREE", "HASH")

    def skip_index_options(self) -> None:
        while True:
            if self.accept_keyword("USING"):
                self.next()
            elif self.accept_keyword("COMMENT"):
                self.parse_string_value()
            elif self.accept_keyword("VISIBLE", "INVISIBLE"):
                pass
            elif self.accept_keyword("KEY_BLOCK_SIZE"):
                self.accept_punct("=")
                self.next()
            elif self.at_keyword("ON") and self.at_keyword("CONFLICT", offset=1):
                self.parse_conflict_clause()
            else:
                return

    def parse_column_list(self) -> list[str]:
        self.expect_punct("(")
        columns: list[str] = []
        while True:
            columns.append(self.parse_identifier())
            if self.at_punct("("):
                # Prefix length, e.g. KEY (name(10)).
                self.capture_parenthesized()
            if self.accept_keyword("COLLATE"):
                self.parse_name_or_string()
            self.accept_keyword("ASC", "DESC")
            if self.accept_punct(","):
                continue
            self.expect_punct(")")
            return columns

    def parse_references(self, name: str | None, columns: tuple[str, ...]) -> ForeignKeySchema:
        _, table = self.parse_qualified_name()
        referred: tuple[str, ...] = ()
        if self.at_punct("("):
            referred = tuple(self.parse_column_list())
        actions: dict[str, str] = {}
        while True:
            if self.at_keyword("ON") and self.at_keyword("DELETE", "UPDATE", offset=1):
                self.next()
                event = self.next().value.lower()
                actions[f"on_{event}"] = self.parse_referential_action()
            elif self.accept_keyword("MATCH"):
                self.expect_keyword("FULL", "PARTIAL", "SIMPLE")
            elif self.accept_keyword("DEFERRABLE"):
                if self.accept_keyword("INITIALLY"):
                    self.expect_keyword("DEFERRED", "IMMEDIATE")
            elif self.at_keyword("NOT") and self.at_keyword("DEFERRABLE", offset=1):
                self.pos += 2
            else:
                break
        return ForeignKeySchema(
            name=name,
            columns=columns,
            referred_table=table,
            referred_columns=referred or columns,
            **actions,
        )

    def parse_referential_action(self) -> str:
        for words, action in REFERENTIAL_ACTIONS.items():
            if all(self.at_keyword(word, offset=i) for i, word in enumerate(words)):
                self.pos += len(words)
                return action
        raise self.error("Expected referential action")

    def add_check(self, expression: str) -> None:
        self.checks.append(expression)

    # -- table options -------------------------------------------------

    def parse_table_options(self) -> None:
        while True:
            token = self.peek()
            if token is None:
                return
            if self.accept_punct(";"):
                return
            if self.accept_punct(","):
                continue
            if self.at_keyword("WITHOUT") and self.at_keyword("ROWID", offset=1):
                self.pos += 2
                self.options["without_rowid"] = "true"
                continue
            if self.accept_keyword("STRICT"):
                self.options["strict"] = "true"
                continue
            if token.kind != WORD:
                raise self.error("Expected table option", token)

            self.accept_keyword("DEFAULT")
            if self.at_keyword("CHARACTER") and self.at_keyword("SET", offset=1):
                self.pos += 2
                key = "CHARACTER SET"
            else:
                key_token = self.next()
                if key_token.kind != WORD:
                    raise self.error("Expected table option", key_token)
                key = key_token.value.upper()
            if not self.accept_punct("=") and key not in KNOWN_TABLE_OPTIONS:
                raise self.error(f"Unknown table option {key.lower()!r}; expected '=' after it")

            if key == "COMMENT":
                self.comment = self.parse_string_value()
                continue
            if key == "PARTITION":
                raise self.error("Partitioned tables are not supported")
            value = self.next()
            if value.kind not in (WORD, QUOTED_IDENT, STRING, NUMBER):
                raise self.error("Expected table option value", value)
            self.options[TABLE_OPTION_KEYS.get(key, key.lower())] = value.value

    # -- assembly ------------------------------------------------------

    def resolve_columns(self, names: tuple[str, ...], by_name: dict, what: str) -> tuple[str, ...]:
        resolved = []
        for name in names:
            column = by_name.get(name.lower())
            if column is None:
                raise DdlSyntaxError(f"{what} references unknown column {name!r}")
            resolved.append(column.name)
        return tuple(resolved)

    def build(self, schema_name: str | None, name: str) -> TableSchema:
        by_name = {column.name.lower(): column for column in self.columns}

        primary_key: list[str] = []
        for key_column in self.primary_key:
            column = by_name.get(key_column.lower())
            if column is None:
                raise DdlSyntaxError(f"Primary key references unknown column {key_column!r}")
            primary_key.append(column.name)
        indexes = [
            index.model_copy(update={"columns": self.resolve_columns(index.columns, by_name, "Index")})
            for index in self.indexes
        ]
        foreign_keys = [
            fk.model_copy(update={"columns": self.resolve_columns(fk.columns, by_name, "Foreign key")})
            for fk in self.foreign_keys
        ]

        for expression in self.checks:
            enum = enum_from_check(expression, self.dialect)
            if enum is None:
                continue
            column_name, values = enum
            column = by_name.get(column_name.lower())
            if column is not None and column.fields.get("enum_values") is None:
                column.fields["enum_values"] = values

        pk_lookup = {key.lower() for key in primary_key}
        try:
            columns = tuple(column.build(column.name.lower() in pk_lookup) for column in self.columns)
            return TableSchema(
                name=name,
                schema_name=schema_name,
                dialect=self.dialect,
                columns=columns,
                primary_key=tuple(primary_key),
                comment=self.comment,
                options=self.options,
                checks=tuple(self.checks),
                indexes=tuple(indexes),
                foreign_keys=tuple(foreign_keys),
            )
        except ValidationError as e:
            raise DdlSyntaxError(f"Invalid table definition {name!r}: {e.errors()[0]['msg']}") from e


def enum_from_check(expression: str, dialect: Dialect = Dialect.ANSI) -> tuple[str, tuple[str, ...]] | None:
    """Recognise ``column IN ('a', 'b', ...)`` and return its column and values."""
    try:
        tokens = tokenize(expression, backslash_escapes=dialect == Dialect.MYSQL)
    except DdlSyntaxError:
        return None
    if len(tokens) < 5 or tokens[0].kind not in (WORD, QUOTED_IDENT):
        return None
    if not tokens[1].is_keyword("IN") or not tokens[2].is_punct("(") or not tokens[-1].is_punct(")"):
        return None
    values: list[str] = []
    inner = tokens[3:-1]
    for position, token in enumerate(inner):
        if position % 2 == 0:
            if token.kind != STRING:
                return None
            values.append(token.value)
        elif not token.is_punct(","):
            return None
    if not values:
        return None
    return tokens[0].value, tuple(values)


def parse_default_expression(text: str, dialect: Dialect = Dialect.ANSI) -> ColumnDefault:
    """Read a default as reported by a database or a SQLAlchemy server default.

    Text that is not a single literal, keyword or function call is kept
    verbatim as an expression.
    """
    tokens = tokenize(text, backslash_escapes=dialect == Dialect.MYSQL)
    if not tokens:
        return ColumnDefault(value=text, kind="expression")
    parser = _CreateTableParser(text, tokens, dialect)
    try:
        default = parser.parse_default()
    except DdlSyntaxError:
        return ColumnDefault(value=text.strip(), kind="expression")
    if parser.peek() is not None:
        return ColumnDefault(value=text.strip(), kind="expression")
    return default
