"""Domain exceptions raised while reading, comparing and rendering DDL."""


class DdlError(ValueError):
    """Base error for DDL that cannot be turned into a table schema."""


class DdlSyntaxError(DdlError):
    """Malformed or unsupported SQL text.

    Attributes:
        line: 1-based line of the offending token, if known.
        column: 1-based column of the offending token, if known.
    """

    def __init__(self, message: str, line: int | None = None, column: int | None = None):
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


class UnsupportedDialectError(DdlError):
    """The requested SQL dialect is not one we can read or render."""


class TableNotFoundError(LookupError):
    """A requested table does not exist in the inspected database."""
