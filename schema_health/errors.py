"""Error taxonomy for schema health scans."""

from typing import Optional


class SchemaHealthError(Exception):
    """Base class for every fatal scan error."""


class ConfigError(SchemaHealthError):
    """Invalid or missing configuration value."""


class UnsupportedEngine(SchemaHealthError):
    """The connection does not point at a MySQL-compatible database."""

    def __init__(self, dialect_name: str, supported: tuple = ()):
        self.dialect_name = dialect_name
        self.supported = supported
        hint = f" (supported: {', '.join(supported)})" if supported else ""
        super().__init__(f"Unsupported database engine '{dialect_name}'{hint}")


class UnknownTypeKind(SchemaHealthError):
    """No type range is defined for the given canonical kind."""

    def __init__(self, kind):
        self.kind = kind
        super().__init__(f"Could not find max value for `{kind}` column type.")


class UnknownCheckKind(SchemaHealthError):
    """A requested check name is not one of the available checks."""

    def __init__(self, name: str, available: tuple = ()):
        self.name = name
        self.available = available
        hint = f" Available types: {', '.join(available)}" if available else ""
        super().__init__(f"Unknown check type '{name}'.{hint}")


class UnknownSizeUnit(SchemaHealthError):
    """A byte size is too large for the supported units."""

    def __init__(self, size: int):
        self.size = size
        super().__init__(f"Unknown size unit for {size} bytes.")


class QueryFailed(SchemaHealthError):
    """A read-only query against the inspected database failed."""

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        column: Optional[str] = None,
        check: Optional[str] = None,
    ):
        self.table = table
        self.column = column
        self.check = check
        self.reason = message
        location = ".".join(p for p in (table, column) if p)
        context = []
        if location:
            context.append(location)
        if check:
            context.append(f"check={check}")
        prefix = f"[{' '.join(context)}] " if context else ""
        super().__init__(f"{prefix}{message}")

    def with_context(self, table=None, column=None, check=None) -> "QueryFailed":
        """Return a copy with any missing context filled in."""
        return QueryFailed(
            self.reason,
            table=self.table or table,
            column=self.column or column,
            check=self.check or check,
        )
