"""SQLite identifier quoting and parameter placeholder convention."""
from sqlitem.domain.errors import InvalidArgumentError


class SqliteDialect:
    """
    SQLite dialect.

    Identifiers are double-quoted, parameters use the named ``:name`` style
    understood by the sqlite3 driver.
    """

    parameter_prefix = ":"
    last_insert_id_sql = "SELECT last_insert_rowid();"

    def quote_identifier(self, name: str) -> str:
        if not name:
            raise InvalidArgumentError("Identifier must not be empty.")
        escaped = name.replace('"', '""')
        return f'"{escaped}"'

    def parameter(self, name: str) -> str:
        return f"{self.parameter_prefix}{name}"
