# Infrastructure package: SQLite connection, SQL generation, persistence scopes
