from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Union

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sqlitem.settings.pragmas import PragmaOptions


MEMORY_URL = "sqlite+aiosqlite:///:memory:"


class SqliteMSettings(BaseSettings):
    """
    sqlitem configuration.

    Loaded from environment variables (``SQLITEM_`` prefix) or a ``.env``
    file. Nested pragma options use ``__`` as delimiter, e.g.
    ``SQLITEM_PRAGMAS__JOURNAL_MODE=WAL``.
    """

    model_config = SettingsConfigDict(
        env_prefix="SQLITEM_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Database URL (SQLAlchemy asyncio form)
    database_url: str = MEMORY_URL

    # Echo SQL through SQLAlchemy's engine logger (for debugging)
    echo_sql: bool = False

    # Naming convention for undeclared table/column names
    name_style: Literal["identity", "snake_case"] = "identity"

    log_level: str = "WARNING"

    pragmas: PragmaOptions = Field(default_factory=PragmaOptions)

    @property
    def is_memory(self) -> bool:
        return ":memory:" in self.database_url or "mode=memory" in self.database_url

    @staticmethod
    def sqlite_url(path: Union[str, Path]) -> str:
        """
        Build an aiosqlite URL for a database file.

        Args:
            path: Database file path

        Returns:
            SQLAlchemy URL string
        """
        return f"sqlite+aiosqlite:///{Path(path)}"


@lru_cache()
def get_settings() -> SqliteMSettings:
    return SqliteMSettings()
