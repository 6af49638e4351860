"""
Connection tuning directives.

Every Unit of Work applies these PRAGMA statements, in a fixed order, right
after opening its connection and before beginning its transaction.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class JournalMode(str, Enum):
    """SQLite journal modes."""

    DELETE = "DELETE"
    TRUNCATE = "TRUNCATE"
    PERSIST = "PERSIST"
    MEMORY = "MEMORY"
    WAL = "WAL"
    OFF = "OFF"


class SynchronousMode(str, Enum):
    """SQLite synchronous (durability) modes."""

    OFF = "OFF"
    NORMAL = "NORMAL"
    FULL = "FULL"
    EXTRA = "EXTRA"


class PragmaOptions(BaseModel):
    """
    Per-connection PRAGMA settings.

    ``foreign_keys`` is on by default: without it SQLite silently ignores
    ``ON DELETE`` actions. All other directives are skipped when ``None``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    foreign_keys: bool = True
    busy_timeout: Optional[int] = Field(default=None, ge=0)
    page_size: Optional[int] = Field(default=None, gt=0)
    journal_mode: Optional[JournalMode] = None
    synchronous: Optional[SynchronousMode] = None
    cache_size: Optional[int] = None
    additional: List[str] = Field(default_factory=list)

    @field_validator("journal_mode", "synchronous", mode="before")
    @classmethod
    def _upper(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    def statements(self) -> List[str]:
        """
        Render the ordered PRAGMA statements.

        Returns:
            SQL statements, each terminated by ``;``
        """
        out = [f"PRAGMA foreign_keys = {'ON' if self.foreign_keys else 'OFF'};"]
        if self.busy_timeout is not None:
            out.append(f"PRAGMA busy_timeout = {self.busy_timeout};")
        # page_size must precede journal_mode: it is fixed once WAL is on
        if self.page_size is not None:
            out.append(f"PRAGMA page_size = {self.page_size};")
        if self.journal_mode is not None:
            out.append(f"PRAGMA journal_mode = {self.journal_mode.value};")
        if self.synchronous is not None:
            out.append(f"PRAGMA synchronous = {self.synchronous.value};")
        if self.cache_size is not None:
            out.append(f"PRAGMA cache_size = {self.cache_size};")
        for raw in self.additional:
            body = raw.strip().rstrip(";").strip()
            if not body:
                continue
            if not body.upper().startswith("PRAGMA "):
                body = f"PRAGMA {body}"
            out.append(f"{body};")
        return out
