# Settings package
from sqlitem.settings.app import MEMORY_URL, SqliteMSettings, get_settings
from sqlitem.settings.pragmas import JournalMode, PragmaOptions, SynchronousMode

__all__ = [
    "MEMORY_URL",
    "SqliteMSettings",
    "get_settings",
    "JournalMode",
    "PragmaOptions",
    "SynchronousMode",
]
