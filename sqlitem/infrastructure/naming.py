"""
Name translation strategies.

A translator converts declared (Python) type and field names into database
table and column names, and back.
"""
from typing import Protocol


class NameTranslator(Protocol):
    def table(self, type_name: str) -> str: ...

    def column(self, field_name: str) -> str: ...

    def declared_name(self, db_name: str) -> str: ...


class IdentityNameTranslator:
    """Database names equal declared names."""

    def table(self, type_name: str) -> str:
        return type_name

    def column(self, field_name: str) -> str:
        return field_name

    def declared_name(self, db_name: str) -> str:
        return db_name


class SnakeCaseNameTranslator:
    """
    snake_case database names.

    ``PersonOrder`` -> ``person_order``, ``firstName`` -> ``first_name``,
    ``HTTPServer`` -> ``http_server``. The reverse direction yields
    PascalCase (``first_name`` -> ``FirstName``).
    """

    def table(self, type_name: str) -> str:
        return to_snake_case(type_name)

    def column(self, field_name: str) -> str:
        return to_snake_case(field_name)

    def declared_name(self, db_name: str) -> str:
        return to_pascal_case(db_name)


def to_snake_case(name: str) -> str:
    if not name:
        return name
    out = []
    for i, ch in enumerate(name):
        if ch.isupper():
            prev_lower = i > 0 and name[i - 1].islower()
            next_lower = i + 1 < len(name) and name[i + 1].islower()
            if i > 0 and (prev_lower or next_lower) and out and out[-1] != "_":
                out.append("_")
            out.append(ch.lower())
        elif ch == "_":
            # collapse runs so that "First_Name" and "firstName" agree
            if not out or out[-1] != "_":
                out.append(ch)
        else:
            out.append(ch)
    return "".join(out)


def to_pascal_case(name: str) -> str:
    if not name:
        return name
    out = []
    upper_next = True
    for ch in name:
        if ch == "_":
            upper_next = True
            continue
        out.append(ch.upper() if upper_next else ch)
        upper_next = False
    return "".join(out)


def get_name_translator(style: str) -> NameTranslator:
    """
    Select a translator by configured style.

    Args:
        style: ``"identity"`` or ``"snake_case"``

    Returns:
        Translator instance
    """
    if style == "identity":
        return IdentityNameTranslator()
    if style == "snake_case":
        return SnakeCaseNameTranslator()
    raise ValueError(f"Unknown name style: {style}")
