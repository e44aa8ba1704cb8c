# src/consejo/db/types.py
"""Column types shared across ORM models."""

from enum import Enum as PyEnum

from sqlalchemy import DateTime, Enum


def enum_column(enum_cls: type[PyEnum]) -> Enum:
    """Store a string enum by value in a portable VARCHAR column."""
    return Enum(
        enum_cls,
        native_enum=False,
        length=32,
        validate_strings=True,
        values_callable=lambda members: [member.value for member in members],
    )


UTCDateTime = DateTime(timezone=True)
