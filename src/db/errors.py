"""
Storage-layer errors raised synchronously at insert time.

Failures of the benchmarked algorithms themselves are not errors here: they
are stored as experiments with ``success = False``.
"""

from typing import Any, Optional


class ResearchDBError(Exception):
    """Base class for all research database errors."""


class ConstraintViolation(ResearchDBError):
    """A record violates a table contract."""

    def __init__(self, message: str, table: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.table = table
        self.field = field


class MissingRequiredField(ConstraintViolation):
    """A non-nullable column was omitted."""


class TypeMismatch(ConstraintViolation):
    """A value is incompatible with the column's semantic type."""


class ForeignKeyViolation(ConstraintViolation):
    """A reference points to a row that does not exist."""

    def __init__(self, message: str, table: Optional[str] = None, field: Optional[str] = None, value: Any = None):
        super().__init__(message, table=table, field=field)
        self.value = value


class AppendOnlyViolation(ResearchDBError):
    """An attempt was made to update or delete a stored row."""
