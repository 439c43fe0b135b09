"""
Warehouse Exceptions

Error taxonomy shared by the load stage and the reporting engine.
An empty result set is never an error.
"""

from typing import Any, List, Optional, Sequence


class WarehouseError(Exception):
    """Base class for all warehouse errors"""


class LoadError(WarehouseError):
    """
    Load stage failure.

    Raised for a missing source, a malformed row, a type mismatch or an
    unknown target table. ``tables`` names the offending table(s);
    ``results`` holds the per-table load results when the whole stage ran.
    """

    def __init__(
        self,
        message: str,
        tables: Optional[Sequence[str]] = None,
        results: Optional[List[Any]] = None,
    ):
        super().__init__(message)
        self.tables = list(tables or [])
        self.results = list(results or [])

    @property
    def table(self) -> Optional[str]:
        """First offending table"""
        return self.tables[0] if self.tables else None


class QueryError(WarehouseError):
    """
    Query failure for a single catalogue entry.

    Raised when a query references a missing table or column, or when a
    requested catalogue entry does not exist.
    """

    def __init__(self, message: str, title: Optional[str] = None):
        super().__init__(message)
        self.title = title
