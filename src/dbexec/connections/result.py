"""
Driver-neutral result of one executed statement.
"""
from typing import Any, Dict, List

from pydantic import BaseModel, Field


class QueryResult(BaseModel):
    """
    Rows and counters produced by one statement.

    Rows are dictionaries keyed by column name in the order the driver
    reported the columns. ``rows_affected`` is the driver's row count for
    DML statements and -1 when the driver does not report one.
    """

    rows: List[Dict[str, Any]] = Field(default_factory=list)
    columns: List[str] = Field(default_factory=list)
    rows_affected: int = -1

    @classmethod
    def from_cursor(cls, cursor: Any) -> "QueryResult":
        """Build a result from an executed DB-API cursor."""
        description = cursor.description
        if not description:
            return cls(rows_affected=cursor.rowcount)

        columns = [column[0] for column in description]
        rows = [dict(zip(columns, row)) for row in cursor.fetchall()]
        return cls(rows=rows, columns=columns)

    @property
    def row_count(self) -> int:
        """Number of rows returned."""
        return len(self.rows)

    def first(self) -> Dict[str, Any]:
        """First row, or an empty dict when nothing was returned."""
        return self.rows[0] if self.rows else {}
