"""
Report Results

Uniform titled result set returned by every catalogue entry.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ReportResult(BaseModel):
    """Titled result set"""
    title: str
    category: str = "general"
    columns: List[str] = Field(default_factory=list)
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def column(self, name: str) -> List[Any]:
        """Values of one column, in row order"""
        return [row.get(name) for row in self.rows]

    @classmethod
    def failed(cls, title: str, category: str, error: str) -> "ReportResult":
        return cls(title=title, category=category, error=error)
