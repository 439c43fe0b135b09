"""
Report Catalogue Registry

Ordered registry of named, independently invokable queries. Each query
function receives a QueryContext and returns either a SQLAlchemy statement
or an already computed Tabular; the registered entry runs it on its own
connection and wraps the output in a ReportResult.

Example:
    @catalogue.entry("Total Sales", category="measures")
    def total_sales(ctx: QueryContext):
        return select(func.sum(fact_sales.c.sales_amount).label("total_sales"))

    result = total_sales(warehouse)   # ReportResult(title="Total Sales", ...)
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Iterable, Iterator, List, NamedTuple, Optional, Union

import structlog
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.expression import Executable

from sales_warehouse.database.connection import Warehouse
from sales_warehouse.exceptions import QueryError
from sales_warehouse.reporting.results import ReportResult

logger = structlog.get_logger(__name__)


class Tabular(NamedTuple):
    """Rows computed in Python, with their column order"""
    columns: List[str]
    rows: List[Dict[str, Any]]


@dataclass(frozen=True)
class QueryContext:
    """What a query function may use: one open connection and the run parameters"""
    connection: Connection
    catalog: str
    as_of: date

    def fetch(self, statement: Executable) -> Tabular:
        result = self.connection.execute(statement)
        columns = list(result.keys())
        return Tabular(columns, [dict(row._mapping) for row in result])


QueryFunc = Callable[[QueryContext], Union[Executable, Tabular]]


@dataclass(frozen=True)
class CatalogueEntry:
    """One titled query"""
    name: str
    title: str
    category: str
    func: QueryFunc

    def __call__(self, warehouse: Warehouse, as_of: Optional[date] = None) -> ReportResult:
        """
        Run the query against a warehouse.

        Raises:
            QueryError: If the query references a missing table or column
        """
        as_of = as_of or date.today()
        try:
            with warehouse.connect() as conn:
                ctx = QueryContext(connection=conn, catalog=warehouse.name, as_of=as_of)
                output = self.func(ctx)
                if not isinstance(output, Tabular):
                    output = ctx.fetch(output)
        except SQLAlchemyError as e:
            raise QueryError(f"{self.title}: {e}", title=self.title) from e

        logger.debug("Report entry executed", entry=self.name, rows=len(output.rows))
        return ReportResult(
            title=self.title,
            category=self.category,
            columns=output.columns,
            rows=output.rows,
        )


class ReportCatalogue:
    """Ordered collection of catalogue entries, looked up by name or title"""

    def __init__(self):
        self._entries: Dict[str, CatalogueEntry] = {}

    def register(self, entry: CatalogueEntry) -> CatalogueEntry:
        if entry.name in self._entries:
            raise ValueError(f"Duplicate catalogue entry name: {entry.name}")
        if any(e.title.lower() == entry.title.lower() for e in self._entries.values()):
            raise ValueError(f"Duplicate catalogue entry title: {entry.title}")
        self._entries[entry.name] = entry
        return entry

    def entry(self, title: str, category: str, name: Optional[str] = None):
        """Decorator registering a query function under a display title"""
        def decorator(func: QueryFunc) -> CatalogueEntry:
            return self.register(
                CatalogueEntry(
                    name=name or func.__name__,
                    title=title,
                    category=category,
                    func=func,
                )
            )
        return decorator

    def get(self, key: str) -> CatalogueEntry:
        """
        Find an entry by name or by title (case-insensitive).

        Raises:
            QueryError: If no entry matches
        """
        if key in self._entries:
            return self._entries[key]
        wanted = key.strip().lower()
        for entry in self._entries.values():
            if entry.title.lower() == wanted or entry.name.lower() == wanted:
                return entry
        raise QueryError(f"Unknown catalogue entry: {key}", title=key)

    def resolve(self, keys: Optional[Iterable[str]] = None) -> List[CatalogueEntry]:
        """Entries for the given keys in request order, or the whole catalogue"""
        if keys is None:
            return list(self)

        entries, unknown = [], []
        for key in keys:
            try:
                entries.append(self.get(key))
            except QueryError:
                unknown.append(key)
        if unknown:
            raise QueryError(f"Unknown catalogue entries: {', '.join(unknown)}", title=unknown[0])
        return entries

    def titles(self) -> List[str]:
        return [e.title for e in self]

    def names(self) -> List[str]:
        return list(self._entries)

    def by_category(self, category: str) -> List[CatalogueEntry]:
        return [e for e in self if e.category == category]

    def __iter__(self) -> Iterator[CatalogueEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        try:
            self.get(key)
        except QueryError:
            return False
        return True


# The fixed report catalogue; populated by the query modules on import
catalogue = ReportCatalogue()
