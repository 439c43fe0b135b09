"""
Bulk Loader

Truncate-then-load ingestion of the three warehouse tables.
Supports:
- Injected sources (files, streams, in-memory frames)
- Strict typing to the table schema
- All-or-nothing loads per table
- Audit logging of every table load
"""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import polars as pl
import structlog
from pydantic import BaseModel
from sqlalchemy import String, Table
from sqlalchemy.exc import SQLAlchemyError

from sales_warehouse.config import Settings, get_settings
from sales_warehouse.database.connection import Warehouse
from sales_warehouse.database.models import (
    TABLES,
    dim_customers,
    dim_products,
    fact_sales,
    get_table,
    polars_schema,
    value_range,
)
from sales_warehouse.exceptions import LoadError
from sales_warehouse.ingestion.sources import CsvOptions, DataSource, FileSource, MalformedSourceError

logger = structlog.get_logger(__name__)


class LoadStatus(str, Enum):
    """Table load status"""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class LoadResult(BaseModel):
    """Result of loading one table"""
    table: str
    source: str
    status: LoadStatus
    rows_loaded: int = 0
    error_message: Optional[str] = None
    load_duration_seconds: float = 0
    started_at: datetime
    completed_at: Optional[datetime] = None

    @property
    def ok(self) -> bool:
        return self.status == LoadStatus.COMPLETED


def check_limits(frame: pl.DataFrame, table: Table) -> None:
    """
    Reject values the column types cannot hold.

    String columns are limited to their declared length in characters and
    integer columns to the range of their type. Nulls always pass.

    Raises:
        MalformedSourceError: Naming the first offending column
    """
    for column in table.columns:
        values = pl.col(column.name)

        if isinstance(column.type, String) and column.type.length:
            too_long = frame.select((values.str.len_chars() > column.type.length).sum()).item()
            if too_long:
                raise MalformedSourceError(
                    f"{table.name}.{column.name}: {too_long} value(s) longer than {column.type.length} characters"
                )

        bounds = value_range(column)
        if bounds is not None:
            low, high = bounds
            outside = frame.select(((values < low) | (values > high)).sum()).item()
            if outside:
                raise MalformedSourceError(
                    f"{table.name}.{column.name}: {outside} value(s) outside {low}..{high}"
                )


class BulkLoader:
    """
    Loads warehouse tables from injected sources.

    Each table is cleared first, then filled from its source in a single
    transaction. A source that fails to read or insert leaves its table
    empty; the other tables are unaffected.

    Example:
        loader = BulkLoader(warehouse)
        results = loader.load_all({
            "dim_customers": FileSource("data/gold.dim_customers.csv"),
            "dim_products": FileSource("data/gold.dim_products.csv"),
            "fact_sales": FileSource("data/gold.fact_sales.csv"),
        })
    """

    def __init__(
        self,
        warehouse: Warehouse,
        options: Optional[CsvOptions] = None,
        chunk_size: Optional[int] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self.warehouse = warehouse
        self.options = options or CsvOptions.from_settings(settings)
        self.chunk_size = chunk_size or settings.sources.chunk_size

    def _insert(self, frame: pl.DataFrame, table_name: str) -> int:
        """Insert all rows in one transaction, chunked executemany"""
        table = get_table(table_name)
        rows = frame.to_dicts()

        with self.warehouse.begin() as conn:
            for i in range(0, len(rows), self.chunk_size):
                chunk = rows[i:i + self.chunk_size]
                conn.execute(table.insert(), chunk)

        return len(rows)

    def load(self, table_name: str, source: DataSource) -> LoadResult:
        """
        Replace the contents of one table with the rows of a source.

        Args:
            table_name: Target warehouse table
            source: Where the rows come from

        Returns:
            LoadResult: Result of the load operation
        """
        started_at = datetime.now()
        result = LoadResult(
            table=table_name,
            source=source.name,
            status=LoadStatus.RUNNING,
            started_at=started_at,
        )

        logger.info("Starting table load", table=table_name, source=source.name)

        try:
            table = get_table(table_name)
            self.warehouse.truncate(table)

            frame = source.read(polars_schema(table), self.options)
            logger.debug("Source read", table=table_name, rows=frame.height)
            check_limits(frame, table)

            result.rows_loaded = self._insert(frame, table_name)
            result.status = LoadStatus.COMPLETED

        except (LoadError, OSError, ValueError, pl.exceptions.PolarsError, SQLAlchemyError) as e:
            result.status = LoadStatus.FAILED
            result.rows_loaded = 0
            result.error_message = str(e)
            logger.error(
                "Table load failed",
                table=table_name,
                source=source.name,
                error=str(e),
                error_type=type(e).__name__,
            )

        result.completed_at = datetime.now()
        result.load_duration_seconds = (result.completed_at - started_at).total_seconds()

        if result.ok:
            logger.info(
                "Table load completed",
                table=table_name,
                rows_loaded=result.rows_loaded,
                duration_seconds=result.load_duration_seconds,
            )
        return result

    def load_all(
        self,
        sources: Mapping[str, DataSource],
        recreate: bool = True,
    ) -> List[LoadResult]:
        """
        Load every warehouse table.

        Tables are loaded in dependency order (dimensions, then facts) and
        all of them are attempted even when one fails.

        Args:
            sources: Source per table name; every table needs one
            recreate: Drop and recreate the schema first

        Returns:
            List of LoadResult, one per table

        Raises:
            LoadError: If a source is missing or any table failed to load
        """
        expected = [t.name for t in TABLES]
        unknown = [name for name in sources if name not in expected]
        missing = [name for name in expected if name not in sources]
        if unknown or missing:
            raise LoadError(
                f"Sources must cover exactly {expected} (missing={missing}, unknown={unknown})",
                tables=missing + unknown,
            )

        if recreate:
            self.warehouse.recreate()
        else:
            self.warehouse.create_schema()

        results = [self.load(name, sources[name]) for name in expected]

        failed = [r for r in results if not r.ok]
        loaded = sum(r.rows_loaded for r in results)
        logger.info(
            f"Load stage finished: {len(results) - len(failed)} tables loaded, {len(failed)} failed",
            rows_loaded=loaded,
        )

        if failed:
            details = "; ".join(f"{r.table}: {r.error_message}" for r in failed)
            raise LoadError(
                f"Load failed for {', '.join(r.table for r in failed)} ({details})",
                tables=[r.table for r in failed],
                results=results,
            )

        return results


def default_sources(
    settings: Optional[Settings] = None,
    overrides: Optional[Mapping[str, Path]] = None,
) -> Dict[str, DataSource]:
    """File sources for the configured data directory, optionally overridden per table"""
    sources = (settings or get_settings()).sources
    paths = {
        dim_customers.name: sources.path_for(sources.customers_file),
        dim_products.name: sources.path_for(sources.products_file),
        fact_sales.name: sources.path_for(sources.sales_file),
    }
    for name, path in (overrides or {}).items():
        if path is not None:
            paths[name] = Path(path)
    return {name: FileSource(path) for name, path in paths.items()}


def load_warehouse(
    warehouse: Warehouse,
    sources: Optional[Mapping[str, DataSource]] = None,
    settings: Optional[Settings] = None,
    recreate: bool = True,
) -> List[LoadResult]:
    """Run the load stage against a warehouse"""
    loader = BulkLoader(warehouse, settings=settings)
    return loader.load_all(sources or default_sources(settings), recreate=recreate)
