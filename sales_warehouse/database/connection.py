"""
Database Connection Management

Explicit warehouse handle around a SQLAlchemy 2.0 engine. Every stage
receives the handle it works against; there is no process-wide
"current database".
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Union

import structlog
from sqlalchemy import Table, create_engine, func, inspect, select, text
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.pool import StaticPool

from sales_warehouse.config import Settings, get_settings
from sales_warehouse.database.models import get_table, metadata

logger = structlog.get_logger(__name__)


class Warehouse:
    """
    Handle on one warehouse database.

    Example:
        warehouse = create_warehouse("sqlite:///data/warehouse.db")
        with warehouse.connect() as conn:
            conn.execute(select(fact_sales))
    """

    def __init__(self, engine: Engine, name: str = "DataWarehouseAnalytics"):
        self.engine = engine
        self.name = name

    def __repr__(self) -> str:
        return f"Warehouse(name={self.name!r}, url={self.engine.url!r})"

    @property
    def is_memory(self) -> bool:
        """True for in-memory SQLite databases"""
        url = self.engine.url
        return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")

    @property
    def supports_concurrent_reads(self) -> bool:
        """In-memory SQLite shares one connection and cannot serve threads"""
        return not self.is_memory

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Read connection; nothing is committed"""
        with self.engine.connect() as conn:
            yield conn

    @contextmanager
    def begin(self) -> Iterator[Connection]:
        """
        Transactional connection.

        Commits on success, rolls back and re-raises on error.
        """
        with self.engine.connect() as conn:
            trans = conn.begin()
            try:
                yield conn
                trans.commit()
            except Exception as e:
                logger.error("Transaction error, rolling back", error=str(e), error_type=type(e).__name__)
                trans.rollback()
                raise

    def ping(self) -> None:
        """Verify the database answers"""
        with self.connect() as conn:
            conn.execute(text("SELECT 1"))

    def recreate(self) -> None:
        """Drop and recreate all warehouse tables"""
        metadata.drop_all(self.engine)
        metadata.create_all(self.engine)
        logger.info("Warehouse schema recreated", tables=self.table_names())

    def create_schema(self) -> None:
        """Create missing warehouse tables, keeping existing rows"""
        metadata.create_all(self.engine)

    def truncate(self, table: Union[str, Table]) -> None:
        """Remove every row from a table"""
        if isinstance(table, str):
            table = get_table(table)
        with self.begin() as conn:
            conn.execute(table.delete())
        logger.debug("Table truncated", table=table.name)

    def row_count(self, table: Union[str, Table]) -> int:
        if isinstance(table, str):
            table = get_table(table)
        with self.connect() as conn:
            return conn.execute(select(func.count()).select_from(table)).scalar_one()

    def table_names(self) -> List[str]:
        return sorted(inspect(self.engine).get_table_names())

    def dispose(self) -> None:
        """Close all pooled connections"""
        self.engine.dispose()
        logger.debug("Warehouse connections closed", warehouse=self.name)


def create_warehouse(
    url: Optional[str] = None,
    settings: Optional[Settings] = None,
    verify: bool = True,
) -> Warehouse:
    """
    Build a warehouse handle from a URL or from settings.

    Args:
        url: SQLAlchemy URL; defaults to the configured database
        settings: Settings to read defaults from
        verify: Run ``SELECT 1`` before returning

    Returns:
        Warehouse: The connected warehouse handle
    """
    settings = settings or get_settings()
    url = url or settings.database.sync_url
    parsed = make_url(url)

    # SQL echo is routed through logging (see configure_logging)
    engine_config = {
        "pool_pre_ping": True,
    }

    if parsed.get_backend_name() == "sqlite":
        engine_config["connect_args"] = {"check_same_thread": False}
        if parsed.database in (None, "", ":memory:"):
            # One shared connection keeps the in-memory database alive
            engine_config["poolclass"] = StaticPool
        else:
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    else:
        engine_config["pool_timeout"] = settings.database.pool_timeout

    engine = create_engine(url, **engine_config)
    warehouse = Warehouse(engine, name=settings.database.name)

    if verify:
        try:
            warehouse.ping()
            logger.info(
                "Database connection established",
                url=parsed.render_as_string(hide_password=True),
                database=warehouse.name,
            )
        except Exception as e:
            logger.error("Failed to connect to database", error=str(e))
            engine.dispose()
            raise

    return warehouse
