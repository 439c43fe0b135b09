"""
Database Models - Star Schema Design

This module defines the warehouse tables following a star schema design
pattern. The schema consists of:

Fact Tables:
- fact_sales: Sales transactions referencing products and customers by key

Dimension Tables:
- dim_customers: Customer attributes
- dim_products: Product catalog, one row per product version

Tables carry no primary or foreign keys. Surrogate keys are expected to be
unique and fact keys are expected to reference dimension rows, but neither
is enforced; queries join facts to dimensions with LEFT JOINs so orphaned
fact rows surface with null dimension attributes.
"""

from typing import Dict, List, Optional, Tuple

import polars as pl
from sqlalchemy import (
    Column,
    Date,
    Integer,
    MetaData,
    SmallInteger,
    String,
    Table,
)
from sqlalchemy.dialects import mssql

from sales_warehouse.exceptions import LoadError


metadata = MetaData()

# Unsigned byte; SQL Server has TINYINT, other backends store it as SMALLINT
TinyInteger = SmallInteger().with_variant(mssql.TINYINT(), "mssql")

INT_RANGE = (-(2 ** 31), 2 ** 31 - 1)
SMALLINT_RANGE = (-(2 ** 15), 2 ** 15 - 1)


# =============================================================================
# DIMENSION TABLES
# =============================================================================

dim_customers = Table(
    "dim_customers",
    metadata,
    Column("customer_key", Integer),  # surrogate key
    Column("customer_id", Integer),
    Column("customer_number", String(50)),
    Column("first_name", String(50)),
    Column("last_name", String(50)),
    Column("country", String(50)),
    Column("marital_status", String(50)),
    Column("gender", String(50)),
    Column("birthdate", Date),
    Column("create_date", Date),
)


dim_products = Table(
    "dim_products",
    metadata,
    Column("product_key", Integer),  # surrogate key
    Column("product_id", Integer),
    Column("product_number", String(50)),
    Column("product_name", String(50)),
    Column("category_id", String(50)),
    Column("category", String(50)),
    Column("subcategory", String(50)),
    Column("maintenance", String(50)),
    Column("cost", Integer),
    Column("product_line", String(50)),
    Column("start_date", Date),
)


# =============================================================================
# FACT TABLES
# =============================================================================

fact_sales = Table(
    "fact_sales",
    metadata,
    Column("order_number", String(50)),
    Column("product_key", Integer),
    Column("customer_key", Integer),
    Column("order_date", Date),
    Column("shipping_date", Date),
    Column("due_date", Date),
    Column("sales_amount", Integer),
    Column("quantity", TinyInteger, info={"min_value": 0, "max_value": 255}),
    Column("price", Integer),
)


# Load order: dimensions first, then facts
TABLES: List[Table] = [dim_customers, dim_products, fact_sales]


def get_table(name: str) -> Table:
    """Resolve a warehouse table by name"""
    table = metadata.tables.get(name)
    if table is None:
        raise LoadError(f"Unknown warehouse table: {name}", tables=[name])
    return table


def polars_schema(table: Table) -> Dict[str, pl.DataType]:
    """Polars schema matching the table's column order and types"""
    schema = {}
    for column in table.columns:
        if isinstance(column.type, Date):
            schema[column.name] = pl.Date
        elif isinstance(column.type, Integer):
            # SmallInteger is an Integer subclass
            schema[column.name] = pl.Int64
        else:
            schema[column.name] = pl.Utf8
    return schema


def value_range(column: Column) -> Optional[Tuple[int, int]]:
    """Inclusive bounds an integer column accepts, None for other types"""
    if "max_value" in column.info:
        return column.info["min_value"], column.info["max_value"]
    if isinstance(column.type, SmallInteger):
        return SMALLINT_RANGE
    if isinstance(column.type, Integer):
        return INT_RANGE
    return None
