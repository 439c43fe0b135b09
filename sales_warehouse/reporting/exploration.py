"""
Database and Dimension Exploration

Metadata inspection (tables, columns) and profiling of dimension values.
"""

from sqlalchemy import inspect, select

from sales_warehouse.database.models import dim_customers, dim_products
from sales_warehouse.exceptions import QueryError
from sales_warehouse.reporting.registry import QueryContext, Tabular, catalogue


# =============================================================================
# METADATA
# =============================================================================

@catalogue.entry("Database Tables Overview", category="metadata")
def tables_overview(ctx: QueryContext) -> Tabular:
    """Every table and view in the warehouse, sorted by name"""
    inspector = inspect(ctx.connection)
    schema = inspector.default_schema_name

    rows = [
        {"table_catalog": ctx.catalog, "table_schema": schema, "table_name": name, "table_type": "BASE TABLE"}
        for name in inspector.get_table_names()
    ]
    rows += [
        {"table_catalog": ctx.catalog, "table_schema": schema, "table_name": name, "table_type": "VIEW"}
        for name in inspector.get_view_names()
    ]
    rows.sort(key=lambda row: row["table_name"])

    return Tabular(["table_catalog", "table_schema", "table_name", "table_type"], rows)


def table_columns(ctx: QueryContext, table_name: str) -> Tabular:
    """
    Column layout of one table, in column order.

    Raises:
        QueryError: If the table does not exist
    """
    inspector = inspect(ctx.connection)
    if not inspector.has_table(table_name):
        raise QueryError(f"Table not found: {table_name}", title=f"{table_name} Table Columns")

    rows = []
    for column in inspector.get_columns(table_name):
        column_type = column["type"]
        rows.append({
            "column_name": column["name"],
            "data_type": type(column_type).__name__.lower(),
            "is_nullable": "YES" if column.get("nullable", True) else "NO",
            "character_maximum_length": getattr(column_type, "length", None),
        })

    return Tabular(["column_name", "data_type", "is_nullable", "character_maximum_length"], rows)


@catalogue.entry("dim_customers Table Columns", category="metadata")
def customer_columns(ctx: QueryContext) -> Tabular:
    return table_columns(ctx, dim_customers.name)


# =============================================================================
# DIMENSION PROFILING
# =============================================================================

@catalogue.entry("Unique Countries in Customers", category="dimensions")
def unique_countries(ctx: QueryContext):
    c = dim_customers.c
    return select(c.country).group_by(c.country).order_by(c.country)


@catalogue.entry("Unique Categories, Subcategories, and Products", category="dimensions")
def product_hierarchy(ctx: QueryContext):
    p = dim_products.c
    return (
        select(p.category, p.subcategory, p.product_name)
        .group_by(p.category, p.subcategory, p.product_name)
        .order_by(p.category, p.subcategory, p.product_name)
    )
