"""
Database Module
"""
from .connection import Warehouse, create_warehouse
from .models import TABLES, dim_customers, dim_products, fact_sales, get_table, metadata

__all__ = [
    "Warehouse",
    "create_warehouse",
    "TABLES",
    "dim_customers",
    "dim_products",
    "fact_sales",
    "get_table",
    "metadata",
]
