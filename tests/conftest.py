"""
Test Suite Configuration
"""
from datetime import date
from typing import Generator

import polars as pl
import pytest

from sales_warehouse.config import Settings
from sales_warehouse.database.connection import Warehouse, create_warehouse
from sales_warehouse.ingestion.bulk_loader import BulkLoader
from sales_warehouse.ingestion.sources import FrameSource


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
    )


@pytest.fixture
def warehouse(test_settings) -> Generator[Warehouse, None, None]:
    """Empty in-memory warehouse with the schema created"""
    wh = create_warehouse("sqlite://", settings=test_settings)
    wh.recreate()
    yield wh
    wh.dispose()


@pytest.fixture
def sample_customers_df() -> pl.DataFrame:
    """Five customers; customer 5 never orders"""
    return pl.DataFrame({
        "customer_key": [1, 2, 3, 4, 5],
        "customer_id": [11000, 11001, 11002, 11003, 11004],
        "customer_number": ["AW00011000", "AW00011001", "AW00011002", "AW00011003", "AW00011004"],
        "first_name": ["John", "Jane", "Bob", "Alice", "Carl"],
        "last_name": ["Doe", "Smith", "Wilson", "Brown", "Green"],
        "country": ["USA", "USA", "Canada", "Germany", "USA"],
        "marital_status": ["Married", "Single", "Married", "Single", "Single"],
        "gender": ["Male", "Female", "Male", "Female", "Male"],
        "birthdate": [
            date(1980, 5, 10),
            date(1990, 7, 15),
            date(1975, 12, 1),
            date(2000, 2, 29),
            date(1985, 3, 3),
        ],
        "create_date": [
            date(2020, 1, 1),
            date(2020, 2, 1),
            date(2020, 3, 1),
            date(2020, 4, 1),
            date(2020, 5, 1),
        ],
    })


@pytest.fixture
def sample_products_df() -> pl.DataFrame:
    """Six products; Gloves never sells"""
    return pl.DataFrame({
        "product_key": [1, 2, 3, 4, 5, 6],
        "product_id": [200, 201, 202, 203, 204, 205],
        "product_number": ["BK-R150", "BK-M100", "HL-U509", "BC-M005", "LJ-0192", "GL-H102"],
        "product_name": ["Road-150", "Mountain-100", "Helmet", "Bottle", "Jersey", "Gloves"],
        "category_id": ["BI_RB", "BI_MB", "AC_HE", "AC_BC", "CL_JE", "CL_GL"],
        "category": ["Bikes", "Bikes", "Accessories", "Accessories", "Clothing", "Clothing"],
        "subcategory": ["Road Bikes", "Mountain Bikes", "Helmets", "Bottles and Cages", "Jerseys", "Gloves"],
        "maintenance": ["Yes", "Yes", "No", "No", "No", "No"],
        "cost": [2000, 1800, 20, 5, 30, 15],
        "product_line": ["Road", "Mountain", "Other Sales", "Other Sales", "Other Sales", "Other Sales"],
        "start_date": [date(2011, 1, 1)] * 6,
    })


@pytest.fixture
def sample_sales_df() -> pl.DataFrame:
    """
    Eight order lines over seven orders.

    SO6 references product 99 and SO7 references customer 77; neither
    exists in the dimensions.
    """
    order_dates = [
        date(2011, 1, 15),
        date(2011, 3, 20),
        date(2011, 3, 20),
        date(2012, 6, 1),
        date(2012, 6, 5),
        date(2013, 2, 10),
        date(2013, 12, 31),
        date(2013, 12, 31),
    ]
    return pl.DataFrame({
        "order_number": ["SO1", "SO2", "SO2", "SO3", "SO4", "SO5", "SO6", "SO7"],
        "product_key": [1, 2, 3, 3, 4, 5, 99, 4],
        "customer_key": [1, 2, 2, 3, 3, 4, 1, 77],
        "order_date": order_dates,
        "shipping_date": order_dates,
        "due_date": order_dates,
        "sales_amount": [3000, 2500, 70, 35, 20, 50, 100, 10],
        "quantity": [1, 1, 2, 1, 2, 1, 1, 1],
        "price": [3000, 2500, 35, 35, 10, 50, 100, 10],
    })


@pytest.fixture
def sample_sources(sample_customers_df, sample_products_df, sample_sales_df):
    """In-memory sources for all three tables"""
    return {
        "dim_customers": FrameSource(sample_customers_df, name="customers"),
        "dim_products": FrameSource(sample_products_df, name="products"),
        "fact_sales": FrameSource(sample_sales_df, name="sales"),
    }


@pytest.fixture
def loaded_warehouse(warehouse, sample_sources, test_settings) -> Warehouse:
    """Warehouse loaded with the sample star schema"""
    BulkLoader(warehouse, settings=test_settings).load_all(sample_sources)
    return warehouse


@pytest.fixture
def as_of() -> date:
    """Fixed reference date for age calculations"""
    return date(2025, 1, 1)
