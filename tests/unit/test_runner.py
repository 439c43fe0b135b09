"""
Unit Tests - Catalogue Registry, Runner and Rendering
"""
import json

import pytest
from sqlalchemy import Column, Integer, MetaData, Table, select

from sales_warehouse.exceptions import QueryError
from sales_warehouse.reporting import ReportCatalogue, ReportResult, ReportRunner, catalogue, render, run_reports
from sales_warehouse.reporting.exploration import table_columns
from sales_warehouse.reporting.measures import total_sales
from sales_warehouse.reporting.rendering import render_table, to_frame

EXPECTED_TITLES = [
    "Database Tables Overview",
    "dim_customers Table Columns",
    "Unique Countries in Customers",
    "Unique Categories, Subcategories, and Products",
    "Order Date Range and Duration (in months)",
    "Customer Age Range (by birthdate)",
    "Total Sales",
    "Total Quantity Sold",
    "Average Selling Price",
    "Total Number of Orders",
    "Total Number of Distinct Orders",
    "Total Number of Products",
    "Total Number of Customers",
    "Total Number of Customers Who Placed Orders",
    "Business Key Metrics Summary",
    "Total Customers by Country",
    "Total Customers by Gender",
    "Total Products by Category",
    "Average Cost by Category",
    "Total Revenue by Category",
    "Total Revenue by Customer",
    "Sold Items Distribution Across Countries",
    "Top 5 Products by Revenue",
    "Top 5 Products by Revenue (Window Function)",
    "5 Worst-Performing Products by Revenue",
    "Top 10 Customers by Revenue",
    "3 Customers with Fewest Orders",
]

missing_table = Table("missing_table", MetaData(), Column("x", Integer))


@pytest.fixture
def broken_catalogue() -> ReportCatalogue:
    """A catalogue with one working and two failing entries"""
    custom = ReportCatalogue()
    custom.register(total_sales)

    @custom.entry("Broken Query", category="test")
    def broken(ctx):
        return select(missing_table.c.x)

    @custom.entry("Missing Table Columns", category="test")
    def missing_columns(ctx):
        return table_columns(ctx, "missing_table")

    return custom


class TestCatalogue:
    """Tests for the report catalogue registry"""

    def test_fixed_order(self):
        """Test titles and their presentation order"""
        assert catalogue.titles() == EXPECTED_TITLES

    def test_lookup_by_name_and_title(self):
        """Test entries resolve by function name or case-insensitive title"""
        assert catalogue.get("total_sales").title == "Total Sales"
        assert catalogue.get("top 5 products by revenue (window function)").name == "top_products_ranked"
        assert "Total Sales" in catalogue
        assert "Total Profit" not in catalogue

    def test_resolve_reports_every_unknown(self):
        """Test unknown entries are rejected together"""
        with pytest.raises(QueryError) as exc_info:
            catalogue.resolve(["Total Sales", "nope", "also nope"])

        assert "nope" in str(exc_info.value)
        assert "also nope" in str(exc_info.value)

    def test_duplicate_registration(self):
        """Test a title can only be registered once"""
        custom = ReportCatalogue()
        custom.register(total_sales)

        with pytest.raises(ValueError):
            @custom.entry("total sales", category="measures")
            def again(ctx):
                return None

    def test_categories(self):
        """Test every entry belongs to a known category"""
        categories = {entry.category for entry in catalogue}

        assert categories == {"metadata", "dimensions", "dates", "measures", "magnitude", "ranking"}
        assert len(catalogue.by_category("ranking")) == 5


class TestReportRunner:
    """Tests for ReportRunner"""

    def test_runs_whole_catalogue(self, loaded_warehouse, test_settings, as_of):
        """Test every entry runs and returns a titled result"""
        results = ReportRunner(loaded_warehouse, settings=test_settings).run(as_of=as_of)

        assert [r.title for r in results] == EXPECTED_TITLES
        assert all(r.ok for r in results)
        assert all(isinstance(r, ReportResult) for r in results)

    def test_runs_selected_entries_in_request_order(self, loaded_warehouse, test_settings):
        """Test a selection runs only the requested entries"""
        runner = ReportRunner(loaded_warehouse, settings=test_settings)

        results = runner.run(["Top 10 Customers by Revenue", "total_sales"])

        assert [r.title for r in results] == ["Top 10 Customers by Revenue", "Total Sales"]

    def test_unknown_entry_raises(self, loaded_warehouse, test_settings):
        """Test unknown entry names fail before anything runs"""
        runner = ReportRunner(loaded_warehouse, settings=test_settings)

        with pytest.raises(QueryError):
            runner.run(["Total Profit"])

    def test_failing_entry_is_isolated(self, loaded_warehouse, broken_catalogue, test_settings):
        """Test a failing entry does not stop the others"""
        runner = ReportRunner(loaded_warehouse, catalogue=broken_catalogue, settings=test_settings)

        results = runner.run()

        assert [r.ok for r in results] == [True, False, False]
        assert results[0].rows == [{"total_sales": 5785}]
        assert results[1].title == "Broken Query"
        assert "missing_table" in results[1].error
        assert "missing_table" in results[2].error

    def test_entry_raises_query_error_directly(self, loaded_warehouse, broken_catalogue):
        """Test invoking a failing entry on its own raises QueryError"""
        with pytest.raises(QueryError) as exc_info:
            broken_catalogue.get("Broken Query")(loaded_warehouse)

        assert exc_info.value.title == "Broken Query"

    def test_run_reports_helper(self, loaded_warehouse, test_settings, as_of):
        """Test the module-level helper runs the default catalogue"""
        results = run_reports(loaded_warehouse, ["Total Sales"], as_of=as_of, settings=test_settings)

        assert [r.rows for r in results] == [[{"total_sales": 5785}]]

    def test_parallel_falls_back_for_memory_database(self, loaded_warehouse, test_settings):
        """Test parallel runs on in-memory SQLite still produce ordered results"""
        results = ReportRunner(loaded_warehouse, settings=test_settings).run(parallel=True)

        assert [r.title for r in results] == EXPECTED_TITLES

    def test_parallel_file_database(self, tmp_path, sample_sources, test_settings, as_of):
        """Test concurrent execution against a file database"""
        from sales_warehouse.database.connection import create_warehouse
        from sales_warehouse.ingestion.bulk_loader import BulkLoader

        warehouse = create_warehouse(f"sqlite:///{tmp_path / 'warehouse.db'}", settings=test_settings)
        try:
            BulkLoader(warehouse, settings=test_settings).load_all(sample_sources)
            runner = ReportRunner(warehouse, settings=test_settings)

            sequential = runner.run(as_of=as_of, parallel=False)
            parallel = runner.run(as_of=as_of, parallel=True)
        finally:
            warehouse.dispose()

        assert [r.model_dump() for r in parallel] == [r.model_dump() for r in sequential]


class TestRendering:
    """Tests for result rendering"""

    def test_table_has_title_heading(self, loaded_warehouse):
        """Test console table starts with the result title"""
        text = render_table(catalogue.get("Total Customers by Country")(loaded_warehouse))

        assert text.splitlines()[0] == "== Total Customers by Country =="
        assert "USA" in text

    def test_empty_and_failed_results(self):
        """Test placeholders for empty and failed results"""
        empty = ReportResult(title="Nothing", columns=["x"])
        failed = ReportResult.failed("Broken", "test", "no such table")

        assert render_table(empty).endswith("(no rows)")
        assert "ERROR: no such table" in render_table(failed)
        assert to_frame(empty).columns == ["x"]

    def test_json_output(self, loaded_warehouse, as_of):
        """Test JSON output keeps titles, columns and ISO dates"""
        results = [
            catalogue.get("Total Sales")(loaded_warehouse),
            catalogue.get("Order Date Range and Duration (in months)")(loaded_warehouse, as_of=as_of),
        ]

        payload = json.loads(render(results, "json"))

        assert [p["title"] for p in payload] == ["Total Sales", "Order Date Range and Duration (in months)"]
        assert payload[1]["rows"][0]["first_order_date"] == "2011-01-15"
        assert payload[0]["error"] is None

    def test_unknown_format(self):
        """Test unsupported format is rejected"""
        with pytest.raises(ValueError):
            render([], "xml")
