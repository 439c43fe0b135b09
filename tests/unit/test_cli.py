"""
Unit Tests - Command Line and Sample Data
"""
import json

import polars as pl
import pytest

from sales_warehouse.cli import main
from sales_warehouse.data.generators import FILE_NAMES, generate_dataset
from sales_warehouse.database.models import dim_customers, dim_products, fact_sales


@pytest.fixture
def dataset(tmp_path):
    """Small generated source files"""
    return generate_dataset(tmp_path / "data", customers=20, products=10, sales=60, seed=7)


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'warehouse.db'}"


class TestGenerateDataset:
    """Tests for the sample data generator"""

    def test_files_match_table_layout(self, dataset):
        """Test each file has the table's columns in order"""
        for table in (dim_customers, dim_products, fact_sales):
            df = pl.read_csv(dataset[table.name])
            assert df.columns == [col.name for col in table.columns]
            assert dataset[table.name].name == FILE_NAMES[table.name]

    def test_row_counts(self, dataset):
        """Test requested row counts"""
        assert pl.read_csv(dataset["dim_customers"]).height == 20
        assert pl.read_csv(dataset["dim_products"]).height == 10
        assert pl.read_csv(dataset["fact_sales"]).height == 60

    def test_keys_reference_dimensions(self, dataset):
        """Test fact keys all match dimension rows without orphans"""
        sales = pl.read_csv(dataset["fact_sales"])

        assert set(sales["product_key"].to_list()) <= set(range(1, 11))
        assert set(sales["customer_key"].to_list()) <= set(range(1, 21))

    def test_amount_is_quantity_times_price(self, dataset):
        """Test sales amounts are consistent"""
        sales = pl.read_csv(dataset["fact_sales"])

        assert (sales["sales_amount"] == sales["quantity"] * sales["price"]).all()

    def test_orphans(self, tmp_path):
        """Test orphan_rate produces unmatched keys"""
        paths = generate_dataset(tmp_path, customers=5, products=5, sales=50, orphan_rate=1.0)
        sales = pl.read_csv(paths["fact_sales"])

        assert sales["product_key"].min() > 5
        assert sales["customer_key"].min() > 5

    def test_empty_dataset(self, tmp_path, database_url, capsys):
        """Test zero rows writes header-only files that load as empty tables"""
        paths = generate_dataset(tmp_path / "empty", customers=0, products=0, sales=0)

        for table in (dim_customers, dim_products, fact_sales):
            assert pl.read_csv(paths[table.name]).columns == [col.name for col in table.columns]

        code = main(["--database-url", database_url, "load", "--data-dir", str(tmp_path / "empty")])

        assert code == 0
        assert "fact_sales: 0 rows loaded" in capsys.readouterr().out

    def test_same_seed_same_output(self, tmp_path):
        """Test generation is reproducible"""
        first = generate_dataset(tmp_path / "a", customers=5, products=5, sales=10, seed=1)
        second = generate_dataset(tmp_path / "b", customers=5, products=5, sales=10, seed=1)

        for name in first:
            assert first[name].read_text() == second[name].read_text()


class TestCommandLine:
    """Tests for the sales-warehouse command"""

    def test_load_then_report(self, dataset, database_url, capsys):
        """Test the load and report subcommands end to end"""
        data_dir = str(dataset["fact_sales"].parent)

        assert main(["--database-url", database_url, "load", "--data-dir", data_dir]) == 0
        out = capsys.readouterr().out
        assert "fact_sales: 60 rows loaded" in out

        code = main([
            "--database-url", database_url,
            "report", "--format", "json", "--as-of", "2025-01-01",
        ])
        payload = json.loads(capsys.readouterr().out)

        assert code == 0
        assert len(payload) == 27
        summary = next(p for p in payload if p["title"] == "Business Key Metrics Summary")
        assert summary["rows"][0]["measure_name"] == "Total Sales"

    def test_report_selected_entry(self, dataset, database_url, capsys):
        """Test a single entry selected by title"""
        main(["--database-url", database_url, "load", "--data-dir", str(dataset["fact_sales"].parent)])
        capsys.readouterr()

        code = main(["--database-url", database_url, "report", "--entry", "Total Number of Orders"])
        out = capsys.readouterr().out

        assert code == 0
        assert out.startswith("== Total Number of Orders ==")

    def test_unknown_entry_exits_non_zero(self, dataset, database_url, capsys):
        """Test a missing catalogue entry fails the command"""
        main(["--database-url", database_url, "load", "--data-dir", str(dataset["fact_sales"].parent)])

        code = main(["--database-url", database_url, "report", "--entry", "Total Profit"])

        assert code == 1
        assert "Total Profit" in capsys.readouterr().err

    def test_load_failure_exits_non_zero(self, tmp_path, database_url, capsys):
        """Test a missing source file fails the load"""
        code = main(["--database-url", database_url, "load", "--data-dir", str(tmp_path / "empty")])

        assert code == 1
        assert "dim_customers" in capsys.readouterr().err

    def test_catalogue_listing(self, capsys):
        """Test the catalogue command lists every entry"""
        assert main(["catalogue"]) == 0

        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 27
        assert lines[0].endswith("Database Tables Overview")

    def test_generate_command(self, tmp_path, capsys):
        """Test the generate subcommand writes three files"""
        code = main([
            "generate", "--output-dir", str(tmp_path),
            "--customers", "5", "--products", "5", "--sales", "10",
        ])

        assert code == 0
        for file_name in FILE_NAMES.values():
            assert (tmp_path / file_name).exists()
