#!/usr/bin/env python
"""
Command Line Entry Point

Usage:
    sales-warehouse generate --output-dir data
    sales-warehouse load --data-dir data
    sales-warehouse report --entry "Total Sales" --entry top_products
    sales-warehouse catalogue
"""

import argparse
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

import structlog

from sales_warehouse.config import get_settings
from sales_warehouse.config.logging import configure_logging
from sales_warehouse.database.connection import create_warehouse
from sales_warehouse.database.models import dim_customers, dim_products, fact_sales
from sales_warehouse.exceptions import LoadError, QueryError
from sales_warehouse.ingestion.bulk_loader import default_sources, load_warehouse
from sales_warehouse.reporting import catalogue, render, run_reports

logger = structlog.get_logger(__name__)


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Not a YYYY-MM-DD date: {value}")


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="sales-warehouse",
        description="Sales star-schema warehouse: load sources and run analytical reports",
    )
    parser.add_argument("--log-level", default=None, help="Override log level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--database-url", default=None, help="SQLAlchemy URL of the warehouse")
    commands = parser.add_subparsers(dest="command", required=True)

    load = commands.add_parser("load", help="Recreate the schema and load the three source files")
    load.add_argument("--data-dir", type=Path, default=None, help="Directory holding the source files")
    load.add_argument("--customers", type=Path, default=None, help="Customers source file")
    load.add_argument("--products", type=Path, default=None, help="Products source file")
    load.add_argument("--sales", type=Path, default=None, help="Sales source file")
    load.add_argument("--keep-schema", action="store_true", help="Truncate tables instead of recreating them")

    report = commands.add_parser("report", help="Run catalogue entries and print titled results")
    report.add_argument(
        "--entry",
        action="append",
        dest="entries",
        metavar="NAME_OR_TITLE",
        help="Entry to run (repeatable); default runs the whole catalogue",
    )
    report.add_argument("--format", choices=["table", "json"], default=settings.reporting.output_format)
    report.add_argument("--as-of", type=_iso_date, default=None, help="Reference date for ages (default: today)")
    report.add_argument("--parallel", action="store_true", default=None, help="Run entries concurrently")

    commands.add_parser("catalogue", help="List the report catalogue")

    generate = commands.add_parser("generate", help="Write sample source files")
    generate.add_argument("--output-dir", type=Path, default=Path(settings.sources.data_dir))
    generate.add_argument("--customers", type=int, default=1000)
    generate.add_argument("--products", type=int, default=200)
    generate.add_argument("--sales", type=int, default=5000)
    generate.add_argument("--orphan-rate", type=float, default=0.0)
    generate.add_argument("--seed", type=int, default=42)

    return parser


def cmd_load(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.data_dir is not None:
        settings = settings.model_copy(
            update={"sources": settings.sources.model_copy(update={"data_dir": str(args.data_dir)})}
        )

    sources = default_sources(
        settings,
        overrides={
            dim_customers.name: args.customers,
            dim_products.name: args.products,
            fact_sales.name: args.sales,
        },
    )

    warehouse = create_warehouse(args.database_url, settings=settings)
    try:
        results = load_warehouse(warehouse, sources, settings=settings, recreate=not args.keep_schema)
    except LoadError as e:
        print(f"Load failed: {e}", file=sys.stderr)
        return 1
    finally:
        warehouse.dispose()

    for result in results:
        print(f"{result.table}: {result.rows_loaded} rows loaded from {result.source}")
    return 0


def cmd_report(args: argparse.Namespace) -> int:
    settings = get_settings()
    warehouse = create_warehouse(args.database_url, settings=settings)
    try:
        results = run_reports(
            warehouse, args.entries, as_of=args.as_of, parallel=args.parallel, settings=settings
        )
    except QueryError as e:
        print(str(e), file=sys.stderr)
        return 1
    finally:
        warehouse.dispose()

    print(render(results, args.format, settings.reporting.max_column_width))
    return 0 if all(r.ok for r in results) else 1


def cmd_catalogue(args: argparse.Namespace) -> int:
    for position, entry in enumerate(catalogue, start=1):
        print(f"{position:>2}. [{entry.category}] {entry.name}: {entry.title}")
    return 0


def cmd_generate(args: argparse.Namespace) -> int:
    from sales_warehouse.data.generators import generate_dataset

    written = generate_dataset(
        args.output_dir,
        customers=args.customers,
        products=args.products,
        sales=args.sales,
        orphan_rate=args.orphan_rate,
        seed=args.seed,
    )
    for table_name, path in written.items():
        print(f"{table_name}: {path}")
    return 0


COMMANDS = {
    "load": cmd_load,
    "report": cmd_report,
    "catalogue": cmd_catalogue,
    "generate": cmd_generate,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    return COMMANDS[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
