"""
Measures Exploration (Key Metrics)

Business metrics over the fact and dimension tables: totals, averages and
counts. Sums and averages over no rows are null; counts over no rows are 0.
"""

from sqlalchemy import func, literal, select, union_all

from sales_warehouse.database.models import dim_customers, dim_products, fact_sales
from sales_warehouse.reporting.registry import QueryContext, catalogue

f = fact_sales.c
p = dim_products.c
c = dim_customers.c


@catalogue.entry("Total Sales", category="measures")
def total_sales(ctx: QueryContext):
    return select(func.sum(f.sales_amount).label("total_sales"))


@catalogue.entry("Total Quantity Sold", category="measures")
def total_quantity(ctx: QueryContext):
    return select(func.sum(f.quantity).label("total_quantity"))


@catalogue.entry("Average Selling Price", category="measures")
def average_price(ctx: QueryContext):
    return select(func.avg(f.price).label("avg_price"))


@catalogue.entry("Total Number of Orders", category="measures")
def total_orders(ctx: QueryContext):
    """Order lines, duplicates included"""
    return select(func.count(f.order_number).label("total_orders"))


@catalogue.entry("Total Number of Distinct Orders", category="measures")
def distinct_orders(ctx: QueryContext):
    return select(func.count(f.order_number.distinct()).label("total_orders"))


@catalogue.entry("Total Number of Products", category="measures")
def total_products(ctx: QueryContext):
    return select(func.count(p.product_name).label("total_products"))


@catalogue.entry("Total Number of Customers", category="measures")
def total_customers(ctx: QueryContext):
    return select(func.count(c.customer_key).label("total_customers"))


@catalogue.entry("Total Number of Customers Who Placed Orders", category="measures")
def ordering_customers(ctx: QueryContext):
    return select(func.count(f.customer_key.distinct()).label("total_customers"))


# Presentation order of the summary report
SUMMARY_MEASURES = [
    ("Total Sales", fact_sales, func.sum(f.sales_amount)),
    ("Total Quantity", fact_sales, func.sum(f.quantity)),
    ("Average Price", fact_sales, func.avg(f.price)),
    ("Total Orders", fact_sales, func.count(f.order_number.distinct())),
    ("Total Products", dim_products, func.count(p.product_name.distinct())),
    ("Total Customers", dim_customers, func.count(c.customer_key)),
]


@catalogue.entry("Business Key Metrics Summary", category="measures")
def key_metrics_summary(ctx: QueryContext):
    """All headline metrics as (measure_name, measure_value) rows"""
    metrics = union_all(*[
        select(
            literal(position).label("measure_order"),
            literal(name).label("measure_name"),
            measure.label("measure_value"),
        ).select_from(table)
        for position, (name, table, measure) in enumerate(SUMMARY_MEASURES)
    ]).subquery("metrics")

    return (
        select(metrics.c.measure_name, metrics.c.measure_value)
        .order_by(metrics.c.measure_order)
    )
