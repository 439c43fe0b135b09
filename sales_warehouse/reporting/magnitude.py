"""
Magnitude Analysis

Aggregates grouped by one business attribute, largest first. Fact-based
breakdowns LEFT JOIN the dimension, so fact rows whose key matches no
dimension row are still counted, under a null group.

Ties on the measure are broken by the group columns, ascending.
"""

from sqlalchemy import func, select

from sales_warehouse.database.models import dim_customers, dim_products, fact_sales
from sales_warehouse.reporting.registry import QueryContext, catalogue

f = fact_sales.c
p = dim_products.c
c = dim_customers.c

sales_by_product = fact_sales.outerjoin(dim_products, p.product_key == f.product_key)
sales_by_customer = fact_sales.outerjoin(dim_customers, c.customer_key == f.customer_key)


def grouped(measure, *group_columns, select_from=None, descending=True):
    """SELECT group columns plus a labelled measure, ordered by the measure"""
    statement = select(*group_columns, measure).group_by(*group_columns)
    if select_from is not None:
        statement = statement.select_from(select_from)
    ordering = measure.desc() if descending else measure.asc()
    return statement.order_by(ordering, *group_columns)


@catalogue.entry("Total Customers by Country", category="magnitude")
def customers_by_country(ctx: QueryContext):
    return grouped(func.count(c.customer_key).label("total_customers"), c.country)


@catalogue.entry("Total Customers by Gender", category="magnitude")
def customers_by_gender(ctx: QueryContext):
    return grouped(func.count(c.customer_key).label("total_customers"), c.gender)


@catalogue.entry("Total Products by Category", category="magnitude")
def products_by_category(ctx: QueryContext):
    return grouped(func.count(p.product_key).label("total_products"), p.category)


@catalogue.entry("Average Cost by Category", category="magnitude")
def average_cost_by_category(ctx: QueryContext):
    return grouped(func.avg(p.cost).label("avg_cost"), p.category)


@catalogue.entry("Total Revenue by Category", category="magnitude")
def revenue_by_category(ctx: QueryContext):
    return grouped(
        func.sum(f.sales_amount).label("total_revenue"),
        p.category,
        select_from=sales_by_product,
    )


@catalogue.entry("Total Revenue by Customer", category="magnitude")
def revenue_by_customer(ctx: QueryContext):
    return grouped(
        func.sum(f.sales_amount).label("total_revenue"),
        c.customer_key, c.first_name, c.last_name,
        select_from=sales_by_customer,
    )


@catalogue.entry("Sold Items Distribution Across Countries", category="magnitude")
def sold_items_by_country(ctx: QueryContext):
    return grouped(
        func.sum(f.quantity).label("total_sold_items"),
        c.country,
        select_from=sales_by_customer,
    )
