"""
Ranking Analysis

Top and bottom performers among products and customers.

"Top 5 Products by Revenue" exists in two formulations. The sort-and-limit
one returns at most 5 rows. The window one ranks with RANK(), so products
tied on revenue share a rank and a tie at the cutoff returns more than 5
rows; both agree on every product ranked above the tie.
"""

from sqlalchemy import func, select

from sales_warehouse.database.models import dim_customers, dim_products, fact_sales
from sales_warehouse.reporting.magnitude import grouped, sales_by_customer, sales_by_product
from sales_warehouse.reporting.registry import QueryContext, catalogue

f = fact_sales.c
p = dim_products.c
c = dim_customers.c

TOP_PRODUCTS = 5
BOTTOM_PRODUCTS = 5
TOP_CUSTOMERS = 10
BOTTOM_CUSTOMERS = 3


def product_revenue(descending: bool = True):
    return grouped(
        func.sum(f.sales_amount).label("total_revenue"),
        p.product_name,
        select_from=sales_by_product,
        descending=descending,
    )


@catalogue.entry("Top 5 Products by Revenue", category="ranking")
def top_products(ctx: QueryContext):
    return product_revenue().limit(TOP_PRODUCTS)


@catalogue.entry("Top 5 Products by Revenue (Window Function)", category="ranking")
def top_products_ranked(ctx: QueryContext):
    revenue = func.sum(f.sales_amount)
    ranked = (
        select(
            p.product_name,
            revenue.label("total_revenue"),
            func.rank().over(order_by=revenue.desc()).label("rank_products"),
        )
        .select_from(sales_by_product)
        .group_by(p.product_name)
        .subquery("ranked_products")
    )
    return (
        select(ranked)
        .where(ranked.c.rank_products <= TOP_PRODUCTS)
        .order_by(ranked.c.rank_products, ranked.c.product_name)
    )


@catalogue.entry("5 Worst-Performing Products by Revenue", category="ranking")
def bottom_products(ctx: QueryContext):
    return product_revenue(descending=False).limit(BOTTOM_PRODUCTS)


@catalogue.entry("Top 10 Customers by Revenue", category="ranking")
def top_customers(ctx: QueryContext):
    return grouped(
        func.sum(f.sales_amount).label("total_revenue"),
        c.customer_key, c.first_name, c.last_name,
        select_from=sales_by_customer,
    ).limit(TOP_CUSTOMERS)


@catalogue.entry("3 Customers with Fewest Orders", category="ranking")
def fewest_orders_customers(ctx: QueryContext):
    return grouped(
        func.count(f.order_number.distinct()).label("total_orders"),
        c.customer_key, c.first_name, c.last_name,
        select_from=sales_by_customer,
        descending=False,
    ).limit(BOTTOM_CUSTOMERS)
