"""
Date Range Exploration

Timeline coverage of the sales data and the age span of customers.
Month and year differences count calendar boundaries crossed, so they are
whole numbers that ignore the day of month.
"""

from datetime import date
from typing import Optional

from sqlalchemy import func, select

from sales_warehouse.database.models import dim_customers, fact_sales
from sales_warehouse.reporting.registry import QueryContext, Tabular, catalogue


def months_between(start: Optional[date], end: Optional[date]) -> Optional[int]:
    """Month boundaries crossed from start to end"""
    if start is None or end is None:
        return None
    return (end.year - start.year) * 12 + (end.month - start.month)


def years_between(start: Optional[date], end: Optional[date]) -> Optional[int]:
    """Year boundaries crossed from start to end (not birthday-aware)"""
    if start is None or end is None:
        return None
    return end.year - start.year


@catalogue.entry("Order Date Range and Duration (in months)", category="dates")
def order_date_range(ctx: QueryContext) -> Tabular:
    f = fact_sales.c
    first, last = ctx.connection.execute(
        select(func.min(f.order_date), func.max(f.order_date))
    ).one()

    return Tabular(
        ["first_order_date", "last_order_date", "order_range_months"],
        [{
            "first_order_date": first,
            "last_order_date": last,
            "order_range_months": months_between(first, last),
        }],
    )


@catalogue.entry("Customer Age Range (by birthdate)", category="dates")
def customer_age_range(ctx: QueryContext) -> Tabular:
    c = dim_customers.c
    oldest, youngest = ctx.connection.execute(
        select(func.min(c.birthdate), func.max(c.birthdate))
    ).one()

    return Tabular(
        ["oldest_birthdate", "oldest_age", "youngest_birthdate", "youngest_age"],
        [{
            "oldest_birthdate": oldest,
            "oldest_age": years_between(oldest, ctx.as_of),
            "youngest_birthdate": youngest,
            "youngest_age": years_between(youngest, ctx.as_of),
        }],
    )
