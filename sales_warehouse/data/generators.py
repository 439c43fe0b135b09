"""
Synthetic Data Generator

Generates sample source files for the warehouse load stage:
- Customers with demographics and account dates
- Products across categories and subcategories
- Sales order lines referencing both, optionally with orphaned keys

Values never contain the field delimiter, so the files load with plain
delimited parsing.
"""

from datetime import date, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
import polars as pl
import structlog
from faker import Faker

from sales_warehouse.database.models import dim_customers, dim_products, fact_sales, polars_schema

logger = structlog.get_logger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

COUNTRIES = ["United States", "Australia", "United Kingdom", "Germany", "France", "Canada"]
MARITAL_STATUSES = ["Married", "Single"]
GENDERS = ["Male", "Female", "n/a"]

CATEGORIES = [
    ("Bikes", ["Mountain Bikes", "Road Bikes", "Touring Bikes"]),
    ("Components", ["Handlebars", "Wheels", "Brakes", "Chains"]),
    ("Clothing", ["Jerseys", "Caps", "Gloves", "Socks"]),
    ("Accessories", ["Helmets", "Bottles and Cages", "Tires and Tubes"]),
]

PRODUCT_LINES = ["Mountain", "Road", "Touring", "Other Sales"]

FILE_NAMES = {
    dim_customers.name: "gold.dim_customers.csv",
    dim_products.name: "gold.dim_products.csv",
    fact_sales.name: "gold.fact_sales.csv",
}

EPOCH = date(2010, 12, 29)


# =============================================================================
# GENERATORS
# =============================================================================

class CustomerGenerator:
    """Generate customer dimension rows"""

    def __init__(self, rng: np.random.Generator, fake: Faker):
        self.rng = rng
        self.fake = fake

    def generate(self, n: int = 1000) -> pl.DataFrame:
        """Generate n customers with surrogate keys 1..n"""
        customers = []

        for i in range(n):
            customer_id = 11000 + i
            birthdate = self.fake.date_between(start_date=date(1916, 1, 1), end_date=date(1986, 12, 31))
            customers.append({
                "customer_key": i + 1,
                "customer_id": customer_id,
                "customer_number": f"AW{customer_id:08d}",
                "first_name": self.fake.first_name(),
                "last_name": self.fake.last_name(),
                "country": str(self.rng.choice(COUNTRIES)),
                "marital_status": str(self.rng.choice(MARITAL_STATUSES)),
                "gender": str(self.rng.choice(GENDERS, p=[0.49, 0.49, 0.02])),
                "birthdate": birthdate,
                "create_date": EPOCH + timedelta(days=int(self.rng.integers(0, 1200))),
            })

        return pl.DataFrame(customers, schema=polars_schema(dim_customers))


class ProductGenerator:
    """Generate product dimension rows"""

    def __init__(self, rng: np.random.Generator, fake: Faker):
        self.rng = rng
        self.fake = fake

    def generate(self, n: int = 200) -> pl.DataFrame:
        """Generate n products with surrogate keys 1..n"""
        products = []

        for i in range(n):
            category, subcategories = CATEGORIES[int(self.rng.integers(len(CATEGORIES)))]
            subcategory = subcategories[int(self.rng.integers(len(subcategories)))]
            category_id = f"{category[:2].upper()}_{subcategory[:2].upper()}"

            # Bikes cost an order of magnitude more than parts and apparel
            cost = int(self.rng.integers(300, 2000)) if category == "Bikes" else int(self.rng.integers(1, 150))

            products.append({
                "product_key": i + 1,
                "product_id": 200 + i,
                "product_number": f"{category_id}-{i:04d}",
                "product_name": f"{self.fake.word().title()} {subcategory} {i}",
                "category_id": category_id,
                "category": category,
                "subcategory": subcategory,
                "maintenance": "Yes" if category in ("Bikes", "Components") else "No",
                "cost": cost,
                "product_line": str(self.rng.choice(PRODUCT_LINES)),
                "start_date": EPOCH + timedelta(days=int(self.rng.integers(0, 900))),
            })

        return pl.DataFrame(products, schema=polars_schema(dim_products))


class SalesGenerator:
    """
    Generate fact rows.

    Orders have one to three lines sharing customer and dates.
    ``orphan_rate`` is the chance that a line's product key, and
    independently its customer key, points at no dimension row.
    """

    def __init__(
        self,
        customers_df: pl.DataFrame,
        products_df: pl.DataFrame,
        rng: np.random.Generator,
        orphan_rate: float = 0.0,
    ):
        if not 0.0 <= orphan_rate <= 1.0:
            raise ValueError("orphan_rate must be between 0 and 1")
        self.customer_keys = customers_df["customer_key"].to_list()
        self.products = products_df.select(["product_key", "cost"]).to_dicts()
        self.rng = rng
        self.orphan_rate = orphan_rate

    def _maybe_orphan(self, key: int, known: int) -> int:
        if self.orphan_rate and self.rng.random() < self.orphan_rate:
            return known + 1 + int(self.rng.integers(0, 1000))
        return key

    def generate(self, n: int = 5000) -> pl.DataFrame:
        """Generate n order lines"""
        if n > 0 and not (self.customer_keys and self.products):
            raise ValueError("Sales need at least one customer and one product")

        lines: List[Dict] = []
        order_no = 43697

        while len(lines) < n:
            order_no += 1
            customer_key = self.customer_keys[int(self.rng.integers(len(self.customer_keys)))]
            order_date = EPOCH + timedelta(days=int(self.rng.integers(0, 3 * 365)))
            shipping_date = order_date + timedelta(days=7)
            due_date = order_date + timedelta(days=12)

            for _ in range(min(int(self.rng.integers(1, 4)), n - len(lines))):
                product = self.products[int(self.rng.integers(len(self.products)))]
                quantity = int(self.rng.integers(1, 4))
                price = max(1, int(round(product["cost"] * self.rng.uniform(1.2, 1.8))))

                lines.append({
                    "order_number": f"SO{order_no}",
                    "product_key": self._maybe_orphan(product["product_key"], len(self.products)),
                    "customer_key": self._maybe_orphan(customer_key, len(self.customer_keys)),
                    "order_date": order_date,
                    "shipping_date": shipping_date,
                    "due_date": due_date,
                    "sales_amount": quantity * price,
                    "quantity": quantity,
                    "price": price,
                })

        return pl.DataFrame(lines, schema=polars_schema(fact_sales))


def generate_dataset(
    output_dir: Union[str, Path],
    customers: int = 1000,
    products: int = 200,
    sales: int = 5000,
    orphan_rate: float = 0.0,
    seed: Optional[int] = 42,
) -> Dict[str, Path]:
    """
    Write the three source files.

    Returns:
        Path written per table name
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    rng = np.random.default_rng(seed)
    fake = Faker()
    if seed is not None:
        fake.seed_instance(seed)

    customers_df = CustomerGenerator(rng, fake).generate(customers)
    products_df = ProductGenerator(rng, fake).generate(products)
    sales_df = SalesGenerator(customers_df, products_df, rng, orphan_rate).generate(sales)

    written = {}
    for table_name, frame in (
        (dim_customers.name, customers_df),
        (dim_products.name, products_df),
        (fact_sales.name, sales_df),
    ):
        path = output_dir / FILE_NAMES[table_name]
        frame.write_csv(path)
        written[table_name] = path
        logger.info("Source file written", table=table_name, file=str(path), rows=frame.height)

    return written
