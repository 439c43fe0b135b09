"""
Data Generation Module
"""
from .generators import CustomerGenerator, ProductGenerator, SalesGenerator, generate_dataset

__all__ = [
    "CustomerGenerator",
    "ProductGenerator",
    "SalesGenerator",
    "generate_dataset",
]
