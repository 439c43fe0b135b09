"""
Sales Warehouse Analytics

Star-schema sales warehouse: bulk load of customers, products and sales,
and a catalogue of titled analytical reports.
"""

__version__ = "1.0.0"
