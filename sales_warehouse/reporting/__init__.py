"""
Reporting Module

Importing the query modules registers their entries; the import order below
is the catalogue order.
"""
from .registry import CatalogueEntry, QueryContext, ReportCatalogue, Tabular, catalogue
from .results import ReportResult
from . import exploration, dates, measures, magnitude, ranking  # noqa: F401
from .rendering import render, render_json, render_table
from .runner import ReportRunner, run_reports

__all__ = [
    "CatalogueEntry",
    "QueryContext",
    "ReportCatalogue",
    "Tabular",
    "catalogue",
    "ReportResult",
    "render",
    "render_json",
    "render_table",
    "ReportRunner",
    "run_reports",
]
