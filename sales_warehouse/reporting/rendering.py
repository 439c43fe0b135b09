"""
Report Rendering

Turns titled result sets into console tables or JSON.
"""

import json
from typing import Iterable, List

import polars as pl

from sales_warehouse.reporting.results import ReportResult

FORMATS = ("table", "json")


def to_frame(result: ReportResult) -> pl.DataFrame:
    """Result rows as a polars DataFrame in column order"""
    if not result.rows:
        return pl.DataFrame({name: [] for name in result.columns})
    return pl.DataFrame(result.rows, infer_schema_length=None).select(result.columns)


def render_table(result: ReportResult, max_column_width: int = 60) -> str:
    heading = f"== {result.title} =="
    if not result.ok:
        return f"{heading}\nERROR: {result.error}"
    if not result.rows:
        return f"{heading}\n(no rows)"

    with pl.Config(
        tbl_rows=-1,
        tbl_cols=-1,
        tbl_hide_dataframe_shape=True,
        tbl_hide_column_data_types=True,
        fmt_str_lengths=max_column_width,
    ):
        return f"{heading}\n{to_frame(result)}"


def render_json(results: Iterable[ReportResult]) -> str:
    return json.dumps([r.model_dump(mode="json") for r in results], indent=2)


def render(results: List[ReportResult], fmt: str = "table", max_column_width: int = 60) -> str:
    """Render results in one of FORMATS"""
    if fmt == "json":
        return render_json(results)
    if fmt == "table":
        return "\n\n".join(render_table(r, max_column_width) for r in results)
    raise ValueError(f"Unsupported output format: {fmt}")
