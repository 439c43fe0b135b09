"""
Report Runner

Executes catalogue entries against a loaded warehouse. Entries are
read-only and independent: a failing entry produces a failed ReportResult
and the rest still run.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Iterable, List, Optional

import structlog

from sales_warehouse.config import Settings, get_settings
from sales_warehouse.database.connection import Warehouse
from sales_warehouse.exceptions import QueryError
from sales_warehouse.reporting.registry import CatalogueEntry, ReportCatalogue, catalogue as default_catalogue
from sales_warehouse.reporting.results import ReportResult

logger = structlog.get_logger(__name__)


class ReportRunner:
    """
    Runs the report catalogue, or a selection of it.

    Example:
        runner = ReportRunner(warehouse)
        for result in runner.run(["Total Sales", "top_products"]):
            print(result.title, result.rows)
    """

    def __init__(
        self,
        warehouse: Warehouse,
        catalogue: Optional[ReportCatalogue] = None,
        settings: Optional[Settings] = None,
    ):
        self.warehouse = warehouse
        self.catalogue = catalogue if catalogue is not None else default_catalogue
        self.settings = (settings or get_settings()).reporting

    def _run_entry(self, entry: CatalogueEntry, as_of: Optional[date]) -> ReportResult:
        try:
            return entry(self.warehouse, as_of=as_of)
        except QueryError as e:
            logger.error("Report entry failed", entry=entry.name, error=str(e))
            return ReportResult.failed(entry.title, entry.category, str(e))

    def run(
        self,
        names: Optional[Iterable[str]] = None,
        as_of: Optional[date] = None,
        parallel: Optional[bool] = None,
    ) -> List[ReportResult]:
        """
        Run entries and return their results in request order.

        Args:
            names: Entry names or titles; None runs the whole catalogue
            as_of: Reference date for age calculations (default: today)
            parallel: Override ReportingSettings.parallel

        Returns:
            List of ReportResult, one per entry

        Raises:
            QueryError: If a requested entry does not exist (nothing runs)
        """
        entries = self.catalogue.resolve(names)
        as_of = as_of or date.today()
        parallel = self.settings.parallel if parallel is None else parallel

        if parallel and not self.warehouse.supports_concurrent_reads:
            logger.info("Warehouse does not support concurrent reads, running sequentially")
            parallel = False

        start = time.perf_counter()
        if parallel and len(entries) > 1:
            with ThreadPoolExecutor(max_workers=self.settings.max_workers) as executor:
                results = list(executor.map(lambda e: self._run_entry(e, as_of), entries))
        else:
            results = [self._run_entry(entry, as_of) for entry in entries]

        failed = sum(1 for r in results if not r.ok)
        logger.info(
            "Report run completed",
            entries=len(results),
            failed=failed,
            parallel=parallel,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return results


def run_reports(
    warehouse: Warehouse,
    names: Optional[Iterable[str]] = None,
    as_of: Optional[date] = None,
    parallel: Optional[bool] = None,
    settings: Optional[Settings] = None,
) -> List[ReportResult]:
    """Run the default catalogue against a warehouse"""
    return ReportRunner(warehouse, settings=settings).run(names, as_of=as_of, parallel=parallel)
