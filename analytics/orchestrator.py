# epireport/analytics/orchestrator.py
# SHARED REPORT ASSEMBLY PIPELINE

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional, Union

import pandas as pd

from config import settings
from data_processing.aggregation import total_population
from data_processing.enrichment import enrich_visit_records
from data_processing.errors import NotFoundError
from data_processing.filters import NormalizedFilter, ReportFilters, normalize_filters, parse_report_filters, validate_disease_id
from data_processing.loaders import load_report_data_source
from data_processing.models import Disease, Hospital
from data_processing.sources import ReportDataSource

logger = logging.getLogger(__name__)

RawFilters = Union[ReportFilters, Mapping[str, Any]]


@lru_cache(maxsize=1)
def get_default_data_source() -> ReportDataSource:
    """CSV-backed data source built once from the configured paths."""
    logger.info(f"Loading default report data source from {settings.DATA_SOURCES_DIR}")
    return load_report_data_source()


class ReportAssembler:
    """
    A pipeline class shared by every report. It resolves the disease, then
    normalizes the remaining filters, fetches visits, populations and
    (optionally) hospitals concurrently and hands the frames to ``build``.

    Subclasses set ``report_name``, optionally ``excluded_dimension`` and
    ``needs_hospitals``, and implement ``build``.
    """
    report_name: str = "report"
    excluded_dimension: Optional[str] = None
    needs_hospitals: bool = False

    def __init__(self, filters: Optional[RawFilters], source: Optional[ReportDataSource] = None, today: Optional[date] = None):
        self.raw_filters = filters
        self.source = source if source is not None else get_default_data_source()
        self.today = today
        self.filter: Optional[NormalizedFilter] = None
        self.disease: Optional[Disease] = None
        self.visits = pd.DataFrame()
        self.populations = pd.DataFrame()
        self.hospitals: List[Hospital] = []

    def _resolve_disease(self) -> 'ReportAssembler':
        """Runs before the remaining filters are checked."""
        self.raw_filters = parse_report_filters(self.raw_filters)
        disease_id = validate_disease_id(self.raw_filters.disease_id)
        self.disease = self.source.get_disease(disease_id)
        if self.disease is None:
            raise NotFoundError("disease", disease_id)
        return self

    def _normalize_filters(self) -> 'ReportAssembler':
        flt = normalize_filters(self.raw_filters, today=self.today)
        self.filter = flt.without(self.excluded_dimension) if self.excluded_dimension else flt
        return self

    def _fetch(self) -> 'ReportAssembler':
        """Issues the independent reads concurrently and joins them; a failed read propagates."""
        with ThreadPoolExecutor(max_workers=settings.ANALYTICS.fetch_max_workers) as pool:
            visits_future = pool.submit(self.source.fetch_patient_visits, self.filter)
            populations_future = pool.submit(self.source.fetch_populations, self.filter)
            hospitals_future = pool.submit(self.source.list_active_hospitals) if self.needs_hospitals else None

            self.visits = enrich_visit_records(visits_future.result())
            self.populations = populations_future.result()
            if hospitals_future is not None:
                self.hospitals = hospitals_future.result()
        logger.debug(f"({self.report_name}) Fetched {len(self.visits)} visits and {len(self.populations)} population rows.")
        return self

    @property
    def total_population(self) -> int:
        return total_population(self.populations)

    def population_summary(self) -> Dict[str, Any]:
        total = self.total_population
        return {
            "total_population": total,
            "has_population_data": total > 0,
            "population_note": None if total > 0 else settings.POPULATION_NOTE,
        }

    def build(self) -> Dict[str, Any]:
        raise NotImplementedError

    def run(self) -> Dict[str, Any]:
        """Executes the pipeline in a fluent sequence and returns the report payload."""
        (self
            ._resolve_disease()
            ._normalize_filters()
            ._fetch()
        )
        logger.info(f"({self.report_name}) Assembling report for disease {self.filter.disease_id}.")
        body = self.build()
        return {"disease": self.disease.to_info(), "filters": self.filter.to_dict(), **body}


def run_report(
    assembler_cls: type,
    filters: Optional[RawFilters],
    source: Optional[ReportDataSource] = None,
    today: Optional[date] = None,
    **options: Any,
) -> Dict[str, Any]:
    """Public factory: builds and runs one assembler."""
    return assembler_cls(filters, source=source, today=today, **options).run()
