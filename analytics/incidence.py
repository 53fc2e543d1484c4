# epireport/analytics/incidence.py
# INCIDENCE, MORTALITY AND CASE-FATALITY REPORT

import logging
from datetime import date
from typing import Any, Dict, List, Optional

import pandas as pd

from config import settings
from data_processing.helpers import clean_identifier_series
from data_processing.rates import case_fatality_rate, incidence_rate_series, mortality_rate, rate_result
from data_processing.sources import ReportDataSource
from .orchestrator import RawFilters, ReportAssembler, run_report

logger = logging.getLogger(__name__)

HOSPITAL_COLUMNS = [
    'hospital_code', 'hospital_name', 'population', 'patients', 'deaths',
    'incidence_rate', 'mortality_rate', 'case_fatality_rate', 'has_population_data',
]


def _population_by_hospital(populations: pd.DataFrame) -> pd.Series:
    if populations.empty or 'count' not in populations.columns:
        return pd.Series(dtype=float)
    counts = pd.to_numeric(populations['count'], errors='coerce').fillna(0)
    return counts.groupby(clean_identifier_series(populations['hospital_code'])).sum()


def build_hospital_breakdown(visits: pd.DataFrame, populations: pd.DataFrame, hospitals: List[Any]) -> List[Dict[str, Any]]:
    """
    Per-hospital patients, deaths, population and rates for every active
    hospital. Hospitals without patients are dropped; the rest are sorted by
    patient count descending, ties by hospital code.
    """
    if not hospitals:
        return []

    table = pd.DataFrame({'hospital_code': [h.code for h in hospitals], 'hospital_name': [h.name for h in hospitals]})
    if visits.empty:
        patients, deaths = pd.Series(dtype=float), pd.Series(dtype=float)
    else:
        grouped = visits.groupby('hospital_code')
        patients, deaths = grouped.size(), grouped['is_death'].sum()

    table['patients'] = table['hospital_code'].map(patients).fillna(0).astype(int)
    table['deaths'] = table['hospital_code'].map(deaths).fillna(0).astype(int)
    table['population'] = table['hospital_code'].map(_population_by_hospital(populations)).fillna(0).astype(int)
    table['incidence_rate'] = incidence_rate_series(table['patients'], table['population'])
    table['mortality_rate'] = incidence_rate_series(table['deaths'], table['population'])
    table['case_fatality_rate'] = [case_fatality_rate(d, p) for d, p in zip(table['deaths'], table['patients'])]
    table['has_population_data'] = table['population'] > 0

    table = table[table['patients'] > 0].sort_values(['patients', 'hospital_code'], ascending=[False, True], kind='mergesort')
    return [
        {
            'hospital_code': str(row.hospital_code),
            'hospital_name': row.hospital_name,
            'population': int(row.population),
            'patients': int(row.patients),
            'deaths': int(row.deaths),
            'incidence_rate': float(row.incidence_rate),
            'mortality_rate': float(row.mortality_rate),
            'case_fatality_rate': float(row.case_fatality_rate),
            'has_population_data': bool(row.has_population_data),
        }
        for row in table[HOSPITAL_COLUMNS].itertuples(index=False)
    ]


class IncidenceRatesReport(ReportAssembler):
    report_name = "incidence_rates"
    needs_hospitals = True

    def _population_details(self) -> Dict[str, Any]:
        years: List[int] = []
        if not self.populations.empty and 'year' in self.populations.columns:
            years = sorted({int(y) for y in pd.to_numeric(self.populations['year'], errors='coerce').dropna()})
        return {
            "total_records_with_data": len(self.populations),
            "years_covered": years,
            "note": settings.RATE_BASIS_NOTE.format(per=settings.ANALYTICS.incidence_per_population),
        }

    def build(self) -> Dict[str, Any]:
        total_patients = len(self.visits)
        deaths = int(self.visits['is_death'].sum()) if total_patients else 0
        population = self.population_summary()
        total_population = population["total_population"]
        incidence = rate_result(total_patients, total_population)

        summary = {
            "total_population": total_population,
            "total_patients": total_patients,
            "deaths": deaths,
            "incidence_rate": incidence.rate,
            "mortality_rate": mortality_rate(deaths, total_population),
            "case_fatality_rate": case_fatality_rate(deaths, total_patients),
            "has_population_data": incidence.has_denominator_data,
            "population_note": population["population_note"],
        }
        hospitals = build_hospital_breakdown(self.visits, self.populations, self.hospitals)
        logger.debug(f"({self.report_name}) {len(hospitals)} hospitals reported cases.")
        return {"summary": summary, "hospitals": hospitals, "population_details": self._population_details()}


def get_incidence_rates_report(filters: Optional[RawFilters], source: Optional[ReportDataSource] = None, today: Optional[date] = None) -> Dict[str, Any]:
    """Disease-wide and per-hospital incidence, mortality and case-fatality rates."""
    return run_report(IncidenceRatesReport, filters, source=source, today=today)
