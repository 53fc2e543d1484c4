# epireport/analytics/occupation.py
# OCCUPATION DISTRIBUTION REPORT

from datetime import date
from typing import Any, Dict, Optional

from data_processing.aggregation import Dimension, counts_by
from data_processing.rates import percentage
from data_processing.sources import ReportDataSource
from .orchestrator import RawFilters, ReportAssembler, run_report


class OccupationReport(ReportAssembler):
    """Occupation breakdown of a disease; the occupation filter itself is not applied."""
    report_name = "occupation"
    excluded_dimension = "occupation"

    def build(self) -> Dict[str, Any]:
        total_patients = len(self.visits)
        counts = counts_by(self.visits, Dimension.OCCUPATION)
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        occupations = [
            {"occupation": name, "count": count, "percentage": percentage(count, total_patients)}
            for name, count in ranked
        ]
        return {
            "summary": {"total_patients": total_patients, "unique_occupations": len(occupations)},
            "occupations": occupations,
        }


def get_occupation_report(filters: Optional[RawFilters], source: Optional[ReportDataSource] = None, today: Optional[date] = None) -> Dict[str, Any]:
    return run_report(OccupationReport, filters, source=source, today=today)
