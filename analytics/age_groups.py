# epireport/analytics/age_groups.py
# AGE DISTRIBUTION REPORT

from datetime import date
from typing import Any, Dict, Optional

from data_processing.age_bands import CLINICAL_AGE_BANDS
from data_processing.aggregation import Dimension, aggregate, counts_by
from data_processing.rates import incidence_rate, percentage
from data_processing.sources import ReportDataSource
from .orchestrator import RawFilters, ReportAssembler, run_report


class AgeGroupsReport(ReportAssembler):
    report_name = "age_groups"

    def build(self) -> Dict[str, Any]:
        total_patients = len(self.visits)
        total_population = self.total_population
        counts = counts_by(self.visits, Dimension.AGE_GROUP, band_table=CLINICAL_AGE_BANDS)

        # Empty bands are dropped from the list but remain part of the totals.
        age_groups = [
            {
                "age_group": band,
                "count": count,
                "percentage": percentage(count, total_patients),
                "incidence_rate": incidence_rate(count, total_population),
            }
            for band, count in counts.items() if count > 0
        ]
        by_gender = [item.to_dict() for item in aggregate(self.visits, Dimension.AGE_GROUP, split_by_gender=True)]

        return {
            "summary": {"total_patients": total_patients, **self.population_summary()},
            "age_groups": age_groups,
            "by_gender": by_gender,
        }


def get_age_groups_report(filters: Optional[RawFilters], source: Optional[ReportDataSource] = None, today: Optional[date] = None) -> Dict[str, Any]:
    """Case counts, shares and incidence per clinical age band."""
    return run_report(AgeGroupsReport, filters, source=source, today=today)
