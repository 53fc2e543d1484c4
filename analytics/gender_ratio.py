# epireport/analytics/gender_ratio.py
# GENDER RATIO REPORT

from datetime import date
from typing import Any, Dict, Optional

from config import settings
from data_processing.aggregation import Dimension, counts_by
from data_processing.models import Gender
from data_processing.rates import percentages
from data_processing.ratios import gender_ratio, simplify_ratio
from data_processing.sources import ReportDataSource
from .orchestrator import RawFilters, ReportAssembler, run_report


class GenderRatioReport(ReportAssembler):
    """Gender breakdown of a disease; the gender filter itself is not applied."""
    report_name = "gender_ratio"
    excluded_dimension = "gender"

    def build(self) -> Dict[str, Any]:
        counts = counts_by(self.visits, Dimension.GENDER)
        male = counts.get(Gender.MALE.value, 0)
        female = counts.get(Gender.FEMALE.value, 0)
        other = counts.get(Gender.OTHER.value, 0)
        not_specified = counts.get(settings.UNSPECIFIED_LABEL, 0)
        total = len(self.visits)
        population = self.population_summary()
        # Every visit falls in exactly one of the four categories.
        shares = dict(zip(("male", "female", "other", "not_specified"), percentages([male, female, other, not_specified])))

        return {
            "summary": {
                "total": total, "male": male, "female": female, "other": other, "not_specified": not_specified,
                "total_population": population["total_population"],
                "has_population_data": population["has_population_data"],
            },
            "ratio": gender_ratio(male, female),
            "simplified_ratio": simplify_ratio(male, female).to_dict(),
            "percentages": shares,
        }


def get_gender_ratio_report(filters: Optional[RawFilters], source: Optional[ReportDataSource] = None, today: Optional[date] = None) -> Dict[str, Any]:
    return run_report(GenderRatioReport, filters, source=source, today=today)
