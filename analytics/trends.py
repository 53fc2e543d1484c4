# epireport/analytics/trends.py
# CASE TREND REPORT

"""
Time series of case counts for one disease. Periods are the time dimensions
of the aggregator (day, week, month, quarter, year). Weeks start on Sunday
and are keyed by the date of that Sunday.
"""
import logging
from datetime import date
from typing import Any, Dict, Optional

from data_processing.aggregation import TIME_DIMENSIONS, Dimension, aggregate, counts_by, parse_dimension
from data_processing.errors import InvalidFilterError
from data_processing.sources import ReportDataSource
from .orchestrator import RawFilters, ReportAssembler

logger = logging.getLogger(__name__)


class TrendReport(ReportAssembler):
    report_name = "trend"

    def __init__(self, filters: Optional[RawFilters], source: Optional[ReportDataSource] = None,
                 today: Optional[date] = None, period: str = "month", split_by_gender: bool = False):
        period_dim = parse_dimension(period) if isinstance(period, (str, Dimension)) else None
        if period_dim not in TIME_DIMENSIONS:
            raise InvalidFilterError("period", f"'{period}' is not one of day, week, month, quarter or year")
        super().__init__(filters, source=source, today=today)
        self.period = period_dim
        self.split_by_gender = split_by_gender

    def build(self) -> Dict[str, Any]:
        series = [
            {"period": item.group_value, "group_key": item.group_key, "count": item.count}
            for item in aggregate(self.visits, self.period, split_by_gender=self.split_by_gender)
        ]
        # The gender split only covers male and female; the summary counts every patient.
        per_period = counts_by(self.visits, self.period) if self.split_by_gender else {
            point["period"]: point["count"] for point in series
        }

        peak = None
        if per_period:
            # max() keeps the earliest period on ties.
            peak_period = max(per_period, key=per_period.get)
            peak = {"period": peak_period, "count": per_period[peak_period]}

        return {
            "summary": {
                "total_patients": len(self.visits),
                "period": self.period.value,
                "periods": len(per_period),
                "peak": peak,
            },
            "series": series,
        }


def get_trend_report(filters: Optional[RawFilters], period: str = "month", split_by_gender: bool = False,
                     source: Optional[ReportDataSource] = None, today: Optional[date] = None) -> Dict[str, Any]:
    """Case counts per day, week, month, quarter or year."""
    report = TrendReport(filters, source=source, today=today, period=period, split_by_gender=split_by_gender)
    logger.debug(f"Running {period} trend report (split_by_gender={split_by_gender}).")
    return report.run()
