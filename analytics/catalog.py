# epireport/analytics/catalog.py
# REPORT CATALOG AND PUBLIC HEADLINE STATISTICS

import calendar
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from data_processing.sources import ReportDataSource
from .orchestrator import get_default_data_source

logger = logging.getLogger(__name__)


def get_disease_options(source: Optional[ReportDataSource] = None) -> List[Dict[str, Any]]:
    """Active diseases for a report picker, sorted by Thai name."""
    source = source if source is not None else get_default_data_source()
    diseases = sorted(source.list_active_diseases(), key=lambda d: (d.thai_name is None, d.thai_name or "", d.id))
    return [d.to_info() for d in diseases]


def get_hospital_options(source: Optional[ReportDataSource] = None) -> List[Dict[str, str]]:
    """Active hospitals as ``{value, label, code}`` dropdown entries, sorted by name."""
    source = source if source is not None else get_default_data_source()
    hospitals = sorted(source.list_active_hospitals(), key=lambda h: (h.name, h.code))
    return [{"value": h.code, "label": h.name, "code": h.code} for h in hospitals]


def get_public_stats(source: Optional[ReportDataSource] = None, today: Optional[date] = None) -> Dict[str, int]:
    source = source if source is not None else get_default_data_source()
    today = today or date.today()
    month_start = today.replace(day=1)
    month_end = today.replace(day=calendar.monthrange(today.year, today.month)[1])

    stats = {
        "total_diseases": len(source.list_active_diseases()),
        "total_patients": source.count_patient_visits(),
        "current_month_patients": source.count_patient_visits(date_from=month_start, date_to=month_end),
    }
    logger.debug(f"Public stats for {today:%Y-%m}: {stats}")
    return stats
