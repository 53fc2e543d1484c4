# epireport/analytics/__init__.py
# PUBLIC API OF THE REPORT ASSEMBLERS

"""
Initializes the analytics package, making the report services available at
the top level for easier importing.

This __init__.py defines the public API for the package.
"""

# From orchestrator.py
from .orchestrator import ReportAssembler, get_default_data_source, run_report

# Report services
from .age_groups import get_age_groups_report
from .gender_ratio import get_gender_ratio_report
from .incidence import get_incidence_rates_report
from .occupation import get_occupation_report
from .trends import get_trend_report

# Catalog & exports
from .catalog import get_disease_options, get_hospital_options, get_public_stats
from .exports import report_to_frame

# --- Define the public API for the analytics package ---
__all__ = [
    # Pipeline
    "ReportAssembler",
    "get_default_data_source",
    "run_report",

    # Reports
    "get_age_groups_report",
    "get_gender_ratio_report",
    "get_incidence_rates_report",
    "get_occupation_report",
    "get_trend_report",

    # Catalog & exports
    "get_disease_options",
    "get_hospital_options",
    "get_public_stats",
    "report_to_frame",
]
