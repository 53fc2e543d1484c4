# epireport/data_processing/__init__.py
# PUBLIC API OF THE DATA PROCESSING LAYER

"""
Initializes the data_processing package, defining its public API.

This file explicitly exports all public-facing functions from its submodules,
providing a single, consistent import point for the report assemblers.
"""

# --- Core Data Pipeline & Utilities from helpers.py ---
from .helpers import DataPipeline, clean_code, convert_to_numeric

# --- Errors & Record Models ---
from .errors import InvalidFilterError, NotFoundError, ReportError
from .models import (
    Disease,
    Gender,
    Hospital,
    Occupation,
    PatientCondition,
    PatientVisitRecord,
    PopulationRecord,
    populations_frame,
    visits_frame,
)

# --- Filters, Age Bands & Aggregation ---
from .filters import (
    NormalizedFilter,
    ReportFilters,
    apply_population_filter,
    apply_visit_filter,
    normalize_filters,
    parse_report_filters,
    validate_disease_id,
)
from .age_bands import CLINICAL_AGE_BANDS, FILTER_AGE_BANDS, AgeBand, AgeBandTable, classify, classify_series, range_for
from .enrichment import death_mask, enrich_visit_records
from .aggregation import AggregatedCount, Dimension, aggregate, counts_by, total_population

# --- Stateless Arithmetic ---
from .rates import (
    RateResult,
    case_fatality_rate,
    incidence_rate,
    incidence_rate_series,
    mortality_rate,
    percentage,
    percentages,
    rate_result,
    round_half_up,
)
from .ratios import RatioResult, gcd, gender_ratio, simplify_ratio

# --- Data Sources & Loading ---
from .sources import FrameDataSource, ReportDataSource
from .loaders import load_csv, load_diseases, load_hospitals, load_patient_visits, load_populations, load_report_data_source


# --- Define the canonical public API for the package ---
__all__ = [
    # helpers.py
    "DataPipeline", "clean_code", "convert_to_numeric",

    # errors.py / models.py
    "ReportError", "NotFoundError", "InvalidFilterError",
    "Disease", "Hospital", "PatientVisitRecord", "PopulationRecord",
    "Gender", "Occupation", "PatientCondition", "visits_frame", "populations_frame",

    # filters.py
    "ReportFilters", "NormalizedFilter", "normalize_filters", "parse_report_filters",
    "validate_disease_id", "apply_visit_filter", "apply_population_filter",

    # age_bands.py / enrichment.py / aggregation.py
    "AgeBand", "AgeBandTable", "FILTER_AGE_BANDS", "CLINICAL_AGE_BANDS",
    "classify", "classify_series", "range_for",
    "death_mask", "enrich_visit_records",
    "AggregatedCount", "Dimension", "aggregate", "counts_by", "total_population",

    # rates.py / ratios.py
    "RateResult", "rate_result", "round_half_up", "incidence_rate", "incidence_rate_series",
    "mortality_rate", "percentage", "percentages", "case_fatality_rate",
    "RatioResult", "gcd", "simplify_ratio", "gender_ratio",

    # sources.py / loaders.py
    "ReportDataSource", "FrameDataSource",
    "load_csv", "load_patient_visits", "load_populations", "load_hospitals", "load_diseases",
    "load_report_data_source",
]
