# epireport/data_processing/filters.py
# REQUEST FILTER PARSING AND NORMALIZATION

"""
Turns a raw report request into a canonical ``NormalizedFilter``.

The raw contract uses the string "all" to mean "no filter on this dimension".
Inside the engine that sentinel never survives: an unfiltered dimension is
``None``. The same predicate is then evaluated against pandas frames by
``apply_visit_filter`` and ``apply_population_filter``.
"""
import logging
import uuid
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from config import settings
from .age_bands import FILTER_AGE_BANDS, range_for
from .errors import InvalidFilterError, NotFoundError
from .models import Gender, OCCUPATION_CODES

logger = logging.getLogger(__name__)

ALL = "all"
FILTERABLE_GENDERS = (Gender.MALE.value, Gender.FEMALE.value)


class ReportFilters(BaseModel):
    """Raw report request. Accepts snake_case names or camelCase aliases."""
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra='ignore',
        frozen=True, coerce_numbers_to_str=True,
    )

    disease_id: Optional[str] = None
    year: Union[int, str, None] = None  # None = current year
    hospital_code: Optional[str] = ALL
    gender: Optional[str] = ALL
    age_group: Optional[str] = ALL
    occupation: Optional[str] = ALL
    date_from: Optional[date] = None
    date_to: Optional[date] = None


@dataclass(frozen=True)
class NormalizedFilter:
    disease_id: str
    year: Optional[int] = None
    hospital_code: Optional[str] = None
    gender: Optional[str] = None
    age_group: Optional[str] = None
    age_range: Optional[Tuple[int, int]] = None
    occupation: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    def without(self, dimension: str) -> 'NormalizedFilter':
        """Returns a copy with one dimension's predicate dropped."""
        if dimension == 'gender':
            return replace(self, gender=None)
        if dimension == 'occupation':
            return replace(self, occupation=None)
        if dimension == 'age_group':
            return replace(self, age_group=None, age_range=None)
        if dimension == 'hospital':
            return replace(self, hospital_code=None)
        raise ValueError(f"Unknown filter dimension: '{dimension}'")

    def to_dict(self) -> Dict[str, Any]:
        """Echoes the filter in the external contract, with "all" for open dimensions."""
        return {
            "disease_id": self.disease_id,
            "year": self.year if self.year is not None else ALL,
            "hospital_code": self.hospital_code or ALL,
            "gender": self.gender or ALL,
            "age_group": self.age_group or ALL,
            "occupation": self.occupation or ALL,
            "date_from": self.date_from.isoformat() if self.date_from else None,
            "date_to": self.date_to.isoformat() if self.date_to else None,
        }


def _is_all(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip().lower() in (ALL, ""))


def parse_report_filters(raw: Union['ReportFilters', Mapping[str, Any], None]) -> ReportFilters:
    if isinstance(raw, ReportFilters):
        return raw
    try:
        return ReportFilters.model_validate(dict(raw or {}))
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get('loc', ())) or "filters"
        raise InvalidFilterError(field, first.get('msg', str(e))) from e


def validate_disease_id(disease_id: Optional[str]) -> str:
    """Returns the canonical (lowercase, hyphenated) UUID string of a disease id."""
    if _is_all(disease_id):
        raise NotFoundError("disease")
    try:
        return str(uuid.UUID(str(disease_id).strip()))
    except ValueError as e:
        raise InvalidFilterError("disease_id", f"'{disease_id}' is not a valid UUID") from e


def _normalize_year(value: Any, today: date) -> Optional[int]:
    if value is None:
        return today.year
    if _is_all(value):
        return None
    try:
        year = int(str(value).strip())
    except ValueError as e:
        raise InvalidFilterError("year", f"'{value}' is not a year") from e
    cfg = settings.ANALYTICS
    if not cfg.min_report_year <= year <= cfg.max_report_year:
        raise InvalidFilterError("year", f"{year} is outside {cfg.min_report_year}..{cfg.max_report_year}")
    return year


def _normalize_gender(value: Any) -> Optional[str]:
    if _is_all(value):
        return None
    gender = str(value).strip().upper()
    if gender not in FILTERABLE_GENDERS:
        raise InvalidFilterError("gender", f"'{value}' must be one of MALE, FEMALE or all")
    return gender


def _normalize_age_group(value: Any) -> Tuple[Optional[str], Optional[Tuple[int, int]]]:
    if _is_all(value):
        return None, None
    name = str(value).strip()
    age_range = range_for(name, FILTER_AGE_BANDS)
    if age_range is None:
        logger.warning(f"Ignoring unrecognized age_group filter '{value}'.")
        return None, None
    return name, age_range


def _normalize_occupation(value: Any) -> Optional[str]:
    if _is_all(value):
        return None
    code = str(value).strip().upper()
    if code not in OCCUPATION_CODES:
        logger.warning(f"Ignoring unrecognized occupation filter '{value}'.")
        return None
    return code


def normalize_filters(raw: Union[ReportFilters, Mapping[str, Any], None], today: Optional[date] = None) -> NormalizedFilter:
    """
    Validates a raw request and produces the canonical predicate.

    Raises NotFoundError when no disease is given and InvalidFilterError for
    malformed values or an empty date range.
    """
    today = today or date.today()
    filters = parse_report_filters(raw)
    disease_id = validate_disease_id(filters.disease_id)

    year = _normalize_year(filters.year, today)
    date_from, date_to = filters.date_from, filters.date_to
    if year is not None:
        year_start, year_end = date(year, 1, 1), date(year, 12, 31)
        date_from = max(date_from, year_start) if date_from else year_start
        date_to = min(date_to, year_end) if date_to else year_end
    if date_from and date_to and date_from > date_to:
        raise InvalidFilterError("date_range", f"{date_from.isoformat()} is after {date_to.isoformat()}")

    age_group, age_range = _normalize_age_group(filters.age_group)
    normalized = NormalizedFilter(
        disease_id=disease_id,
        year=year,
        hospital_code=None if _is_all(filters.hospital_code) else str(filters.hospital_code).strip(),
        gender=_normalize_gender(filters.gender),
        age_group=age_group,
        age_range=age_range,
        occupation=_normalize_occupation(filters.occupation),
        date_from=date_from,
        date_to=date_to,
    )
    logger.debug(f"Normalized report filters: {normalized}")
    return normalized


# --- Predicate Evaluation on Frames ---

def _active(df: pd.DataFrame) -> pd.Series:
    if 'is_active' not in df.columns:
        return pd.Series(True, index=df.index)
    return df['is_active'].eq(True)


def apply_visit_filter(df: pd.DataFrame, flt: NormalizedFilter) -> pd.DataFrame:
    """Active visit rows matching every predicate of ``flt``."""
    if df.empty:
        return df.copy()
    mask = _active(df) & (df['disease_id'].astype(str).str.lower() == flt.disease_id)
    if flt.hospital_code is not None:
        mask &= df['hospital_code'] == flt.hospital_code
    if flt.gender is not None:
        mask &= df['gender'] == flt.gender
    if flt.age_range is not None:
        ages = pd.to_numeric(df['age_at_illness'], errors='coerce')
        mask &= ages.between(flt.age_range[0], flt.age_range[1])
    if flt.occupation is not None:
        mask &= df['occupation'] == flt.occupation
    if flt.date_from is not None or flt.date_to is not None:
        illness = pd.to_datetime(df['illness_date'], errors='coerce')
        if flt.date_from is not None:
            mask &= illness >= pd.Timestamp(flt.date_from)
        if flt.date_to is not None:
            mask &= illness < pd.Timestamp(flt.date_to + timedelta(days=1))
    return df.loc[mask].copy()


def apply_population_filter(df: pd.DataFrame, flt: NormalizedFilter) -> pd.DataFrame:
    """Active population rows for the filter's year and hospital."""
    if df.empty:
        return df.copy()
    mask = _active(df)
    if flt.year is not None:
        mask &= pd.to_numeric(df['year'], errors='coerce') == flt.year
    if flt.hospital_code is not None:
        mask &= df['hospital_code'] == flt.hospital_code
    return df.loc[mask].copy()
