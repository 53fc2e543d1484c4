# epireport/data_processing/aggregation.py
# GROUPED CASE COUNTS BY TIME, PLACE AND PERSON

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

import pandas as pd

from config import settings
from .age_bands import CLINICAL_AGE_BANDS, AgeBandTable, classify_series
from .enrichment import enrich_visit_records
from .errors import InvalidFilterError
from .models import Gender, OCCUPATION_CODES, PatientVisitRecord, PopulationRecord, populations_frame, visits_frame

logger = logging.getLogger(__name__)


class Dimension(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"
    HOSPITAL = "hospital"
    DISEASE = "disease"
    AGE_GROUP = "age_group"
    GENDER = "gender"
    OCCUPATION = "occupation"


TIME_DIMENSIONS = frozenset({Dimension.DAY, Dimension.WEEK, Dimension.MONTH, Dimension.QUARTER, Dimension.YEAR})
SPLIT_GENDERS = (Gender.MALE.value, Gender.FEMALE.value)
GENDER_CODES = frozenset(g.value for g in Gender)


@dataclass(frozen=True)
class AggregatedCount:
    group_key: str
    group_value: str
    count: int
    hospital_code: Optional[str] = None
    disease_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


def parse_dimension(value: Union[str, Dimension]) -> Dimension:
    try:
        return Dimension(value)
    except ValueError as e:
        allowed = ", ".join(d.value for d in Dimension)
        raise InvalidFilterError("dimension", f"'{value}' is not one of {allowed}") from e


def _as_frame(rows: Union[pd.DataFrame, Iterable[PatientVisitRecord]]) -> pd.DataFrame:
    df = rows if isinstance(rows, pd.DataFrame) else visits_frame(rows)
    return enrich_visit_records(df)


def _time_keys(illness: pd.Series, dimension: Dimension) -> pd.Series:
    day = pd.to_datetime(illness, errors='coerce').dt.normalize()
    if dimension == Dimension.DAY:
        keys = day.dt.strftime('%Y-%m-%d')
    elif dimension == Dimension.WEEK:
        # Weeks start on Sunday: dayofweek is Monday=0, so Sunday shifts by 0.
        week_start = day - pd.to_timedelta((day.dt.dayofweek + 1) % 7, unit='D')
        keys = week_start.dt.strftime('%Y-%m-%d')
    elif dimension == Dimension.MONTH:
        keys = day.dt.strftime('%Y-%m')
    elif dimension == Dimension.QUARTER:
        keys = 'Q' + day.dt.quarter.astype('Int64').astype(str) + '-' + day.dt.year.astype('Int64').astype(str)
    else:
        keys = day.dt.strftime('%Y')
    return keys.where(day.notna())


def _coded_keys(values: pd.Series, allowed: frozenset) -> pd.Series:
    return values.where(values.isin(allowed), settings.UNSPECIFIED_LABEL)


def group_keys(df: pd.DataFrame, dimension: Dimension, band_table: AgeBandTable = CLINICAL_AGE_BANDS) -> pd.Series:
    """Group value of every row for a dimension; rows excluded from the dimension get NaN."""
    if dimension in TIME_DIMENSIONS:
        return _time_keys(df['illness_date'], dimension)
    if dimension == Dimension.AGE_GROUP:
        return classify_series(df['age_at_illness'], band_table)
    if dimension == Dimension.GENDER:
        return _coded_keys(df['gender'], GENDER_CODES)
    if dimension == Dimension.OCCUPATION:
        return _coded_keys(df['occupation'], OCCUPATION_CODES)
    column = 'hospital_code' if dimension == Dimension.HOSPITAL else 'disease_id'
    return df[column].astype(object).where(df[column].notna(), settings.UNSPECIFIED_LABEL)


def _quarter_sort_key(value: str) -> tuple:
    quarter, _, year = value.partition('-')
    return int(year), int(quarter[1:])


def _ordered_values(values: Iterable[str], dimension: Dimension, band_table: AgeBandTable) -> List[str]:
    values = list(values)
    if dimension == Dimension.QUARTER:
        return sorted(values, key=_quarter_sort_key)
    if dimension == Dimension.AGE_GROUP:
        rank = {name: i for i, name in enumerate(band_table.names)}
        return sorted(values, key=lambda v: rank.get(v, len(rank)))
    return sorted(values)


def aggregate(
    rows: Union[pd.DataFrame, Iterable[PatientVisitRecord]],
    dimension: Union[str, Dimension],
    split_by_gender: bool = False,
    band_table: AgeBandTable = CLINICAL_AGE_BANDS,
) -> List[AggregatedCount]:
    """
    Counts visits per group of ``dimension``.

    Time dimensions come back chronologically, age groups in band order and
    everything else sorted by value. With ``split_by_gender`` every group
    yields a ``<dimension>_male`` and a ``<dimension>_female`` row, zero
    counts included.
    """
    dim = parse_dimension(dimension)
    df = _as_frame(rows)
    if df.empty:
        return []

    keys = group_keys(df, dim, band_table)
    present = keys.notna()
    counts = keys[present].value_counts()
    ordered = _ordered_values(counts.index, dim, band_table)

    def _extras(value: str) -> Dict[str, Any]:
        if dim == Dimension.HOSPITAL:
            return {"hospital_code": value}
        if dim == Dimension.DISEASE:
            return {"disease_id": value}
        return {}

    if split_by_gender and dim != Dimension.GENDER:
        by_gender = pd.DataFrame({'key': keys[present], 'gender': df.loc[present, 'gender']}).groupby(['key', 'gender']).size()
        results = []
        for value in ordered:
            for gender in SPLIT_GENDERS:
                results.append(AggregatedCount(
                    group_key=f"{dim.value}_{gender.lower()}", group_value=value,
                    count=int(by_gender.get((value, gender), 0)), **_extras(value),
                ))
        return results

    return [AggregatedCount(group_key=dim.value, group_value=value, count=int(counts[value]), **_extras(value)) for value in ordered]


def counts_by(rows: Union[pd.DataFrame, Iterable[PatientVisitRecord]], dimension: Union[str, Dimension], **kwargs) -> Dict[str, int]:
    """``aggregate`` as an ordered ``{group_value: count}`` mapping."""
    return {item.group_value: item.count for item in aggregate(rows, dimension, **kwargs)}


def total_population(populations: Union[pd.DataFrame, Iterable[PopulationRecord]]) -> int:
    """Sum of active population counts; no rows sum to 0."""
    if populations is None:
        return 0
    if not isinstance(populations, pd.DataFrame):
        populations = populations_frame(populations)
    if populations.empty:
        return 0
    active = populations['is_active'].eq(True) if 'is_active' in populations.columns else pd.Series(True, index=populations.index)
    return int(pd.to_numeric(populations.loc[active, 'count'], errors='coerce').fillna(0).sum())
