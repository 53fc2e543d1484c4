# epireport/data_processing/age_bands.py
# AGE BAND TABLES AND CLASSIFICATION

"""
Two independent age-band tables are defined here:

- ``FILTER_AGE_BANDS``: the coarse bands a caller may pass as the
  ``age_group`` report filter.
- ``CLINICAL_AGE_BANDS``: the finer bands the age-distribution report
  groups by.

The tables are never cross-used. Each is validated at construction to be
contiguous from age 0 with an open-ended last band, so every non-negative age
maps to exactly one band.
"""
import logging
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Tuple

import numpy as np
import pandas as pd

from config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgeBand:
    name: str
    min_age: int
    max_age: Optional[int] = None  # None = open-ended

    def contains(self, age: int) -> bool:
        return age >= self.min_age and (self.max_age is None or age <= self.max_age)


class AgeBandTable:
    """An ordered, validated, gap-free sequence of age bands."""

    def __init__(self, name: str, bands: List[AgeBand]):
        if not bands:
            raise ValueError(f"Age band table '{name}' must contain at least one band.")
        if bands[0].min_age != 0:
            raise ValueError(f"Age band table '{name}' must start at age 0.")
        for prev, nxt in zip(bands, bands[1:]):
            if prev.max_age is None or nxt.min_age != prev.max_age + 1:
                raise ValueError(f"Age band table '{name}' has a gap or overlap between '{prev.name}' and '{nxt.name}'.")
        if bands[-1].max_age is not None:
            raise ValueError(f"Age band table '{name}' must end with an open-ended band.")
        self.name = name
        self.bands: Tuple[AgeBand, ...] = tuple(bands)

    def __iter__(self) -> Iterator[AgeBand]:
        return iter(self.bands)

    def __len__(self) -> int:
        return len(self.bands)

    @property
    def names(self) -> List[str]:
        return [b.name for b in self.bands]

    def get(self, name: str) -> Optional[AgeBand]:
        return next((b for b in self.bands if b.name == name), None)


FILTER_AGE_BANDS = AgeBandTable("filter", [
    AgeBand("0-10", 0, 10),
    AgeBand("11-20", 11, 20),
    AgeBand("21-30", 21, 30),
    AgeBand("31-40", 31, 40),
    AgeBand("41-50", 41, 50),
    AgeBand("51+", 51),
])

CLINICAL_AGE_BANDS = AgeBandTable("clinical", [
    AgeBand("<1", 0, 0),
    AgeBand("1-4", 1, 4),
    AgeBand("5-9", 5, 9),
    AgeBand("10-14", 10, 14),
    AgeBand("15-24", 15, 24),
    AgeBand("25-34", 25, 34),
    AgeBand("35-44", 35, 44),
    AgeBand("45-54", 45, 54),
    AgeBand("55-64", 55, 64),
    AgeBand("65+", 65),
])


def _clean_age(age: Any) -> int:
    if age is None or pd.isna(age):
        return 0
    return max(0, int(age))


def classify(age: Any, table: AgeBandTable) -> str:
    """Returns the name of the band containing ``age``; missing ages count as 0."""
    value = _clean_age(age)
    for band in reversed(table.bands):
        if value >= band.min_age:
            return band.name
    return table.bands[0].name


def classify_series(ages: pd.Series, table: AgeBandTable) -> pd.Series:
    """Vectorized counterpart of ``classify``; returns a Series of band names."""
    if ages.empty:
        return pd.Series([], index=ages.index, dtype=object)
    values = pd.to_numeric(ages, errors='coerce').fillna(0).clip(lower=0).astype(int)
    bins = [b.min_age for b in table.bands] + [np.inf]
    labelled = pd.cut(values, bins=bins, labels=table.names, right=False)
    return labelled.astype(object)


def range_for(name: Optional[str], table: AgeBandTable) -> Optional[Tuple[int, int]]:
    """
    Inclusive ``(min, max)`` age range for a band name, or None when the name
    is unknown. The open-ended band is capped at the maximum recorded age.
    """
    if not name:
        return None
    band = table.get(name.strip())
    if band is None:
        return None
    upper = band.max_age if band.max_age is not None else settings.ANALYTICS.max_recorded_age
    return band.min_age, upper
