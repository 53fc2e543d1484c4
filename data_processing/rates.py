# epireport/data_processing/rates.py
# STATELESS RATE AND PERCENTAGE ARITHMETIC

"""
Rate calculations used by every report.

All functions are pure and guard their denominators: a zero or negative
denominator yields 0 instead of raising. Results are rounded half-up to
``settings.ANALYTICS.rate_decimal_places`` decimals.
"""
from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from config import settings


def round_half_up(value: float, places: Optional[int] = None) -> float:
    """Rounds half away from zero (2.345 -> 2.35), unlike Python's banker's rounding."""
    places = settings.ANALYTICS.rate_decimal_places if places is None else places
    if value is None or not np.isfinite(value):
        return 0.0
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def incidence_rate(cases: float, population: float, per: Optional[int] = None) -> float:
    if not population or population <= 0:
        return 0.0
    per = settings.ANALYTICS.incidence_per_population if per is None else per
    return round_half_up(cases / population * per)


def mortality_rate(deaths: float, population: float, per: Optional[int] = None) -> float:
    return incidence_rate(deaths, population, per)


def percentage(part: float, total: float) -> float:
    if not total or total <= 0:
        return 0.0
    return round_half_up(part / total * 100)


def case_fatality_rate(deaths: float, total_patients: float) -> float:
    """Deaths as a percentage of patients."""
    return percentage(deaths, total_patients)


def percentages(parts: Sequence[float]) -> List[float]:
    """Each part as a percentage of the sum of all parts."""
    total = sum(parts)
    return [percentage(p, total) for p in parts]


@dataclass(frozen=True)
class RateResult:
    rate: float
    has_denominator_data: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def rate_result(cases: float, population: float, per: Optional[int] = None) -> RateResult:
    return RateResult(rate=incidence_rate(cases, population, per), has_denominator_data=bool(population and population > 0))


def incidence_rate_series(cases: pd.Series, population: pd.Series, per: Optional[int] = None) -> pd.Series:
    """
    Vectorized incidence rate. Rows whose population is missing or not
    positive get 0, matching ``incidence_rate``.
    """
    per = settings.ANALYTICS.incidence_per_population if per is None else per
    pop = pd.to_numeric(population, errors='coerce').fillna(0).astype(float)
    num = pd.to_numeric(cases, errors='coerce').fillna(0).astype(float)
    safe_pop = pop.where(pop > 0, 1.0)
    raw = pd.Series(np.where(pop > 0, num / safe_pop * per, 0.0), index=cases.index)
    return raw.map(round_half_up)
