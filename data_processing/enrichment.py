# epireport/data_processing/enrichment.py
# VECTORIZED VISIT RECORD ENRICHMENT

import logging
from typing import Optional

import numpy as np
import pandas as pd

from .helpers import DataPipeline, clean_code, clean_identifier_series, convert_to_numeric
from .models import PatientCondition, VISIT_COLUMNS, VISIT_DATE_COLUMNS

logger = logging.getLogger(__name__)

CODE_COLUMNS = ['gender', 'patient_condition', 'occupation']


def _derive_ages(birthday: pd.Series, illness_date: pd.Series) -> pd.Series:
    born = pd.to_datetime(birthday, errors='coerce')
    ill = pd.to_datetime(illness_date, errors='coerce')
    years = ill.dt.year - born.dt.year
    before_birthday = (ill.dt.month < born.dt.month) | ((ill.dt.month == born.dt.month) & (ill.dt.day < born.dt.day))
    return (years - before_birthday.astype(int)).clip(lower=0).astype(float)


def death_mask(df: pd.DataFrame) -> pd.Series:
    """A visit counts as a death when the condition is DIED or a death date is recorded."""
    if df.empty:
        return pd.Series(False, index=df.index, dtype=bool)
    died = df['patient_condition'].map(clean_code) == PatientCondition.DIED.value
    has_death_date = pd.to_datetime(df['death_date'], errors='coerce').notna()
    return (died | has_death_date).astype(bool)


def enrich_visit_records(df: Optional[pd.DataFrame]) -> pd.DataFrame:
    """
    Canonicalizes fetched visit rows into the analytics-ready layout:

    1. Ensures every PatientVisitRecord column exists.
    2. Parses date columns and upper-cases enum-coded text.
    3. Fills a missing ``age_at_illness`` from birthday and illness date.
    4. Adds the boolean ``is_death`` flag.
    """
    if not isinstance(df, pd.DataFrame):
        df = pd.DataFrame(columns=VISIT_COLUMNS)

    enriched = df.copy()
    for col in VISIT_COLUMNS:
        if col not in enriched.columns:
            enriched[col] = True if col == 'is_active' else np.nan

    enriched = DataPipeline(enriched).convert_date_columns(VISIT_DATE_COLUMNS).get_dataframe()

    for col in CODE_COLUMNS:
        enriched[col] = enriched[col].map(clean_code).astype(object)
    for col in ['hospital_code', 'disease_id']:
        enriched[col] = clean_identifier_series(enriched[col])
    enriched['disease_id'] = enriched['disease_id'].str.lower()

    ages = convert_to_numeric(enriched['age_at_illness'], target_type=float)
    missing = ages.isna()
    if missing.any():
        ages = ages.fillna(_derive_ages(enriched['birthday'], enriched['illness_date']))
        logger.debug(f"Derived age at illness from birthday for {int(missing.sum() - ages.isna().sum())} visits.")
    enriched['age_at_illness'] = ages.clip(lower=0)

    enriched['is_death'] = death_mask(enriched)

    logger.debug(f"Enriched {len(enriched)} visit records.")
    return enriched

