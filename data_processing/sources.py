# epireport/data_processing/sources.py
# READ-ONLY DATA SOURCE BOUNDARY

"""
The report engine never queries storage directly. It reads through the
``ReportDataSource`` protocol below; ``FrameDataSource`` is the bundled
pandas-backed implementation used by the CLI and the tests.
"""
import logging
from datetime import date, timedelta
from typing import List, Optional, Protocol, runtime_checkable

import pandas as pd

from .enrichment import enrich_visit_records
from .helpers import clean_identifier_series
from .filters import NormalizedFilter, apply_population_filter, apply_visit_filter
from .models import Disease, Hospital, POPULATION_COLUMNS

logger = logging.getLogger(__name__)


@runtime_checkable
class ReportDataSource(Protocol):
    def get_disease(self, disease_id: str) -> Optional[Disease]: ...

    def list_active_diseases(self) -> List[Disease]: ...

    def fetch_patient_visits(self, flt: NormalizedFilter) -> pd.DataFrame: ...

    def fetch_populations(self, flt: NormalizedFilter) -> pd.DataFrame: ...

    def list_active_hospitals(self) -> List[Hospital]: ...

    def count_patient_visits(self, date_from: Optional[date] = None, date_to: Optional[date] = None) -> int: ...


def _active_rows(df: Optional[pd.DataFrame]) -> pd.DataFrame:
    if not isinstance(df, pd.DataFrame) or df.empty:
        return pd.DataFrame()
    if 'is_active' not in df.columns:
        return df.copy()
    return df.loc[df['is_active'].eq(True)].copy()


def _clean_codes(df: pd.DataFrame, column: str) -> pd.DataFrame:
    if column in df.columns:
        df[column] = clean_identifier_series(df[column])
    return df


def _text(value) -> Optional[str]:
    return None if value is None or pd.isna(value) else str(value)


class FrameDataSource:
    """
    Serves report data from in-memory DataFrames (visits, populations,
    hospitals, diseases). Visits are enriched once on construction.
    """
    def __init__(
        self,
        visits: Optional[pd.DataFrame] = None,
        populations: Optional[pd.DataFrame] = None,
        hospitals: Optional[pd.DataFrame] = None,
        diseases: Optional[pd.DataFrame] = None,
    ):
        self.visits = enrich_visit_records(visits)
        self.populations = populations.copy() if isinstance(populations, pd.DataFrame) else pd.DataFrame(columns=POPULATION_COLUMNS)
        # Codes are matched as text against the enriched visits and the filter.
        self.populations = _clean_codes(self.populations, 'hospital_code')
        self.hospitals = _clean_codes(_active_rows(hospitals), 'code')
        self.diseases = _active_rows(diseases)
        if not self.diseases.empty:
            self.diseases['id'] = self.diseases['id'].astype(str).str.strip().str.lower()
        logger.info(
            f"FrameDataSource ready: {len(self.visits)} visits, {len(self.populations)} population rows, "
            f"{len(self.hospitals)} active hospitals, {len(self.diseases)} active diseases."
        )

    def _to_disease(self, row: pd.Series) -> Disease:
        return Disease(
            id=row['id'], thai_name=_text(row.get('thai_name')), eng_name=_text(row.get('eng_name')),
            short_name=_text(row.get('short_name')), is_active=True,
        )

    def get_disease(self, disease_id: str) -> Optional[Disease]:
        if self.diseases.empty or not disease_id:
            return None
        match = self.diseases[self.diseases['id'] == str(disease_id).lower()]
        return None if match.empty else self._to_disease(match.iloc[0])

    def list_active_diseases(self) -> List[Disease]:
        return [self._to_disease(row) for _, row in self.diseases.iterrows()]

    def fetch_patient_visits(self, flt: NormalizedFilter) -> pd.DataFrame:
        return apply_visit_filter(self.visits, flt)

    def fetch_populations(self, flt: NormalizedFilter) -> pd.DataFrame:
        return apply_population_filter(self.populations, flt)

    def list_active_hospitals(self) -> List[Hospital]:
        return [
            Hospital(code=str(row['code']), name=_text(row.get('name')) or str(row['code']), is_active=True)
            for _, row in self.hospitals.iterrows()
        ]

    def count_patient_visits(self, date_from: Optional[date] = None, date_to: Optional[date] = None) -> int:
        if self.visits.empty:
            return 0
        mask = self.visits['is_active'].eq(True)
        illness = self.visits['illness_date']
        if date_from is not None:
            mask &= illness >= pd.Timestamp(date_from)
        if date_to is not None:
            mask &= illness < pd.Timestamp(date_to + timedelta(days=1))
        return int(mask.sum())
