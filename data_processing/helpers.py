# epireport/data_processing/helpers.py
# Fluent DataPipeline and numeric coercion used by the loaders and enrichment.

"""
A collection of utility functions and a fluent DataPipeline class for
cleaning raw tabular exports before they reach the report engine.
"""
import logging
import re
from collections import Counter
from typing import Any, Dict, List, Optional, Type

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

# --- Standalone Utility Functions ---

NA_REGEX_PATTERN = re.compile(
    r'(?i)^\s*(nan|none|n/a|#n/a|np\.nan|nat|<na>|null|nil|na|undefined|-|)\s*$'
)

def convert_to_numeric(data_input: Any, default_value: Any = np.nan, target_type: Optional[Type] = None) -> Any:
    """
    Converts various inputs to a numeric pandas Series or scalar,
    handling common "Not Available" string representations.
    """
    is_series = isinstance(data_input, pd.Series)
    series = data_input if is_series else pd.Series([data_input], dtype=object)

    if pd.api.types.is_object_dtype(series.dtype):
        series = series.replace(NA_REGEX_PATTERN, np.nan, regex=True)

    numeric_series = pd.to_numeric(series, errors='coerce')
    if not pd.isna(default_value):
        numeric_series = numeric_series.fillna(default_value)

    if target_type is int and pd.api.types.is_numeric_dtype(numeric_series.dtype):
        # Nullable integers only when gaps remain after filling.
        numeric_series = numeric_series.astype(pd.Int64Dtype() if numeric_series.isnull().any() else int)
    elif target_type is float:
        numeric_series = numeric_series.astype(float)

    return numeric_series if is_series else (numeric_series.iloc[0] if not numeric_series.empty else default_value)


def clean_code(value: Any) -> Optional[str]:
    """Normalizes an enum-like code ('male ' -> 'MALE'); blanks and NA become None."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    text = str(value).strip()
    if not text or NA_REGEX_PATTERN.match(text):
        return None
    return text.upper()


def clean_identifier_series(series: pd.Series) -> pd.Series:
    """Identifier columns (hospital codes, ids) as stripped text; NA stays NA."""
    return series.where(series.isna(), series.astype(str).str.strip()).astype(object)


class DataPipeline:
    """
    A fluent interface for applying a sequence of cleaning operations.

    Usage:
        processed_df = (DataPipeline(raw_df)
                        .clean_column_names()
                        .rename_columns({'hospitalcode9edigit': 'hospital_code'})
                        .convert_date_columns(['illness_date'])
                        .get_dataframe())
    """
    def __init__(self, df: pd.DataFrame):
        if not isinstance(df, pd.DataFrame):
            raise TypeError("DataPipeline must be initialized with a pandas DataFrame.")
        self.df = df.copy()

    def get_dataframe(self) -> pd.DataFrame:
        """Returns the processed DataFrame."""
        return self.df

    def clean_column_names(self) -> 'DataPipeline':
        """
        Lowercases column names, collapses non-alphanumerics to underscores
        and de-duplicates repeated names with a numeric suffix.
        """
        if len(self.df.columns) == 0:
            return self

        new_cols = (self.df.columns.astype(str).str.lower()
                    .str.replace(r'[^0-9a-zA-Z_]+', '_', regex=True)
                    .str.replace(r'__+', '_', regex=True).str.strip('_'))
        new_cols = [f"unnamed_col_{i}" if not name else name for i, name in enumerate(new_cols)]

        counts = Counter(new_cols)
        if max(counts.values()) > 1:
            seen_counts: Counter = Counter()
            final_cols = []
            for name in new_cols:
                if counts[name] > 1:
                    seen_counts[name] += 1
                    final_cols.append(f"{name}_{seen_counts[name]-1}")
                else:
                    final_cols.append(name)
            self.df.columns = final_cols
        else:
            self.df.columns = new_cols
        return self

    def rename_columns(self, rename_map: Dict[str, str]) -> 'DataPipeline':
        if rename_map:
            self.df = self.df.rename(columns=rename_map)
        return self

    def cast_column_types(self, dtype_map: Dict[str, str]) -> 'DataPipeline':
        """Casts columns; 'str' casts keep missing values missing instead of 'nan'."""
        for col, dtype in dtype_map.items():
            if col not in self.df.columns:
                continue
            series = self.df[col]
            if dtype == 'str':
                self.df[col] = series.where(series.isna(), series.astype(str).str.strip())
            else:
                self.df[col] = series.astype(dtype)
        return self

    def convert_numeric_columns(self, numeric_columns: List[str], target_type: Optional[Type] = None) -> 'DataPipeline':
        for col in numeric_columns:
            if col in self.df.columns:
                self.df[col] = convert_to_numeric(self.df[col], target_type=target_type)
        return self

    def standardize_missing_values(self, default_values: Dict[str, Any]) -> 'DataPipeline':
        """
        Standardizes various "Not Available" formats to np.nan and then fills
        with provided defaults, inferring type from the default value.
        """
        for col, default in default_values.items():
            if col not in self.df.columns:
                continue
            if isinstance(default, bool):
                series = self.df[col].astype(object).replace(NA_REGEX_PATTERN, np.nan, regex=True)
                self.df[col] = series.map(lambda v: default if pd.isna(v) else str(v).strip().lower() in ('true', '1', 'yes', 't'))
            elif isinstance(default, (int, float, np.number)):
                target_type = int if isinstance(default, int) else float
                self.df[col] = convert_to_numeric(self.df[col], default_value=default, target_type=target_type)
            else:
                series = self.df[col].astype(object).replace(NA_REGEX_PATTERN, np.nan, regex=True)
                self.df[col] = series.fillna(str(default)).astype(str).str.strip()
        return self

    def convert_date_columns(self, date_columns: List[str], errors: str = 'coerce') -> 'DataPipeline':
        """Converts specified columns to datetime objects, coercing errors to NaT."""
        for col in date_columns:
            if col in self.df.columns:
                self.df[col] = pd.to_datetime(self.df[col], errors=errors)
        return self
