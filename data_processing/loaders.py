# epireport/data_processing/loaders.py
# CONFIG-DRIVEN CSV LOADING OF REPORT DATA

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd
from pydantic import BaseModel, Field

from config import settings
from .enrichment import enrich_visit_records
from .helpers import DataPipeline
from .sources import FrameDataSource

logger = logging.getLogger(__name__)

# --- Pydantic Models for Type-Safe Configuration ---

class CsvConfig(BaseModel):
    """Defines the schema for loading and processing a CSV data source."""
    path_setting: str
    file_name: str
    date_cols: List[str] = Field(default_factory=list)
    dtype_map: Dict[str, str] = Field(default_factory=dict)
    rename_map: Dict[str, str] = Field(default_factory=dict)
    numeric_cols: List[str] = Field(default_factory=list)
    defaults: Dict[str, Any] = Field(default_factory=dict)
    required_cols: List[str] = Field(default_factory=list)
    read_options: Dict[str, Any] = Field(default_factory=lambda: {'dtype': str, 'keep_default_na': True})

# --- Centralized Data Source Configuration ---
# Column names arrive from exports in camelCase; clean_column_names lowercases
# them first, so rename maps are keyed on the lowercased form.

DATA_CONFIG: Dict[str, CsvConfig] = {
    'patient_visits': CsvConfig(
        path_setting='PATIENT_VISITS_PATH',
        file_name='patient_visits.csv',
        date_cols=['birthday', 'illness_date', 'death_date'],
        dtype_map={'id': 'str', 'hospital_code': 'str', 'disease_id': 'str'},
        rename_map={
            'hospitalcode9edigit': 'hospital_code', 'hospitalcode': 'hospital_code', 'diseaseid': 'disease_id',
            'ageatillness': 'age_at_illness', 'illnessdate': 'illness_date', 'patientcondition': 'patient_condition',
            'deathdate': 'death_date', 'isactive': 'is_active',
        },
        numeric_cols=['age_at_illness'],
        defaults={'is_active': True},
        required_cols=['id', 'hospital_code', 'disease_id', 'illness_date'],
    ),
    'populations': CsvConfig(
        path_setting='POPULATIONS_PATH',
        file_name='populations.csv',
        dtype_map={'hospital_code': 'str'},
        rename_map={'hospitalcode9edigit': 'hospital_code', 'hospitalcode': 'hospital_code', 'isactive': 'is_active'},
        defaults={'year': 0, 'count': 0, 'is_active': True},
        required_cols=['year', 'hospital_code', 'count'],
    ),
    'hospitals': CsvConfig(
        path_setting='HOSPITALS_PATH',
        file_name='hospitals.csv',
        dtype_map={'code': 'str', 'name': 'str'},
        rename_map={
            'hospitalcode9edigit': 'code', 'hospitalcode': 'code', 'hospitalname': 'name', 'isactive': 'is_active',
        },
        defaults={'is_active': True},
        required_cols=['code', 'name'],
    ),
    'diseases': CsvConfig(
        path_setting='DISEASES_PATH',
        file_name='diseases.csv',
        dtype_map={'id': 'str'},
        rename_map={'thainame': 'thai_name', 'engname': 'eng_name', 'shortname': 'short_name', 'isactive': 'is_active'},
        defaults={'is_active': True},
        required_cols=['id'],
    ),
}

# --- Main Loading Functions ---

def _empty_frame(config: CsvConfig) -> pd.DataFrame:
    return pd.DataFrame(columns=config.required_cols)


def load_csv(config_key: str, filepath_override: Optional[Union[str, Path]] = None) -> pd.DataFrame:
    """
    Generic CSV loader driven by ``DATA_CONFIG``.

    A missing file is logged and yields an empty frame; a file that cannot be
    parsed or lacks required columns is logged at critical level and raised.
    """
    config = DATA_CONFIG.get(config_key)
    if config is None:
        raise KeyError(f"Unknown CSV config key: '{config_key}'")

    path_to_load = Path(filepath_override) if filepath_override else Path(getattr(settings, config.path_setting))
    if not path_to_load.is_file():
        logger.error(f"({config_key}) CSV file not found at: {path_to_load}")
        return _empty_frame(config)

    try:
        df = pd.read_csv(path_to_load, **config.read_options)
        processed_df = (DataPipeline(df)
            .clean_column_names()
            .rename_columns(config.rename_map)
            .cast_column_types(config.dtype_map)
            .convert_date_columns(config.date_cols)
            .convert_numeric_columns(config.numeric_cols, target_type=float)
            .standardize_missing_values(config.defaults)
            .get_dataframe()
        )
    except Exception as e:
        logger.critical(f"({config_key}) Critical error loading CSV from {path_to_load}: {e}", exc_info=True)
        raise

    missing_cols = set(config.required_cols) - set(processed_df.columns)
    if missing_cols:
        logger.critical(f"({config_key}) Schema validation failed! Missing required columns: {sorted(missing_cols)}")
        raise ValueError(f"{path_to_load} is missing required columns: {sorted(missing_cols)}")

    logger.info(f"({config_key}) Successfully loaded and processed {len(processed_df)} records.")
    return processed_df


def load_patient_visits(filepath_override: Optional[Union[str, Path]] = None) -> pd.DataFrame:
    """Loads visit rows and returns them enriched and analytics-ready."""
    df = load_csv('patient_visits', filepath_override)
    logger.info(f"Applying enrichment to {len(df)} patient visits...")
    return enrich_visit_records(df)


def load_populations(filepath_override: Optional[Union[str, Path]] = None) -> pd.DataFrame:
    return load_csv('populations', filepath_override)


def load_hospitals(filepath_override: Optional[Union[str, Path]] = None) -> pd.DataFrame:
    return load_csv('hospitals', filepath_override)


def load_diseases(filepath_override: Optional[Union[str, Path]] = None) -> pd.DataFrame:
    return load_csv('diseases', filepath_override)


def load_report_data_source(data_dir: Optional[Union[str, Path]] = None) -> FrameDataSource:
    """
    Builds a ``FrameDataSource`` from the four CSV exports, either from the
    configured paths or from the standard file names inside ``data_dir``.
    """
    def _path(key: str) -> Optional[Path]:
        return Path(data_dir) / DATA_CONFIG[key].file_name if data_dir else None

    return FrameDataSource(
        visits=load_patient_visits(_path('patient_visits')),
        populations=load_populations(_path('populations')),
        hospitals=load_hospitals(_path('hospitals')),
        diseases=load_diseases(_path('diseases')),
    )
