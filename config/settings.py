# epireport/config/settings.py
# CENTRALIZED CONFIGURATION FOR THE REPORT ENGINE

import logging
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

settings_logger = logging.getLogger(__name__)

# --- Nested Models for Structured Configuration ---
class ReportingConfig(BaseModel):
    incidence_per_population: int = 100_000
    rate_decimal_places: int = 2
    min_report_year: int = 1900; max_report_year: int = 2200
    max_recorded_age: int = 150
    fetch_max_workers: int = 3

# --- Main Settings Class ---
class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='EPIREPORT_', case_sensitive=False, env_file='.env', env_file_encoding='utf-8', extra='ignore')

    PROJECT_ROOT_DIR: Path = Path(__file__).resolve().parent.parent
    APP_NAME: str = "Epidemiological Report Engine"; APP_VERSION: str = "1.0.0"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

    # Paths may point at files that do not exist yet; loaders report that at read time.
    DATA_SOURCES_DIR: Path
    PATIENT_VISITS_PATH: Path; POPULATIONS_PATH: Path
    HOSPITALS_PATH: Path; DISEASES_PATH: Path

    @model_validator(mode='before')
    @classmethod
    def set_default_paths(cls, values: Any) -> Any:
        if isinstance(values, dict):
            root = Path(values.get('PROJECT_ROOT_DIR', Path(__file__).resolve().parent.parent))
            data = Path(values.get('DATA_SOURCES_DIR', root / "data_sources"))
            values.setdefault('DATA_SOURCES_DIR', data)
            values.setdefault('PATIENT_VISITS_PATH', data / "patient_visits.csv")
            values.setdefault('POPULATIONS_PATH', data / "populations.csv")
            values.setdefault('HOSPITALS_PATH', data / "hospitals.csv")
            values.setdefault('DISEASES_PATH', data / "diseases.csv")
        return values

    ANALYTICS: ReportingConfig = ReportingConfig()

    UNSPECIFIED_LABEL: str = "UNSPECIFIED"
    POPULATION_NOTE: str = "No population data is available for this scope; rates are reported as 0."
    RATE_BASIS_NOTE: str = "Incidence and mortality rates are expressed per {per:,} population."

try:
    settings = Settings()
    settings_logger.info(f"Report engine settings loaded. App: {settings.APP_NAME} v{settings.APP_VERSION}")
except Exception as e:
    settings_logger.critical(f"FATAL: Could not initialize Pydantic settings. Error: {e}", exc_info=True)
    raise
