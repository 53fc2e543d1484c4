# epireport/data_processing/models.py
# READ-ONLY RECORD PROJECTIONS CONSUMED BY THE ENGINE

import logging
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

# --- Enumerations ---

class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"

class PatientCondition(str, Enum):
    UNKNOWN = "UNKNOWN"
    RECOVERED = "RECOVERED"
    DIED = "DIED"
    UNDER_TREATMENT = "UNDER_TREATMENT"

class Occupation(str, Enum):
    STUDENT = "STUDENT"
    DEPENDENT = "DEPENDENT"
    GOVERNMENT_OFFICIAL = "GOVERNMENT_OFFICIAL"
    STATE_ENTERPRISE = "STATE_ENTERPRISE"
    GENERAL_LABOR = "GENERAL_LABOR"
    PRIVATE_BUSINESS = "PRIVATE_BUSINESS"
    FARMER = "FARMER"
    GOV_EMPLOYEE = "GOV_EMPLOYEE"
    PRIVATE_EMPLOYEE = "PRIVATE_EMPLOYEE"
    HOMEMAKER = "HOMEMAKER"
    CLERGY = "CLERGY"
    TRADER = "TRADER"
    UNEMPLOYED = "UNEMPLOYED"
    OTHER = "OTHER"

OCCUPATION_CODES = frozenset(o.value for o in Occupation)

# --- Record Models ---

class Disease(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    thai_name: Optional[str] = None
    eng_name: Optional[str] = None
    short_name: Optional[str] = None
    is_active: bool = True

    def to_info(self) -> Dict[str, Any]:
        return {"id": self.id, "thai_name": self.thai_name, "eng_name": self.eng_name, "short_name": self.short_name}

class Hospital(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    is_active: bool = True

class PatientVisitRecord(BaseModel):
    """A single patient visit as seen by the report engine."""
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: str
    hospital_code: Optional[str] = None
    disease_id: str
    gender: Optional[Gender] = None
    age_at_illness: Optional[int] = Field(default=None, ge=0)
    birthday: Optional[date] = None
    illness_date: Optional[date] = None
    patient_condition: Optional[PatientCondition] = None
    death_date: Optional[date] = None
    occupation: Optional[str] = None
    is_active: bool = True

class PopulationRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    year: int
    hospital_code: str
    count: int = Field(ge=0)
    is_active: bool = True

# --- Canonical Frame Schemas ---

VISIT_COLUMNS: List[str] = list(PatientVisitRecord.model_fields.keys())
POPULATION_COLUMNS: List[str] = list(PopulationRecord.model_fields.keys())
VISIT_DATE_COLUMNS: List[str] = ['birthday', 'illness_date', 'death_date']


def visits_frame(records: Iterable[PatientVisitRecord]) -> pd.DataFrame:
    """Builds a visit DataFrame with the canonical column layout."""
    df = pd.DataFrame([r.model_dump() for r in records], columns=VISIT_COLUMNS)
    for col in VISIT_DATE_COLUMNS:
        df[col] = pd.to_datetime(df[col], errors='coerce')
    return df


def populations_frame(records: Iterable[PopulationRecord]) -> pd.DataFrame:
    """Builds a population DataFrame with the canonical column layout."""
    return pd.DataFrame([r.model_dump() for r in records], columns=POPULATION_COLUMNS)
