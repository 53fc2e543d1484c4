# epireport/tests/conftest.py
# PYTEST FIXTURES

import sys
from pathlib import Path

# --- Path Setup for Module Imports ---
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import numpy as np
import pandas as pd
import pytest
from datetime import date

from data_processing import FrameDataSource

DENGUE_ID = "0b7e3f5a-1c2d-4e5f-8a9b-0c1d2e3f4a5b"
FLU_ID = "5d9c1e2f-3a4b-4c5d-9e8f-7a6b5c4d3e2f"
INACTIVE_ID = "9f8e7d6c-5b4a-4392-8170-6f5e4d3c2b1a"
UNKNOWN_ID = "11111111-2222-4333-8444-555555555555"
TODAY = date(2024, 6, 15)

# --- Core Data Fixtures ---

@pytest.fixture(scope="session")
def diseases_df() -> pd.DataFrame:
    return pd.DataFrame([
        {'id': DENGUE_ID, 'thai_name': 'ไข้เลือดออก', 'eng_name': 'Dengue fever', 'short_name': 'DHF', 'is_active': True},
        {'id': FLU_ID, 'thai_name': 'ไข้หวัดใหญ่', 'eng_name': 'Influenza', 'short_name': 'FLU', 'is_active': True},
        {'id': INACTIVE_ID, 'thai_name': 'โรคเลิกใช้', 'eng_name': 'Retired', 'short_name': 'RET', 'is_active': False},
    ])


@pytest.fixture(scope="session")
def hospitals_df() -> pd.DataFrame:
    return pd.DataFrame([
        {'code': 'H001', 'name': 'Alpha Hospital', 'is_active': True},
        {'code': 'H002', 'name': 'Beta Hospital', 'is_active': True},
        {'code': 'H003', 'name': 'Gamma Hospital', 'is_active': True},
        {'code': 'H004', 'name': 'Closed Hospital', 'is_active': False},
    ])


@pytest.fixture(scope="session")
def populations_df() -> pd.DataFrame:
    """2024: H001=10,000 and H003=5,000; H002 has no population record."""
    return pd.DataFrame([
        {'year': 2024, 'hospital_code': 'H001', 'count': 10000, 'is_active': True},
        {'year': 2024, 'hospital_code': 'H003', 'count': 5000, 'is_active': True},
        {'year': 2023, 'hospital_code': 'H001', 'count': 9000, 'is_active': True},
        {'year': 2024, 'hospital_code': 'H002', 'count': 8000, 'is_active': False},
    ])


@pytest.fixture(scope="session")
def visits_df() -> pd.DataFrame:
    """
    Seven active 2024 dengue visits (rows 1-7) plus rows that every 2024
    dengue report must exclude: another year, an inactive row, another disease.
    """
    rows = [
        # id, hospital, disease, gender, age, birthday, illness_date, condition, death_date, occupation, active
        ('V1', 'H001', DENGUE_ID, 'MALE', 0, None, '2024-01-15', 'RECOVERED', None, 'STUDENT', True),
        ('V2', 'H001', DENGUE_ID, 'male', 3, None, '2024-01-31', 'DIED', None, 'FARMER', True),
        ('V3', 'H001', DENGUE_ID, 'FEMALE', 7, None, '2024-02-10', 'UNDER_TREATMENT', None, 'STUDENT', True),
        ('V4', 'H002', DENGUE_ID, 'FEMALE', np.nan, '2000-06-01', '2024-05-20', 'RECOVERED', '2024-05-25', None, True),
        ('V5', 'H002', DENGUE_ID, 'MALE', 70, None, '2024-07-04', 'RECOVERED', None, 'FARMER', True),
        ('V6', 'H001', DENGUE_ID, 'OTHER', 40, None, '2024-11-30', 'RECOVERED', None, 'TRADER', True),
        ('V7', 'H001', DENGUE_ID, None, 55, None, '2024-12-31', 'RECOVERED', None, 'astronaut', True),
        ('V8', 'H001', DENGUE_ID, 'MALE', 30, None, '2023-06-01', 'RECOVERED', None, 'FARMER', True),
        ('V9', 'H001', DENGUE_ID, 'FEMALE', 30, None, '2024-03-03', 'RECOVERED', None, 'FARMER', False),
        ('V10', 'H001', FLU_ID, 'MALE', 30, None, '2024-03-03', 'RECOVERED', None, 'FARMER', True),
    ]
    columns = [
        'id', 'hospital_code', 'disease_id', 'gender', 'age_at_illness', 'birthday', 'illness_date',
        'patient_condition', 'death_date', 'occupation', 'is_active',
    ]
    return pd.DataFrame(rows, columns=columns)


# --- Data Source Fixtures ---

@pytest.fixture(scope="session")
def data_source(visits_df, populations_df, hospitals_df, diseases_df) -> FrameDataSource:
    return FrameDataSource(visits=visits_df, populations=populations_df, hospitals=hospitals_df, diseases=diseases_df)


@pytest.fixture
def dengue_2024() -> dict:
    return {'diseaseId': DENGUE_ID, 'year': 2024}
