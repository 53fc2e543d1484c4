# epireport/tests/test_core_data_processing.py
# DATA PIPELINE, LOADING AND ENRICHMENT TESTS

import numpy as np
import pandas as pd
import pytest

from data_processing import (
    DataPipeline,
    FrameDataSource,
    clean_code,
    convert_to_numeric,
    death_mask,
    enrich_visit_records,
    load_csv,
    load_patient_visits,
    load_report_data_source,
)
from conftest import DENGUE_ID

# --- DataPipeline Tests ---
def test_data_pipeline_fluent_chaining():
    """Tests the fluent, chainable interface of the DataPipeline."""
    df_dirty = pd.DataFrame({
        ' Hospital Code ': [' H001 ', None],
        'Illness Date': ['2024-01-15', 'not a date'],
        '  Count': ['100', 'N/A'],
    })

    processed_df = (DataPipeline(df_dirty)
        .clean_column_names()
        .cast_column_types({'hospital_code': 'str'})
        .convert_date_columns(['illness_date'])
        .standardize_missing_values({'count': 0})
        .get_dataframe()
    )

    assert list(processed_df.columns) == ['hospital_code', 'illness_date', 'count']
    assert processed_df['hospital_code'].iloc[0] == 'H001'
    assert pd.isna(processed_df['hospital_code'].iloc[1])
    assert pd.api.types.is_datetime64_any_dtype(processed_df['illness_date'])
    assert pd.isna(processed_df['illness_date'].iloc[1])
    assert processed_df['count'].tolist() == [100, 0]


def test_data_pipeline_deduplicates_column_names():
    df = pd.DataFrame([[1, 2]], columns=['Age', 'age '])
    assert list(DataPipeline(df).clean_column_names().get_dataframe().columns) == ['age_0', 'age_1']


def test_data_pipeline_boolean_defaults():
    df = pd.DataFrame({'is_active': ['true', 'FALSE', None, '1']})
    result = DataPipeline(df).standardize_missing_values({'is_active': True}).get_dataframe()
    assert result['is_active'].tolist() == [True, False, True, True]


def test_data_pipeline_rejects_non_dataframe():
    with pytest.raises(TypeError):
        DataPipeline([1, 2, 3])


def test_convert_to_numeric_handles_na_strings():
    series = pd.Series(['12', 'n/a', '', '3.5', 'null'])
    result = convert_to_numeric(series)
    assert result.iloc[0] == 12 and result.iloc[3] == 3.5
    assert result.isna().sum() == 3
    assert convert_to_numeric('7', target_type=int) == 7


def test_clean_code_normalizes_enum_text():
    assert clean_code(' female ') == 'FEMALE'
    assert clean_code('') is None
    assert clean_code(np.nan) is None
    assert clean_code('N/A') is None

# --- Enrichment Tests ---
def test_age_from_birthday_increments_on_the_birthday():
    """The age only increments once the birthday has passed in the illness year."""
    enriched = enrich_visit_records(pd.DataFrame({
        'id': ['before', 'on', 'unborn', 'no_birthday'],
        'birthday': ['2000-06-01', '2000-06-01', '2025-01-01', None],
        'illness_date': ['2024-05-31', '2024-06-01', '2024-01-01', '2024-01-01'],
    })).set_index('id')
    assert enriched.loc['before', 'age_at_illness'] == 23
    assert enriched.loc['on', 'age_at_illness'] == 24
    assert enriched.loc['unborn', 'age_at_illness'] == 0
    assert pd.isna(enriched.loc['no_birthday', 'age_at_illness'])


def test_enrich_visit_records_fills_age_and_flags(visits_df):
    enriched = enrich_visit_records(visits_df).set_index('id')

    assert enriched.loc['V4', 'age_at_illness'] == 23
    assert enriched.loc['V2', 'gender'] == 'MALE'
    assert enriched.loc['V7', 'occupation'] == 'ASTRONAUT'
    assert bool(enriched.loc['V2', 'is_death']) is True   # DIED
    assert bool(enriched.loc['V4', 'is_death']) is True   # death date recorded
    assert bool(enriched.loc['V1', 'is_death']) is False
    assert pd.api.types.is_datetime64_any_dtype(enriched['illness_date'])


def test_enrich_visit_records_adds_missing_columns():
    enriched = enrich_visit_records(pd.DataFrame({'id': ['A'], 'disease_id': [DENGUE_ID.upper()]}))
    assert bool(enriched['is_active'].iloc[0]) is True
    assert enriched['disease_id'].iloc[0] == DENGUE_ID
    assert 'is_death' in enriched.columns
    assert enrich_visit_records(None).empty


def test_death_mask_requires_condition_or_date():
    df = pd.DataFrame({
        'patient_condition': ['DIED', 'RECOVERED', None, 'died'],
        'death_date': [None, '2024-02-01', None, None],
    })
    assert death_mask(df).tolist() == [True, True, False, True]

# --- Loader Tests ---
def _write(path, text):
    path.write_text(text, encoding='utf-8')
    return path


def test_load_patient_visits_from_camel_case_export(tmp_path):
    """Exported camelCase headers are mapped onto the canonical visit columns."""
    csv = _write(tmp_path / 'patient_visits.csv', (
        "id,hospitalCode9eDigit,diseaseId,gender,ageAtIllness,birthday,illnessDate,patientCondition,deathDate,occupation,isActive\n"
        f"V1,H001,{DENGUE_ID},MALE,34,,2024-01-15,RECOVERED,,FARMER,true\n"
        f"V2,H001,{DENGUE_ID},FEMALE,,1990-03-01,2024-02-01,DIED,2024-02-03,,false\n"
    ))
    df = load_patient_visits(csv).set_index('id')

    assert df.loc['V1', 'hospital_code'] == 'H001'
    assert df.loc['V1', 'age_at_illness'] == 34
    assert df.loc['V2', 'age_at_illness'] == 33
    assert bool(df.loc['V2', 'is_active']) is False
    assert bool(df.loc['V2', 'is_death']) is True


def test_load_csv_missing_file_returns_empty(tmp_path):
    df = load_csv('populations', tmp_path / 'nope.csv')
    assert df.empty


def test_load_csv_missing_required_columns_raises(tmp_path):
    csv = _write(tmp_path / 'populations.csv', "year,count\n2024,100\n")
    with pytest.raises(ValueError):
        load_csv('populations', csv)


def test_load_report_data_source_from_directory(tmp_path):
    _write(tmp_path / 'patient_visits.csv', (
        "id,hospitalCode,diseaseId,gender,ageAtIllness,illnessDate,patientCondition\n"
        f"V1,H001,{DENGUE_ID},MALE,5,2024-01-15,RECOVERED\n"
    ))
    _write(tmp_path / 'populations.csv', "year,hospitalCode,count\n2024,H001,1000\n")
    _write(tmp_path / 'hospitals.csv', "hospitalCode9eDigit,hospitalName,isActive\nH001,Alpha,true\nH002,Closed,false\n")
    _write(tmp_path / 'diseases.csv', f"id,thaiName,engName,shortName\n{DENGUE_ID},ไข้เลือดออก,Dengue,DHF\n")

    source = load_report_data_source(tmp_path)

    assert isinstance(source, FrameDataSource)
    assert [h.code for h in source.list_active_hospitals()] == ['H001']
    assert source.get_disease(DENGUE_ID).eng_name == 'Dengue'
    assert source.count_patient_visits() == 1
    assert int(source.populations['count'].sum()) == 1000
