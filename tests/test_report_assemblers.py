# epireport/tests/test_report_assemblers.py
# END-TO-END REPORT ASSEMBLY TESTS

from datetime import date

import pandas as pd
import pytest

from analytics import (
    get_age_groups_report,
    get_disease_options,
    get_gender_ratio_report,
    get_hospital_options,
    get_incidence_rates_report,
    get_occupation_report,
    get_public_stats,
    get_trend_report,
)
from config import settings
from data_processing import FrameDataSource, InvalidFilterError, NotFoundError
from conftest import DENGUE_ID, FLU_ID, INACTIVE_ID, TODAY, UNKNOWN_ID

ALL_REPORTS = [get_age_groups_report, get_gender_ratio_report, get_incidence_rates_report, get_occupation_report, get_trend_report]

# --- Shared Behaviour ---
@pytest.mark.parametrize("report", ALL_REPORTS)
@pytest.mark.parametrize("disease_id", [UNKNOWN_ID, INACTIVE_ID])
def test_unknown_or_inactive_disease_is_not_found(report, disease_id, data_source):
    with pytest.raises(NotFoundError):
        report({'diseaseId': disease_id}, source=data_source, today=TODAY)


@pytest.mark.parametrize("report", ALL_REPORTS)
def test_unknown_disease_is_reported_before_bad_filters(report, data_source):
    with pytest.raises(NotFoundError):
        report({'diseaseId': UNKNOWN_ID, 'year': 'not-a-year', 'gender': 'ROBOT'}, source=data_source, today=TODAY)


def test_known_disease_still_validates_filters(data_source):
    with pytest.raises(InvalidFilterError):
        get_gender_ratio_report({'diseaseId': DENGUE_ID, 'year': 'not-a-year'}, source=data_source, today=TODAY)


@pytest.mark.parametrize("report", ALL_REPORTS)
def test_payload_echoes_disease_and_filters(report, data_source, dengue_2024):
    payload = report(dengue_2024, source=data_source, today=TODAY)
    assert payload['disease']['eng_name'] == 'Dengue fever'
    assert payload['filters']['disease_id'] == DENGUE_ID
    assert payload['filters']['year'] == 2024


def test_failed_fetch_propagates(data_source, dengue_2024):
    class BrokenSource(FrameDataSource):
        def fetch_populations(self, flt):
            raise ConnectionError("population store unavailable")

    broken = BrokenSource(visits=data_source.visits, populations=data_source.populations,
                          hospitals=data_source.hospitals, diseases=data_source.diseases)
    with pytest.raises(ConnectionError):
        get_incidence_rates_report(dengue_2024, source=broken, today=TODAY)

# --- Age Groups ---
def test_age_groups_report(data_source, dengue_2024):
    report = get_age_groups_report(dengue_2024, source=data_source, today=TODAY)

    assert report['summary']['total_patients'] == 7
    assert report['summary']['total_population'] == 15000
    assert report['summary']['has_population_data'] is True
    assert [g['age_group'] for g in report['age_groups']] == ['<1', '1-4', '5-9', '15-24', '35-44', '55-64', '65+']
    assert all(g['count'] > 0 for g in report['age_groups'])
    assert report['age_groups'][0] == {'age_group': '<1', 'count': 1, 'percentage': 14.29, 'incidence_rate': 6.67}
    assert abs(sum(g['percentage'] for g in report['age_groups']) - 100) <= 0.5


def test_age_groups_report_gender_split(data_source, dengue_2024):
    by_gender = get_age_groups_report(dengue_2024, source=data_source, today=TODAY)['by_gender']
    first_band = [row for row in by_gender if row['group_value'] == '1-4']
    assert first_band == [
        {'group_key': 'age_group_male', 'group_value': '1-4', 'count': 1},
        {'group_key': 'age_group_female', 'group_value': '1-4', 'count': 0},
    ]

# --- Gender Ratio ---
def test_gender_ratio_report(data_source, dengue_2024):
    report = get_gender_ratio_report(dengue_2024, source=data_source, today=TODAY)

    assert report['summary'] == {
        'total': 7, 'male': 3, 'female': 2, 'other': 1, 'not_specified': 1,
        'total_population': 15000, 'has_population_data': True,
    }
    assert report['ratio'] == {'male': 1.5, 'female': 1}
    assert report['simplified_ratio']['ratio_text'] == '3:2'
    assert report['percentages'] == {'male': 42.86, 'female': 28.57, 'other': 14.29, 'not_specified': 14.29}


def test_gender_ratio_report_ignores_gender_filter(data_source):
    report = get_gender_ratio_report({'diseaseId': DENGUE_ID, 'year': 2024, 'gender': 'FEMALE'}, source=data_source, today=TODAY)
    assert report['summary']['total'] == 7
    assert report['filters']['gender'] == 'all'


def test_gender_ratio_reference_split():
    """30 male and 20 female patients."""
    visits = pd.DataFrame({
        'id': [f'v{i}' for i in range(50)],
        'hospital_code': 'H001',
        'disease_id': DENGUE_ID,
        'gender': ['MALE'] * 30 + ['FEMALE'] * 20,
        'age_at_illness': 30,
        'illness_date': '2024-03-01',
    })
    source = FrameDataSource(visits=visits, diseases=pd.DataFrame([{'id': DENGUE_ID, 'thai_name': 'ก'}]))
    report = get_gender_ratio_report({'diseaseId': DENGUE_ID, 'year': 2024}, source=source, today=TODAY)

    assert report['ratio'] == {'male': 1.5, 'female': 1}
    assert report['percentages']['male'] == 60
    assert report['percentages']['female'] == 40
    assert report['summary']['has_population_data'] is False

# --- Incidence ---
def test_incidence_report_summary(data_source, dengue_2024):
    summary = get_incidence_rates_report(dengue_2024, source=data_source, today=TODAY)['summary']
    assert summary == {
        'total_population': 15000,
        'total_patients': 7,
        'deaths': 2,
        'incidence_rate': 46.67,
        'mortality_rate': 13.33,
        'case_fatality_rate': 28.57,
        'has_population_data': True,
        'population_note': None,
    }


def test_incidence_report_hospital_breakdown(data_source, dengue_2024):
    hospitals = get_incidence_rates_report(dengue_2024, source=data_source, today=TODAY)['hospitals']

    assert [h['hospital_code'] for h in hospitals] == ['H001', 'H002']   # H003 has no patients
    alpha, beta = hospitals
    assert alpha == {
        'hospital_code': 'H001', 'hospital_name': 'Alpha Hospital', 'population': 10000, 'patients': 5,
        'deaths': 1, 'incidence_rate': 50.0, 'mortality_rate': 10.0, 'case_fatality_rate': 20.0,
        'has_population_data': True,
    }
    assert beta['patients'] == 2 and beta['deaths'] == 1
    assert beta['has_population_data'] is False
    assert beta['incidence_rate'] == 0


def test_incidence_report_population_details(data_source, dengue_2024):
    details = get_incidence_rates_report(dengue_2024, source=data_source, today=TODAY)['population_details']
    assert details['total_records_with_data'] == 2
    assert details['years_covered'] == [2024]
    assert "100,000" in details['note']


def test_incidence_report_without_population_is_soft(data_source):
    report = get_incidence_rates_report({'diseaseId': DENGUE_ID, 'year': 2024, 'hospitalCode': 'H002'}, source=data_source, today=TODAY)
    summary = report['summary']
    assert summary['total_patients'] == 2
    assert summary['has_population_data'] is False
    assert summary['incidence_rate'] == 0 and summary['mortality_rate'] == 0
    assert summary['population_note'] == settings.POPULATION_NOTE
    assert summary['case_fatality_rate'] == 50.0


def test_incidence_reference_rates():
    """100 patients, 5 deaths and a population of 10,000."""
    visits = pd.DataFrame({
        'id': [f'v{i}' for i in range(100)],
        'hospital_code': 'H001',
        'disease_id': DENGUE_ID,
        'gender': 'MALE',
        'age_at_illness': 40,
        'illness_date': '2024-04-01',
        'patient_condition': ['DIED'] * 5 + ['RECOVERED'] * 95,
    })
    source = FrameDataSource(
        visits=visits,
        populations=pd.DataFrame([{'year': 2024, 'hospital_code': 'H001', 'count': 10000, 'is_active': True}]),
        hospitals=pd.DataFrame([{'code': 'H001', 'name': 'Alpha Hospital', 'is_active': True}]),
        diseases=pd.DataFrame([{'id': DENGUE_ID, 'thai_name': 'ก'}]),
    )
    summary = get_incidence_rates_report({'diseaseId': DENGUE_ID, 'year': 2024}, source=source, today=TODAY)['summary']

    assert summary['incidence_rate'] == 1000.0
    assert summary['mortality_rate'] == 50.0
    assert summary['case_fatality_rate'] == 5.0


@pytest.fixture
def numeric_code_source():
    """Hospital codes stored as integers in every frame, with padding on the population side."""
    visits = pd.DataFrame({
        'id': ['n1', 'n2'],
        'hospital_code': [10669, 10669],
        'disease_id': DENGUE_ID,
        'gender': 'FEMALE',
        'age_at_illness': 20,
        'illness_date': '2024-05-01',
    })
    return FrameDataSource(
        visits=visits,
        populations=pd.DataFrame([
            {'year': 2024, 'hospital_code': 10669, 'count': 1000, 'is_active': True},
            {'year': 2024, 'hospital_code': ' 20001 ', 'count': 500, 'is_active': True},
        ]),
        hospitals=pd.DataFrame([{'code': 10669, 'name': 'Numeric Hospital', 'is_active': True}]),
        diseases=pd.DataFrame([{'id': DENGUE_ID, 'thai_name': 'ก'}]),
    )


def test_incidence_matches_numeric_hospital_codes(numeric_code_source):
    report = get_incidence_rates_report({'diseaseId': DENGUE_ID, 'year': 2024}, source=numeric_code_source, today=TODAY)
    assert report['summary']['total_population'] == 1500
    assert report['hospitals'] == [{
        'hospital_code': '10669', 'hospital_name': 'Numeric Hospital', 'population': 1000, 'patients': 2,
        'deaths': 0, 'incidence_rate': 200.0, 'mortality_rate': 0.0, 'case_fatality_rate': 0.0,
        'has_population_data': True,
    }]


@pytest.mark.parametrize("hospital_code", ['10669', 10669, ' 10669 '])
def test_hospital_filter_keeps_numeric_code_population(hospital_code, numeric_code_source):
    summary = get_incidence_rates_report(
        {'diseaseId': DENGUE_ID, 'year': 2024, 'hospitalCode': hospital_code}, source=numeric_code_source, today=TODAY,
    )['summary']
    assert summary['total_patients'] == 2
    assert summary['total_population'] == 1000
    assert summary['has_population_data'] is True
    assert summary['population_note'] is None

# --- Occupation ---
def test_occupation_report(data_source):
    report = get_occupation_report({'diseaseId': DENGUE_ID, 'year': 2024, 'occupation': 'FARMER'}, source=data_source, today=TODAY)

    assert report['summary'] == {'total_patients': 7, 'unique_occupations': 4}
    assert [(o['occupation'], o['count']) for o in report['occupations']] == [
        ('FARMER', 2), ('STUDENT', 2), ('UNSPECIFIED', 2), ('TRADER', 1),
    ]
    assert report['occupations'][0]['percentage'] == 28.57
    assert report['filters']['occupation'] == 'all'

# --- Trend ---
def test_monthly_trend_report(data_source, dengue_2024):
    report = get_trend_report(dengue_2024, period='month', source=data_source, today=TODAY)

    assert report['series'][0] == {'period': '2024-01', 'group_key': 'month', 'count': 2}
    assert report['summary'] == {
        'total_patients': 7, 'period': 'month', 'periods': 6, 'peak': {'period': '2024-01', 'count': 2},
    }


def test_quarterly_trend_across_years(data_source):
    report = get_trend_report({'diseaseId': DENGUE_ID, 'year': 'all'}, period='quarter', source=data_source, today=TODAY)
    assert [p['period'] for p in report['series']] == ['Q2-2023', 'Q1-2024', 'Q2-2024', 'Q3-2024', 'Q4-2024']


def test_trend_split_by_gender(data_source, dengue_2024):
    series = get_trend_report(dengue_2024, period='year', split_by_gender=True, source=data_source, today=TODAY)['series']
    assert series == [
        {'period': '2024', 'group_key': 'year_male', 'count': 3},
        {'period': '2024', 'group_key': 'year_female', 'count': 2},
    ]


@pytest.mark.parametrize("period", ['month', 'year'])
def test_trend_summary_does_not_depend_on_gender_split(period, data_source, dengue_2024):
    plain = get_trend_report(dengue_2024, period=period, source=data_source, today=TODAY)['summary']
    split = get_trend_report(dengue_2024, period=period, split_by_gender=True, source=data_source, today=TODAY)['summary']
    assert split == plain
    if period == 'year':
        assert split['peak'] == {'period': '2024', 'count': 7}


@pytest.mark.parametrize("period", ['hour', 'hospital'])
def test_trend_rejects_non_time_period(period, data_source, dengue_2024):
    with pytest.raises(InvalidFilterError):
        get_trend_report(dengue_2024, period=period, source=data_source, today=TODAY)

# --- Catalog & Public Stats ---
def test_disease_options_sorted_by_thai_name(data_source):
    options = get_disease_options(data_source)
    # 'ไข้หวัดใหญ่' sorts before 'ไข้เลือดออก' by code point.
    assert [o['id'] for o in options] == [FLU_ID, DENGUE_ID]
    assert INACTIVE_ID not in {o['id'] for o in options}


def test_hospital_options(data_source):
    options = get_hospital_options(data_source)
    assert options[0] == {'value': 'H001', 'label': 'Alpha Hospital', 'code': 'H001'}
    assert [o['code'] for o in options] == ['H001', 'H002', 'H003']


def test_public_stats(data_source):
    stats = get_public_stats(data_source, today=date(2024, 1, 20))
    assert stats == {'total_diseases': 2, 'total_patients': 9, 'current_month_patients': 2}
