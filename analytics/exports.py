# epireport/analytics/exports.py
# FLATTEN REPORT PAYLOADS INTO EXPORTABLE TABLES

from typing import Any, Dict, List, Tuple

import pandas as pd

# (payload key, column order) for every report breakdown, checked in order.
BREAKDOWN_LAYOUTS: List[Tuple[str, List[str]]] = [
    ('age_groups', ['age_group', 'count', 'percentage', 'incidence_rate']),
    ('hospitals', [
        'hospital_code', 'hospital_name', 'population', 'patients', 'deaths',
        'incidence_rate', 'mortality_rate', 'case_fatality_rate', 'has_population_data',
    ]),
    ('occupations', ['occupation', 'count', 'percentage']),
    ('series', ['period', 'group_key', 'count']),
]
GENDER_COLUMNS = ['gender', 'count', 'percentage']
GENDER_CATEGORIES = ['male', 'female', 'other', 'not_specified']


def _gender_rows(report: Dict[str, Any]) -> pd.DataFrame:
    summary, shares = report['summary'], report['percentages']
    rows = [{"gender": g, "count": summary.get(g, 0), "percentage": shares.get(g, 0.0)} for g in GENDER_CATEGORIES]
    return pd.DataFrame(rows, columns=GENDER_COLUMNS)


def report_to_frame(report: Dict[str, Any]) -> pd.DataFrame:
    """
    Returns the breakdown rows of any report payload as a DataFrame with a
    stable column order. The file format it is written to is up to the caller.
    """
    if 'ratio' in report and 'percentages' in report:
        return _gender_rows(report)
    for key, columns in BREAKDOWN_LAYOUTS:
        if key in report:
            return pd.DataFrame(report[key], columns=columns)
    raise ValueError(f"Unrecognized report payload with keys: {sorted(report)}")
