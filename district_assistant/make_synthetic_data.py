"""
district_assistant/make_synthetic_data.py

Creates realistic-looking district aggregates for demos and local runs.
Student and staff records are synthesized first, then aggregated into the
same six JSON shapes the district's reporting exports use.

Small cells (fewer than MASK_THRESHOLD people) have their counts masked,
the way the district suppresses them before publishing.

Outputs:
  data/graduation.json, data/gpa.json, data/demographics.json,
  data/frp.json, data/staff.json, data/attendance.json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from district_assistant.data_dictionary import RACE_CODES, SCHOOL_CODES
from district_assistant.documents import AGGREGATE_FILES, DATA_DIR

MASK_THRESHOLD = 10
MASKED_COUNT = "Small count"

YEARS = ["2019", "2020", "2021", "2022", "2023"]
GPA_BANDS = ["Below 2.0", "2.0-2.99", "3.0-3.49", "3.5 and above"]
FRP_STATUSES = ["Free", "Reduced", "Paid"]


def sigmoid(x: np.ndarray) -> np.ndarray:
    return 1 / (1 + np.exp(-x))


def generate_student_records(n_students: int = 6000, random_state: int = 42) -> pd.DataFrame:
    rng = np.random.default_rng(random_state)

    race_codes = list(RACE_CODES)
    school_ids = list(SCHOOL_CODES)

    year = rng.choice(YEARS, size=n_students)
    gender = rng.choice(["Female", "Male"], size=n_students)
    race = rng.choice(race_codes, size=n_students, p=[0.14, 0.01, 0.09, 0.12, 0.005, 0.575, 0.06])
    grade = rng.integers(0, 13, size=n_students)
    school_id = rng.choice(school_ids, size=n_students)
    frp = rng.choice(FRP_STATUSES, size=n_students, p=[0.28, 0.07, 0.65])
    ell = rng.binomial(1, 0.10, size=n_students)
    sped = rng.binomial(1, 0.13, size=n_students)

    # Chronic absence is more likely for FRP-eligible students and in later grades.
    absence_risk = -2.0 + 0.8 * (frp != "Paid") + 0.08 * grade + rng.normal(0, 0.6, size=n_students)
    chronically_absent = rng.binomial(1, sigmoid(absence_risk))

    gpa = np.clip(
        rng.normal(3.1, 0.55, size=n_students)
        - 0.45 * chronically_absent
        - 0.15 * (frp != "Paid"),
        0.0,
        4.0,
    )

    grad_score = 2.6 - 1.6 * chronically_absent - 0.5 * ell - 0.4 * sped + 0.9 * (gpa - 3.0)
    graduated = rng.binomial(1, sigmoid(grad_score))

    df = pd.DataFrame(
        {
            "year": year,
            "gender": gender,
            "race": race,
            "grade": grade,
            "school_id": school_id,
            "frp": frp,
            "english_learner": ell,
            "special_education": sped,
            "chronically_absent": chronically_absent,
            "gpa": np.round(gpa, 2),
            "graduated": graduated,
        }
    )
    df["grade_group"] = pd.cut(
        df["grade"], bins=[-1, 5, 8, 12], labels=["Elementary (K-5)", "Middle (6-8)", "High (9-12)"]
    ).astype(str)
    df["gpa_band"] = pd.cut(df["gpa"], bins=[-0.01, 1.99, 2.99, 3.49, 4.0], labels=GPA_BANDS).astype(str)
    return df


def generate_staff_records(n_staff: int = 900, random_state: int = 7) -> pd.DataFrame:
    rng = np.random.default_rng(random_state)
    return pd.DataFrame(
        {
            "year": rng.choice(YEARS, size=n_staff),
            "gender": rng.choice(["Female", "Male"], size=n_staff, p=[0.74, 0.26]),
            "race": rng.choice(list(RACE_CODES), size=n_staff, p=[0.04, 0.004, 0.03, 0.05, 0.001, 0.86, 0.015]),
            "category": rng.choice(
                ["Licensed Teacher", "Paraprofessional", "Administrator", "Support Staff"],
                size=n_staff,
                p=[0.58, 0.2, 0.05, 0.17],
            ),
            "tenure": rng.choice(
                ["0-4 years", "5-9 years", "10-19 years", "20+ years", "40+ years"],
                size=n_staff,
                p=[0.3, 0.25, 0.3, 0.144, 0.006],
            ),
            "highest_degree": rng.choice(
                ["BACHELORS DEGREE", "MASTERS DEGREE", "MASTERS PLUS 30", "SPECIALIST", "DOCTORATE"],
                size=n_staff,
                p=[0.38, 0.42, 0.14, 0.05, 0.01],
            ),
        }
    )


# ---------------------------------------------------------------------
# Aggregation helpers
# ---------------------------------------------------------------------

def mask(count: int, sentinel=MASKED_COUNT):
    return sentinel if count < MASK_THRESHOLD else int(count)


def distribution_rows(series: pd.Series, categories: Optional[List[str]] = None) -> List[Dict]:
    """[{Category, Percent, Count}] for one categorical column."""
    counts = series.value_counts()
    if categories is None:
        categories = sorted(counts.index, key=str)
    total = int(counts.sum())
    rows = []
    for cat in categories:
        n = int(counts.get(cat, 0))
        rows.append(
            {
                "Category": str(cat),
                "Percent": round(n / total, 4) if total else 0.0,
                "Count": mask(n),
            }
        )
    return rows


def grouped_distribution(df: pd.DataFrame, group_col: str, value_col: str, categories=None) -> Dict:
    return {
        str(label): distribution_rows(group[value_col], categories)
        for label, group in df.groupby(group_col, sort=True)
    }


def rate_rows(df: pd.DataFrame, group_col: str, flag_col: str, labels: Optional[Dict] = None) -> List[Dict]:
    """[{label, graduated, not_graduated}] for a binary outcome."""
    rows = []
    for key, group in df.groupby(group_col, sort=True):
        rate = round(float(group[flag_col].mean()), 3)
        rows.append(
            {
                "label": (labels or {}).get(key, str(key)),
                "graduated": rate,
                "not_graduated": round(1 - rate, 3),
            }
        )
    return rows


def percent_rows(df: pd.DataFrame, group_col: str, flag_col: str) -> List[Dict]:
    """[{label, percent, count}] where percent is the share with flag set."""
    rows = []
    for key, group in df.groupby(group_col, sort=True):
        n = int(group[flag_col].sum())
        rows.append(
            {
                "label": str(key),
                "percent": round(float(group[flag_col].mean()), 3),
                "count": mask(n, sentinel=None),
            }
        )
    return rows


def share_rows(series: pd.Series) -> List[Dict]:
    """[{label, percent, count}] share of each value."""
    counts = series.value_counts().sort_index()
    total = int(counts.sum())
    return [
        {"label": str(k), "percent": round(int(v) / total, 4), "count": mask(int(v), sentinel=None)}
        for k, v in counts.items()
    ]


# ---------------------------------------------------------------------
# Dataset aggregates
# ---------------------------------------------------------------------

def aggregate_graduation(students: pd.DataFrame) -> Dict:
    seniors = students[students["grade"] == 12]
    rate = round(float(seniors["graduated"].mean()), 3)
    return {
        "overall": {"graduated": rate, "not_graduated": round(1 - rate, 3)},
        "year": rate_rows(seniors, "year", "graduated"),
        "gender": rate_rows(seniors, "gender", "graduated"),
        "federal_race_code": rate_rows(seniors, "race", "graduated"),
        "chronically_absent": rate_rows(
            seniors, "chronically_absent", "graduated",
            labels={0: "not chronically absent", 1: "chronically absent"},
        ),
        "english_learner_flag": rate_rows(
            seniors, "english_learner", "graduated",
            labels={0: "Non-English learners", 1: "English learners"},
        ),
        "frp_eligible_flag": rate_rows(
            seniors.assign(frp_eligible=(seniors["frp"] != "Paid").astype(int)),
            "frp_eligible", "graduated",
            labels={0: "Not FRP eligible", 1: "FRP eligible"},
        ),
        "special_education_flag": rate_rows(
            seniors, "special_education", "graduated",
            labels={0: "General education", 1: "Special education"},
        ),
    }


def aggregate_gpa(students: pd.DataFrame) -> Dict:
    high = students[students["grade"] >= 9].assign(
        absent_label=lambda d: d["chronically_absent"].map({0: "Not chronically absent", 1: "Chronically absent"})
    )
    return {
        "Overall": {"All": distribution_rows(high["gpa_band"], GPA_BANDS)},
        "Year": grouped_distribution(high, "year", "gpa_band", GPA_BANDS),
        "Gender": grouped_distribution(high, "gender", "gpa_band", GPA_BANDS),
        "Grade": grouped_distribution(high, "grade", "gpa_band", GPA_BANDS),
        "Race": grouped_distribution(high, "race", "gpa_band", GPA_BANDS),
        "Chronically Absent": grouped_distribution(high, "absent_label", "gpa_band", GPA_BANDS),
    }


def aggregate_demographics(students: pd.DataFrame) -> Dict:
    races = list(RACE_CODES)
    students = students.assign(
        absent_label=lambda d: d["chronically_absent"].map({0: "No", 1: "Yes"})
    )
    return {
        "Overall": distribution_rows(students["race"], races),
        "Year": grouped_distribution(students, "year", "race", races),
        "Gender": grouped_distribution(students, "gender", "race", races),
        "Grade Group": grouped_distribution(students, "grade_group", "race", races),
        "FRP": grouped_distribution(students, "frp", "race", races),
        "Chronic Absenteesim": grouped_distribution(students, "absent_label", "race", races),
        "School Number": grouped_distribution(students, "school_id", "race", races),
    }


def aggregate_frp(students: pd.DataFrame) -> Dict:
    students = students.assign(
        absent_label=lambda d: d["chronically_absent"].map({0: "No", 1: "Yes"})
    )
    return {
        "Overall": distribution_rows(students["frp"], FRP_STATUSES),
        "Year": grouped_distribution(students, "year", "frp", FRP_STATUSES),
        "Gender": grouped_distribution(students, "gender", "frp", FRP_STATUSES),
        "Grade group": grouped_distribution(students, "grade_group", "frp", FRP_STATUSES),
        "Race": grouped_distribution(students, "race", "frp", FRP_STATUSES),
        "School Number": grouped_distribution(students, "school_id", "frp", FRP_STATUSES),
        "Chronic Absenteeism": grouped_distribution(students, "absent_label", "frp", FRP_STATUSES),
    }


def aggregate_staff(staff: pd.DataFrame) -> Dict:
    return {
        "overall": share_rows(staff["tenure"]),
        "race": share_rows(staff["race"]),
        "gender": share_rows(staff["gender"]),
        "category": share_rows(staff["category"]),
        "year": share_rows(staff["year"]),
        "highest_degree": share_rows(staff["highest_degree"]),
    }


def aggregate_attendance(students: pd.DataFrame) -> Dict:
    n_absent = int(students["chronically_absent"].sum())
    return {
        "overall": {
            "percent": round(float(students["chronically_absent"].mean()), 3),
            "count": mask(n_absent, sentinel=None),
        },
        "gender": percent_rows(students, "gender", "chronically_absent"),
        "race": percent_rows(students, "race", "chronically_absent"),
        "grade_group": percent_rows(students, "grade_group", "chronically_absent"),
        "school_id": percent_rows(students, "school_id", "chronically_absent"),
        "trend": percent_rows(students, "year", "chronically_absent"),
    }


def generate_aggregates(random_state: int = 42) -> Dict[str, Dict]:
    students = generate_student_records(random_state=random_state)
    staff = generate_staff_records(random_state=random_state + 1)
    return {
        "graduation": aggregate_graduation(students),
        "gpa": aggregate_gpa(students),
        "demographics": aggregate_demographics(students),
        "frp": aggregate_frp(students),
        "staff": aggregate_staff(staff),
        "attendance": aggregate_attendance(students),
    }


def main() -> None:
    out_dir = DATA_DIR
    out_dir.mkdir(parents=True, exist_ok=True)

    aggregates = generate_aggregates(random_state=42)
    for dataset, data in aggregates.items():
        out_path = out_dir / AGGREGATE_FILES[dataset]
        out_path.write_text(json.dumps(data, indent=2))
        print(f"Wrote {dataset} aggregate to {out_path}")

    # Print quick quality checks
    print("Graduation rate:", aggregates["graduation"]["overall"]["graduated"])
    print("Chronic absenteeism rate:", aggregates["attendance"]["overall"]["percent"])


if __name__ == "__main__":
    main()
