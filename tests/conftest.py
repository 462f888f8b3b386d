# tests/conftest.py
"""
Shared fixtures: a small but complete set of the six district aggregates,
the corpus built from them, and a store/chat pair backed by tmp_path.
"""

from __future__ import annotations

import copy
import json

import pytest

from district_assistant.chat import DistrictChat
from district_assistant.documents import AGGREGATE_FILES, build_documents
from district_assistant.store import DocumentStore

AGGREGATES = {
    "graduation": {
        "overall": {"graduated": 0.876, "not_graduated": 0.124},
        "year": [
            {"label": "2021", "graduated": 0.86, "not_graduated": 0.14},
            {"label": "2022", "graduated": 0.88, "not_graduated": 0.12},
        ],
        "gender": [
            {"label": "Female", "graduated": 0.9, "not_graduated": 0.1},
            {"label": "Male", "graduated": 0.85, "not_graduated": 0.15},
        ],
        "federal_race_code": [
            {"label": "1", "graduated": 0.8, "not_graduated": 0.2},
            {"label": "4", "graduated": 0.82, "not_graduated": 0.18},
        ],
        "chronically_absent": [
            {"label": "chronically absent", "graduated": 0.6, "not_graduated": 0.4},
            {"label": "not chronically absent", "graduated": 0.92, "not_graduated": 0.08},
        ],
        "english_learner_flag": [
            {"label": "English learners", "graduated": 0.7, "not_graduated": 0.3},
        ],
        "frp_eligible_flag": [
            {"label": "FRP eligible", "graduated": 0.78, "not_graduated": 0.22},
            {"label": "Not FRP eligible", "graduated": 0.91, "not_graduated": 0.09},
        ],
        "special_education_flag": [
            {"label": "Special education", "graduated": 0.72, "not_graduated": 0.28},
        ],
    },
    "gpa": {
        "Overall": {
            "All": [
                {"Category": "3.5 and above", "Percent": 0.4, "Count": 120},
                {"Category": "Below 2.0", "Percent": 0.05, "Count": "Small count"},
            ]
        },
        "Year": {
            "2020": [{"Category": "3.5 and above", "Percent": 0.38, "Count": 55}],
            "2021": [{"Category": "3.5 and above", "Percent": 0.42, "Count": 65}],
        },
        "Gender": {
            "Female": [{"Category": "3.5 and above", "Percent": 0.45, "Count": 70}],
            "Male": [{"Category": "3.5 and above", "Percent": 0.35, "Count": 50}],
        },
    },
    "demographics": {
        "Overall": [
            {"Category": "1", "Percent": 0.2, "Count": 50},
            {"Category": "6", "Percent": 0.8, "Count": 200},
        ],
        "School Number": {
            "41": [{"Category": "6", "Percent": 1.0, "Count": "Small count"}],
            "12": [{"Category": "1", "Percent": 0.25, "Count": 30}],
        },
    },
    "frp": {
        "Overall": [
            {"Category": "Free", "Percent": 0.3, "Count": 90},
            {"Category": "Paid", "Percent": 0.7, "Count": 210},
        ],
        "Year": {
            "2022": [{"Category": "Free", "Percent": 0.31, "Count": 45}],
        },
    },
    "staff": {
        "overall": [
            {"label": "0-4 years", "percent": 0.5, "count": 40},
            {"label": "40+ years", "percent": 0.01, "count": None},
        ],
        "race": [{"label": "6", "percent": 0.9, "count": 72}],
        "gender": [
            {"label": "Female", "percent": 0.75, "count": 60},
            {"label": "Male", "percent": 0.25, "count": 20},
        ],
        "category": [{"label": "Licensed Teacher", "percent": 0.6, "count": 48}],
        "year": [
            {"label": "2022", "percent": 0.5, "count": 40},
            {"label": "2023", "percent": 0.5, "count": 40},
        ],
        "highest_degree": [
            {"label": "MASTERS DEGREE", "percent": 0.4, "count": 32},
            {"label": "MASTERS PLUS 30", "percent": 0.1, "count": 8},
            {"label": "BACHELORS DEGREE", "percent": 0.45, "count": 36},
            {"label": "DOCTORATE", "percent": 0.05, "count": None},
        ],
    },
    "attendance": {
        "overall": {"percent": 0.153, "count": 412},
        "gender": [
            {"label": "Female", "percent": 0.14, "count": 180},
            {"label": "Male", "percent": 0.16, "count": 232},
        ],
        "school_id": [{"label": "41", "percent": 0.3, "count": None}],
        "trend": [
            {"label": "2022", "percent": 0.16, "count": 200},
            {"label": "2021", "percent": 0.15, "count": 190},
        ],
    },
}


@pytest.fixture
def aggregates():
    return copy.deepcopy(AGGREGATES)


@pytest.fixture
def documents(aggregates):
    return build_documents(aggregates)


@pytest.fixture
def docs_by_id(documents):
    return {doc.id: doc for doc in documents}


@pytest.fixture
def data_dir(tmp_path, aggregates):
    """The fixture aggregates written out as the six JSON files."""
    path = tmp_path / "data"
    path.mkdir()
    for dataset, filename in AGGREGATE_FILES.items():
        (path / filename).write_text(json.dumps(aggregates[dataset]))
    return path


@pytest.fixture
def store(tmp_path, documents):
    store = DocumentStore(tmp_path / "artifacts")
    store.save(documents)
    return store


@pytest.fixture
def chat(store):
    return DistrictChat(store)
