# tests/test_make_synthetic_data.py
"""Synthetic aggregates have the wire shapes the document builder reads."""

import pandas as pd
import pytest

from district_assistant.data_dictionary import DATASETS
from district_assistant.documents import FALLBACK_ID, build_documents
from district_assistant.make_synthetic_data import (
    MASKED_COUNT,
    distribution_rows,
    generate_aggregates,
    mask,
    rate_rows,
)


@pytest.fixture(scope="module")
def synthetic():
    return generate_aggregates(random_state=42)


def test_mask():
    assert mask(3) == MASKED_COUNT
    assert mask(3, sentinel=None) is None
    assert mask(12) == 12


def test_distribution_rows_keep_category_order():
    rows = distribution_rows(pd.Series(["a"] * 30 + ["b"] * 2), categories=["b", "a", "c"])
    assert [r["Category"] for r in rows] == ["b", "a", "c"]
    assert rows[1] == {"Category": "a", "Percent": 0.9375, "Count": 30}
    assert rows[0]["Count"] == MASKED_COUNT
    assert rows[2]["Percent"] == 0.0


def test_rate_rows():
    df = pd.DataFrame({"flag": [0, 0, 1, 1], "graduated": [1, 0, 1, 1]})
    rows = rate_rows(df, "flag", "graduated", labels={0: "no", 1: "yes"})
    assert rows == [
        {"label": "no", "graduated": 0.5, "not_graduated": 0.5},
        {"label": "yes", "graduated": 1.0, "not_graduated": 0.0},
    ]


def test_aggregates_are_deterministic(synthetic):
    assert generate_aggregates(random_state=42) == synthetic


def test_aggregates_build_a_full_corpus(synthetic):
    docs = build_documents(synthetic)
    assert FALLBACK_ID not in {d.id for d in docs}
    assert {d.dataset for d in docs} == set(DATASETS)
    assert any(d.breakdown == "year" for d in docs if d.dataset == "graduation")


def test_graduation_overall_shape(synthetic):
    overall = synthetic["graduation"]["overall"]
    assert 0.0 <= overall["graduated"] <= 1.0
    assert overall["graduated"] + overall["not_graduated"] == pytest.approx(1.0)
