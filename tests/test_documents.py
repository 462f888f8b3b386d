# tests/test_documents.py
"""Document builder: text templates, masking, failure isolation."""

import json
import re
from collections import Counter

import pytest

from district_assistant.data_dictionary import DATASET_BREAKDOWNS, DATASETS
from district_assistant.documents import (
    FALLBACK_ID,
    build_documents,
    load_aggregates,
    safe_percent,
    slug,
    to_count,
)


def test_graduation_overall_text_and_metadata(docs_by_id):
    doc = docs_by_id["graduation:overall"]
    assert doc.text == "Overall graduation outcomes: 87.6% graduated and 12.4% did not graduate."
    assert doc.metadata["graduated"] == 0.876
    assert doc.metadata["not_graduated"] == 0.124
    assert doc.metadata["breakdown"] == "overall"


def test_one_overall_document_per_dataset(documents):
    overall = Counter(d.dataset for d in documents if d.breakdown == "overall")
    assert overall == {dataset: 1 for dataset in DATASETS}

    ids = {d.id for d in documents if d.breakdown == "overall"}
    for dataset in DATASETS:
        assert any(i == f"{dataset}:overall" or i.startswith(f"{dataset}:overall:") for i in ids)


def test_breakdowns_are_recognized_for_their_dataset(documents):
    for doc in documents:
        assert doc.breakdown in DATASET_BREAKDOWNS[doc.dataset], doc.id


def test_ids_are_unique(documents):
    ids = [d.id for d in documents]
    assert len(ids) == len(set(ids))


def test_percentages_have_one_decimal(documents):
    for doc in documents:
        for pct in re.findall(r"[\d.]+%", doc.text):
            assert re.fullmatch(r"\d+\.\d%", pct), (doc.id, pct)


def test_masked_counts_are_never_numbers(docs_by_id):
    gpa = docs_by_id["gpa:overall"]
    assert gpa.text == "Overall GPA distribution: 40.0% 3.5 and above (120), 5.0% Below 2.0 (masked)."
    assert gpa.metadata["counts"] == [120, None]

    school = docs_by_id["demographics:school_id:41"]
    assert school.text == "Race composition by school id for 41: code 6: 100.0%."

    absent = docs_by_id["attendance:school_id:41"]
    assert "n=" not in absent.text
    assert absent.metadata["count"] is None


def test_staff_tenure_reports_percent_for_masked_rows(docs_by_id):
    doc = docs_by_id["staff:overall:tenure"]
    assert doc.text == (
        "Staff tenure distribution: 50.0% have 0-4 years (40), 1.0% have 40+ years (masked). "
        "Counts for 40+ years are masked."
    )


def test_staff_degree_groups(docs_by_id):
    doc = docs_by_id["staff:degree"]
    assert "50.0% of staff hold a Master’s degree (40)" in doc.text
    assert "45.0% of staff hold a Bachelor’s degree (36)" in doc.text
    assert "5.0% of staff hold a Doctorate degree (masked)" in doc.text
    assert doc.text.endswith("Some sub-categories are masked due to low counts.")
    assert doc.metadata["breakdown"] == "highest_degree"


def test_attendance_trend_rows_become_year_documents(docs_by_id):
    doc = docs_by_id["attendance:year:2021"]
    assert doc.text == "Chronic absenteeism in 2021: 15.0% (n=190)."
    assert doc.metadata["breakdown"] == "year"
    assert docs_by_id["attendance:overall"].text == "Chronic absenteeism overall: 15.3% (n=412)."


def test_build_is_deterministic(aggregates):
    first = json.dumps([d.to_dict() for d in build_documents(aggregates)])
    second = json.dumps([d.to_dict() for d in build_documents(aggregates)])
    assert first == second


def test_missing_dataset_is_skipped(aggregates):
    aggregates["gpa"] = None
    docs = build_documents(aggregates)
    datasets = {d.dataset for d in docs}
    assert "gpa" not in datasets
    assert "graduation" in datasets


def test_malformed_dataset_does_not_break_the_corpus(aggregates, caplog):
    aggregates["graduation"]["year"] = [{"no_label": 1}]
    docs = build_documents(aggregates)
    assert not any(d.dataset == "graduation" for d in docs)
    assert any(d.dataset == "attendance" for d in docs)
    assert "Failed to build graduation documents" in caplog.text


def test_fallback_document_when_nothing_builds():
    docs = build_documents({})
    assert [d.id for d in docs] == [FALLBACK_ID]
    assert "graduation" in docs[0].text


def test_colliding_ids_get_a_suffix(aggregates):
    aggregates["graduation"]["gender"].append(
        {"label": "female", "graduated": 0.5, "not_graduated": 0.5}
    )
    ids = [d.id for d in build_documents(aggregates)]
    assert "graduation:gender:female" in ids
    assert "graduation:gender:female-2" in ids


def test_load_aggregates_isolates_bad_files(tmp_path, aggregates):
    (tmp_path / "graduation.json").write_text(json.dumps(aggregates["graduation"]))
    (tmp_path / "gpa.json").write_text("{not json")
    (tmp_path / "staff.json").write_text("[1, 2, 3]")

    loaded = load_aggregates(tmp_path)
    assert loaded["graduation"] == aggregates["graduation"]
    assert loaded["gpa"] is None
    assert loaded["staff"] is None
    assert loaded["attendance"] is None


@pytest.mark.parametrize(
    "raw, expected",
    [(12, 12), ("15", 15), ("Small count", None), (None, None), (True, None), ("n/a", None), ("1,234", 1234)],
)
def test_to_count(raw, expected):
    assert to_count(raw) == expected


def test_safe_percent_passes_through_text():
    assert safe_percent(0.5) == "50.0%"
    assert safe_percent("n/a") == "n/a"


def test_slug():
    assert slug("Not FRP eligible") == "not-frp-eligible"
    assert slug(" 'Grade 9' ") == "grade-9"
