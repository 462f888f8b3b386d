"""
district_assistant/documents.py

Purpose
-------
Turns the six pre-aggregated district datasets into a flat corpus of
`Document` records that the assistant can look up by id or metadata.

Each aggregate row (or group label) becomes exactly one document whose text
states the label, the metric as a one-decimal percentage and the count when
the count is reported. Small cells are masked upstream with a non-numeric
sentinel; those counts are rendered as "masked" or left out, never guessed.

Aggregate files expected in data/:
  - graduation.json, gpa.json, demographics.json,
    frp.json, staff.json, attendance.json
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from district_assistant.data_dictionary import DATASETS

logger = logging.getLogger(__name__)

DATA_DIR = Path("data")
AGGREGATE_FILES = {dataset: f"{dataset}.json" for dataset in DATASETS}

FALLBACK_ID = "general:fallback"


@dataclass(frozen=True)
class Document:
    """
    One retrievable fact about a dataset.

    `metadata` always carries `dataset` and `breakdown` for documents built
    here; documents read back from disk may lack them and are treated as
    having no dataset rather than as errors.
    """
    id: str
    text: str
    metadata: Dict = field(default_factory=dict)

    @property
    def dataset(self) -> Optional[str]:
        return self.metadata.get("dataset")

    @property
    def breakdown(self) -> Optional[str]:
        return self.metadata.get("breakdown")

    @property
    def label(self) -> Optional[str]:
        return self.metadata.get("label")

    def to_dict(self) -> Dict:
        return {"id": self.id, "text": self.text, "metadata": self.metadata}

    @classmethod
    def from_dict(cls, raw: Dict) -> "Document":
        metadata = raw.get("metadata")
        return cls(
            id=str(raw.get("id") or ""),
            text=str(raw.get("text") or ""),
            metadata=metadata if isinstance(metadata, dict) else {},
        )


# ---------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------

def _finite(value) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    return num if math.isfinite(num) else None


def safe_percent(value) -> str:
    """Render a 0-1 fraction as "NN.N%"; non-numeric values pass through as text."""
    num = _finite(value)
    if num is None:
        return str(value)
    return f"{num * 100:.1f}%"


def to_numeric(value) -> Optional[float]:
    return _finite(value)


def to_count(value) -> Optional[int]:
    """
    Parse a source count. Returns None for masked cells ("Small count",
    null) and for anything else that is not a number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        return int(value) if float(value).is_integer() else value
    text = str(value).strip().lower()
    if "small count" in text:
        return None
    match = re.match(r"[-+]?\d+", text.replace(",", ""))
    return int(match.group()) if match else None


def count_or_masked(value) -> str:
    count = to_count(value)
    return "masked" if count is None else str(count)


def slug(value) -> str:
    text = str(value).strip().lower()
    text = re.sub(r"['\"]", "", text)
    text = re.sub(r"[^a-z0-9]+", "-", text)
    return text.strip("-")


def nice(breakdown: str) -> str:
    return breakdown.replace("_", " ")


def _rows(container, key) -> List:
    rows = container.get(key) if isinstance(container, dict) else None
    return rows if isinstance(rows, list) else []


def _groups(container, key) -> Dict:
    group = container.get(key) if isinstance(container, dict) else None
    return group if isinstance(group, dict) else {}


def _join_and(parts: List[str]) -> str:
    if len(parts) <= 1:
        return "".join(parts)
    return ", ".join(parts[:-1]) + ", and " + parts[-1]


# ---------------------------------------------------------------------
# Graduation
# ---------------------------------------------------------------------

GRADUATION_TEMPLATES = {
    "year": "Graduation in {label}: {grad} graduated and {not_grad} did not graduate.",
    "gender": "Graduation by gender: {label} students graduated at {grad}, with {not_grad} not graduating.",
    "federal_race_code": "Graduation by race code {label}: {grad} graduated and {not_grad} did not graduate.",
    "chronically_absent": "Graduation by chronic absenteeism: among students {label}, {grad} graduated and {not_grad} did not graduate.",
    "english_learner_flag": "Graduation by English learner status: {label} had a {grad} graduation rate and {not_grad} did not graduate.",
    "frp_eligible_flag": "Graduation by FRP eligibility: {label} students graduated at {grad}, while {not_grad} did not graduate.",
    "special_education_flag": "Graduation by special education status: {label} students graduated at {grad}, with {not_grad} not graduating.",
}


def make_graduation_docs(data: Dict) -> List[Document]:
    overall = data.get("overall") or {}
    graduated, not_graduated = overall.get("graduated"), overall.get("not_graduated")
    docs = [
        Document(
            id="graduation:overall",
            text=(
                f"Overall graduation outcomes: {safe_percent(graduated)} graduated "
                f"and {safe_percent(not_graduated)} did not graduate."
            ),
            metadata={
                "dataset": "graduation",
                "breakdown": "overall",
                "graduated": to_numeric(graduated),
                "not_graduated": to_numeric(not_graduated),
            },
        )
    ]

    for breakdown, template in GRADUATION_TEMPLATES.items():
        for row in _rows(data, breakdown):
            label = row["label"]
            docs.append(
                Document(
                    id=f"graduation:{breakdown}:{slug(label)}",
                    text=template.format(
                        label=label,
                        grad=safe_percent(row.get("graduated")),
                        not_grad=safe_percent(row.get("not_graduated")),
                    ),
                    metadata={
                        "dataset": "graduation",
                        "breakdown": breakdown,
                        "label": str(label),
                        "graduated": to_numeric(row.get("graduated")),
                        "not_graduated": to_numeric(row.get("not_graduated")),
                    },
                )
            )
    return docs


# ---------------------------------------------------------------------
# Category distributions (GPA, demographics, FRP)
# ---------------------------------------------------------------------

def _distribution_metadata(rows: List[Dict]) -> Dict:
    return {
        "labels": [str(r["Category"]) for r in rows],
        "counts": [to_count(r.get("Count")) for r in rows],
        "percents": [to_numeric(r.get("Percent")) for r in rows],
    }


def _gpa_parts(rows: List[Dict]) -> List[str]:
    return [
        f"{safe_percent(r.get('Percent'))} {r['Category']} ({count_or_masked(r.get('Count'))})"
        for r in rows
    ]


def _code_parts(rows: List[Dict]) -> List[str]:
    parts = []
    for r in rows:
        count = to_count(r.get("Count"))
        tail = f" ({count})" if count is not None else ""
        parts.append(f"code {r['Category']}: {safe_percent(r.get('Percent'))}{tail}")
    return parts


def _category_parts(rows: List[Dict]) -> List[str]:
    parts = []
    for r in rows:
        count = to_count(r.get("Count"))
        tail = f" ({count})" if count is not None else ""
        parts.append(f"{r['Category']}: {safe_percent(r.get('Percent'))}{tail}")
    return parts


def _group_docs(
    dataset: str,
    group: Dict,
    breakdown: str,
    headline: str,
    format_parts: Callable[[List[Dict]], List[str]],
) -> List[Document]:
    docs = []
    for label, rows in group.items():
        rows = rows if isinstance(rows, list) else []
        parts = format_parts(rows) or ["no data available"]
        docs.append(
            Document(
                id=f"{dataset}:{breakdown}:{slug(label)}",
                text=f"{headline} by {nice(breakdown)} for {label}: {', '.join(parts)}.",
                metadata={
                    "dataset": dataset,
                    "breakdown": breakdown,
                    "label": str(label),
                    **_distribution_metadata(rows),
                },
            )
        )
    return docs


GPA_GROUPS = (
    ("Year", "year"),
    ("Gender", "gender"),
    ("Grade", "grade"),
    ("Race", "race"),
    ("Chronically Absent", "chronically_absent"),
)


def make_gpa_docs(data: Dict) -> List[Document]:
    rows = _rows(_groups(data, "Overall"), "All")
    parts = _gpa_parts(rows) or ["no data available"]
    docs = [
        Document(
            id="gpa:overall",
            text=f"Overall GPA distribution: {', '.join(parts)}.",
            metadata={"dataset": "gpa", "breakdown": "overall", **_distribution_metadata(rows)},
        )
    ]
    for key, breakdown in GPA_GROUPS:
        docs.extend(_group_docs("gpa", _groups(data, key), breakdown, "GPA distribution", _gpa_parts))
    return docs


# "Chronic Absenteesim" is how the upstream demographics export spells it.
DEMOGRAPHIC_GROUPS = (
    ("Year", "year"),
    ("Gender", "gender"),
    ("Grade Group", "grade_group"),
    ("FRP", "frp"),
    ("Chronic Absenteesim", "chronic_absenteeism"),
    ("School Number", "school_id"),
)


def make_demographics_docs(data: Dict) -> List[Document]:
    rows = _rows(data, "Overall")
    docs = [
        Document(
            id="demographics:overall:race",
            text=f"Overall race composition: {', '.join(_code_parts(rows))}.",
            metadata={"dataset": "demographics", "breakdown": "overall", **_distribution_metadata(rows)},
        )
    ]
    for key, breakdown in DEMOGRAPHIC_GROUPS:
        docs.extend(
            _group_docs("demographics", _groups(data, key), breakdown, "Race composition", _code_parts)
        )
    return docs


FRP_GROUPS = (
    ("Year", "year"),
    ("Gender", "gender"),
    ("Grade group", "grade_group"),
    ("Race", "race"),
    ("School Number", "school_id"),
    ("Chronic Absenteeism", "chronic_absenteeism"),
)


def make_frp_docs(data: Dict) -> List[Document]:
    rows = _rows(data, "Overall")
    docs = [
        Document(
            id="frp:overall",
            text=f"Overall FRP distribution: {', '.join(_category_parts(rows))}.",
            metadata={"dataset": "frp", "breakdown": "overall", **_distribution_metadata(rows)},
        )
    ]
    for key, breakdown in FRP_GROUPS:
        docs.extend(_group_docs("frp", _groups(data, key), breakdown, "FRP distribution", _category_parts))
    return docs


# ---------------------------------------------------------------------
# Staff (one document per breakdown)
# ---------------------------------------------------------------------

DEGREE_GROUPS = (
    ("Masters", "MASTER", "Master’s"),
    ("Bachelors", "BACHELOR", "Bachelor’s"),
    ("Specialist", "SPECIALIST", "Specialist"),
    ("Doctorate", "DOCTORATE", "Doctorate"),
)


def _staff_doc(doc_id: str, breakdown: str, text: str, rows: List[Dict], label_key="labels") -> Document:
    return Document(
        id=doc_id,
        text=text,
        metadata={
            "dataset": "staff",
            "breakdown": breakdown,
            label_key: [str(r["label"]) for r in rows],
            "counts": [to_count(r.get("count")) for r in rows],
            "percents": [to_numeric(r.get("percent")) for r in rows],
        },
    )


def make_staff_degree_doc(rows: List[Dict]) -> Document:
    totals = {name: {"percent": 0.0, "count": None, "masked": False} for name, _, _ in DEGREE_GROUPS}
    for r in rows:
        label = str(r.get("label") or "").upper()
        for name, needle, _ in DEGREE_GROUPS:
            if needle not in label:
                continue
            group = totals[name]
            group["percent"] += to_numeric(r.get("percent")) or 0.0
            count = to_count(r.get("count"))
            if count is None:
                group["masked"] = True
            else:
                group["count"] = (group["count"] or 0) + count
            break

    parts = []
    for name, _, spoken in DEGREE_GROUPS:
        group = totals[name]
        if group["count"] is not None:
            count = str(group["count"])
        elif group["masked"]:
            count = "masked"
        else:
            count = "0"
        parts.append(f"{safe_percent(group['percent'])} of staff hold a {spoken} degree ({count})")

    text = f"Highest degree attainment: {', '.join(parts)}."
    if any(group["masked"] for group in totals.values()):
        text += " Some sub-categories are masked due to low counts."

    names = [name for name, _, _ in DEGREE_GROUPS]
    return Document(
        id="staff:degree",
        text=text,
        metadata={
            "dataset": "staff",
            "breakdown": "highest_degree",
            "labels": names,
            "counts": [totals[n]["count"] for n in names],
            "percents": [round(totals[n]["percent"], 3) for n in names],
        },
    )


def make_staff_docs(data: Dict) -> List[Document]:
    tenure = _rows(data, "overall")
    tenure_parts = [
        f"{safe_percent(r.get('percent'))} have {r['label']} ({count_or_masked(r.get('count'))})"
        for r in tenure
    ]
    masked = [str(r["label"]) for r in tenure if to_count(r.get("count")) is None]
    tenure_text = f"Staff tenure distribution: {', '.join(tenure_parts)}."
    if masked:
        tenure_text += f" Counts for {' and '.join(masked)} are masked."

    race = _rows(data, "race")
    gender = _rows(data, "gender")
    category = _rows(data, "category")
    year = _rows(data, "year")

    return [
        _staff_doc("staff:overall:tenure", "overall", tenure_text, tenure, label_key="categories"),
        _staff_doc(
            "staff:race",
            "race",
            "Staff racial composition: "
            + _join_and(
                [f"code {r['label']} is {safe_percent(r.get('percent'))} ({count_or_masked(r.get('count'))})" for r in race]
            )
            + ".",
            race,
        ),
        _staff_doc(
            "staff:gender",
            "gender",
            "Staff gender distribution: "
            + " and ".join(
                f"{safe_percent(r.get('percent'))} are {str(r['label']).lower()} ({count_or_masked(r.get('count'))})"
                for r in gender
            )
            + ".",
            gender,
        ),
        _staff_doc(
            "staff:category",
            "category",
            "Staff role categories: "
            + _join_and(
                [f"{r['label']} {safe_percent(r.get('percent'))} ({count_or_masked(r.get('count'))})" for r in category]
            )
            + ".",
            category,
        ),
        _staff_doc(
            "staff:year",
            "year",
            "Staff counts by year: "
            + ", ".join(
                f"{count_or_masked(r.get('count'))} in {r['label']} ({safe_percent(r.get('percent'))})" for r in year
            )
            + ".",
            year,
            label_key="years",
        ),
        make_staff_degree_doc(_rows(data, "highest_degree")),
    ]


# ---------------------------------------------------------------------
# Attendance (chronic absenteeism)
# ---------------------------------------------------------------------

ATTENDANCE_ARRAYS = ("gender", "race", "grade_group", "school_id")


def _attendance_tail(count) -> str:
    count = to_count(count)
    return f" (n={count})" if count is not None else ""


def _attendance_doc(breakdown: str, row: Dict, text: str) -> Document:
    return Document(
        id=f"attendance:{breakdown}:{slug(row['label'])}",
        text=text,
        metadata={
            "dataset": "attendance",
            "breakdown": breakdown,
            "label": str(row["label"]),
            "percent": to_numeric(row.get("percent")),
            "count": to_count(row.get("count")),
        },
    )


def make_attendance_docs(data: Dict) -> List[Document]:
    overall = data.get("overall") or {}
    docs = [
        Document(
            id="attendance:overall",
            text=f"Chronic absenteeism overall: {safe_percent(overall.get('percent'))}{_attendance_tail(overall.get('count'))}.",
            metadata={
                "dataset": "attendance",
                "breakdown": "overall",
                "percent": to_numeric(overall.get("percent")),
                "count": to_count(overall.get("count")),
            },
        )
    ]
    for breakdown in ATTENDANCE_ARRAYS:
        for row in _rows(data, breakdown):
            text = (
                f"Chronic absenteeism by {nice(breakdown)}: {row['label']} at "
                f"{safe_percent(row.get('percent'))}{_attendance_tail(row.get('count'))}."
            )
            docs.append(_attendance_doc(breakdown, row, text))
    for row in _rows(data, "trend"):
        text = f"Chronic absenteeism in {row['label']}: {safe_percent(row.get('percent'))}{_attendance_tail(row.get('count'))}."
        docs.append(_attendance_doc("year", row, text))
    return docs


# ---------------------------------------------------------------------
# Corpus
# ---------------------------------------------------------------------

BUILDERS: Dict[str, Callable[[Dict], List[Document]]] = {
    "graduation": make_graduation_docs,
    "gpa": make_gpa_docs,
    "demographics": make_demographics_docs,
    "frp": make_frp_docs,
    "staff": make_staff_docs,
    "attendance": make_attendance_docs,
}


def fallback_document() -> Document:
    return Document(
        id=FALLBACK_ID,
        text=(
            "District data is not loaded right now. The assistant covers graduation outcomes, "
            "GPA distribution, student demographics, FRP eligibility, staff profiles and "
            "chronic absenteeism."
        ),
        metadata={"breakdown": "fallback"},
    )


def is_fallback_only(documents: List[Document]) -> bool:
    return len(documents) == 1 and documents[0].id == FALLBACK_ID


def _unique_ids(docs: List[Document]) -> List[Document]:
    seen: Dict[str, int] = {}
    out = []
    for doc in docs:
        if doc.id in seen:
            seen[doc.id] += 1
            new_id = f"{doc.id}-{seen[doc.id]}"
            logger.warning("Duplicate document id %s renamed to %s", doc.id, new_id)
            doc = Document(id=new_id, text=doc.text, metadata=doc.metadata)
        else:
            seen[doc.id] = 1
        out.append(doc)
    return out


def build_documents(aggregates: Dict[str, Optional[Dict]]) -> List[Document]:
    """
    Build the full corpus from the six aggregate objects.

    A dataset that is missing (None) or whose shape does not match is
    logged and skipped; the rest of the corpus is still built. If nothing
    could be built, a single fallback document is returned instead.
    """
    docs: List[Document] = []
    for dataset, builder in BUILDERS.items():
        data = aggregates.get(dataset)
        if not isinstance(data, dict):
            logger.warning("No aggregate data for %s; skipping its documents", dataset)
            continue
        try:
            docs.extend(builder(data))
        except (KeyError, TypeError, AttributeError, ValueError) as exc:
            logger.error("Failed to build %s documents: %r", dataset, exc)

    if not docs:
        logger.error("No documents could be built; using fallback document")
        return [fallback_document()]
    return _unique_ids(docs)


def load_aggregates(data_dir: Path = DATA_DIR) -> Dict[str, Optional[Dict]]:
    """
    Read the six aggregate JSON files.

    A file that is missing, unreadable or not a JSON object maps to None
    so the builder can skip that dataset.
    """
    aggregates: Dict[str, Optional[Dict]] = {}
    for dataset, filename in AGGREGATE_FILES.items():
        path = Path(data_dir) / filename
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.warning("Missing aggregate file %s", path)
            data = None
        except (OSError, ValueError) as exc:
            logger.error("Could not read aggregate file %s: %s", path, exc)
            data = None
        if data is not None and not isinstance(data, dict):
            logger.error("Aggregate file %s is not a JSON object", path)
            data = None
        aggregates[dataset] = data
    return aggregates
