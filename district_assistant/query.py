"""
district_assistant/query.py

Maps a free-text question to a structured intent using ordered
(pattern, value) rules. Within each table the first matching rule wins, so
precedence is the order of the table.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple


@dataclass
class Session:
    """What the conversation last talked about, for follow-up questions."""
    dataset: Optional[str] = None
    breakdown: Optional[str] = None
    label: Optional[str] = None

    def update(self, dataset: Optional[str], breakdown: Optional[str], label: Optional[str] = None) -> None:
        self.dataset = dataset
        self.breakdown = breakdown
        self.label = label

    def clear(self) -> None:
        self.update(None, None, None)


@dataclass(frozen=True)
class ParsedQuery:
    text: str
    dataset: Optional[str] = None
    breakdown: Optional[str] = None
    label: Optional[str] = None
    wants_trend: bool = False
    refers_previous: bool = False
    dataset_in_query: bool = False
    breakdown_in_query: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.text


# ---------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------

DATASET_RULES: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(r"\bgraduation\b|\bgraduates?\b"), "graduation"),
    (re.compile(r"\bgpa\b|grade point average"), "gpa"),
    (re.compile(r"demographic|\bdemo\b"), "demographics"),
    (re.compile(r"\bfrp\b|free|reduced"), "frp"),
    (re.compile(r"staff\b"), "staff"),
    (re.compile(r"attendance|absent|chronic"), "attendance"),
)


def _race(dataset):
    return "federal_race_code" if dataset == "graduation" else "race"


def _frp(dataset):
    # For the frp dataset itself "frp" names the dataset, not a breakdown.
    return {"graduation": "frp_eligible_flag", "demographics": "frp"}.get(dataset)


def _chronic(dataset):
    return {
        "graduation": "chronically_absent",
        "gpa": "chronically_absent",
        "demographics": "chronic_absenteeism",
        "frp": "chronic_absenteeism",
    }.get(dataset)


def _grade(dataset):
    return "grade" if dataset == "gpa" else "grade_group"


def _staff_only(breakdown):
    return lambda dataset: breakdown if dataset == "staff" else None


def _always(breakdown):
    return lambda dataset: breakdown


BREAKDOWN_RULES: Tuple[Tuple[re.Pattern, Callable[[Optional[str]], Optional[str]]], ...] = (
    (re.compile(r"race code|\brace\b"), _race),
    (re.compile(r"gender|male|female"), _always("gender")),
    (re.compile(r"year|\b20\d{2}"), _always("year")),
    (re.compile(r"chronically[ _]absent|chronic absenteeism"), _chronic),
    (re.compile(r"english\s*learner"), _always("english_learner_flag")),
    (re.compile(r"special\s*education"), _always("special_education_flag")),
    (re.compile(r"school\s*(?:id|number)|\bby school\b|\bschool\s+\d+"), _always("school_id")),
    (re.compile(r"\bfrp\b"), _frp),
    (re.compile(r"grade group|\bgrade\b(?!\s+point)"), _grade),
    (re.compile(r"\broles?\b"), _staff_only("category")),
    (re.compile(r"degree"), _staff_only("highest_degree")),
)

LABEL_RULES: Tuple[Tuple[re.Pattern, Optional[re.Pattern]], ...] = (
    # (pattern whose group 1 is the label, guard that must also match)
    (re.compile(r"\brace\s*(?:code)?\s*(\d+)\b"), None),
    (re.compile(r"(?<!\w)[\"']([^\"']+)[\"'](?!\w)"), None),
    (re.compile(r"\b(\d{1,2})\b"), re.compile(r"race|code")),
    (re.compile(r"\bschool\s*(?:id|number)?\s*(\d+)\b"), None),
    (re.compile(r"\b(20\d{2}(?:-\d{2})?)\b"), None),
)

TREND_PATTERN = re.compile(
    r"trend|over the years|from beginning to the end|across years|year by year|year wise|year-wise|yearwise"
)
PREVIOUS_PATTERN = re.compile(r"\b(?:above|previous)\b")


def match_dataset(text: str) -> Optional[str]:
    for pattern, dataset in DATASET_RULES:
        if pattern.search(text):
            return dataset
    return None


def match_breakdown(text: str, dataset: Optional[str]) -> Optional[str]:
    # The first term that matches decides, even if it has no meaning for
    # this dataset.
    for pattern, resolve in BREAKDOWN_RULES:
        if pattern.search(text):
            return resolve(dataset)
    return None


def match_label(text: str) -> Optional[str]:
    for pattern, guard in LABEL_RULES:
        if guard is not None and not guard.search(text):
            continue
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return None


def parse_query(message, session: Optional[Session] = None) -> ParsedQuery:
    """
    Parse one user message.

    Dataset and breakdown fall back to the session when the message does
    not name them. The dataset is resolved first so terms like "race" are
    read against the remembered dataset. The label never falls back.
    """
    text = str(message or "").strip().lower()
    if not text:
        return ParsedQuery(text="")

    session = session or Session()

    dataset = match_dataset(text)
    dataset_in_query = dataset is not None
    if dataset is None:
        dataset = session.dataset

    breakdown = match_breakdown(text, dataset)
    breakdown_in_query = breakdown is not None
    if breakdown is None:
        breakdown = session.breakdown

    return ParsedQuery(
        text=text,
        dataset=dataset,
        breakdown=breakdown,
        label=match_label(text),
        wants_trend=bool(TREND_PATTERN.search(text)),
        refers_previous=bool(PREVIOUS_PATTERN.search(text)),
        dataset_in_query=dataset_in_query,
        breakdown_in_query=breakdown_in_query,
    )
